"""Writes observed status back onto the AppStack, only when it changes."""

import logging

from appstack_operator.data.shared_exceptions import StatusWriteError
from appstack_operator.data.store import ObjectStore
from appstack_operator.entities import AppStack, StatusField

logger = logging.getLogger(__name__)


class StatusDeltaWriter:
    """
    Status writer scoped to one reconcile invocation.

    Each write compares the observed value against the recorded one. Equal
    values cost no store call; a differing value is merge-patched onto the
    status subresource and mirrored into the in-memory record.

    Args:
        store: Control-plane store holding the AppStack
        record: The AppStack being reconciled
    """

    def __init__(self, store: ObjectStore, record: AppStack):
        self._store = store
        self._record = record
        self._written: set[StatusField] = set()
        self.writes = 0

    def write(self, field: StatusField, value: str) -> bool:
        """
        Record an observed status value.

        Args:
            field: Status field to write
            value: Newly observed value

        Returns:
            True if a write was issued, False if the value was unchanged

        Raises:
            StatusWriteError: If the field was already written during this
                invocation
            ControlPlaneError: If the store rejects the patch
        """
        if field in self._written:
            raise StatusWriteError(
                f"Status field {field.value} written twice for "
                f"{self._record.name}"
            )
        if self._record.status.get(field) == value:
            return False

        self._store.patch_status(
            self._record.api_version,
            self._record.kind,
            self._record.name,
            {field.section: {field.key: value}},
        )
        self._record.status.set(field, value)
        self._written.add(field)
        self.writes += 1
        logger.info(
            "Updated %s status %s to %r", self._record.name, field.value, value
        )
        return True
