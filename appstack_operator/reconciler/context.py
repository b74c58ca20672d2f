"""State shared by the steps of one reconcile invocation."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import ResourceKind
from appstack_operator.data.shared_exceptions import (
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
)
from appstack_operator.data.store import ObjectStore, identify
from appstack_operator.entities import AppStack, SharedFilesystem
from appstack_operator.gitops import DeploymentController
from appstack_operator.materializers import materialize
from appstack_operator.reconciler.status_writer import StatusDeltaWriter
from appstack_operator.strategy import resolve_filesystem

logger = logging.getLogger(__name__)


@dataclass
class ReconcileContext:
    """
    Collaborators and intermediate values of one invocation.

    Attributes:
        record: The AppStack being reconciled
        config: Operator configuration
        store: Control-plane store
        deployer: GitOps deployment controller
        status: Status writer for this invocation
        filesystem: The active shared filesystem variant
        observed: Values read by earlier steps for later ones
    """

    record: AppStack
    config: OperatorConfig
    store: ObjectStore
    deployer: DeploymentController
    status: StatusDeltaWriter = field(init=False)
    filesystem: SharedFilesystem = field(init=False)
    observed: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.status = StatusDeltaWriter(self.store, self.record)
        self.filesystem = resolve_filesystem(
            self.record.spec.shared_fs, self.record.spec.aws_region
        )

    def build(self, kind: ResourceKind, **dependencies: Any) -> dict[str, Any]:
        return materialize(kind, self.record, self.config, **dependencies)

    def ensure(self, manifest: dict[str, Any]) -> bool:
        """
        Create a dependent, treating an existing identity as success.

        Returns:
            True if the object was created, False if it already existed
        """
        _, kind, name, namespace = identify(manifest)
        try:
            self.store.create(manifest)
        except ObjectAlreadyExistsError:
            logger.debug("%s %s already exists", kind, name)
            return False
        logger.info(
            "Created %s %s%s",
            kind,
            f"{namespace}/" if namespace else "",
            name,
        )
        return True

    def fetch(self, manifest: dict[str, Any]) -> dict[str, Any]:
        """Read the stored counterpart of a materialized manifest."""
        api_version, kind, name, namespace = identify(manifest)
        return self.store.get(api_version, kind, name, namespace)

    def exists(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> bool:
        try:
            self.store.get(api_version, kind, name, namespace)
        except ObjectNotFoundError:
            return False
        return True
