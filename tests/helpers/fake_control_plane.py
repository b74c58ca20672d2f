"""In-memory stand-ins for the control-plane store and deployment controller."""

import copy
from pathlib import Path
from typing import Any, Optional

from appstack_operator.data.shared_exceptions import (
    DeploymentControllerError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
)
from appstack_operator.data.store import identify
from appstack_operator.gitops import ApplicationStatus

Key = tuple[str, str, Optional[str], str]


def _merge(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class InMemoryObjectStore:
    """
    ObjectStore keeping objects in a dict keyed by identity.

    Every protocol call is recorded in ``calls`` as ``(verb, kind, name)``.
    ``put`` and ``set_status`` simulate other controllers and are not
    recorded.
    """

    def __init__(self):
        self.objects: dict[Key, dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []

    @staticmethod
    def _key(
        api_version: str, kind: str, name: str, namespace: Optional[str]
    ) -> Key:
        return (api_version, kind, namespace, name)

    def create(self, manifest: dict[str, Any]) -> dict[str, Any]:
        api_version, kind, name, namespace = identify(manifest)
        self.calls.append(("create", kind, name))
        key = self._key(api_version, kind, name, namespace)
        if key in self.objects:
            raise ObjectAlreadyExistsError(f"{kind} {name} already exists")
        self.objects[key] = copy.deepcopy(manifest)
        return copy.deepcopy(manifest)

    def get(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        self.calls.append(("get", kind, name))
        key = self._key(api_version, kind, name, namespace)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{kind} {name} not found")
        return copy.deepcopy(self.objects[key])

    def replace(self, manifest: dict[str, Any]) -> dict[str, Any]:
        api_version, kind, name, namespace = identify(manifest)
        self.calls.append(("replace", kind, name))
        key = self._key(api_version, kind, name, namespace)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{kind} {name} not found")
        replacement = copy.deepcopy(manifest)
        if "status" in self.objects[key]:
            replacement["status"] = self.objects[key]["status"]
        self.objects[key] = replacement
        return copy.deepcopy(replacement)

    def patch_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        status: dict[str, Any],
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        self.calls.append(("patch_status", kind, name))
        key = self._key(api_version, kind, name, namespace)
        if key not in self.objects:
            raise ObjectNotFoundError(f"{kind} {name} not found")
        _merge(self.objects[key].setdefault("status", {}), status)
        return copy.deepcopy(self.objects[key])

    # Test-side helpers

    def put(self, manifest: dict[str, Any]) -> None:
        api_version, kind, name, namespace = identify(manifest)
        key = self._key(api_version, kind, name, namespace)
        self.objects[key] = copy.deepcopy(manifest)

    def object(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        return self.objects.get(self._key(api_version, kind, name, namespace))

    def set_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        status: dict[str, Any],
        namespace: Optional[str] = None,
    ) -> None:
        """Merge provider-reported status into a stored object."""
        obj = self.objects[self._key(api_version, kind, name, namespace)]
        _merge(obj.setdefault("status", {}), status)

    def set_field(
        self,
        api_version: str,
        kind: str,
        name: str,
        patch: dict[str, Any],
        namespace: Optional[str] = None,
    ) -> None:
        """Merge arbitrary fields, such as an allocated cluster IP."""
        obj = self.objects[self._key(api_version, kind, name, namespace)]
        _merge(obj, patch)

    def names(self, kind: str) -> list[str]:
        return sorted(key[3] for key in self.objects if key[1] == kind)

    def count(self, verb: str, kind: Optional[str] = None) -> int:
        return sum(
            1
            for call_verb, call_kind, _ in self.calls
            if call_verb == verb and (kind is None or call_kind == kind)
        )


class FakeDeploymentController:
    """DeploymentController recording applied manifests."""

    def __init__(
        self, sync: str = "Synced", health: str = "Healthy", fail: bool = False
    ):
        self.sync = sync
        self.health = health
        self.fail = fail
        self.applied: list[Path] = []

    def apply(self, manifest_path: Path) -> str:
        if self.fail:
            raise DeploymentControllerError("apply refused")
        self.applied.append(Path(manifest_path))
        return f"applicationset configured from {manifest_path}"

    def application_status(
        self, name: str, namespace: str
    ) -> ApplicationStatus:
        return ApplicationStatus(sync=self.sync, health=self.health)
