"""Protocol of the control-plane store the reconciler reads and writes."""

from typing import Any, Optional, Protocol


class ObjectStore(Protocol):
    """
    Typed-object store of the control plane.

    Implementations raise ObjectAlreadyExistsError from ``create`` when the
    identity is taken, ObjectNotFoundError from reads of absent objects, and
    ControlPlaneError for every other failure.
    """

    def create(self, manifest: dict[str, Any]) -> dict[str, Any]:
        """Create an object from its manifest and return the stored object."""
        ...

    def get(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        """Return a stored object."""
        ...

    def replace(self, manifest: dict[str, Any]) -> dict[str, Any]:
        """Replace an existing object with the given manifest."""
        ...

    def patch_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        status: dict[str, Any],
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        """Merge-patch the status subresource of an object."""
        ...


def identify(manifest: dict[str, Any]) -> tuple[str, str, str, Optional[str]]:
    """Return (apiVersion, kind, name, namespace) of a manifest."""
    meta = manifest.get("metadata") or {}
    return (
        manifest["apiVersion"],
        manifest["kind"],
        meta["name"],
        meta.get("namespace"),
    )
