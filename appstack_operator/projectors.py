"""
Extraction of single observed values from fetched dependent resources.

A field the provider has not published yet projects to "" or 0. Missing
fields are expected while resources are being provisioned, so projectors
never raise for them.
"""

import base64
import binascii
from typing import Any, Callable, Union

from appstack_operator.constants import CHANGELOG_KEY

Projected = Union[str, int]


def dig(obj: Any, *path: Any) -> Any:
    """Walk nested dicts and lists, returning None on the first gap."""
    current = obj
    for key in path:
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and isinstance(key, int):
            if not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            return None
        if current is None:
            return None
    return current


def _string(obj: Any, *path: Any) -> str:
    value = dig(obj, *path)
    return "" if value is None else str(value)


def _count(obj: Any, *path: Any) -> int:
    value = dig(obj, *path)
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def database_phase(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "atProvider", "dbInstanceStatus")


def database_address(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "atProvider", "endpoint", "address")


def volume_id(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "atProvider", "volumeID")


def filesystem_id(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "atProvider", "fileSystemID")


def mount_target_state(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "atProvider", "lifeCycleState")


def job_succeeded(obj: dict[str, Any]) -> int:
    return _count(obj, "status", "succeeded")


def ready_replicas(obj: dict[str, Any]) -> int:
    return _count(obj, "status", "readyReplicas")


def cluster_ip(obj: dict[str, Any]) -> str:
    address = _string(obj, "spec", "clusterIP")
    # Headless services report "None"
    return "" if address == "None" else address


def claim_phase(obj: dict[str, Any]) -> str:
    return _string(obj, "status", "phase")


def claim_volume_name(obj: dict[str, Any]) -> str:
    return _string(obj, "spec", "volumeName")


def volume_handle(obj: dict[str, Any]) -> str:
    return _string(obj, "spec", "csi", "volumeHandle")


def secret_value(obj: dict[str, Any], key: str) -> str:
    """Decode one key of a Secret's base64 data, "" when absent or invalid."""
    encoded = dig(obj, "data", key)
    if not encoded:
        return ""
    try:
        return base64.b64decode(encoded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return ""


def config_map_value(obj: dict[str, Any], key: str = CHANGELOG_KEY) -> str:
    return _string(obj, "data", key)


PROJECTORS: dict[str, Callable[..., Projected]] = {
    "database_phase": database_phase,
    "database_address": database_address,
    "volume_id": volume_id,
    "filesystem_id": filesystem_id,
    "mount_target_state": mount_target_state,
    "job_succeeded": job_succeeded,
    "ready_replicas": ready_replicas,
    "cluster_ip": cluster_ip,
    "claim_phase": claim_phase,
    "claim_volume_name": claim_volume_name,
    "volume_handle": volume_handle,
    "secret_value": secret_value,
    "config_map_value": config_map_value,
}


def project(name: str, obj: dict[str, Any], *args: Any) -> Projected:
    """
    Project a fetched object through a named projector.

    Args:
        name: Key of the projector in PROJECTORS
        obj: The fetched object
        *args: Extra projector arguments, such as a data key

    Returns:
        The projected value

    Raises:
        KeyError: If no projector is registered under ``name``
    """
    return PROJECTORS[name](obj, *args)
