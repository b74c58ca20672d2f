"""Builders for persistent volumes and claims backing the shared home."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import CORE_V1, NFS_EXPORT_PATH
from appstack_operator.entities import (
    AppStack,
    NewFilesystem,
    RestoreBlockVolume,
    RestoreFilesystemSnapshot,
)
from appstack_operator.materializers.common import (
    block_volume_pv_name,
    metadata,
    nfs_server_name,
    shared_pv_name,
)

READ_WRITE_ONCE = "ReadWriteOnce"
READ_WRITE_MANY = "ReadWriteMany"


def _size(record: AppStack) -> str:
    return f"{record.spec.shared_fs.volume_size}Gi"


def _zone_affinity(record: AppStack, zone: str) -> dict[str, Any]:
    return {
        "required": {
            "nodeSelectorTerms": [
                {
                    "matchExpressions": [
                        {
                            "key": "topology.kubernetes.io/zone",
                            "operator": "In",
                            "values": [zone],
                        },
                        {
                            "key": "topology.kubernetes.io/region",
                            "operator": "In",
                            "values": [record.spec.aws_region],
                        },
                    ]
                }
            ]
        }
    }


def _persistent_volume(
    record: AppStack,
    name: str,
    claim_name: str,
    access_mode: str,
    storage_class_name: str,
    source: dict[str, Any],
    size: str,
) -> dict[str, Any]:
    return {
        "apiVersion": CORE_V1,
        "kind": "PersistentVolume",
        "metadata": metadata(record, name),
        "spec": {
            "capacity": {"storage": size},
            "accessModes": [access_mode],
            "persistentVolumeReclaimPolicy": "Retain",
            "storageClassName": storage_class_name,
            "claimRef": {
                "kind": "PersistentVolumeClaim",
                "namespace": record.namespace,
                "name": claim_name,
            },
            **source,
        },
    }


def build_claim(
    record: AppStack,
    config: OperatorConfig,
    name: str,
    access_mode: str,
    storage_class_name: str,
    volume_name: str = "",
    data_source: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Persistent volume claim in the AppStack namespace.

    Args:
        record: The owning AppStack
        config: Operator configuration
        name: Claim name
        access_mode: ReadWriteOnce or ReadWriteMany
        storage_class_name: Storage class the claim binds through
        volume_name: Pre-provisioned volume to bind to, if any
        data_source: Object to populate the volume from, if any

    Returns:
        The PersistentVolumeClaim description
    """
    spec: dict[str, Any] = {
        "accessModes": [access_mode],
        "resources": {"requests": {"storage": _size(record)}},
        "storageClassName": storage_class_name,
    }
    if volume_name:
        spec["volumeName"] = volume_name
    if data_source:
        spec["dataSource"] = data_source
    return {
        "apiVersion": CORE_V1,
        "kind": "PersistentVolumeClaim",
        "metadata": metadata(record, name, record.namespace),
        "spec": spec,
    }


def build_block_volume_pv(
    record: AppStack,
    config: OperatorConfig,
    variant: RestoreBlockVolume,
    volume_id: str,
) -> dict[str, Any]:
    """Volume handing the restored block volume to the NFS server."""
    return _persistent_volume(
        record,
        name=block_volume_pv_name(record),
        claim_name=nfs_server_name(record),
        access_mode=READ_WRITE_ONCE,
        storage_class_name=variant.storage_class_name,
        source={
            "awsElasticBlockStore": {
                "volumeID": volume_id,
                "fsType": variant.fs_type,
            },
            "nodeAffinity": _zone_affinity(record, variant.availability_zone),
        },
        size=_size(record),
    )


def build_block_volume_claim(
    record: AppStack, config: OperatorConfig, variant: RestoreBlockVolume
) -> dict[str, Any]:
    return build_claim(
        record,
        config,
        name=nfs_server_name(record),
        access_mode=READ_WRITE_ONCE,
        storage_class_name=variant.storage_class_name,
        volume_name=block_volume_pv_name(record),
    )


def build_nfs_pv(
    record: AppStack,
    config: OperatorConfig,
    variant: RestoreBlockVolume,
    server: str,
) -> dict[str, Any]:
    """Shared home volume served by the NFS server at ``server``."""
    return _persistent_volume(
        record,
        name=shared_pv_name(record),
        claim_name=record.spec.shared_fs.claim_name,
        access_mode=READ_WRITE_MANY,
        storage_class_name=variant.storage_class_name,
        source={"nfs": {"server": server, "path": NFS_EXPORT_PATH}},
        size=_size(record),
    )


def build_nfs_claim(
    record: AppStack, config: OperatorConfig, variant: RestoreBlockVolume
) -> dict[str, Any]:
    return build_claim(
        record,
        config,
        name=record.spec.shared_fs.claim_name,
        access_mode=READ_WRITE_MANY,
        storage_class_name=variant.storage_class_name,
        volume_name=shared_pv_name(record),
    )


def build_efs_pv(
    record: AppStack,
    config: OperatorConfig,
    variant: NewFilesystem,
    filesystem_id: str,
) -> dict[str, Any]:
    """Shared home volume mounted through the EFS CSI driver."""
    return _persistent_volume(
        record,
        name=shared_pv_name(record),
        claim_name=record.spec.shared_fs.claim_name,
        access_mode=READ_WRITE_MANY,
        storage_class_name=variant.storage_class_name,
        source={
            "csi": {
                "driver": variant.csi_driver_name,
                "volumeHandle": filesystem_id,
                "readOnly": False,
            }
        },
        size=_size(record),
    )


def build_efs_claim(
    record: AppStack, config: OperatorConfig, variant: NewFilesystem
) -> dict[str, Any]:
    return build_claim(
        record,
        config,
        name=record.spec.shared_fs.claim_name,
        access_mode=READ_WRITE_MANY,
        storage_class_name=variant.storage_class_name,
        volume_name=shared_pv_name(record),
    )


def build_snapshot_claim(
    record: AppStack,
    config: OperatorConfig,
    variant: RestoreFilesystemSnapshot,
) -> dict[str, Any]:
    """Shared home claim populated from the volume snapshot."""
    return build_claim(
        record,
        config,
        name=record.spec.shared_fs.claim_name,
        access_mode=READ_WRITE_MANY,
        storage_class_name=variant.restore_storage_class_name,
        data_source={
            "apiGroup": "snapshot.storage.k8s.io",
            "kind": "VolumeSnapshot",
            "name": record.identity,
        },
    )
