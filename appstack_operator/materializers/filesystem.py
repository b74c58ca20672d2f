"""Builders for block volumes, elastic filesystems and volume snapshots."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import (
    CROSSPLANE_EC2,
    CROSSPLANE_EFS,
    SNAPSHOT_V1,
)
from appstack_operator.entities import (
    AppStack,
    RestoreBlockVolume,
    RestoreFilesystemSnapshot,
)
from appstack_operator.materializers.common import (
    filesystem_connection_secret_name,
    metadata,
    mount_target_name,
    resource_spec,
    tag_list,
)


def build_ebs_volume(
    record: AppStack, config: OperatorConfig, variant: RestoreBlockVolume
) -> dict[str, Any]:
    """Block volume restored from a snapshot, encrypted when a key is set."""
    for_provider: dict[str, Any] = {
        "region": record.spec.aws_region,
        "availabilityZone": variant.availability_zone,
        "encrypted": bool(record.spec.kms_key_id),
        "size": record.spec.shared_fs.volume_size,
        "snapshotId": variant.snapshot_id,
        "tagSpecifications": [
            {
                "resourceType": "volume",
                "tags": tag_list(record, config),
            }
        ],
    }
    if record.spec.kms_key_id:
        for_provider["kmsKeyId"] = record.spec.kms_key_id
    return {
        "apiVersion": CROSSPLANE_EC2,
        "kind": "Volume",
        "metadata": metadata(record, record.identity),
        "spec": {
            **resource_spec(record, config),
            "forProvider": for_provider,
        },
    }


def build_file_system(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """Encrypted elastic filesystem."""
    for_provider: dict[str, Any] = {
        "region": record.spec.aws_region,
        "encrypted": True,
        "tags": tag_list(record, config),
    }
    if record.spec.kms_key_id:
        for_provider["kmsKeyId"] = record.spec.kms_key_id
    return {
        "apiVersion": CROSSPLANE_EFS,
        "kind": "FileSystem",
        "metadata": metadata(record, record.identity),
        "spec": {
            **resource_spec(
                record, config, filesystem_connection_secret_name(record)
            ),
            "forProvider": for_provider,
        },
    }


def build_mount_target(
    record: AppStack,
    config: OperatorConfig,
    filesystem_id: str,
    subnet_id: str,
    index: int,
) -> dict[str, Any]:
    """
    Mount target of the filesystem in one subnet.

    Args:
        record: The owning AppStack
        config: Operator configuration
        filesystem_id: Provider-assigned filesystem id
        subnet_id: Subnet the mount target lives in
        index: Position of the subnet in spec.network, part of the name

    Returns:
        The MountTarget description
    """
    return {
        "apiVersion": CROSSPLANE_EFS,
        "kind": "MountTarget",
        "metadata": metadata(record, mount_target_name(record, index)),
        "spec": {
            **resource_spec(record, config),
            "forProvider": {
                "region": record.spec.aws_region,
                "fileSystemId": filesystem_id,
                "subnetId": subnet_id,
                "securityGroups": list(
                    record.spec.network.security_group_ids
                ),
            },
        },
    }


def build_volume_snapshot_content(
    record: AppStack,
    config: OperatorConfig,
    variant: RestoreFilesystemSnapshot,
) -> dict[str, Any]:
    """Pre-provisioned snapshot content pointing at the stored snapshot."""
    return {
        "apiVersion": SNAPSHOT_V1,
        "kind": "VolumeSnapshotContent",
        "metadata": metadata(record, record.identity),
        "spec": {
            "deletionPolicy": "Retain",
            "driver": variant.csi_driver_name,
            "volumeSnapshotClassName": variant.volume_snapshot_class_name,
            "source": {"snapshotHandle": variant.snapshot_id},
            "volumeSnapshotRef": {
                "kind": "VolumeSnapshot",
                "namespace": record.namespace,
                "name": record.identity,
            },
        },
    }


def build_volume_snapshot(
    record: AppStack,
    config: OperatorConfig,
    variant: RestoreFilesystemSnapshot,
) -> dict[str, Any]:
    return {
        "apiVersion": SNAPSHOT_V1,
        "kind": "VolumeSnapshot",
        "metadata": metadata(record, record.identity, record.namespace),
        "spec": {
            "volumeSnapshotClassName": variant.volume_snapshot_class_name,
            "source": {"volumeSnapshotContentName": record.identity},
        },
    }
