"""Selection of the shared filesystem provisioning strategy."""

from appstack_operator.constants import FilesystemStrategy
from appstack_operator.entities import (
    AppStackValidationError,
    NewFilesystem,
    RestoreBlockVolume,
    RestoreFilesystemSnapshot,
    SharedFilesystem,
    SharedFilesystemSpec,
)


def select_strategy(shared_fs: SharedFilesystemSpec) -> FilesystemStrategy:
    """
    Choose how the shared filesystem is provisioned.

    A block-volume snapshot wins over a filesystem snapshot. With neither
    set a new filesystem is provisioned.

    Args:
        shared_fs: The sharedFs section of the AppStack

    Returns:
        The selected strategy
    """
    if shared_fs.ebs.snapshot_id:
        return FilesystemStrategy.RESTORE_BLOCK_VOLUME
    if shared_fs.fsx.snapshot_id:
        return FilesystemStrategy.RESTORE_FILESYSTEM_SNAPSHOT
    return FilesystemStrategy.NEW_FILESYSTEM


def availability_zone(region: str, zone: str) -> str:
    """Expand a zone suffix such as "a" into a full zone name."""
    if region and not zone.startswith(region):
        return f"{region}{zone}"
    return zone


def resolve_filesystem(
    shared_fs: SharedFilesystemSpec, region: str = ""
) -> SharedFilesystem:
    """
    Resolve the shared filesystem spec into its single active variant.

    Args:
        shared_fs: The sharedFs section of the AppStack
        region: AWS region, used to expand an availability zone suffix

    Returns:
        A NewFilesystem, RestoreBlockVolume or RestoreFilesystemSnapshot

    Raises:
        AppStackValidationError: If the selected variant is incomplete
    """
    try:
        return _resolve(shared_fs, region)
    except ValueError as e:
        raise AppStackValidationError(f"Invalid sharedFs: {e}") from e


def _resolve(shared_fs: SharedFilesystemSpec, region: str) -> SharedFilesystem:
    strategy = select_strategy(shared_fs)
    if strategy is FilesystemStrategy.RESTORE_BLOCK_VOLUME:
        return RestoreBlockVolume(
            snapshot_id=shared_fs.ebs.snapshot_id,
            availability_zone=availability_zone(
                region, shared_fs.ebs.availability_zone
            ),
            storage_class_name=shared_fs.ebs.storage_class_name,
            fs_type=shared_fs.ebs.fs_type,
        )
    if strategy is FilesystemStrategy.RESTORE_FILESYSTEM_SNAPSHOT:
        return RestoreFilesystemSnapshot(
            snapshot_id=shared_fs.fsx.snapshot_id,
            csi_driver_name=shared_fs.fsx.csi_driver_name,
            volume_snapshot_class_name=shared_fs.fsx.volume_snapshot_class_name,
            restore_storage_class_name=shared_fs.fsx.restore_storage_class_name,
        )
    return NewFilesystem(
        storage_class_name=shared_fs.efs.storage_class_name,
        csi_driver_name=shared_fs.efs.csi_driver_name,
    )
