"""Shared filesystem variants, exactly one of which is active per AppStack."""

from dataclasses import dataclass
from typing import ClassVar, Union

from appstack_operator.constants import FilesystemStrategy


@dataclass(frozen=True)
class NewFilesystem:
    """Provision a new elastic filesystem with one mount target per subnet."""

    strategy: ClassVar[FilesystemStrategy] = FilesystemStrategy.NEW_FILESYSTEM

    storage_class_name: str
    csi_driver_name: str


@dataclass(frozen=True)
class RestoreBlockVolume:
    """Restore a block volume from a snapshot and export it over NFS."""

    strategy: ClassVar[FilesystemStrategy] = (
        FilesystemStrategy.RESTORE_BLOCK_VOLUME
    )

    snapshot_id: str
    availability_zone: str
    storage_class_name: str
    fs_type: str

    def __post_init__(self):
        if not self.snapshot_id:
            raise ValueError("snapshot_id cannot be empty")
        if not self.availability_zone:
            raise ValueError("availability_zone cannot be empty")


@dataclass(frozen=True)
class RestoreFilesystemSnapshot:
    """Restore a filesystem snapshot through the CSI snapshot API."""

    strategy: ClassVar[FilesystemStrategy] = (
        FilesystemStrategy.RESTORE_FILESYSTEM_SNAPSHOT
    )

    snapshot_id: str
    csi_driver_name: str
    volume_snapshot_class_name: str
    restore_storage_class_name: str

    def __post_init__(self):
        if not self.snapshot_id:
            raise ValueError("snapshot_id cannot be empty")


SharedFilesystem = Union[
    NewFilesystem, RestoreBlockVolume, RestoreFilesystemSnapshot
]
