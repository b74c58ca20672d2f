from appstack_operator.entities.appstack import (
    AppStack,
    AppStackSpec,
    AppStackStatus,
    AppStackValidationError,
    AppStatus,
    ArgoCDSpec,
    DatabaseSpec,
    DatabaseStatus,
    EbsOptions,
    EfsOptions,
    FsxOptions,
    HelmChart,
    HelmValues,
    NetworkSpec,
    SharedFilesystemSpec,
    SharedFilesystemStatus,
    StatusField,
    SyncPolicy,
)
from appstack_operator.entities.filesystem import (
    NewFilesystem,
    RestoreBlockVolume,
    RestoreFilesystemSnapshot,
    SharedFilesystem,
)

__all__ = [
    "AppStack",
    "AppStackSpec",
    "AppStackStatus",
    "AppStackValidationError",
    "AppStatus",
    "ArgoCDSpec",
    "DatabaseSpec",
    "DatabaseStatus",
    "EbsOptions",
    "EfsOptions",
    "FsxOptions",
    "HelmChart",
    "HelmValues",
    "NetworkSpec",
    "NewFilesystem",
    "RestoreBlockVolume",
    "RestoreFilesystemSnapshot",
    "SharedFilesystem",
    "SharedFilesystemSpec",
    "SharedFilesystemStatus",
    "StatusField",
    "SyncPolicy",
]
