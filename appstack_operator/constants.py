"""
This module defines the API coordinates, phase values and requeue delays
shared by the materializers, projectors and the reconciler.
"""

from enum import Enum

# AppStack custom resource
GROUP = "operator.appstack.dev"
VERSION = "v1"
API_VERSION = f"{GROUP}/{VERSION}"
KIND = "AppStack"
PLURAL = "appstacks"

# Dependent resource API versions
CORE_V1 = "v1"
APPS_V1 = "apps/v1"
BATCH_V1 = "batch/v1"
SNAPSHOT_V1 = "snapshot.storage.k8s.io/v1"
CROSSPLANE_DATABASE = "database.aws.crossplane.io/v1beta1"
CROSSPLANE_RDS = "rds.aws.crossplane.io/v1alpha1"
CROSSPLANE_EC2 = "ec2.aws.crossplane.io/v1alpha1"
CROSSPLANE_EFS = "efs.aws.crossplane.io/v1alpha1"

# Data keys
PASSWORD_KEY = "password"
CHANGELOG_KEY = "changelog.yml"

NFS_EXPORT_PATH = "/srv/nfs"
NFS_PORT = 2049


class FilesystemStrategy(str, Enum):
    """Mutually exclusive ways to provision the shared home filesystem."""

    NEW_FILESYSTEM = "NewFilesystem"
    RESTORE_BLOCK_VOLUME = "RestoreBlockVolume"
    RESTORE_FILESYSTEM_SNAPSHOT = "RestoreFilesystemSnapshot"


class DeletionPolicy(str, Enum):
    """What the provisioning provider does with a cloud resource on delete."""

    DELETE = "Delete"
    ORPHAN = "Orphan"


class Phase(str, Enum):
    """Observed phase values the reconciler gates on."""

    AVAILABLE = "available"  # RDS instance and EFS mount targets
    SUCCEEDED = "Succeeded"  # Recorded once a one-shot job completes
    BOUND = "Bound"  # PersistentVolumeClaim
    HEALTHY = "Healthy"  # Argo CD application health


class ResourceKind(str, Enum):
    """Dependent resources the materializers know how to build."""

    NAMESPACE = "Namespace"
    DB_PARAMETER_GROUP = "DBParameterGroup"
    DB_SUBNET_GROUP = "DBSubnetGroup"
    RDS_INSTANCE = "RDSInstance"
    MASTER_PASSWORD_SECRET = "MasterPasswordSecret"
    DATABASE_SECRET = "DatabaseSecret"
    LIQUIBASE_SECRET = "LiquibaseSecret"
    SERVICE_ACCOUNT = "ServiceAccount"
    CREDENTIAL_RESET_JOB = "CredentialResetJob"
    LIQUIBASE_CONFIG_MAP = "LiquibaseConfigMap"
    LIQUIBASE_JOB = "LiquibaseJob"
    EBS_VOLUME = "EBSVolume"
    BLOCK_VOLUME_PV = "BlockVolumePersistentVolume"
    BLOCK_VOLUME_CLAIM = "BlockVolumeClaim"
    NFS_SERVICE = "NFSService"
    NFS_STATEFUL_SET = "NFSStatefulSet"
    NFS_PV = "NFSPersistentVolume"
    NFS_CLAIM = "NFSClaim"
    VOLUME_SNAPSHOT_CONTENT = "VolumeSnapshotContent"
    VOLUME_SNAPSHOT = "VolumeSnapshot"
    SNAPSHOT_CLAIM = "SnapshotClaim"
    FILE_SYSTEM = "FileSystem"
    MOUNT_TARGET = "MountTarget"
    EFS_PV = "EFSPersistentVolume"
    EFS_CLAIM = "EFSClaim"


# Requeue delays in seconds
SECONDS = 1
MINUTES = 60

DATABASE_PHASE_POLL = 30 * SECONDS
DATABASE_ENDPOINT_POLL = 10 * SECONDS
JOB_POLL = 5 * SECONDS
VOLUME_ID_POLL = 5 * SECONDS
FILESYSTEM_ID_POLL = 5 * SECONDS
MOUNT_TARGET_POLL = 10 * SECONDS
READY_REPLICAS_POLL = 10 * SECONDS
SERVICE_ADDRESS_POLL = 30 * SECONDS
CLAIM_BINDING_POLL = 30 * SECONDS

UNREADABLE_INPUT_DELAY = 10 * MINUTES
DEPLOY_ERROR_DELAY = 60 * SECONDS
