"""
Typed models for the AppStack custom resource.

The AppStack spec models mirror the camelCase JSON of the resource body through
aliases. The status models are written back through the same aliases, so
``model_dump(by_alias=True)`` produces the layout stored on the resource.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from appstack_operator.constants import API_VERSION, KIND
from appstack_operator.data.shared_exceptions import OperatorError


class AppStackValidationError(OperatorError):
    """Raised when an AppStack resource body cannot be parsed."""


class DatabaseSpec(BaseModel):
    """Database engine, size and optional restore source."""

    model_config = ConfigDict(populate_by_name=True)

    engine: str = "postgres"
    engine_version: str = Field(default="", alias="engineVersion")
    db_instance_class: str = Field(default="", alias="dbInstanceClass")
    allocated_storage: int = Field(default=20, alias="allocatedStorage", ge=0)
    snapshot_id: str = Field(default="", alias="snapshotId")
    app_username: str = Field(default="app", alias="appUsername")
    app_ro_username: str = Field(default="app-ro", alias="appRoUsername")
    database_name: str = Field(default="app", alias="databaseName")


class NetworkSpec(BaseModel):
    """Subnets and security groups the database and filesystem attach to."""

    model_config = ConfigDict(populate_by_name=True)

    subnet_ids: list[str] = Field(default_factory=list, alias="subnetIds")
    security_group_ids: list[str] = Field(
        default_factory=list, alias="securityGroupIds"
    )


class EbsOptions(BaseModel):
    """Parameters for restoring shared home from a block-volume snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    snapshot_id: str = Field(default="", alias="snapshotId")
    # Either a full zone name or a suffix appended to the region ("a")
    availability_zone: str = Field(
        default="a", alias="availabilityZone", min_length=1
    )
    storage_class_name: str = Field(default="", alias="storageClassName")
    fs_type: str = Field(default="ext4", alias="fsType")


class EfsOptions(BaseModel):
    """Parameters for a new elastic filesystem."""

    model_config = ConfigDict(populate_by_name=True)

    storage_class_name: str = Field(default="", alias="storageClassName")
    csi_driver_name: str = Field(
        default="efs.csi.aws.com", alias="csiDriverName"
    )


class FsxOptions(BaseModel):
    """Parameters for restoring shared home from a filesystem snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    snapshot_id: str = Field(default="", alias="snapshotId")
    csi_driver_name: str = Field(
        default="fsx.openzfs.csi.aws.com", alias="csiDriverName"
    )
    volume_snapshot_class_name: str = Field(
        default="", alias="volumeSnapshotClassName"
    )
    restore_storage_class_name: str = Field(
        default="", alias="restoreStorageClassName"
    )


class SharedFilesystemSpec(BaseModel):
    """Shared home filesystem. At most one snapshot id should be set."""

    model_config = ConfigDict(populate_by_name=True)

    volume_size: int = Field(default=10, alias="volumeSize", gt=0)
    claim_name: str = Field(default="shared-home", alias="claimName")
    ebs: EbsOptions = Field(default_factory=EbsOptions)
    efs: EfsOptions = Field(default_factory=EfsOptions)
    fsx: FsxOptions = Field(default_factory=FsxOptions)


class HelmValues(BaseModel):
    """Git coordinates of the Helm values files and inline overrides."""

    model_config = ConfigDict(populate_by_name=True)

    git_repo: str = Field(default="", alias="gitRepo")
    git_revision: str = Field(default="HEAD", alias="gitRevision")
    values_files: list[str] = Field(
        default_factory=list, alias="helmValuesFiles"
    )
    value_overrides: str = Field(default="", alias="valueOverrides")


class HelmChart(BaseModel):
    """Helm chart coordinates."""

    model_config = ConfigDict(populate_by_name=True)

    repo_url: str = Field(default="", alias="repoUrl")
    chart: str = ""
    version: str = ""


class SyncPolicy(BaseModel):
    """Argo CD sync flags."""

    model_config = ConfigDict(populate_by_name=True)

    auto_sync: bool = Field(default=False, alias="autoSync")
    apply_out_of_sync_only: bool = Field(
        default=False, alias="applyOutOfSyncOnly"
    )


class ArgoCDSpec(BaseModel):
    """GitOps deployment of the application chart."""

    model_config = ConfigDict(populate_by_name=True)

    namespace: str = "argocd"
    project: str = "default"
    retain_on_delete: bool = Field(default=False, alias="retainOnDelete")
    sync_policy: SyncPolicy = Field(
        default_factory=SyncPolicy, alias="syncPolicy"
    )
    helm_chart: HelmChart = Field(default_factory=HelmChart, alias="helmChart")
    helm_values: HelmValues = Field(
        default_factory=HelmValues, alias="helmValues"
    )


class AppStackSpec(BaseModel):
    """Desired state of an AppStack."""

    model_config = ConfigDict(populate_by_name=True)

    aws_region: str = Field(default="", alias="awsRegion")
    provider_config_name: str | None = Field(
        default=None, alias="providerConfigName"
    )
    retain_on_delete: bool = Field(default=False, alias="retainOnDelete")
    hostname: str = ""
    kms_key_id: str = Field(default="", alias="kmsKeyId")
    database: DatabaseSpec = Field(default_factory=DatabaseSpec)
    network: NetworkSpec = Field(default_factory=NetworkSpec)
    shared_fs: SharedFilesystemSpec = Field(
        default_factory=SharedFilesystemSpec, alias="sharedFs"
    )
    argocd: ArgoCDSpec = Field(default_factory=ArgoCDSpec)


class DatabaseStatus(BaseModel):
    """Observed database and migration state."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = ""
    endpoint: str = ""
    liquibase_job_status: str = Field(default="", alias="liquibaseJobStatus")
    reset_rds_creds_job_status: str = Field(
        default="", alias="resetRdsCredsJobStatus"
    )


class SharedFilesystemStatus(BaseModel):
    """Identifier of the shared filesystem, set by the strategy that ran."""

    model_config = ConfigDict(populate_by_name=True)

    efs_id: str = Field(default="", alias="efsId")
    ebs_id: str = Field(default="", alias="ebsId")
    fsx_id: str = Field(default="", alias="fsxId")


class AppStatus(BaseModel):
    """Observed Argo CD application state."""

    sync: str = ""
    health: str = ""


class StatusField(str, Enum):
    """Dotted alias path of every status field the reconciler writes."""

    DATABASE_PHASE = "rds.status"
    DATABASE_ENDPOINT = "rds.endpoint"
    MIGRATION_JOB = "rds.liquibaseJobStatus"
    CREDENTIAL_RESET_JOB = "rds.resetRdsCredsJobStatus"
    EFS_ID = "sharedFilesystemStatus.efsId"
    EBS_ID = "sharedFilesystemStatus.ebsId"
    FSX_ID = "sharedFilesystemStatus.fsxId"
    APP_SYNC = "app.sync"
    APP_HEALTH = "app.health"

    @property
    def section(self) -> str:
        return self.value.split(".", 1)[0]

    @property
    def key(self) -> str:
        return self.value.split(".", 1)[1]


def _attribute_for(model: BaseModel, alias: str) -> str:
    for name, info in type(model).model_fields.items():
        if (info.alias or name) == alias:
            return name
    raise KeyError(alias)


class AppStackStatus(BaseModel):
    """Observed state of an AppStack, owned by the reconciler."""

    model_config = ConfigDict(populate_by_name=True)

    rds: DatabaseStatus = Field(default_factory=DatabaseStatus)
    shared_filesystem_status: SharedFilesystemStatus = Field(
        default_factory=SharedFilesystemStatus, alias="sharedFilesystemStatus"
    )
    app: AppStatus = Field(default_factory=AppStatus)

    def get(self, field: StatusField) -> str:
        """Return the recorded value of a status field."""
        section = getattr(self, _attribute_for(self, field.section))
        return getattr(section, _attribute_for(section, field.key))

    def set(self, field: StatusField, value: str) -> None:
        """Record a new value for a status field."""
        section = getattr(self, _attribute_for(self, field.section))
        setattr(section, _attribute_for(section, field.key), value)


class AppStack(BaseModel):
    """
    An AppStack resource: identity, desired state and observed state.

    Attributes:
        api_version: API version of the resource, used in owner references
        kind: Kind of the resource, used in owner references
        name: Resource name, also the namespace dependents are created in
        uid: Unique id assigned by the control plane
        spec: Desired state
        status: Observed state
    """

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str = KIND
    name: str = Field(..., min_length=1)
    uid: str = Field(..., min_length=1)
    spec: AppStackSpec = Field(default_factory=AppStackSpec)
    status: AppStackStatus = Field(default_factory=AppStackStatus)

    @property
    def identity(self) -> str:
        """Deterministic identity shared by cluster-scoped dependents."""
        return f"{self.name}-{self.uid}"

    @property
    def namespace(self) -> str:
        """Namespace holding the namespaced dependents."""
        return self.name

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> AppStack:
        """Parse an AppStack from its resource body.

        Args:
            manifest: Resource body with apiVersion, kind, metadata, spec
                and status

        Returns:
            The parsed AppStack

        Raises:
            AppStackValidationError: If the body is missing its identity or
                holds invalid values
        """
        metadata = manifest.get("metadata") or {}
        try:
            return cls(
                apiVersion=manifest.get("apiVersion") or API_VERSION,
                kind=manifest.get("kind") or KIND,
                name=metadata.get("name") or "",
                uid=metadata.get("uid") or "",
                spec=manifest.get("spec") or {},
                status=manifest.get("status") or {},
            )
        except ValidationError as e:
            raise AppStackValidationError(
                f"Invalid AppStack {metadata.get('name')!r}: {e}"
            ) from e
