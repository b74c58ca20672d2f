"""
Pure builders of the dependent resources of an AppStack.

Every builder takes the AppStack and the operator configuration, plus
whatever observed values it depends on, and returns a manifest dict. Names
derive from the AppStack's name and uid only, so building twice yields the
same object.
"""

from typing import Any, Callable

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import ResourceKind
from appstack_operator.entities import AppStack
from appstack_operator.materializers.database import (
    build_database_secret,
    build_liquibase_secret,
    build_master_password_secret,
    build_parameter_group,
    build_rds_instance,
    build_subnet_group,
)
from appstack_operator.materializers.filesystem import (
    build_ebs_volume,
    build_file_system,
    build_mount_target,
    build_volume_snapshot,
    build_volume_snapshot_content,
)
from appstack_operator.materializers.jobs import (
    build_changelog_config_map,
    build_credential_reset_job,
    build_liquibase_job,
    build_reset_service_account,
)
from appstack_operator.materializers.namespace import build_namespace
from appstack_operator.materializers.nfs import (
    build_nfs_service,
    build_nfs_stateful_set,
)
from appstack_operator.materializers.volumes import (
    build_block_volume_claim,
    build_block_volume_pv,
    build_efs_claim,
    build_efs_pv,
    build_nfs_claim,
    build_nfs_pv,
    build_snapshot_claim,
)

MATERIALIZERS: dict[ResourceKind, Callable[..., dict[str, Any]]] = {
    ResourceKind.NAMESPACE: build_namespace,
    ResourceKind.DB_PARAMETER_GROUP: build_parameter_group,
    ResourceKind.DB_SUBNET_GROUP: build_subnet_group,
    ResourceKind.RDS_INSTANCE: build_rds_instance,
    ResourceKind.MASTER_PASSWORD_SECRET: build_master_password_secret,
    ResourceKind.DATABASE_SECRET: build_database_secret,
    ResourceKind.LIQUIBASE_SECRET: build_liquibase_secret,
    ResourceKind.SERVICE_ACCOUNT: build_reset_service_account,
    ResourceKind.CREDENTIAL_RESET_JOB: build_credential_reset_job,
    ResourceKind.LIQUIBASE_CONFIG_MAP: build_changelog_config_map,
    ResourceKind.LIQUIBASE_JOB: build_liquibase_job,
    ResourceKind.EBS_VOLUME: build_ebs_volume,
    ResourceKind.BLOCK_VOLUME_PV: build_block_volume_pv,
    ResourceKind.BLOCK_VOLUME_CLAIM: build_block_volume_claim,
    ResourceKind.NFS_SERVICE: build_nfs_service,
    ResourceKind.NFS_STATEFUL_SET: build_nfs_stateful_set,
    ResourceKind.NFS_PV: build_nfs_pv,
    ResourceKind.NFS_CLAIM: build_nfs_claim,
    ResourceKind.VOLUME_SNAPSHOT_CONTENT: build_volume_snapshot_content,
    ResourceKind.VOLUME_SNAPSHOT: build_volume_snapshot,
    ResourceKind.SNAPSHOT_CLAIM: build_snapshot_claim,
    ResourceKind.FILE_SYSTEM: build_file_system,
    ResourceKind.MOUNT_TARGET: build_mount_target,
    ResourceKind.EFS_PV: build_efs_pv,
    ResourceKind.EFS_CLAIM: build_efs_claim,
}


def materialize(
    kind: ResourceKind,
    record: AppStack,
    config: OperatorConfig,
    **dependencies: Any,
) -> dict[str, Any]:
    """
    Build the description of one dependent resource.

    Args:
        kind: Which dependent to build
        record: The owning AppStack
        config: Operator configuration
        **dependencies: Observed values or the filesystem variant the
            builder needs

    Returns:
        The manifest dict

    Raises:
        KeyError: If no builder is registered for ``kind``
    """
    return MATERIALIZERS[ResourceKind(kind)](record, config, **dependencies)


__all__ = ["MATERIALIZERS", "materialize"]
