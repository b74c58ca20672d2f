"""Naming, ownership and metadata shared by every resource builder."""

import base64
from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import DeletionPolicy
from appstack_operator.entities import AppStack


# Names of namespaced dependents
def master_secret_name(record: AppStack) -> str:
    return f"{record.name}-rds-master-password"


def database_secret_name(record: AppStack) -> str:
    return f"{record.name}-database-secret"


def connection_secret_name(record: AppStack) -> str:
    return f"{record.name}-db-secret"


def filesystem_connection_secret_name(record: AppStack) -> str:
    return f"{record.name}-efs-secret"


def liquibase_secret_name(record: AppStack) -> str:
    return f"{record.name}-liquibase-properties-secret"


def changelog_config_map_name(record: AppStack) -> str:
    return f"{record.name}-liquibase-changelog"


def liquibase_job_name(record: AppStack) -> str:
    return f"{record.name}-liquibase-changeset"


def reset_service_account_name(record: AppStack) -> str:
    return f"{record.name}-rds-reset-sa"


def reset_job_name(record: AppStack) -> str:
    return f"{record.name}-reset-rds-credentials"


def nfs_server_name(record: AppStack) -> str:
    return f"{record.name}-nfs-server"


# Names of cluster-scoped dependents
def mount_target_name(record: AppStack, index: int) -> str:
    return f"{record.name}-{index}-{record.uid}"


def block_volume_pv_name(record: AppStack) -> str:
    return f"{nfs_server_name(record)}-{record.uid}"


def shared_pv_name(record: AppStack) -> str:
    return f"{record.spec.shared_fs.claim_name}-pv-{record.uid}"


def owner_references(record: AppStack) -> list[dict[str, Any]]:
    """Owner reference linking a dependent to its AppStack for cascade."""
    return [
        {
            "apiVersion": record.api_version,
            "kind": record.kind,
            "name": record.name,
            "uid": record.uid,
            "blockOwnerDeletion": True,
        }
    ]


def metadata(
    record: AppStack,
    name: str,
    namespace: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Object metadata carrying the owner reference."""
    meta: dict[str, Any] = {"name": name}
    if namespace is not None:
        meta["namespace"] = namespace
    meta.update(extra)
    meta["ownerReferences"] = owner_references(record)
    return meta


def deletion_policy(record: AppStack) -> DeletionPolicy:
    if record.spec.retain_on_delete:
        return DeletionPolicy.ORPHAN
    return DeletionPolicy.DELETE


def resource_spec(
    record: AppStack,
    config: OperatorConfig,
    connection_secret: str | None = None,
) -> dict[str, Any]:
    """
    Provider-facing part of a managed resource spec.

    Args:
        record: The owning AppStack
        config: Operator configuration
        connection_secret: Secret the provider writes connection details
            to, if any

    Returns:
        The providerConfigRef, deletionPolicy and optional
        writeConnectionSecretToRef entries
    """
    spec: dict[str, Any] = {
        "providerConfigRef": {
            "name": record.spec.provider_config_name
            or config.default_provider_config_name
        },
        "deletionPolicy": deletion_policy(record).value,
    }
    if connection_secret:
        spec["writeConnectionSecretToRef"] = {
            "name": connection_secret,
            "namespace": record.namespace,
        }
    return spec


def tags(record: AppStack, config: OperatorConfig) -> dict[str, str]:
    resource_tags = dict(config.resource_tags)
    resource_tags["Name"] = record.identity
    return resource_tags


def tag_list(record: AppStack, config: OperatorConfig) -> list[dict[str, str]]:
    return [{"key": k, "value": v} for k, v in tags(record, config).items()]


def encode_data(values: dict[str, str]) -> dict[str, str]:
    """Base64-encode string values for a Secret's data field."""
    return {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in values.items()
    }


def secret_key_ref(name: str, key: str) -> dict[str, Any]:
    return {"secretKeyRef": {"name": name, "key": key}}
