"""Builders for the database instance, its prerequisites and credentials."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import (
    CORE_V1,
    CROSSPLANE_DATABASE,
    CROSSPLANE_RDS,
    PASSWORD_KEY,
)
from appstack_operator.entities import AppStack
from appstack_operator.materializers.common import (
    connection_secret_name,
    database_secret_name,
    encode_data,
    liquibase_secret_name,
    master_secret_name,
    metadata,
    resource_spec,
    tag_list,
)

MAINTENANCE_DATABASE = "postgres"

PARAMETER_GROUP_PARAMETERS = {
    "log_statement": "ddl",
    "log_min_duration_statement": "8000",
    "rds.log_retention_period": "10080",
}


def jdbc_url(hostname: str, database: str) -> str:
    return f"jdbc:postgresql://{hostname}/{database}"


def build_parameter_group(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """DB parameter group whose family follows the engine major version."""
    database = record.spec.database
    major_version = database.engine_version.split(".")[0]
    return {
        "apiVersion": CROSSPLANE_RDS,
        "kind": "DBParameterGroup",
        "metadata": metadata(record, record.identity),
        "spec": {
            **resource_spec(record, config),
            "forProvider": {
                "region": record.spec.aws_region,
                "description": f"DB parameter group for {record.name}",
                "dbParameterGroupFamily": f"{database.engine}{major_version}",
                "parameters": [
                    {
                        "parameterName": name,
                        "parameterValue": value,
                        "applyMethod": "immediate",
                    }
                    for name, value in PARAMETER_GROUP_PARAMETERS.items()
                ],
                "tags": tag_list(record, config),
            },
        },
    }


def build_subnet_group(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    return {
        "apiVersion": CROSSPLANE_DATABASE,
        "kind": "DBSubnetGroup",
        "metadata": metadata(record, record.identity),
        "spec": {
            **resource_spec(record, config),
            "forProvider": {
                "region": record.spec.aws_region,
                "description": (
                    f"DB subnet group for {record.name} RDS instance"
                ),
                "subnetIds": list(record.spec.network.subnet_ids),
                "tags": tag_list(record, config),
            },
        },
    }


def build_rds_instance(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """
    RDS instance referencing the parameter and subnet groups.

    The master password is read by the provider from the master password
    secret. When the AppStack names a database snapshot the instance is
    restored from it.
    """
    database = record.spec.database
    for_provider: dict[str, Any] = {
        "region": record.spec.aws_region,
        "allocatedStorage": database.allocated_storage,
        "dbInstanceClass": database.db_instance_class,
        "vpcSecurityGroupIds": list(record.spec.network.security_group_ids),
        "dbParameterGroupName": record.identity,
        "dbSubnetGroupName": record.identity,
        "engine": database.engine,
        "engineVersion": database.engine_version,
        "masterUsername": config.master_username,
        "masterPasswordSecretRef": {
            "name": master_secret_name(record),
            "namespace": record.namespace,
            "key": PASSWORD_KEY,
        },
        "skipFinalSnapshotBeforeDeletion": True,
        "applyModificationsImmediately": True,
        "tags": tag_list(record, config),
    }
    if record.spec.kms_key_id:
        for_provider["kmsKeyId"] = record.spec.kms_key_id
    if database.snapshot_id:
        for_provider["restoreFrom"] = {
            "snapshot": {"snapshotIdentifier": database.snapshot_id},
            "source": "Snapshot",
        }
    return {
        "apiVersion": CROSSPLANE_DATABASE,
        "kind": "RDSInstance",
        "metadata": metadata(record, record.identity),
        "spec": {
            **resource_spec(
                record, config, connection_secret_name(record)
            ),
            "forProvider": for_provider,
        },
    }


def _secret(
    record: AppStack, name: str, values: dict[str, str]
) -> dict[str, Any]:
    return {
        "apiVersion": CORE_V1,
        "kind": "Secret",
        "metadata": metadata(record, name, record.namespace),
        "type": "Opaque",
        "data": encode_data(values),
    }


def build_master_password_secret(
    record: AppStack, config: OperatorConfig, password: str
) -> dict[str, Any]:
    """Secret holding the database master password."""
    return _secret(record, master_secret_name(record), {PASSWORD_KEY: password})


def build_database_secret(
    record: AppStack,
    config: OperatorConfig,
    password: str,
    hostname: str = "",
) -> dict[str, Any]:
    """Secret the application connects with, as the application user."""
    database = record.spec.database
    return _secret(
        record,
        database_secret_name(record),
        {
            PASSWORD_KEY: password,
            "username": database.app_username,
            "hostname": hostname,
            "jdbcUrl": jdbc_url(hostname, database.database_name),
        },
    )


def build_liquibase_secret(
    record: AppStack,
    config: OperatorConfig,
    hostname: str,
    master_password: str,
    app_password: str,
    app_ro_password: str,
) -> dict[str, Any]:
    """
    Liquibase properties, one per key, mounted into the migration job.

    The migration connects as the master user and creates the application
    users through changelog parameters.
    """
    database = record.spec.database
    return _secret(
        record,
        liquibase_secret_name(record),
        {
            PASSWORD_KEY: master_password,
            "username": config.master_username,
            "url": jdbc_url(hostname, MAINTENANCE_DATABASE),
            "hostname": hostname,
            "changeLogFile": "changelog.yml",
            "classpath": "changelog",
            "parameter.appUsername": database.app_username,
            "parameter.appRoUsername": database.app_ro_username,
            "parameter.appPassword": app_password,
            "parameter.appRoPassword": app_ro_password,
        },
    )
