"""Builders for the credential reset and schema migration jobs."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import (
    BATCH_V1,
    CHANGELOG_KEY,
    CORE_V1,
    PASSWORD_KEY,
)
from appstack_operator.entities import AppStack
from appstack_operator.materializers.common import (
    changelog_config_map_name,
    liquibase_job_name,
    liquibase_secret_name,
    master_secret_name,
    metadata,
    reset_job_name,
    reset_service_account_name,
    secret_key_ref,
)

LIQUIBASE_PROPERTIES_DIR = "/liquibase/changelog/properties"
LIQUIBASE_UPDATE_SCRIPT = (
    f"cd {LIQUIBASE_PROPERTIES_DIR}; "
    "grep '' * | sed 's/:/: /1' > /liquibase/liquibase.properties; "
    "cd /liquibase; "
    "./docker-entrypoint.sh --defaultsFile=liquibase.properties update;"
)


def build_reset_service_account(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """Service account assuming the IAM role allowed to modify the instance."""
    annotations = {}
    if config.credential_reset_role_arn:
        annotations["eks.amazonaws.com/role-arn"] = (
            config.credential_reset_role_arn
        )
    return {
        "apiVersion": CORE_V1,
        "kind": "ServiceAccount",
        "metadata": metadata(
            record,
            reset_service_account_name(record),
            record.namespace,
            annotations=annotations,
        ),
    }


def build_credential_reset_job(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """
    One-shot job resetting the master password of a restored instance.

    An instance restored from a snapshot keeps the snapshot's master
    password, so the job sets it to the one held in the master password
    secret.
    """
    command = (
        "aws rds modify-db-instance "
        f"--db-instance-identifier={record.identity} "
        "--master-user-password $PGPASSWORD "
        f"--region {record.spec.aws_region} "
        "--apply-immediately"
    )
    return {
        "apiVersion": BATCH_V1,
        "kind": "Job",
        "metadata": metadata(record, reset_job_name(record), record.namespace),
        "spec": {
            "backoffLimit": 20,
            "template": {
                "metadata": {"labels": {"owner": record.name}},
                "spec": {
                    "serviceAccountName": reset_service_account_name(record),
                    "restartPolicy": "Never",
                    "containers": [
                        {
                            "name": "reset-creds",
                            "image": config.aws_cli_image,
                            "command": ["/bin/sh"],
                            "args": ["-c", command],
                            "env": [
                                {
                                    "name": "PGPASSWORD",
                                    "valueFrom": secret_key_ref(
                                        master_secret_name(record),
                                        PASSWORD_KEY,
                                    ),
                                }
                            ],
                        }
                    ],
                },
            },
        },
    }


def build_changelog_config_map(
    record: AppStack, config: OperatorConfig, changelog: str
) -> dict[str, Any]:
    """Config map carrying the Liquibase changelog under a single key."""
    return {
        "apiVersion": CORE_V1,
        "kind": "ConfigMap",
        "metadata": metadata(
            record, changelog_config_map_name(record), record.namespace
        ),
        "data": {CHANGELOG_KEY: changelog},
    }


def build_liquibase_job(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """One-shot job applying the changelog with the properties secret."""
    properties_secret = liquibase_secret_name(record)
    return {
        "apiVersion": BATCH_V1,
        "kind": "Job",
        "metadata": metadata(
            record, liquibase_job_name(record), record.namespace
        ),
        "spec": {
            "template": {
                "metadata": {"labels": {"owner": record.name}},
                "spec": {
                    "restartPolicy": "Never",
                    "volumes": [
                        {
                            "name": "liquibase-properties-secret",
                            "secret": {"secretName": properties_secret},
                        },
                        {
                            "name": "liquibase-changelog-configmap",
                            "configMap": {
                                "name": changelog_config_map_name(record)
                            },
                        },
                    ],
                    "containers": [
                        {
                            "name": f"{record.name}-liquibase",
                            "image": config.liquibase_image,
                            "command": ["/bin/sh", "-c"],
                            "args": [LIQUIBASE_UPDATE_SCRIPT],
                            "env": [
                                {
                                    "name": "PGPASSWORD",
                                    "valueFrom": secret_key_ref(
                                        properties_secret, PASSWORD_KEY
                                    ),
                                },
                                {
                                    "name": "JDBC_URL",
                                    "valueFrom": secret_key_ref(
                                        properties_secret, "url"
                                    ),
                                },
                            ],
                            "volumeMounts": [
                                {
                                    "name": "liquibase-properties-secret",
                                    "mountPath": LIQUIBASE_PROPERTIES_DIR,
                                },
                                {
                                    "name": "liquibase-changelog-configmap",
                                    "mountPath": (
                                        f"/liquibase/changelog/{CHANGELOG_KEY}"
                                    ),
                                    "subPath": CHANGELOG_KEY,
                                },
                            ],
                        }
                    ],
                },
            },
        },
    }
