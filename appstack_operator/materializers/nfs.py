"""Builders for the NFS server exporting a restored block volume."""

from typing import Any

from appstack_operator.config import OperatorConfig
from appstack_operator.constants import (
    APPS_V1,
    CORE_V1,
    NFS_EXPORT_PATH,
    NFS_PORT,
)
from appstack_operator.entities import AppStack, RestoreBlockVolume
from appstack_operator.materializers.common import metadata, nfs_server_name


def _labels(record: AppStack) -> dict[str, str]:
    return {"app": "nfs-server", "owner": record.name}


def build_nfs_service(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    return {
        "apiVersion": CORE_V1,
        "kind": "Service",
        "metadata": metadata(record, nfs_server_name(record), record.namespace),
        "spec": {
            "type": "ClusterIP",
            "selector": _labels(record),
            "ports": [{"name": "nfs", "protocol": "TCP", "port": NFS_PORT}],
        },
    }


def build_nfs_stateful_set(
    record: AppStack, config: OperatorConfig, variant: RestoreBlockVolume
) -> dict[str, Any]:
    """
    Single-replica NFS server mounting the block volume claim.

    The pod is pinned to the block volume's availability zone because the
    volume cannot attach anywhere else.
    """
    name = nfs_server_name(record)
    return {
        "apiVersion": APPS_V1,
        "kind": "StatefulSet",
        "metadata": metadata(record, name, record.namespace),
        "spec": {
            "replicas": 1,
            "serviceName": name,
            "updateStrategy": {"type": "RollingUpdate"},
            "selector": {"matchLabels": _labels(record)},
            "template": {
                "metadata": {"labels": _labels(record)},
                "spec": {
                    "terminationGracePeriodSeconds": 0,
                    "affinity": {
                        "nodeAffinity": {
                            "requiredDuringSchedulingIgnoredDuringExecution": {
                                "nodeSelectorTerms": [
                                    {
                                        "matchExpressions": [
                                            {
                                                "key": "topology.kubernetes.io/zone",
                                                "operator": "In",
                                                "values": [
                                                    variant.availability_zone
                                                ],
                                            }
                                        ]
                                    }
                                ]
                            }
                        }
                    },
                    "volumes": [
                        {
                            "name": "data",
                            "persistentVolumeClaim": {"claimName": name},
                        }
                    ],
                    "containers": [
                        {
                            "name": "nfs-server",
                            "image": config.nfs_server_image,
                            "securityContext": {
                                "capabilities": {
                                    "add": ["DAC_READ_SEARCH", "SYS_RESOURCE"]
                                }
                            },
                            "ports": [
                                {
                                    "name": "nfs",
                                    "containerPort": NFS_PORT,
                                    "protocol": "TCP",
                                }
                            ],
                            "volumeMounts": [
                                {"name": "data", "mountPath": NFS_EXPORT_PATH}
                            ],
                            "readinessProbe": {
                                "exec": {
                                    "command": [
                                        "/usr/local/bin/docker-entrypoint.sh",
                                        "healthcheck",
                                    ]
                                },
                                "initialDelaySeconds": 5,
                                "periodSeconds": 1,
                                "failureThreshold": 30,
                            },
                        }
                    ],
                },
            },
        },
    }
