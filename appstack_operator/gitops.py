"""
Hand-off of the application to the GitOps deployment controller.

The ApplicationSet manifest is rendered from a text template into one file
per AppStack and applied by a DeploymentController. The controller is an
injectable collaborator so the reconciler can be driven without a cluster.
"""

import json
import logging
import string
import subprocess
from pathlib import Path
from typing import Any, NamedTuple, Protocol

import yaml

from appstack_operator.config import OperatorConfig
from appstack_operator.data.shared_exceptions import (
    DeploymentControllerError,
    TemplateRenderError,
)
from appstack_operator.entities import AppStack

logger = logging.getLogger(__name__)

ARGOCD_RESOURCES_FINALIZER = "resources-finalizer.argocd.argoproj.io"
LISTEN_PORTS = '[{"HTTP": 80}, {"HTTPS": 443}]'


class ApplicationStatus(NamedTuple):
    """Sync and health phase of a deployed application."""

    sync: str
    health: str


class DeploymentController(Protocol):
    """GitOps deployment controller consumed by the reconciler."""

    def apply(self, manifest_path: Path) -> str:
        """Idempotently upsert the manifest at ``manifest_path``."""
        ...

    def application_status(
        self, name: str, namespace: str
    ) -> ApplicationStatus:
        """Return the sync and health phase of a named application."""
        ...


def manifest_path(record: AppStack, config: OperatorConfig) -> Path:
    """Rendered manifest location, unique per AppStack name."""
    return Path(config.manifest_dir) / f"applicationset-{record.name}.yaml"


def ingress_annotations(
    record: AppStack, config: OperatorConfig
) -> dict[str, str]:
    """Load balancer and DNS annotations for the application ingress."""
    alb_tags = {"service_name": record.name, "Name": record.name}
    alb_tags.update(config.alb_tags)
    annotations = {
        "alb.ingress.kubernetes.io/healthcheck-path": config.healthcheck_path,
        "alb.ingress.kubernetes.io/listen-ports": LISTEN_PORTS,
        "alb.ingress.kubernetes.io/scheme": config.ingress_scheme,
        "alb.ingress.kubernetes.io/ssl-policy": config.ssl_policy,
        "alb.ingress.kubernetes.io/subnets": ",".join(
            record.spec.network.subnet_ids
        ),
        "alb.ingress.kubernetes.io/tags": ",".join(
            f"{key}={value}" for key, value in alb_tags.items()
        ),
        "alb.ingress.kubernetes.io/target-group-attributes": (
            config.target_group_attributes
        ),
        "alb.ingress.kubernetes.io/target-type": "ip",
        "external-dns.alpha.kubernetes.io/hostname": record.spec.hostname,
    }
    if config.certificate_arn:
        annotations["alb.ingress.kubernetes.io/certificate-arn"] = (
            config.certificate_arn
        )
    return annotations


def sync_policy(record: AppStack) -> dict[str, Any]:
    policy = record.spec.argocd.sync_policy
    rendered: dict[str, Any] = {
        "syncOptions": [
            f"ApplyOutOfSyncOnly={str(policy.apply_out_of_sync_only).lower()}"
        ]
    }
    if policy.auto_sync:
        rendered["automated"] = {"prune": True, "selfHeal": True}
    return rendered


def template_variables(
    record: AppStack, config: OperatorConfig
) -> dict[str, Any]:
    """
    Values substituted into the ApplicationSet template.

    Args:
        record: The AppStack being deployed
        config: Operator configuration

    Returns:
        Template variable name to plain Python value
    """
    argocd = record.spec.argocd
    return {
        "name": record.name,
        "uid": record.uid,
        "namespace": record.namespace,
        "argocd_namespace": argocd.namespace,
        "argocd_project": argocd.project,
        "retain_on_delete": argocd.retain_on_delete,
        "finalizers": (
            [] if argocd.retain_on_delete else [ARGOCD_RESOURCES_FINALIZER]
        ),
        "sync_policy": sync_policy(record),
        "helm_chart_repo": argocd.helm_chart.repo_url,
        "helm_chart": argocd.helm_chart.chart or record.name,
        "helm_chart_version": argocd.helm_chart.version,
        "helm_values_repo": argocd.helm_values.git_repo,
        "helm_values_revision": argocd.helm_values.git_revision,
        "values_files": [
            f"$values/{path}" for path in argocd.helm_values.values_files
        ],
        "inline_values": argocd.helm_values.value_overrides,
        "hostname": record.spec.hostname,
        "ingress_annotations": ingress_annotations(record, config),
    }


def render_application_set(record: AppStack, config: OperatorConfig) -> Path:
    """
    Render the ApplicationSet manifest of an AppStack to its file.

    Args:
        record: The AppStack being deployed
        config: Operator configuration naming the template and output dir

    Returns:
        Path of the rendered manifest

    Raises:
        TemplateRenderError: If the template cannot be read or filled, the
            result is not valid YAML, or the file cannot be written
    """
    try:
        template = Path(config.template_path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateRenderError(
            f"Cannot read template {config.template_path}: {e}"
        ) from e

    variables = {
        key: json.dumps(value)
        for key, value in template_variables(record, config).items()
    }
    try:
        rendered = string.Template(template).substitute(variables)
        yaml.safe_load(rendered)
    except (KeyError, ValueError) as e:
        raise TemplateRenderError(
            f"Cannot fill template {config.template_path}: {e}"
        ) from e
    except yaml.YAMLError as e:
        raise TemplateRenderError(f"Rendered manifest is not YAML: {e}") from e

    path = manifest_path(record, config)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(rendered, encoding="utf-8")
    except OSError as e:
        raise TemplateRenderError(f"Cannot write {path}: {e}") from e
    logger.debug("Rendered ApplicationSet for %s to %s", record.name, path)
    return path


class KubectlDeploymentController:
    """
    DeploymentController shelling out to kubectl.

    Args:
        kubectl_path: kubectl binary
        timeout: Seconds before a call is abandoned
    """

    def __init__(self, kubectl_path: str = "kubectl", timeout: int = 60):
        self.kubectl_path = kubectl_path
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        command = [self.kubectl_path, *args]
        try:
            result = subprocess.run(
                command,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise DeploymentControllerError(
                f"{' '.join(command)} exited with {e.returncode}: "
                f"{(e.stderr or '').strip()}"
            ) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise DeploymentControllerError(
                f"{' '.join(command)} failed: {e}"
            ) from e
        return result.stdout.strip()

    def apply(self, manifest_path: Path) -> str:
        return self._run("apply", "-f", str(manifest_path))

    def application_status(
        self, name: str, namespace: str
    ) -> ApplicationStatus:
        resource = f"application/{name}"
        sync = self._run(
            "get",
            resource,
            "-n",
            namespace,
            "-o",
            "jsonpath={.status.sync.status}",
        )
        health = self._run(
            "get",
            resource,
            "-n",
            namespace,
            "-o",
            "jsonpath={.status.health.status}",
        )
        return ApplicationStatus(sync=sync, health=health)
