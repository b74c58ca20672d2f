"""
Tests for ApplicationSet rendering and the kubectl deployment controller.
"""

import subprocess
from pathlib import Path

import pytest
import yaml

from appstack_operator.data.shared_exceptions import (
    DeploymentControllerError,
    TemplateRenderError,
)
from appstack_operator.entities import AppStack
from appstack_operator.gitops import (
    ARGOCD_RESOURCES_FINALIZER,
    ApplicationStatus,
    KubectlDeploymentController,
    ingress_annotations,
    manifest_path,
    render_application_set,
)


class TestRenderApplicationSet:
    """Test the template hand-off."""

    @pytest.mark.unit
    def test_renders_valid_manifest(self, record, config) -> None:
        """Test the rendered file parses and carries the AppStack values."""
        path = render_application_set(record, config)

        assert path == config.manifest_dir / "applicationset-team-a.yaml"
        rendered = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert rendered["kind"] == "ApplicationSet"
        assert rendered["metadata"]["name"] == "team-a"
        assert rendered["metadata"]["namespace"] == "argocd"
        template = rendered["spec"]["template"]
        assert template["metadata"]["finalizers"] == [
            ARGOCD_RESOURCES_FINALIZER
        ]
        assert template["spec"]["destination"]["namespace"] == "team-a"
        chart, values = template["spec"]["sources"]
        assert chart["repoURL"] == "https://charts.example.com"
        assert chart["targetRevision"] == "1.2.3"
        assert chart["helm"]["valueFiles"] == ["$values/values.yaml"]
        ingress = chart["helm"]["valuesObject"]["ingress"]
        assert ingress["host"] == "team-a.example.com"
        assert values["ref"] == "values"
        assert values["targetRevision"] == "HEAD"
        assert rendered["spec"]["syncPolicy"] == {
            "preserveResourcesOnDeletion": False
        }

    @pytest.mark.unit
    def test_retain_on_delete_drops_finalizer(
        self, make_manifest, config
    ) -> None:
        """Test retained applications keep their resources."""
        record = AppStack.from_manifest(
            make_manifest(
                spec={
                    "argocd": {
                        "retainOnDelete": True,
                        "syncPolicy": {"autoSync": True},
                    }
                }
            )
        )

        path = render_application_set(record, config)

        rendered = yaml.safe_load(path.read_text(encoding="utf-8"))
        template = rendered["spec"]["template"]
        assert template["metadata"]["finalizers"] == []
        assert rendered["spec"]["syncPolicy"] == {
            "preserveResourcesOnDeletion": True
        }
        assert template["spec"]["syncPolicy"]["automated"] == {
            "prune": True,
            "selfHeal": True,
        }

    @pytest.mark.unit
    def test_paths_are_unique_per_record(
        self, record, make_manifest, config
    ) -> None:
        """Test two AppStacks never share a rendered file."""
        other = AppStack.from_manifest(
            make_manifest(metadata={"name": "team-b", "uid": "u-2"})
        )

        assert manifest_path(record, config) != manifest_path(other, config)

    @pytest.mark.unit
    def test_missing_template(self, record, config, tmp_path) -> None:
        """Test an unreadable template is a render error."""
        config.template_path = tmp_path / "missing.tpl"

        with pytest.raises(TemplateRenderError, match="Cannot read template"):
            render_application_set(record, config)

    @pytest.mark.unit
    def test_unknown_placeholder(self, record, config, tmp_path) -> None:
        """Test a template naming an unknown variable is a render error."""
        template = tmp_path / "broken.tpl"
        template.write_text("name: ${unknown}\n", encoding="utf-8")
        config.template_path = template

        with pytest.raises(TemplateRenderError, match="Cannot fill"):
            render_application_set(record, config)


class TestIngressAnnotations:
    """Test load balancer annotations."""

    @pytest.mark.unit
    def test_annotations_from_config(self, record, config) -> None:
        """Test organizational values come from configuration."""
        annotations = ingress_annotations(record, config)

        assert annotations["alb.ingress.kubernetes.io/certificate-arn"] == (
            config.certificate_arn
        )
        assert annotations["alb.ingress.kubernetes.io/scheme"] == "internal"
        assert annotations["alb.ingress.kubernetes.io/subnets"] == (
            "subnet-a,subnet-b"
        )
        assert annotations["external-dns.alpha.kubernetes.io/hostname"] == (
            "team-a.example.com"
        )

    @pytest.mark.unit
    def test_no_certificate_configured(self, record, config) -> None:
        """Test the certificate annotation is omitted when unset."""
        config.certificate_arn = ""

        annotations = ingress_annotations(record, config)

        assert "alb.ingress.kubernetes.io/certificate-arn" not in annotations


class TestKubectlDeploymentController:
    """Test the kubectl adapter."""

    @pytest.mark.unit
    def test_apply(self, mocker) -> None:
        """Test apply shells out to kubectl apply."""
        mock_run = mocker.patch("subprocess.run")
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="applicationset configured\n"
        )
        controller = KubectlDeploymentController(timeout=30)

        output = controller.apply(Path("/tmp/applicationset-team-a.yaml"))

        assert output == "applicationset configured"
        mock_run.assert_called_once_with(
            ["kubectl", "apply", "-f", "/tmp/applicationset-team-a.yaml"],
            check=True,
            capture_output=True,
            text=True,
            timeout=30,
        )

    @pytest.mark.unit
    def test_application_status(self, mocker) -> None:
        """Test sync and health are read with two queries."""
        mock_run = mocker.patch("subprocess.run")
        mock_run.side_effect = [
            subprocess.CompletedProcess(args=[], returncode=0, stdout="Synced"),
            subprocess.CompletedProcess(
                args=[], returncode=0, stdout="Progressing"
            ),
        ]
        controller = KubectlDeploymentController()

        status = controller.application_status("team-a", "argocd")

        assert status == ApplicationStatus(sync="Synced", health="Progressing")
        first_call = mock_run.call_args_list[0].args[0]
        assert first_call[:5] == [
            "kubectl",
            "get",
            "application/team-a",
            "-n",
            "argocd",
        ]

    @pytest.mark.unit
    def test_non_zero_exit(self, mocker) -> None:
        """Test kubectl failures raise DeploymentControllerError."""
        mocker.patch(
            "subprocess.run",
            side_effect=subprocess.CalledProcessError(
                1, ["kubectl"], stderr="forbidden"
            ),
        )

        with pytest.raises(DeploymentControllerError, match="forbidden"):
            KubectlDeploymentController().apply(Path("manifest.yaml"))

    @pytest.mark.unit
    def test_missing_binary(self, mocker) -> None:
        """Test a missing kubectl binary raises DeploymentControllerError."""
        mocker.patch("subprocess.run", side_effect=FileNotFoundError("kubectl"))

        with pytest.raises(DeploymentControllerError):
            KubectlDeploymentController().apply(Path("manifest.yaml"))
