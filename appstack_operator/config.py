"""
Configuration for appstack_operator.

Uses pydantic-settings for environment variable management. Organizational
metadata (ownership tags, IAM role and certificate ARNs, ingress attributes)
lives here instead of in the resource builders.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEMPLATE_PATH = (
    Path(__file__).parent / "templates" / "applicationset.yaml.tpl"
)


class OperatorConfig(BaseSettings):
    """Configuration for the AppStack reconciler."""

    model_config = SettingsConfigDict(
        env_prefix="APPSTACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Provisioning provider
    default_provider_config_name: str = Field(
        default="default",
        description="Crossplane ProviderConfig used when none is named",
    )
    resource_tags: dict[str, str] = Field(
        default_factory=lambda: {"created_by": "appstack_operator"},
        description="Tags applied to every cloud resource (JSON in env)",
    )
    credential_reset_role_arn: str = Field(
        default="",
        description="IAM role assumed by the credential reset service account",
    )

    # Ingress
    certificate_arn: str = Field(
        default="",
        description="ACM certificate attached to the application load balancer",
    )
    ssl_policy: str = Field(
        default="ELBSecurityPolicy-FS-1-2-Res-2020-10",
        description="Load balancer TLS policy",
    )
    ingress_scheme: str = Field(
        default="internal",
        description="Load balancer scheme (internal or internet-facing)",
    )
    healthcheck_path: str = Field(
        default="/status",
        description="Target group health check path",
    )
    target_group_attributes: str = Field(
        default=(
            "stickiness.enabled=true,"
            "stickiness.lb_cookie.duration_seconds=43200"
        ),
        description="Target group attributes annotation value",
    )
    alb_tags: dict[str, str] = Field(
        default_factory=dict,
        description="Extra load balancer tags (JSON in env)",
    )

    # Images
    aws_cli_image: str = Field(default="amazon/aws-cli:2.13.14")
    liquibase_image: str = Field(default="liquibase/liquibase:4.21.0")
    nfs_server_image: str = Field(default="atlassian/nfs-server-test:2.1")

    # Database credentials
    master_username: str = Field(
        default="postgres",
        description="Database master user",
    )
    password_length: int = Field(
        default=26,
        description="Length of generated passwords",
        ge=12,
        le=128,
    )

    # Files
    changelog_path: Path = Field(
        default=Path("config/liquibase/changelog.yml"),
        description="Liquibase changelog shipped to the migration job",
    )
    manifest_dir: Path = Field(
        default=Path("manifests"),
        description="Directory receiving rendered ApplicationSet manifests",
    )
    template_path: Path = Field(
        default=DEFAULT_TEMPLATE_PATH,
        description="ApplicationSet template",
    )

    # Deployment controller
    kubectl_path: str = Field(default="kubectl")
    kubectl_timeout: int = Field(
        default=60,
        description="kubectl call timeout in seconds",
        ge=5,
        le=600,
    )

    # Scheduling
    steady_state_interval: int = Field(
        default=300,
        description="Requeue delay in seconds once every step has advanced",
        ge=10,
    )
    log_level: str = Field(default="INFO")


@lru_cache
def get_config() -> OperatorConfig:
    """Get cached configuration instance."""
    return OperatorConfig()
