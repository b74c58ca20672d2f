"""Shared fixtures for appstack_operator tests."""

import copy
from pathlib import Path
from typing import Any, Callable

import pytest

from appstack_operator.config import OperatorConfig, get_config
from appstack_operator.entities import AppStack
from appstack_operator.reconciler.context import ReconcileContext
from tests.helpers.fake_control_plane import (
    FakeDeploymentController,
    InMemoryObjectStore,
)

CHANGELOG = """\
databaseChangeLog:
  - changeSet:
      id: create-application-user
      author: tests
      changes:
        - sql:
            sql: CREATE ROLE "${appUsername}" WITH LOGIN
"""

BASE_MANIFEST: dict[str, Any] = {
    "apiVersion": "operator.appstack.dev/v1",
    "kind": "AppStack",
    "metadata": {"name": "team-a", "uid": "1234-abcd"},
    "spec": {
        "awsRegion": "us-east-1",
        "hostname": "team-a.example.com",
        "database": {
            "engineVersion": "15.4",
            "dbInstanceClass": "db.t3.medium",
            "allocatedStorage": 50,
        },
        "network": {
            "subnetIds": ["subnet-a", "subnet-b"],
            "securityGroupIds": ["sg-1"],
        },
        "sharedFs": {
            "volumeSize": 20,
            "efs": {"storageClassName": "efs-sc"},
        },
        "argocd": {
            "helmChart": {
                "repoUrl": "https://charts.example.com",
                "chart": "app",
                "version": "1.2.3",
            },
            "helmValues": {
                "gitRepo": "https://git.example.com/values.git",
                "helmValuesFiles": ["values.yaml"],
            },
        },
    },
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line(
        "markers", "integration: reconciler runs against in-memory fakes"
    )


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Keep cached configuration from leaking between tests."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def make_manifest() -> Callable[..., dict[str, Any]]:
    """Factory for AppStack bodies, deep-merging overrides onto a base."""

    def _make(**overrides: Any) -> dict[str, Any]:
        manifest = copy.deepcopy(BASE_MANIFEST)
        _merge(manifest, overrides)
        return manifest

    return _make


@pytest.fixture
def manifest(make_manifest) -> dict[str, Any]:
    return make_manifest()


@pytest.fixture
def record(manifest) -> AppStack:
    return AppStack.from_manifest(manifest)


@pytest.fixture
def changelog_path(tmp_path: Path) -> Path:
    path = tmp_path / "changelog.yml"
    path.write_text(CHANGELOG, encoding="utf-8")
    return path


@pytest.fixture
def config(tmp_path: Path, changelog_path: Path) -> OperatorConfig:
    return OperatorConfig(
        changelog_path=changelog_path,
        manifest_dir=tmp_path / "manifests",
        certificate_arn="arn:aws:acm:us-east-1:123456789012:certificate/abc",
        credential_reset_role_arn="arn:aws:iam::123456789012:role/rds-reset",
    )


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def deployer() -> FakeDeploymentController:
    return FakeDeploymentController()


@pytest.fixture
def ctx(record, config, store, deployer) -> ReconcileContext:
    store.put(
        {
            "apiVersion": record.api_version,
            "kind": record.kind,
            "metadata": {"name": record.name, "uid": record.uid},
        }
    )
    return ReconcileContext(
        record=record, config=config, store=store, deployer=deployer
    )
