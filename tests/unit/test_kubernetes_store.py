"""
Tests for the Kubernetes-backed object store.
"""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from appstack_operator.data.kubernetes_store import (
    MERGE_PATCH,
    KubernetesObjectStore,
)
from appstack_operator.data.shared_exceptions import (
    ControlPlaneError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
)

SECRET = {
    "apiVersion": "v1",
    "kind": "Secret",
    "metadata": {"name": "team-a-database-secret", "namespace": "team-a"},
    "data": {},
}


@pytest.fixture
def resource():
    return MagicMock()


@pytest.fixture
def kube_store(resource):
    dynamic_client = MagicMock()
    dynamic_client.resources.get.return_value = resource
    return KubernetesObjectStore(dynamic_client)


@pytest.mark.unit
def test_create_passes_namespace(kube_store, resource):
    resource.create.return_value.to_dict.return_value = SECRET

    assert kube_store.create(SECRET) == SECRET
    resource.create.assert_called_once_with(body=SECRET, namespace="team-a")


@pytest.mark.unit
def test_get_cluster_scoped(kube_store, resource):
    resource.get.return_value.to_dict.return_value = {"kind": "Namespace"}

    kube_store.get("v1", "Namespace", "team-a")

    resource.get.assert_called_once_with(name="team-a", namespace=None)


@pytest.mark.unit
def test_patch_status_uses_merge_patch(kube_store, resource):
    kube_store.patch_status(
        "operator.appstack.dev/v1",
        "AppStack",
        "team-a",
        {"rds": {"status": "available"}},
    )

    resource.status.patch.assert_called_once_with(
        body={"status": {"rds": {"status": "available"}}},
        name="team-a",
        namespace=None,
        content_type=MERGE_PATCH,
    )


@pytest.mark.unit
def test_conflict_on_create_is_already_exists(kube_store, resource):
    resource.create.side_effect = ApiException(status=409, reason="Conflict")

    with pytest.raises(ObjectAlreadyExistsError):
        kube_store.create(SECRET)


@pytest.mark.unit
def test_conflict_on_replace_is_control_plane_error(kube_store, resource):
    resource.replace.side_effect = ApiException(status=409, reason="Conflict")

    with pytest.raises(ControlPlaneError) as exc_info:
        kube_store.replace(SECRET)

    assert not isinstance(exc_info.value, ObjectAlreadyExistsError)


@pytest.mark.unit
def test_not_found(kube_store, resource):
    resource.get.side_effect = ApiException(status=404, reason="Not Found")

    with pytest.raises(ObjectNotFoundError, match="Not Found"):
        kube_store.get("v1", "Secret", "missing", "team-a")


@pytest.mark.unit
def test_server_error(kube_store, resource):
    resource.get.side_effect = ApiException(status=500, reason="Internal")

    with pytest.raises(ControlPlaneError, match="500"):
        kube_store.get("v1", "Secret", "s", "team-a")


@pytest.mark.unit
def test_transport_failure(kube_store, resource):
    resource.get.side_effect = MaxRetryError(None, "/api", "refused")

    with pytest.raises(ControlPlaneError, match="transport"):
        kube_store.get("v1", "Secret", "s", "team-a")


@pytest.mark.unit
def test_from_environment_falls_back_to_kubeconfig(mocker):
    mocker.patch(
        "appstack_operator.data.kubernetes_store.kube_config."
        "load_incluster_config",
        side_effect=ConfigException("not in cluster"),
    )
    load_kube_config = mocker.patch(
        "appstack_operator.data.kubernetes_store.kube_config.load_kube_config"
    )
    mocker.patch("appstack_operator.data.kubernetes_store.kube_client.ApiClient")
    dynamic_client = mocker.patch(
        "appstack_operator.data.kubernetes_store.DynamicClient"
    )

    store = KubernetesObjectStore.from_environment()

    load_kube_config.assert_called_once_with()
    assert store._client is dynamic_client.return_value
