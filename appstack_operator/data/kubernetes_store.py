"""ObjectStore backed by the Kubernetes API through the dynamic client."""

import logging
from functools import wraps
from typing import Any, Optional

from kubernetes import client as kube_client
from kubernetes import config as kube_config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError
from urllib3.exceptions import HTTPError

from appstack_operator.data.shared_exceptions import (
    ControlPlaneError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
)
from appstack_operator.data.store import identify

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"


def handle_api_errors(operation_name: str):
    """
    Decorator translating Kubernetes API errors into store exceptions.

    Args:
        operation_name: Name of the operation for error context
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ApiException as e:
                if e.status == 409 and operation_name == "create":
                    raise ObjectAlreadyExistsError(
                        f"{operation_name}: object already exists: {e.reason}"
                    ) from e
                if e.status == 404:
                    raise ObjectNotFoundError(
                        f"{operation_name}: object not found: {e.reason}"
                    ) from e
                raise ControlPlaneError(
                    f"{operation_name} failed with status {e.status}: "
                    f"{e.reason}"
                ) from e
            except ResourceNotFoundError as e:
                # The kind itself is not served, e.g. a CRD is missing
                raise ControlPlaneError(
                    f"{operation_name}: resource kind not served: {e}"
                ) from e
            except HTTPError as e:
                raise ControlPlaneError(
                    f"{operation_name}: transport failure: {e}"
                ) from e

        return wrapper

    return decorator


class KubernetesObjectStore:
    """
    Reads and writes typed objects of any kind through the dynamic client.

    Args:
        dynamic_client: A configured ``kubernetes.dynamic.DynamicClient``
    """

    def __init__(self, dynamic_client: DynamicClient):
        self._client = dynamic_client

    @classmethod
    def from_environment(cls) -> "KubernetesObjectStore":
        """Build a store from in-cluster config, falling back to kubeconfig."""
        try:
            kube_config.load_incluster_config()
        except ConfigException:
            logger.info("Not running in a cluster, loading kubeconfig")
            kube_config.load_kube_config()
        return cls(DynamicClient(kube_client.ApiClient()))

    def _resource(self, api_version: str, kind: str):
        return self._client.resources.get(api_version=api_version, kind=kind)

    @handle_api_errors("create")
    def create(self, manifest: dict[str, Any]) -> dict[str, Any]:
        api_version, kind, _, namespace = identify(manifest)
        resource = self._resource(api_version, kind)
        return resource.create(body=manifest, namespace=namespace).to_dict()

    @handle_api_errors("get")
    def get(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        resource = self._resource(api_version, kind)
        return resource.get(name=name, namespace=namespace).to_dict()

    @handle_api_errors("replace")
    def replace(self, manifest: dict[str, Any]) -> dict[str, Any]:
        api_version, kind, name, namespace = identify(manifest)
        resource = self._resource(api_version, kind)
        return resource.replace(
            body=manifest, name=name, namespace=namespace
        ).to_dict()

    @handle_api_errors("patch_status")
    def patch_status(
        self,
        api_version: str,
        kind: str,
        name: str,
        status: dict[str, Any],
        namespace: Optional[str] = None,
    ) -> dict[str, Any]:
        resource = self._resource(api_version, kind)
        return resource.status.patch(
            body={"status": status},
            name=name,
            namespace=namespace,
            content_type=MERGE_PATCH,
        ).to_dict()
