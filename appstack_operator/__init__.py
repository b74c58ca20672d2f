"""Convergence reconciler for AppStack application stacks."""

from appstack_operator.config import OperatorConfig, get_config
from appstack_operator.entities import AppStack, AppStackValidationError
from appstack_operator.gitops import (
    ApplicationStatus,
    DeploymentController,
    KubectlDeploymentController,
)
from appstack_operator.reconciler import ReconcileResult, Reconciler
from appstack_operator.version import __version__

__all__ = [
    "AppStack",
    "AppStackValidationError",
    "ApplicationStatus",
    "DeploymentController",
    "KubectlDeploymentController",
    "OperatorConfig",
    "ReconcileResult",
    "Reconciler",
    "__version__",
    "get_config",
]
