"""
kopf wiring of the AppStack reconciler.

Create, update and resume events and a periodic timer all funnel into the
same reconcile invocation. A Retry or Fail outcome is handed back to kopf as
a TemporaryError carrying the requeue delay, so kopf schedules the next
invocation.
"""

import logging
import threading
from functools import lru_cache
from typing import Any

import kopf

from appstack_operator.config import get_config
from appstack_operator.constants import API_VERSION, GROUP, KIND, PLURAL, VERSION
from appstack_operator.data.kubernetes_store import KubernetesObjectStore
from appstack_operator.data.shared_exceptions import ObjectNotFoundError
from appstack_operator.gitops import KubectlDeploymentController
from appstack_operator.reconciler import ReconcileResult, Reconciler

logger = logging.getLogger(__name__)

_record_locks: dict[str, threading.Lock] = {}
_record_locks_guard = threading.Lock()


@lru_cache(maxsize=1)
def get_reconciler() -> Reconciler:
    """Reconciler bound to the current cluster, built on first use."""
    config = get_config()
    return Reconciler(
        store=KubernetesObjectStore.from_environment(),
        deployer=KubectlDeploymentController(
            kubectl_path=config.kubectl_path,
            timeout=config.kubectl_timeout,
        ),
        config=config,
    )


def record_lock(name: str) -> threading.Lock:
    """Lock serializing the invocations of one AppStack."""
    with _record_locks_guard:
        return _record_locks.setdefault(name, threading.Lock())


def to_kopf(result: ReconcileResult) -> None:
    """
    Translate a reconcile result into kopf's scheduling.

    Raises:
        kopf.TemporaryError: If the invocation stopped early
    """
    if result.error is not None:
        raise kopf.TemporaryError(
            f"{result.step or 'validation'} failed: {result.error}",
            delay=result.requeue_after,
        )
    if result.step is not None:
        raise kopf.TemporaryError(
            f"waiting at {result.step}", delay=result.requeue_after
        )


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    config = get_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    settings.posting.level = logging.WARNING


@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.timer(
    GROUP, VERSION, PLURAL, interval=get_config().steady_state_interval
)
def reconcile_appstack(name: str, **_: Any) -> None:
    """
    Reconcile the latest stored revision of an AppStack.

    The timer and the event handlers of one AppStack share a lock, so at
    most one invocation per AppStack runs at a time.
    """
    reconciler = get_reconciler()
    with record_lock(name):
        try:
            manifest = reconciler.store.get(API_VERSION, KIND, name)
        except ObjectNotFoundError:
            logger.info("AppStack %s is gone, nothing to reconcile", name)
            return
        result = reconciler.reconcile_manifest(manifest)
    to_kopf(result)


def main() -> None:
    """Run the operator until interrupted."""
    kopf.run(clusterwide=True)
