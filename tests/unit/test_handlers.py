"""
Tests for the kopf adapter.
"""

import kopf
import pytest

from appstack_operator import handlers
from appstack_operator.data.shared_exceptions import (
    ControlPlaneError,
    ObjectNotFoundError,
)
from appstack_operator.reconciler import ReconcileResult


@pytest.mark.unit
def test_steady_state_completes_the_handler():
    assert handlers.to_kopf(ReconcileResult(300)) is None


@pytest.mark.unit
def test_retry_becomes_temporary_error():
    with pytest.raises(kopf.TemporaryError) as exc_info:
        handlers.to_kopf(ReconcileResult(30, step="check_database_phase"))

    assert exc_info.value.delay == 30
    assert "check_database_phase" in str(exc_info.value)


@pytest.mark.unit
def test_fail_becomes_temporary_error():
    result = ReconcileResult(
        60, error=ControlPlaneError("boom"), step="deploy_application"
    )

    with pytest.raises(kopf.TemporaryError, match="boom") as exc_info:
        handlers.to_kopf(result)

    assert exc_info.value.delay == 60


@pytest.mark.unit
def test_reconcile_appstack_reads_latest_revision(mocker, manifest):
    reconciler = mocker.Mock()
    reconciler.store.get.return_value = manifest
    reconciler.reconcile_manifest.return_value = ReconcileResult(300)
    mocker.patch.object(handlers, "get_reconciler", return_value=reconciler)

    handlers.reconcile_appstack(name="team-a")

    reconciler.store.get.assert_called_once_with(
        "operator.appstack.dev/v1", "AppStack", "team-a"
    )
    reconciler.reconcile_manifest.assert_called_once_with(manifest)


@pytest.mark.unit
def test_reconcile_appstack_ignores_deleted_record(mocker):
    reconciler = mocker.Mock()
    reconciler.store.get.side_effect = ObjectNotFoundError("gone")
    mocker.patch.object(handlers, "get_reconciler", return_value=reconciler)

    handlers.reconcile_appstack(name="team-a")

    reconciler.reconcile_manifest.assert_not_called()


@pytest.mark.unit
def test_record_lock_is_shared_per_name():
    assert handlers.record_lock("team-a") is handlers.record_lock("team-a")
    assert handlers.record_lock("team-a") is not handlers.record_lock("team-b")


@pytest.mark.unit
def test_reconcile_appstack_holds_the_record_lock(mocker, manifest):
    held = []

    def reconcile_manifest(_manifest):
        held.append(handlers.record_lock("team-a").locked())
        return ReconcileResult(300)

    reconciler = mocker.Mock()
    reconciler.store.get.return_value = manifest
    reconciler.reconcile_manifest.side_effect = reconcile_manifest
    mocker.patch.object(handlers, "get_reconciler", return_value=reconciler)

    handlers.reconcile_appstack(name="team-a")

    assert held == [True]
    assert not handlers.record_lock("team-a").locked()
