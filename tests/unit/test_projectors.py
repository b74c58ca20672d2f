"""
Tests for status projectors.
"""

import base64

import pytest

from appstack_operator import projectors


@pytest.mark.unit
class TestProjectors:
    """Test extraction of observed values."""

    def test_database_fields(self) -> None:
        """Test phase and address of a provisioned instance."""
        instance = {
            "status": {
                "atProvider": {
                    "dbInstanceStatus": "available",
                    "endpoint": {"address": "db.example.com", "port": 5432},
                }
            }
        }

        assert projectors.database_phase(instance) == "available"
        assert projectors.database_address(instance) == "db.example.com"

    def test_missing_fields_are_empty(self) -> None:
        """Test unpublished values project to empty defaults."""
        assert projectors.database_phase({}) == ""
        assert projectors.database_address({"status": None}) == ""
        assert projectors.volume_id({"status": {"atProvider": {}}}) == ""
        assert projectors.job_succeeded({}) == 0
        assert projectors.ready_replicas({"status": {}}) == 0
        assert projectors.claim_phase({}) == ""

    def test_counts(self) -> None:
        """Test integer projections."""
        assert projectors.job_succeeded({"status": {"succeeded": 1}}) == 1
        assert projectors.ready_replicas({"status": {"readyReplicas": 2}}) == 2
        assert projectors.job_succeeded({"status": {"succeeded": "x"}}) == 0

    def test_cluster_ip(self) -> None:
        """Test headless services have no address."""
        assert projectors.cluster_ip({"spec": {"clusterIP": "10.0.0.5"}}) == (
            "10.0.0.5"
        )
        assert projectors.cluster_ip({"spec": {"clusterIP": "None"}}) == ""

    def test_filesystem_fields(self) -> None:
        """Test filesystem, mount target and volume projections."""
        assert (
            projectors.filesystem_id(
                {"status": {"atProvider": {"fileSystemID": "fs-123"}}}
            )
            == "fs-123"
        )
        assert (
            projectors.mount_target_state(
                {"status": {"atProvider": {"lifeCycleState": "creating"}}}
            )
            == "creating"
        )
        assert (
            projectors.volume_handle(
                {"spec": {"csi": {"volumeHandle": "fsvol-1"}}}
            )
            == "fsvol-1"
        )

    def test_claim_fields(self) -> None:
        """Test claim phase and bound volume name."""
        claim = {"spec": {"volumeName": "pvc-1"}, "status": {"phase": "Bound"}}

        assert projectors.claim_phase(claim) == "Bound"
        assert projectors.claim_volume_name(claim) == "pvc-1"

    def test_secret_value(self) -> None:
        """Test secret values are base64 decoded."""
        secret = {
            "data": {"password": base64.b64encode(b"s3cret").decode("ascii")}
        }

        assert projectors.secret_value(secret, "password") == "s3cret"
        assert projectors.secret_value(secret, "hostname") == ""
        garbled = {"data": {"password": "%%%"}}
        assert projectors.secret_value(garbled, "password") == ""

    def test_config_map_value(self) -> None:
        """Test the changelog key is the default."""
        config_map = {"data": {"changelog.yml": "databaseChangeLog: []"}}

        assert projectors.config_map_value(config_map) == (
            "databaseChangeLog: []"
        )

    def test_dig_handles_lists(self) -> None:
        """Test list indexes inside a path."""
        obj = {"items": [{"name": "a"}]}

        assert projectors.dig(obj, "items", 0, "name") == "a"
        assert projectors.dig(obj, "items", 3, "name") is None

    def test_project_dispatches_by_name(self) -> None:
        """Test the projector registry."""
        job = {"status": {"succeeded": 1}}

        assert projectors.project("job_succeeded", job) == 1
        with pytest.raises(KeyError):
            projectors.project("unknown", job)
