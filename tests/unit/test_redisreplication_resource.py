"""Unit tests for RedisReplication resource reconciliation."""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock, Mock, patch
from kubernetes_asyncio.client import ApiException, V1ObjectMeta, V1Pod
from redisop.resources import RedisReplication
from redisop.resources.params import Outcome, ServiceKind
from redisop.sensors import SensorDelegate
from redisop.types.schemas import RedisReplicationSpecSchema

OWNER = {
    "apiVersion": "redis.redisop.io/v1beta1",
    "kind": "RedisReplication",
    "name": "cache",
    "uid": "1234",
    "controller": True,
    "blockOwnerDeletion": True,
}


def api_error(status, reason=None):
    ex = ApiException(status=status, reason="error")
    if reason:
        ex.body = json.dumps({"reason": reason})
    return ex


def make_group(annotations=None, raw_spec=None):
    spec = RedisReplicationSpecSchema().load(
        raw_spec or {"kubernetesConfig": {"image": "redis:7.2"}}
    )
    group = RedisReplication.from_spec(
        "cache",
        "default",
        spec,
        labels={"team": "payments"},
        annotations=annotations,
        owner_reference=OWNER,
        logger=Mock(),
    )
    group.sensor = Mock(spec=SensorDelegate)
    group._core_v1_api = AsyncMock()
    group._apps_v1_api = AsyncMock()
    return group


@pytest.fixture
def group():
    return make_group()


def failing_create(failing_name, error):
    def create(namespace, body):
        if body.metadata.name == failing_name:
            raise error

    return create


class TestEnsureServices:
    """Tests for applying the service topology."""

    def test_creates_all_services_in_order(self, group):
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)

        outcomes = asyncio.run(group.ensure_services())

        created = [
            c.kwargs["body"].metadata.name
            for c in group.core_v1_api.create_namespaced_service.call_args_list
        ]
        assert created == [
            "cache-headless",
            "cache",
            "cache-additional",
            "cache-leader",
            "cache-follower",
        ]
        assert [o.outcome for o in outcomes] == [Outcome.APPLIED] * 5

    def test_headless_failure_is_fatal(self, group):
        error = api_error(500)
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        group.core_v1_api.create_namespaced_service.side_effect = failing_create(
            "cache-headless", error
        )

        with pytest.raises(ApiException) as exc_info:
            asyncio.run(group.ensure_services())

        assert exc_info.value is error
        assert group.core_v1_api.create_namespaced_service.call_count == 1
        assert group.service_outcomes == [
            (ServiceKind.HEADLESS, "cache-headless", Outcome.FAILED_FATAL, error)
        ]
        group.sensor.on_service_apply_failed.assert_called_once_with(
            "cache", "cache-headless", "default", "headless", True, error
        )
        group.logger.error.assert_called_once()

    def test_primary_failure_is_fatal(self, group):
        error = api_error(500)
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        group.core_v1_api.create_namespaced_service.side_effect = failing_create(
            "cache", error
        )

        with pytest.raises(ApiException):
            asyncio.run(group.ensure_services())

        assert group.core_v1_api.create_namespaced_service.call_count == 2
        assert [o.outcome for o in group.service_outcomes] == [
            Outcome.APPLIED,
            Outcome.FAILED_FATAL,
        ]

    def test_leader_failure_is_not_fatal(self, group):
        error = api_error(500)
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        group.core_v1_api.create_namespaced_service.side_effect = failing_create(
            "cache-leader", error
        )

        outcomes = asyncio.run(group.ensure_services())

        assert group.core_v1_api.create_namespaced_service.call_count == 5
        assert [o.outcome for o in outcomes] == [
            Outcome.APPLIED,
            Outcome.APPLIED,
            Outcome.APPLIED,
            Outcome.FAILED_NON_FATAL,
            Outcome.APPLIED,
        ]
        assert outcomes[3].error is error
        group.sensor.on_service_apply_failed.assert_called_once_with(
            "cache", "cache-leader", "default", "leader", False, error
        )
        group.logger.error.assert_called_once()

    def test_additional_failure_is_not_fatal(self, group):
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        group.core_v1_api.create_namespaced_service.side_effect = failing_create(
            "cache-additional", api_error(422)
        )

        outcomes = asyncio.run(group.ensure_services())

        assert outcomes[2].kind == ServiceKind.ADDITIONAL
        assert outcomes[2].outcome == Outcome.FAILED_NON_FATAL
        assert outcomes[4].outcome == Outcome.APPLIED

    def test_fetch_failure_on_fatal_service(self, group):
        error = api_error(403)
        group.core_v1_api.read_namespaced_service.side_effect = error

        with pytest.raises(ApiException):
            asyncio.run(group.ensure_services())

        group.core_v1_api.create_namespaced_service.assert_not_called()


class TestCreateOrUpdateService:
    """Tests for the create / noop / patch decision of a single service."""

    def service_args(self, group, index=1):
        params = group.prepare_service_topology()[index]
        return (
            group.namespace,
            params.meta,
            OWNER,
            params.enable_metrics,
            params.headless,
            params.service_type,
            params.selector,
        )

    def test_already_exists_falls_back_to_replace(self, group):
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        group.core_v1_api.create_namespaced_service.side_effect = api_error(
            409, "AlreadyExists"
        )

        asyncio.run(group.create_or_update_service(*self.service_args(group)))

        group.core_v1_api.replace_namespaced_service.assert_called_once()
        assert (
            group.core_v1_api.replace_namespaced_service.call_args.kwargs["name"] == "cache"
        )

    def test_in_sync_is_noop(self, group):
        args = self.service_args(group)
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        desired = asyncio.run(group.create_or_update_service(*args))

        group.core_v1_api.read_namespaced_service.side_effect = None
        group.core_v1_api.read_namespaced_service.return_value = desired
        asyncio.run(group.create_or_update_service(*args))

        assert group.core_v1_api.create_namespaced_service.call_count == 1
        group.core_v1_api.patch_namespaced_service.assert_not_called()
        group.sensor.on_resource_drift_detected.assert_not_called()

    def test_drift_is_patched(self, group):
        args = self.service_args(group)
        group.core_v1_api.read_namespaced_service.side_effect = api_error(404)
        live = asyncio.run(group.create_or_update_service(*args))
        live.metadata.annotations["redisop.io/resource-hash"] = "stale"

        group.core_v1_api.read_namespaced_service.side_effect = None
        group.core_v1_api.read_namespaced_service.return_value = live
        asyncio.run(group.create_or_update_service(*args))

        group.core_v1_api.patch_namespaced_service.assert_called_once()
        body = group.core_v1_api.patch_namespaced_service.call_args.kwargs["body"]
        assert isinstance(body, list)
        group.sensor.on_resource_drift_detected.assert_called_once_with(
            "cache", "cache", "default", "service", ["spec"]
        )


class TestEnsureStatefulSet:
    """Tests for applying the statefulset."""

    def created_body(self, group):
        group.apps_v1_api.read_namespaced_stateful_set.side_effect = api_error(404)
        asyncio.run(group.ensure_stateful_set())
        group.apps_v1_api.read_namespaced_stateful_set.side_effect = None
        return group.apps_v1_api.create_namespaced_stateful_set.call_args.kwargs["body"]

    def test_creates_when_missing(self, group):
        body = self.created_body(group)

        assert body.metadata.name == "cache"
        assert body.spec.service_name == "cache-headless"
        assert body.metadata.owner_references[0].name == "cache"
        group.apps_v1_api.patch_namespaced_stateful_set.assert_not_called()

    def test_in_sync_is_noop(self, group):
        live = self.created_body(group)
        group.apps_v1_api.read_namespaced_stateful_set.return_value = live

        asyncio.run(group.ensure_stateful_set())

        assert group.apps_v1_api.create_namespaced_stateful_set.call_count == 1
        group.apps_v1_api.patch_namespaced_stateful_set.assert_not_called()

    def test_drift_is_patched(self, group):
        live = self.created_body(group)
        live.spec.replicas = 1
        group.apps_v1_api.read_namespaced_stateful_set.return_value = live

        asyncio.run(group.ensure_stateful_set())

        group.apps_v1_api.patch_namespaced_stateful_set.assert_called_once()
        group.apps_v1_api.delete_namespaced_stateful_set.assert_not_called()

    def test_drift_with_recreate_annotation(self):
        group = make_group(annotations={"redisop.io/recreate-statefulset": "true"})
        live = self.created_body(group)
        live.spec.replicas = 1
        group.apps_v1_api.read_namespaced_stateful_set.return_value = live

        with patch("redisop.resources.base.asyncio.sleep", new=AsyncMock()) as sleep:
            asyncio.run(group.ensure_stateful_set())

        delete_kwargs = group.apps_v1_api.delete_namespaced_stateful_set.call_args.kwargs
        assert delete_kwargs["name"] == "cache"
        assert delete_kwargs["body"].propagation_policy == "Orphan"
        sleep.assert_awaited_once_with(group.conf.statefulset_deletion_timeout_seconds)
        assert group.apps_v1_api.create_namespaced_stateful_set.call_count == 2
        group.apps_v1_api.patch_namespaced_stateful_set.assert_not_called()

    def test_failure_is_logged_and_raised(self, group):
        error = api_error(500)
        group.apps_v1_api.read_namespaced_stateful_set.side_effect = error

        with pytest.raises(ApiException):
            asyncio.run(group.ensure_stateful_set())

        group.logger.error.assert_called_once()

    def test_synchronize_stops_on_fatal_service(self, group):
        group.core_v1_api.read_namespaced_service.side_effect = api_error(500)

        with pytest.raises(ApiException):
            asyncio.run(group.synchronize())

        group.apps_v1_api.read_namespaced_stateful_set.assert_not_called()


def make_pod(name, labels=None):
    return V1Pod(metadata=V1ObjectMeta(name=name, labels=labels))


class TestUpdateRoleLabelPods:
    """Tests for the pod role label synchronizer."""

    def test_labels_every_pod(self, group):
        pods = {"cache-0": make_pod("cache-0", {"app": "redis"}), "cache-1": make_pod("cache-1")}
        group.core_v1_api.read_namespaced_pod.side_effect = (
            lambda name, namespace: pods[name]
        )

        asyncio.run(group.update_role_label_pods("slave", ["cache-0", "cache-1"]))

        calls = group.core_v1_api.replace_namespaced_pod.call_args_list
        assert [c.kwargs["name"] for c in calls] == ["cache-0", "cache-1"]
        assert calls[0].kwargs["body"].metadata.labels == {
            "app": "redis",
            "redis-role": "slave",
        }
        assert calls[1].kwargs["body"].metadata.labels == {"redis-role": "slave"}
        assert group.sensor.on_role_label_update.call_count == 2

    def test_stops_at_first_failure(self, group):
        error = api_error(404)

        def read(name, namespace):
            if name == "pod-b":
                raise error
            return make_pod(name)

        group.core_v1_api.read_namespaced_pod.side_effect = read

        with pytest.raises(ApiException) as exc_info:
            asyncio.run(group.update_role_label_pods("master", ["pod-a", "pod-b", "pod-c"]))

        assert exc_info.value is error
        read_names = [
            c.kwargs["name"] for c in group.core_v1_api.read_namespaced_pod.call_args_list
        ]
        assert read_names == ["pod-a", "pod-b"]
        replaced = group.core_v1_api.replace_namespaced_pod.call_args_list
        assert [c.kwargs["name"] for c in replaced] == ["pod-a"]
        assert replaced[0].kwargs["body"].metadata.labels["redis-role"] == "master"
        group.sensor.on_role_label_update.assert_called_with(
            "cache", "pod-b", "default", "master", False
        )

    def test_write_failure_is_raised(self, group):
        error = api_error(409)
        group.core_v1_api.read_namespaced_pod.side_effect = (
            lambda name, namespace: make_pod(name)
        )
        group.core_v1_api.replace_namespaced_pod.side_effect = error

        with pytest.raises(ApiException):
            asyncio.run(group.update_role_label_pods("master", ["pod-a", "pod-b"]))

        assert group.core_v1_api.read_namespaced_pod.call_count == 1

    def test_relabel_is_idempotent(self, group):
        pod = make_pod("cache-0", {"redis-role": "master"})
        group.core_v1_api.read_namespaced_pod.return_value = pod

        asyncio.run(group.update_role_label_pods("master", ["cache-0"]))
        asyncio.run(group.update_role_label_pods("master", ["cache-0"]))

        assert group.core_v1_api.replace_namespaced_pod.call_count == 2
        assert pod.metadata.labels == {"redis-role": "master"}

    def test_empty_pod_list(self, group):
        asyncio.run(group.update_role_label_pods("master", []))

        group.core_v1_api.read_namespaced_pod.assert_not_called()
        group.core_v1_api.replace_namespaced_pod.assert_not_called()
