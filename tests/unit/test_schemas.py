"""Unit tests for loading RedisReplication specs."""

import pytest
from marshmallow import ValidationError
from redisop.types.schemas import RedisReplicationSpecSchema


def minimal_spec():
    return {"kubernetesConfig": {"image": "redis:7.2"}}


class TestRedisReplicationSpecSchema:
    """Tests for RedisReplicationSpecSchema defaults and validation."""

    def test_defaults(self):
        spec = RedisReplicationSpecSchema().load(minimal_spec())

        assert spec.cluster_size == 3
        assert spec.kubernetes_config.image == "redis:7.2"
        assert spec.kubernetes_config.image_pull_policy == "IfNotPresent"
        assert spec.kubernetes_config.update_strategy.type == "RollingUpdate"
        assert spec.get_replication_counts("replication") == 3

    def test_optional_sections_load_as_none(self):
        spec = RedisReplicationSpecSchema().load(minimal_spec())

        assert spec.redis_exporter is None
        assert spec.redis_config is None
        assert spec.storage is None
        assert spec.init_container is None
        assert spec.tls is None
        assert spec.acl is None
        assert spec.readiness_probe is None
        assert spec.liveness_probe is None
        assert spec.sidecars is None
        assert spec.kubernetes_config.existing_password_secret is None
        assert spec.kubernetes_config.service is None

    def test_full_spec(self):
        raw = minimal_spec()
        raw.update(
            {
                "clusterSize": 2,
                "storage": {
                    "volumeClaimTemplate": {"size": "1Gi"},
                    "keepAfterDelete": True,
                },
                "redisExporter": {"enabled": True},
                "readinessProbe": {"periodSeconds": 5},
                "env": [
                    {
                        "name": "FROM_SECRET",
                        "valueFrom": {"secretKeyRef": {"name": "s", "key": "k"}},
                    }
                ],
            }
        )
        raw["kubernetesConfig"]["redisSecret"] = {"name": "auth", "key": "password"}
        raw["kubernetesConfig"]["service"] = {"serviceType": "LoadBalancer"}

        spec = RedisReplicationSpecSchema().load(raw)

        assert spec.cluster_size == 2
        assert spec.storage.mount_path == "/data"
        assert spec.storage.keep_after_delete is True
        assert spec.storage.volume_claim_template.access_modes == ["ReadWriteOnce"]
        assert spec.redis_exporter.enabled is True
        assert spec.redis_exporter.image is None
        assert spec.readiness_probe.period_seconds == 5
        assert spec.readiness_probe.failure_threshold == 3
        assert spec.env[0].value_from.secret_key_ref.name == "s"
        assert spec.kubernetes_config.existing_password_secret.key == "password"
        assert spec.kubernetes_config.service.service_type == "LoadBalancer"

    def test_unknown_fields_are_ignored(self):
        raw = minimal_spec()
        raw["somethingElse"] = True
        spec = RedisReplicationSpecSchema().load(raw)
        assert not hasattr(spec, "somethingElse")

    def test_image_is_required(self):
        with pytest.raises(ValidationError):
            RedisReplicationSpecSchema().load({"kubernetesConfig": {}})

    def test_cluster_size_must_be_positive(self):
        raw = minimal_spec()
        raw["clusterSize"] = 0
        with pytest.raises(ValidationError):
            RedisReplicationSpecSchema().load(raw)

    def test_invalid_service_type(self):
        raw = minimal_spec()
        raw["kubernetesConfig"]["service"] = {"serviceType": "ExternalName"}
        with pytest.raises(ValidationError):
            RedisReplicationSpecSchema().load(raw)
