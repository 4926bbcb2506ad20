from marshmallow import fields, validate
from redisop.types.base import BaseSchema
from redisop.types.models.redisreplication_spec import (
    ExistingPasswordSecret,
    ServiceConfig,
    UpdateStrategy,
    KubernetesConfig,
    RedisExporter,
    RedisConfig,
    InitContainer,
    TLSSecret,
    TLSConfig,
    ACLConfig,
    RedisReplicationSpec,
)
from redisop.types.schemas.probe import ProbeSchema
from redisop.types.schemas.storage import RedisStorageSchema
from redisop.types.schemas.resource_requirements import ResourceRequirementsSchema
from redisop.types.schemas.container_template import (
    ContainerEnvVarSchema,
    SidecarSchema,
)

PULL_POLICIES = ("Always", "IfNotPresent", "Never")
SERVICE_TYPES = ("ClusterIP", "NodePort", "LoadBalancer")


class ExistingPasswordSecretSchema(BaseSchema):
    __model__ = ExistingPasswordSecret
    name = fields.Str(data_key="name", required=True)
    key = fields.Str(data_key="key", required=True)


class ServiceConfigSchema(BaseSchema):
    __model__ = ServiceConfig
    service_type = fields.Str(
        data_key="serviceType",
        validate=validate.OneOf(SERVICE_TYPES),
        load_default="ClusterIP",
    )
    annotations = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        data_key="annotations",
        allow_none=True,
        load_default=None,
    )


class UpdateStrategySchema(BaseSchema):
    __model__ = UpdateStrategy
    type = fields.Str(
        data_key="type",
        validate=validate.OneOf(("RollingUpdate", "OnDelete")),
        load_default="RollingUpdate",
    )
    rolling_update = fields.Dict(
        keys=fields.Str(),
        values=fields.Raw(),
        data_key="rollingUpdate",
        allow_none=True,
        load_default=None,
    )


class KubernetesConfigSchema(BaseSchema):
    __model__ = KubernetesConfig

    image = fields.Str(data_key="image", required=True)
    image_pull_policy = fields.Str(
        data_key="imagePullPolicy",
        validate=validate.OneOf(PULL_POLICIES),
        load_default="IfNotPresent",
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(),
        data_key="resources",
        allow_none=True,
        load_default=None,
    )
    existing_password_secret = fields.Nested(
        ExistingPasswordSecretSchema(),
        data_key="redisSecret",
        allow_none=True,
        load_default=None,
    )
    image_pull_secrets = fields.List(
        fields.Dict(keys=fields.String(), values=fields.Raw(), allow_none=False),
        data_key="imagePullSecrets",
        allow_none=True,
        load_default=None,
    )
    update_strategy = fields.Nested(
        UpdateStrategySchema(),
        data_key="updateStrategy",
        load_default=lambda: UpdateStrategySchema().load({}),
    )
    service = fields.Nested(
        ServiceConfigSchema(),
        data_key="service",
        allow_none=True,
        load_default=None,
    )


class RedisExporterSchema(BaseSchema):
    __model__ = RedisExporter

    enabled = fields.Bool(data_key="enabled", load_default=False)
    image = fields.Str(data_key="image", allow_none=True, load_default=None)
    image_pull_policy = fields.Str(
        data_key="imagePullPolicy",
        validate=validate.OneOf(PULL_POLICIES),
        load_default="IfNotPresent",
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(),
        data_key="resources",
        allow_none=True,
        load_default=None,
    )
    env = fields.List(
        fields.Nested(ContainerEnvVarSchema()),
        data_key="env",
        allow_none=True,
        load_default=None,
    )


class RedisConfigSchema(BaseSchema):
    __model__ = RedisConfig
    additional_redis_config = fields.Str(
        data_key="additionalRedisConfig", allow_none=True, load_default=None
    )


class InitContainerSchema(BaseSchema):
    __model__ = InitContainer

    enabled = fields.Bool(data_key="enabled", load_default=False)
    image = fields.Str(data_key="image", required=True)
    image_pull_policy = fields.Str(
        data_key="imagePullPolicy",
        validate=validate.OneOf(PULL_POLICIES),
        load_default="IfNotPresent",
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(),
        data_key="resources",
        allow_none=True,
        load_default=None,
    )
    env = fields.List(
        fields.Nested(ContainerEnvVarSchema()),
        data_key="env",
        allow_none=True,
        load_default=None,
    )
    command = fields.List(
        fields.Str(), data_key="command", allow_none=True, load_default=None
    )
    args = fields.List(fields.Str(), data_key="args", allow_none=True, load_default=None)


class TLSSecretSchema(BaseSchema):
    __model__ = TLSSecret
    secret_name = fields.Str(data_key="secretName", required=True)


class TLSConfigSchema(BaseSchema):
    __model__ = TLSConfig
    ca = fields.Str(data_key="ca", load_default="ca.crt")
    cert = fields.Str(data_key="cert", load_default="tls.crt")
    key = fields.Str(data_key="key", load_default="tls.key")
    secret = fields.Nested(TLSSecretSchema(), data_key="secret", required=True)


class ACLConfigSchema(BaseSchema):
    __model__ = ACLConfig
    secret = fields.Nested(TLSSecretSchema(), data_key="secret", required=True)


class RedisReplicationSpecSchema(BaseSchema):
    __model__ = RedisReplicationSpec

    cluster_size = fields.Int(
        data_key="clusterSize", validate=validate.Range(min=1), load_default=3
    )
    kubernetes_config = fields.Nested(
        KubernetesConfigSchema(), data_key="kubernetesConfig", required=True
    )
    redis_exporter = fields.Nested(
        RedisExporterSchema(),
        data_key="redisExporter",
        allow_none=True,
        load_default=None,
    )
    redis_config = fields.Nested(
        RedisConfigSchema(), data_key="redisConfig", allow_none=True, load_default=None
    )
    storage = fields.Nested(
        RedisStorageSchema(), data_key="storage", allow_none=True, load_default=None
    )
    init_container = fields.Nested(
        InitContainerSchema(),
        data_key="initContainer",
        allow_none=True,
        load_default=None,
    )
    pod_security_context = fields.Dict(
        keys=fields.String(),
        values=fields.Raw(),
        data_key="podSecurityContext",
        allow_none=True,
        load_default=None,
    )
    security_context = fields.Dict(
        keys=fields.String(),
        values=fields.Raw(),
        data_key="securityContext",
        allow_none=True,
        load_default=None,
    )
    readiness_probe = fields.Nested(
        ProbeSchema(), data_key="readinessProbe", allow_none=True, load_default=None
    )
    liveness_probe = fields.Nested(
        ProbeSchema(), data_key="livenessProbe", allow_none=True, load_default=None
    )
    tls = fields.Nested(
        TLSConfigSchema(), data_key="TLS", allow_none=True, load_default=None
    )
    acl = fields.Nested(
        ACLConfigSchema(), data_key="acl", allow_none=True, load_default=None
    )
    env = fields.List(
        fields.Nested(ContainerEnvVarSchema()),
        data_key="env",
        allow_none=True,
        load_default=None,
    )
    sidecars = fields.List(
        fields.Nested(SidecarSchema()),
        data_key="sidecars",
        allow_none=True,
        load_default=None,
    )
    node_selector = fields.Dict(
        keys=fields.String(),
        values=fields.String(),
        data_key="nodeSelector",
        allow_none=True,
        load_default=None,
    )
    affinity = fields.Dict(
        keys=fields.String(),
        values=fields.Raw(),
        data_key="affinity",
        allow_none=True,
        load_default=None,
    )
    tolerations = fields.List(
        fields.Dict(keys=fields.String(), values=fields.Raw(), allow_none=False),
        data_key="tolerations",
        allow_none=True,
        load_default=None,
    )
    priority_class_name = fields.Str(
        data_key="priorityClassName", allow_none=True, load_default=None
    )
    termination_grace_period_seconds = fields.Int(
        data_key="terminationGracePeriodSeconds", allow_none=True, load_default=None
    )
    service_account_name = fields.Str(
        data_key="serviceAccountName", allow_none=True, load_default=None
    )
