from .probe import ProbeSchema
from .resource_requirements import ResourceRequirementsSchema
from .storage import VolumeClaimTemplateSchema, VolumeMountSchema, RedisStorageSchema
from .container_template import (
    ConfigMapKeySelectorSchema,
    SecretKeySelectorSchema,
    ObjectFieldSelectorSchema,
    ContainerEnvVarSourceSchema,
    ContainerEnvVarSchema,
    ContainerPortSchema,
    SidecarSchema,
)
from .redisreplication_spec import (
    ExistingPasswordSecretSchema,
    ServiceConfigSchema,
    UpdateStrategySchema,
    KubernetesConfigSchema,
    RedisExporterSchema,
    RedisConfigSchema,
    InitContainerSchema,
    TLSSecretSchema,
    TLSConfigSchema,
    ACLConfigSchema,
    RedisReplicationSpecSchema,
)

__all__ = [
    "ProbeSchema",
    "ResourceRequirementsSchema",
    "VolumeClaimTemplateSchema",
    "VolumeMountSchema",
    "RedisStorageSchema",
    "ConfigMapKeySelectorSchema",
    "SecretKeySelectorSchema",
    "ObjectFieldSelectorSchema",
    "ContainerEnvVarSourceSchema",
    "ContainerEnvVarSchema",
    "ContainerPortSchema",
    "SidecarSchema",
    "ExistingPasswordSecretSchema",
    "ServiceConfigSchema",
    "UpdateStrategySchema",
    "KubernetesConfigSchema",
    "RedisExporterSchema",
    "RedisConfigSchema",
    "InitContainerSchema",
    "TLSSecretSchema",
    "TLSConfigSchema",
    "ACLConfigSchema",
    "RedisReplicationSpecSchema",
]
