from .probe import Probe
from .resource_requirements import ResourceRequirements
from .storage import RedisStorage, VolumeClaimTemplate, VolumeMount
from .container_template import (
    ConfigMapKeySelector,
    SecretKeySelector,
    ObjectFieldSelector,
    ContainerEnvVarSource,
    ContainerEnvVar,
    ContainerPort,
    Sidecar,
)
from .redisreplication_spec import (
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
from .redisreplication_resources import RedisReplicationResources

__all__ = [
    "Probe",
    "ResourceRequirements",
    "RedisStorage",
    "VolumeClaimTemplate",
    "VolumeMount",
    "ConfigMapKeySelector",
    "SecretKeySelector",
    "ObjectFieldSelector",
    "ContainerEnvVarSource",
    "ContainerEnvVar",
    "ContainerPort",
    "Sidecar",
    "ExistingPasswordSecret",
    "ServiceConfig",
    "UpdateStrategy",
    "KubernetesConfig",
    "RedisExporter",
    "RedisConfig",
    "InitContainer",
    "TLSSecret",
    "TLSConfig",
    "ACLConfig",
    "RedisReplicationSpec",
    "RedisReplicationResources",
]
