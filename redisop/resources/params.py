"""Pure builders turning a RedisReplication spec into immutable parameter sets.

Every function here is deterministic and free of side effects: calling it
twice with the same spec yields equal values. Optional sections of the spec
map to ``None`` fields, so "not configured" is never confused with
"configured with defaults".
"""
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

from redisop.common.models.annotations import Annotations
from redisop.common.models.labels import Labels
from redisop.types.models import (
    ACLConfig,
    ContainerEnvVar,
    Probe,
    RedisReplicationResources,
    RedisReplicationSpec,
    RedisStorage,
    ResourceRequirements,
    TLSConfig,
)
from redisop.types.settings import Settings

KIND = "RedisReplication"
OPERATOR_NAME = "redis-operator"
SETUP_TYPE = RedisReplicationSpec.SETUP_TYPE_REPLICATION
ROLE = "replication"

REDIS_PORT = 6379
REDIS_PORT_NAME = "redis-client"
EXPORTER_PORT = 9121
EXPORTER_PORT_NAME = "redis-exporter"

DEFAULT_EXPORTER_RESOURCES = {
    "requests": {"cpu": "100m", "memory": "128Mi"},
    "limits": {"cpu": "100m", "memory": "128Mi"},
}


class ObjectMetaInfo(NamedTuple):
    name: str
    namespace: str
    labels: Mapping[str, str]
    annotations: Mapping[str, str]


class DeploymentContext(NamedTuple):
    """Ownership metadata shared by every resource of one replication group."""

    name: str
    namespace: str
    owner_reference: Optional[Mapping[str, Any]]
    labels: Labels
    annotations: Mapping[str, str]


class ExporterParameters(NamedTuple):
    image: str
    image_pull_policy: str
    resources: Mapping[str, Any]
    env_vars: Tuple[ContainerEnvVar, ...]


class ContainerParameters(NamedTuple):
    role: str
    image: str
    image_pull_policy: str
    resources: Optional[Mapping[str, Any]] = None
    security_context: Optional[Mapping[str, Any]] = None
    env_vars: Tuple[ContainerEnvVar, ...] = ()
    readiness_probe: Optional[Probe] = None
    liveness_probe: Optional[Probe] = None
    enabled_password: bool = False
    secret_name: Optional[str] = None
    secret_key: Optional[str] = None
    persistence_enabled: Optional[bool] = None
    mount_path: Optional[str] = None
    tls_config: Optional[TLSConfig] = None
    acl_config: Optional[ACLConfig] = None
    exporter: Optional[ExporterParameters] = None
    additional_volumes: Optional[Tuple[Mapping[str, Any], ...]] = None
    additional_mount_paths: Optional[Tuple[Mapping[str, Any], ...]] = None


class InitContainerParameters(NamedTuple):
    enabled: bool = False
    role: Optional[str] = None
    image: Optional[str] = None
    image_pull_policy: Optional[str] = None
    resources: Optional[Mapping[str, Any]] = None
    env_vars: Tuple[ContainerEnvVar, ...] = ()
    command: Optional[Tuple[str, ...]] = None
    arguments: Optional[Tuple[str, ...]] = None
    persistence_enabled: Optional[bool] = None
    mount_path: Optional[str] = None
    additional_volumes: Optional[Tuple[Mapping[str, Any], ...]] = None
    additional_mount_paths: Optional[Tuple[Mapping[str, Any], ...]] = None


class StatefulSetParameters(NamedTuple):
    replicas: int
    cluster_mode: bool = False
    node_conf_volume: bool = False
    node_selector: Optional[Mapping[str, str]] = None
    pod_security_context: Optional[Mapping[str, Any]] = None
    priority_class_name: Optional[str] = None
    affinity: Optional[Mapping[str, Any]] = None
    tolerations: Optional[Tuple[Mapping[str, Any], ...]] = None
    termination_grace_period_seconds: Optional[int] = None
    update_strategy: Optional[Mapping[str, Any]] = None
    image_pull_secrets: Optional[Tuple[Mapping[str, Any], ...]] = None
    persistent_volume_claim: Optional[RedisStorage] = None
    external_config: Optional[str] = None
    enable_metrics: bool = False
    service_account_name: Optional[str] = None
    recreate_stateful_set: bool = False


class ServiceKind(Enum):
    HEADLESS = "headless"
    PRIMARY = "primary"
    ADDITIONAL = "additional"
    LEADER = "leader"
    FOLLOWER = "follower"


class ServiceParameters(NamedTuple):
    kind: ServiceKind
    meta: ObjectMetaInfo
    selector: Mapping[str, str]
    enable_metrics: bool
    headless: bool
    service_type: str
    #: A failure applying a fatal service aborts the whole topology.
    fatal: bool


class Outcome(Enum):
    APPLIED = "applied"
    FAILED_FATAL = "failed-fatal"
    FAILED_NON_FATAL = "failed-non-fatal"


class ServiceOutcome(NamedTuple):
    kind: ServiceKind
    name: str
    outcome: Outcome
    error: Optional[Exception] = None


def generate_deployment_context(
    name: str,
    namespace: str,
    owner_reference: Optional[Mapping[str, Any]] = None,
    labels: Optional[Dict[str, str]] = None,
    annotations: Optional[Dict[str, str]] = None,
) -> DeploymentContext:
    reserved = Labels.generate_default_labels(
        name, KIND, SETUP_TYPE, ROLE, OPERATOR_NAME
    )
    return DeploymentContext(
        name=name,
        namespace=namespace,
        owner_reference=owner_reference,
        labels=Labels.merge_owner_labels(labels, reserved),
        annotations=dict(annotations or {}),
    )


def generate_object_meta(
    name: str, namespace: str, labels: Labels, annotations: Dict[str, str]
) -> ObjectMetaInfo:
    return ObjectMetaInfo(
        name=name,
        namespace=namespace,
        labels=labels.as_dict(),
        annotations=dict(annotations),
    )


def resources_as_dict(resources: Optional[ResourceRequirements]) -> Optional[Dict]:
    """Resource requirements as a plain dict, None when nothing is requested."""
    if resources is None:
        return None
    result = {}
    if resources.requests:
        result["requests"] = dict(resources.requests)
    if resources.limits:
        result["limits"] = dict(resources.limits)
    return result or None


def exporter_enabled(spec: RedisReplicationSpec) -> bool:
    return spec.redis_exporter is not None and bool(spec.redis_exporter.enabled)


def generate_exporter_params(
    spec: RedisReplicationSpec, conf: Optional[Settings] = None
) -> Optional[ExporterParameters]:
    """Metrics exporter sidecar settings; None unless the exporter is enabled."""
    if not exporter_enabled(spec):
        return None
    conf = conf or Settings()
    exporter = spec.redis_exporter
    resources = resources_as_dict(exporter.resources)
    return ExporterParameters(
        image=exporter.image or conf.redis_exporter_image,
        image_pull_policy=exporter.image_pull_policy,
        resources=resources if resources is not None else DEFAULT_EXPORTER_RESOURCES,
        env_vars=tuple(exporter.env) if exporter.env is not None else (),
    )


def generate_storage_params(storage: Optional[RedisStorage]) -> Dict[str, Any]:
    """Data mount and user supplied extra volumes, empty when storage is not configured."""
    if storage is None:
        return {}
    volume_mount = storage.volume_mount
    return {
        "persistence_enabled": True,
        "mount_path": storage.mount_path,
        "additional_volumes": tuple(volume_mount.volume)
        if volume_mount is not None and volume_mount.volume is not None
        else None,
        "additional_mount_paths": tuple(volume_mount.mount_path)
        if volume_mount is not None and volume_mount.mount_path is not None
        else None,
    }


def generate_container_params(
    spec: RedisReplicationSpec, conf: Optional[Settings] = None
) -> ContainerParameters:
    """Merge the spec sections into the parameters of the redis container."""
    k8s = spec.kubernetes_config
    params = {
        "role": ROLE,
        "image": k8s.image,
        "image_pull_policy": k8s.image_pull_policy,
        "resources": resources_as_dict(k8s.resources),
        "security_context": spec.security_context,
        "env_vars": tuple(spec.env or ()),
        "readiness_probe": spec.readiness_probe,
        "liveness_probe": spec.liveness_probe,
        "tls_config": spec.tls,
        "acl_config": spec.acl,
        "exporter": generate_exporter_params(spec, conf),
    }
    if k8s.existing_password_secret is not None:
        params.update(
            enabled_password=True,
            secret_name=k8s.existing_password_secret.name,
            secret_key=k8s.existing_password_secret.key,
        )
    else:
        params.update(enabled_password=False, secret_name=None, secret_key=None)
    params.update(generate_storage_params(spec.storage))
    return ContainerParameters(**params)


def generate_init_container_params(
    spec: RedisReplicationSpec,
) -> InitContainerParameters:
    """Parameters of the init container; the inert default when none is configured."""
    init_container = spec.init_container
    if init_container is None:
        return InitContainerParameters()

    params = {
        "enabled": bool(init_container.enabled),
        "role": ROLE,
        "image": init_container.image,
        "image_pull_policy": init_container.image_pull_policy,
        "resources": resources_as_dict(init_container.resources),
        "env_vars": tuple(init_container.env or ()),
        "command": tuple(init_container.command)
        if init_container.command is not None
        else None,
        "arguments": tuple(init_container.args)
        if init_container.args is not None
        else None,
    }
    params.update(generate_storage_params(spec.storage))
    return InitContainerParameters(**params)


def generate_stateful_set_params(
    spec: RedisReplicationSpec, annotations: Optional[Dict[str, str]] = None
) -> StatefulSetParameters:
    """Workload level parameters; cluster mode and node conf volume stay off."""
    k8s = spec.kubernetes_config
    update_strategy = {"type": k8s.update_strategy.type}
    if k8s.update_strategy.rolling_update:
        update_strategy["rollingUpdate"] = dict(k8s.update_strategy.rolling_update)
    return StatefulSetParameters(
        replicas=spec.get_replication_counts(SETUP_TYPE),
        cluster_mode=False,
        node_conf_volume=False,
        node_selector=spec.node_selector,
        pod_security_context=spec.pod_security_context,
        priority_class_name=spec.priority_class_name,
        affinity=spec.affinity,
        tolerations=tuple(spec.tolerations) if spec.tolerations else None,
        termination_grace_period_seconds=spec.termination_grace_period_seconds,
        update_strategy=update_strategy,
        image_pull_secrets=tuple(k8s.image_pull_secrets)
        if k8s.image_pull_secrets
        else None,
        persistent_volume_claim=spec.storage,
        external_config=spec.redis_config.additional_redis_config
        if spec.redis_config is not None
        else None,
        enable_metrics=exporter_enabled(spec),
        service_account_name=spec.service_account_name,
        recreate_stateful_set=Annotations.recreate_requested(annotations),
    )


def generate_service_topology(
    context: DeploymentContext, spec: RedisReplicationSpec
) -> List[ServiceParameters]:
    """The five services of a replication group, in the order they are applied."""
    name, namespace, labels = context.name, context.namespace, context.labels
    enable_metrics = exporter_enabled(spec)

    service_config = spec.kubernetes_config.service
    additional_type = service_config.service_type if service_config else "ClusterIP"
    additional_annotations = (
        service_config.annotations if service_config and service_config.annotations else {}
    )

    annotations = Annotations.service_annotations(
        name, context.annotations, EXPORTER_PORT
    )
    selector = labels.redis_label_selectors().as_dict()

    def _meta(service_name: str, service_annotations: Dict[str, str]) -> ObjectMetaInfo:
        return generate_object_meta(service_name, namespace, labels, service_annotations)

    return [
        ServiceParameters(
            kind=ServiceKind.HEADLESS,
            meta=_meta(RedisReplicationResources.headless_service_name(name), annotations),
            selector=selector,
            enable_metrics=False,
            headless=True,
            service_type="ClusterIP",
            fatal=True,
        ),
        ServiceParameters(
            kind=ServiceKind.PRIMARY,
            meta=_meta(RedisReplicationResources.service_name(name), annotations),
            selector=selector,
            enable_metrics=enable_metrics,
            headless=False,
            service_type="ClusterIP",
            fatal=True,
        ),
        ServiceParameters(
            kind=ServiceKind.ADDITIONAL,
            meta=_meta(
                RedisReplicationResources.additional_service_name(name),
                Annotations.service_annotations(
                    name, context.annotations, EXPORTER_PORT, additional_annotations
                ),
            ),
            selector=selector,
            enable_metrics=False,
            headless=False,
            service_type=additional_type,
            fatal=False,
        ),
        ServiceParameters(
            kind=ServiceKind.LEADER,
            meta=_meta(RedisReplicationResources.leader_service_name(name), annotations),
            selector=labels.redis_label_selectors(Labels.REDIS_ROLE_MASTER).as_dict(),
            enable_metrics=enable_metrics,
            headless=False,
            service_type=additional_type,
            fatal=False,
        ),
        ServiceParameters(
            kind=ServiceKind.FOLLOWER,
            meta=_meta(RedisReplicationResources.follower_service_name(name), annotations),
            selector=labels.redis_label_selectors(Labels.REDIS_ROLE_SLAVE).as_dict(),
            enable_metrics=enable_metrics,
            headless=False,
            service_type=additional_type,
            fatal=False,
        ),
    ]
