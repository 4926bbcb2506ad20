"""Rendering of the replication group's StatefulSet from its parameter sets."""
from typing import Any, Dict, Iterable, List, Mapping, Optional
from kubernetes_asyncio.client import (
    V1ConfigMapKeySelector,
    V1ConfigMapVolumeSource,
    V1Container,
    V1ContainerPort,
    V1EnvVar,
    V1EnvVarSource,
    V1ExecAction,
    V1LabelSelector,
    V1ObjectFieldSelector,
    V1ObjectMeta,
    V1PersistentVolumeClaim,
    V1PersistentVolumeClaimSpec,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Probe,
    V1ResourceRequirements,
    V1RollingUpdateStatefulSetStrategy,
    V1SecretKeySelector,
    V1SecretVolumeSource,
    V1StatefulSet,
    V1StatefulSetPersistentVolumeClaimRetentionPolicy,
    V1StatefulSetSpec,
    V1StatefulSetUpdateStrategy,
    V1Volume,
    V1VolumeMount,
)
from redisop.common.models.annotations import Annotations
from redisop.resources.params import (
    EXPORTER_PORT,
    EXPORTER_PORT_NAME,
    REDIS_PORT,
    REDIS_PORT_NAME,
    ContainerParameters,
    ExporterParameters,
    InitContainerParameters,
    ObjectMetaInfo,
    StatefulSetParameters,
)
from redisop.resources.service import prepare_owner_references
from redisop.types.models import ContainerEnvVar, Probe, RedisStorage, Sidecar
from redisop.utils.helpers import compute_hash

REDIS_CONTAINER_NAME = "redis"
EXPORTER_CONTAINER_NAME = "redis-exporter"
INIT_CONTAINER_NAME = "init-config"

EXTERNAL_CONFIG_VOLUME = "external-config"
EXTERNAL_CONFIG_PATH = "/etc/redis/external.conf.d"
TLS_VOLUME = "tls-certs"
TLS_PATH = "/tls"
ACL_VOLUME = "acl-secret"
ACL_PATH = "/etc/redis/user.acl"
ACL_FILE = "user.acl"

DEFAULT_PROBE_COMMAND = ["redis-cli", "ping"]


def prepare_resource_requirements(
    resources: Optional[Mapping[str, Any]],
) -> Optional[V1ResourceRequirements]:
    if not resources:
        return None
    return V1ResourceRequirements(
        requests=resources.get("requests"),
        limits=resources.get("limits"),
    )


def prepare_container_env_vars(env: Iterable[ContainerEnvVar]) -> List[V1EnvVar]:
    """Convert user supplied env vars into client models."""
    env_vars = []
    for cev in env or ():
        if cev.value is not None:
            env_vars.append(V1EnvVar(name=cev.name, value=cev.value))
        elif cev.value_from:
            if cev.value_from.config_map_key_ref:
                env_vars.append(
                    V1EnvVar(
                        name=cev.name,
                        value_from=V1EnvVarSource(
                            config_map_key_ref=V1ConfigMapKeySelector(
                                key=cev.value_from.config_map_key_ref.key,
                                name=cev.value_from.config_map_key_ref.name,
                                optional=cev.value_from.config_map_key_ref.optional,
                            )
                        ),
                    )
                )
            elif cev.value_from.secret_key_ref:
                env_vars.append(
                    V1EnvVar(
                        name=cev.name,
                        value_from=V1EnvVarSource(
                            secret_key_ref=V1SecretKeySelector(
                                key=cev.value_from.secret_key_ref.key,
                                name=cev.value_from.secret_key_ref.name,
                                optional=cev.value_from.secret_key_ref.optional,
                            )
                        ),
                    )
                )
            elif cev.value_from.field_ref:
                env_vars.append(
                    V1EnvVar(
                        name=cev.name,
                        value_from=V1EnvVarSource(
                            field_ref=V1ObjectFieldSelector(
                                field_path=cev.value_from.field_ref.field_path,
                                api_version=cev.value_from.field_ref.api_version,
                            )
                        ),
                    )
                )
        else:
            env_vars.append(V1EnvVar(name=cev.name, value=""))
    return env_vars


def prepare_password_env_var(params: ContainerParameters) -> V1EnvVar:
    return V1EnvVar(
        name="REDIS_PASSWORD",
        value_from=V1EnvVarSource(
            secret_key_ref=V1SecretKeySelector(
                name=params.secret_name, key=params.secret_key
            )
        ),
    )


def prepare_env_vars(params: ContainerParameters) -> List[V1EnvVar]:
    """Environment of the redis container, user env vars come last."""
    env_vars = [
        V1EnvVar(name="REDIS_ADDR", value=f"redis://localhost:{REDIS_PORT}"),
        V1EnvVar(name="SERVER_MODE", value=params.role),
        V1EnvVar(name="SETUP_MODE", value=params.role),
    ]
    if params.persistence_enabled:
        env_vars.append(V1EnvVar(name="PERSISTENCE_ENABLED", value="true"))
    if params.enabled_password:
        env_vars.append(prepare_password_env_var(params))
    if params.tls_config is not None:
        tls = params.tls_config
        env_vars.extend(
            [
                V1EnvVar(name="TLS_MODE", value="true"),
                V1EnvVar(name="REDIS_TLS_CA_KEY", value=f"{TLS_PATH}/{tls.ca}"),
                V1EnvVar(name="REDIS_TLS_CERT", value=f"{TLS_PATH}/{tls.cert}"),
                V1EnvVar(name="REDIS_TLS_CERT_KEY", value=f"{TLS_PATH}/{tls.key}"),
            ]
        )
    if params.acl_config is not None:
        env_vars.append(V1EnvVar(name="ACL_MODE", value="true"))
    env_vars.extend(prepare_container_env_vars(params.env_vars))
    return env_vars


def prepare_exporter_env_vars(params: ContainerParameters) -> List[V1EnvVar]:
    exporter: ExporterParameters = params.exporter
    scheme = "rediss" if params.tls_config is not None else "redis"
    env_vars = [
        V1EnvVar(name="REDIS_ADDR", value=f"{scheme}://localhost:{REDIS_PORT}"),
    ]
    if params.enabled_password:
        env_vars.append(prepare_password_env_var(params))
    if params.tls_config is not None:
        tls = params.tls_config
        env_vars.extend(
            [
                V1EnvVar(
                    name="REDIS_EXPORTER_TLS_CLIENT_KEY_FILE",
                    value=f"{TLS_PATH}/{tls.key}",
                ),
                V1EnvVar(
                    name="REDIS_EXPORTER_TLS_CLIENT_CERT_FILE",
                    value=f"{TLS_PATH}/{tls.cert}",
                ),
                V1EnvVar(
                    name="REDIS_EXPORTER_TLS_CA_CERT_FILE",
                    value=f"{TLS_PATH}/{tls.ca}",
                ),
                V1EnvVar(name="REDIS_EXPORTER_SKIP_TLS_VERIFICATION", value="true"),
            ]
        )
    env_vars.extend(prepare_container_env_vars(exporter.env_vars))
    return env_vars


def prepare_probe(probe: Optional[Probe]) -> Optional[V1Probe]:
    """Probe running `redis-cli ping` (or the configured command)."""
    if probe is None:
        return None
    return V1Probe(
        _exec=V1ExecAction(command=list(probe.command or DEFAULT_PROBE_COMMAND)),
        failure_threshold=probe.failure_threshold,
        initial_delay_seconds=probe.initial_delay_seconds,
        period_seconds=probe.period_seconds,
        success_threshold=probe.success_threshold,
        timeout_seconds=probe.timeout_seconds,
    )


def prepare_volume_mounts(
    name: str, params: ContainerParameters, external_config: Optional[str]
) -> List[V1VolumeMount]:
    mounts = []
    if params.persistence_enabled:
        mounts.append(V1VolumeMount(name=name, mount_path=params.mount_path))
    if external_config:
        mounts.append(
            V1VolumeMount(name=EXTERNAL_CONFIG_VOLUME, mount_path=EXTERNAL_CONFIG_PATH)
        )
    if params.tls_config is not None:
        mounts.append(V1VolumeMount(name=TLS_VOLUME, mount_path=TLS_PATH, read_only=True))
    if params.acl_config is not None:
        mounts.append(
            V1VolumeMount(name=ACL_VOLUME, mount_path=ACL_PATH, sub_path=ACL_FILE)
        )
    mounts.extend(params.additional_mount_paths or ())
    return mounts


def prepare_volumes(
    params: ContainerParameters, external_config: Optional[str]
) -> List[V1Volume]:
    """Pod volumes; storage comes from the volume claim template instead."""
    volumes = []
    if external_config:
        volumes.append(
            V1Volume(
                name=EXTERNAL_CONFIG_VOLUME,
                config_map=V1ConfigMapVolumeSource(name=external_config),
            )
        )
    if params.tls_config is not None:
        volumes.append(
            V1Volume(
                name=TLS_VOLUME,
                secret=V1SecretVolumeSource(
                    secret_name=params.tls_config.secret.secret_name
                ),
            )
        )
    if params.acl_config is not None:
        volumes.append(
            V1Volume(
                name=ACL_VOLUME,
                secret=V1SecretVolumeSource(
                    secret_name=params.acl_config.secret.secret_name
                ),
            )
        )
    volumes.extend(params.additional_volumes or ())
    return volumes


def prepare_redis_container(
    name: str, params: ContainerParameters, external_config: Optional[str]
) -> V1Container:
    return V1Container(
        name=REDIS_CONTAINER_NAME,
        image=params.image,
        image_pull_policy=params.image_pull_policy,
        ports=[
            V1ContainerPort(
                container_port=REDIS_PORT, name=REDIS_PORT_NAME, protocol="TCP"
            )
        ],
        env=prepare_env_vars(params),
        resources=prepare_resource_requirements(params.resources),
        security_context=params.security_context,
        readiness_probe=prepare_probe(params.readiness_probe),
        liveness_probe=prepare_probe(params.liveness_probe),
        volume_mounts=prepare_volume_mounts(name, params, external_config) or None,
    )


def prepare_exporter_container(params: ContainerParameters) -> V1Container:
    exporter: ExporterParameters = params.exporter
    volume_mounts = None
    if params.tls_config is not None:
        volume_mounts = [
            V1VolumeMount(name=TLS_VOLUME, mount_path=TLS_PATH, read_only=True)
        ]
    return V1Container(
        name=EXPORTER_CONTAINER_NAME,
        image=exporter.image,
        image_pull_policy=exporter.image_pull_policy,
        ports=[
            V1ContainerPort(
                container_port=EXPORTER_PORT, name=EXPORTER_PORT_NAME, protocol="TCP"
            )
        ],
        env=prepare_exporter_env_vars(params),
        resources=prepare_resource_requirements(exporter.resources),
        volume_mounts=volume_mounts,
    )


def prepare_init_container(
    name: str, params: InitContainerParameters
) -> Optional[V1Container]:
    """The init container, None unless enabled."""
    if not params.enabled:
        return None
    volume_mounts = []
    if params.persistence_enabled:
        volume_mounts.append(V1VolumeMount(name=name, mount_path=params.mount_path))
    volume_mounts.extend(params.additional_mount_paths or ())
    return V1Container(
        name=INIT_CONTAINER_NAME,
        image=params.image,
        image_pull_policy=params.image_pull_policy,
        resources=prepare_resource_requirements(params.resources),
        env=prepare_container_env_vars(params.env_vars) or None,
        command=list(params.command) if params.command is not None else None,
        args=list(params.arguments) if params.arguments is not None else None,
        volume_mounts=volume_mounts or None,
    )


def prepare_sidecar_containers(sidecars: Optional[Iterable[Sidecar]]) -> List[V1Container]:
    containers = []
    for sidecar in sidecars or ():
        resources = None
        if sidecar.resources is not None:
            resources = V1ResourceRequirements(
                requests=sidecar.resources.requests,
                limits=sidecar.resources.limits,
            )
        containers.append(
            V1Container(
                name=sidecar.name,
                image=sidecar.image,
                image_pull_policy=sidecar.image_pull_policy,
                resources=resources,
                env=prepare_container_env_vars(sidecar.env) or None,
                command=sidecar.command,
                args=sidecar.args,
                ports=[
                    V1ContainerPort(
                        name=port.name,
                        container_port=port.container_port,
                        protocol=port.protocol,
                    )
                    for port in sidecar.ports
                ]
                if sidecar.ports
                else None,
                security_context=sidecar.security_context,
            )
        )
    return containers


def prepare_persistent_volume_claim(
    name: str, labels: Mapping[str, str], storage: RedisStorage
) -> V1PersistentVolumeClaim:
    """Volume claim template holding the redis data directory."""
    template = storage.volume_claim_template
    return V1PersistentVolumeClaim(
        metadata=V1ObjectMeta(name=name, labels=dict(labels)),
        spec=V1PersistentVolumeClaimSpec(
            access_modes=list(template.access_modes),
            resources=V1ResourceRequirements(requests={"storage": template.size}),
            storage_class_name=template.storage_class_name,
        ),
    )


def prepare_persistent_volume_claim_retention_policy(
    storage: RedisStorage,
) -> V1StatefulSetPersistentVolumeClaimRetentionPolicy:
    return V1StatefulSetPersistentVolumeClaimRetentionPolicy(
        when_deleted="Retain" if storage.keep_after_delete else "Delete",
        when_scaled="Retain",
    )


def prepare_update_strategy(
    update_strategy: Optional[Mapping[str, Any]],
) -> Optional[V1StatefulSetUpdateStrategy]:
    if not update_strategy:
        return None
    rolling_update = update_strategy.get("rollingUpdate")
    return V1StatefulSetUpdateStrategy(
        type=update_strategy["type"],
        rolling_update=V1RollingUpdateStatefulSetStrategy(
            max_unavailable=rolling_update.get("maxUnavailable"),
            partition=rolling_update.get("partition"),
        )
        if rolling_update
        else None,
    )


def prepare_pod_spec(
    name: str,
    params: StatefulSetParameters,
    init_params: InitContainerParameters,
    container_params: ContainerParameters,
    sidecars: Optional[Iterable[Sidecar]] = None,
) -> V1PodSpec:
    init_container = prepare_init_container(name, init_params)
    containers = [prepare_redis_container(name, container_params, params.external_config)]
    if params.enable_metrics and container_params.exporter is not None:
        containers.append(prepare_exporter_container(container_params))
    containers.extend(prepare_sidecar_containers(sidecars))
    volumes = prepare_volumes(container_params, params.external_config)
    return V1PodSpec(
        init_containers=[init_container] if init_container else None,
        containers=containers,
        volumes=volumes or None,
        node_selector=params.node_selector,
        security_context=params.pod_security_context,
        priority_class_name=params.priority_class_name,
        affinity=params.affinity,
        tolerations=list(params.tolerations) if params.tolerations else None,
        termination_grace_period_seconds=params.termination_grace_period_seconds,
        image_pull_secrets=list(params.image_pull_secrets)
        if params.image_pull_secrets
        else None,
        service_account_name=params.service_account_name,
    )


def prepare_stateful_set(
    meta: ObjectMetaInfo,
    params: StatefulSetParameters,
    owner_reference: Optional[Mapping[str, Any]],
    init_params: InitContainerParameters,
    container_params: ContainerParameters,
    sidecars: Optional[Iterable[Sidecar]],
    selector: Mapping[str, str],
    service_name: str,
) -> V1StatefulSet:
    """Build the stateful set resource, stamped with its hash."""
    annotations = dict(meta.annotations)
    volume_claim_templates = None
    retention_policy = None
    if params.persistent_volume_claim is not None:
        volume_claim_templates = [
            prepare_persistent_volume_claim(
                meta.name, meta.labels, params.persistent_volume_claim
            )
        ]
        retention_policy = prepare_persistent_volume_claim_retention_policy(
            params.persistent_volume_claim
        )

    stateful_set = V1StatefulSet(
        api_version="apps/v1",
        kind="StatefulSet",
        metadata=V1ObjectMeta(
            name=meta.name,
            namespace=meta.namespace,
            labels=dict(meta.labels),
            annotations=annotations,
            owner_references=prepare_owner_references(owner_reference),
        ),
        spec=V1StatefulSetSpec(
            replicas=params.replicas,
            service_name=service_name,
            selector=V1LabelSelector(match_labels=dict(selector)),
            update_strategy=prepare_update_strategy(params.update_strategy),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(
                    labels=dict(meta.labels), annotations=dict(meta.annotations)
                ),
                spec=prepare_pod_spec(
                    meta.name, params, init_params, container_params, sidecars
                ),
            ),
            volume_claim_templates=volume_claim_templates,
            persistent_volume_claim_retention_policy=retention_policy,
        ),
    )
    annotations.update(
        Annotations.hash_annotation(compute_hash(stateful_set.to_dict()))
    )
    return stateful_set


def prepare_stateful_set_patch(stateful_set: V1StatefulSet) -> List[Dict]:
    """Prepare patch for stateful set resource.
    A statefulset can only have certain fields updated via patch.
    """
    patch = []

    spec: V1StatefulSetSpec = stateful_set.spec

    patch.append(
        {
            "op": "replace",
            "path": "/spec/replicas",
            "value": spec.replicas,
        }
    )

    if spec.template:
        patch.append(
            {
                "op": "replace",
                "path": "/spec/template",
                "value": spec.template,
            }
        )

    if spec.update_strategy:
        patch.append(
            {
                "op": "replace",
                "path": "/spec/updateStrategy",
                "value": spec.update_strategy,
            }
        )

    if spec.persistent_volume_claim_retention_policy:
        patch.append(
            {
                "op": "replace",
                "path": "/spec/persistentVolumeClaimRetentionPolicy",
                "value": spec.persistent_volume_claim_retention_policy,
            }
        )

    patch.append(
        {
            "op": "add",
            "path": "/metadata/labels",
            "value": stateful_set.metadata.labels,
        }
    )
    patch.append(
        {
            "op": "add",
            "path": "/metadata/annotations",
            "value": stateful_set.metadata.annotations,
        }
    )
    return patch


def prepare_stateful_set_watch_fields(stateful_set: V1StatefulSet) -> Dict:
    """
    Prepare fields of interest when comparing actual vs desired state.
    These fields are tracked for changes made outside the operator and are used to
    determine if a patch is needed.
    """
    annotations = stateful_set.metadata.annotations or {}
    return {
        "metadata": {
            "annotations": {
                Annotations.RESOURCE_HASH_ANNOTATION: annotations.get(
                    Annotations.RESOURCE_HASH_ANNOTATION
                ),
            },
        },
        "spec": {
            "replicas": stateful_set.spec.replicas,
            "template": {
                "spec": {
                    "containers": [
                        {"image": stateful_set.spec.template.spec.containers[0].image}
                    ]
                }
            },
        },
    }
