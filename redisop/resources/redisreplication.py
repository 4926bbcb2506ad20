import logging
from functools import cached_property
from logging import Logger
from typing import Any, Dict, List, Mapping, Optional
from kubernetes_asyncio.client import AppsV1Api, CoreV1Api, V1StatefulSet
from kubernetes_asyncio.client.api_client import ApiClient
from redisop.common.models.annotations import Annotations
from redisop.common.models.labels import Labels
from redisop.resources.base import BaseResource
from redisop.resources.params import (
    ContainerParameters,
    DeploymentContext,
    InitContainerParameters,
    ObjectMetaInfo,
    Outcome,
    ServiceOutcome,
    ServiceParameters,
    StatefulSetParameters,
    generate_container_params,
    generate_deployment_context,
    generate_init_container_params,
    generate_object_meta,
    generate_service_topology,
    generate_stateful_set_params,
)
from redisop.sensors import SensorDelegate
from redisop.types.models import RedisReplicationResources, RedisReplicationSpec
from redisop.types.settings import Settings


class RedisReplication(BaseResource):
    """Redis replication group kubernetes resource."""

    logger: Logger
    conf: Settings = Settings()
    sensor: SensorDelegate = SensorDelegate()
    shared_api_client: ApiClient = None  # Shared across all RedisReplication instances

    KIND = "RedisReplication"
    GROUP_NAME = "redis.redisop.io"
    GROUP_VERSION = "v1beta1"
    PLURAL_NAME = "redisreplications"

    spec: RedisReplicationSpec
    context: DeploymentContext
    annotations: Dict[str, str] = None
    service_outcomes: List[ServiceOutcome]

    stateful_set_name: str
    headless_service_name: str

    _api_client: ApiClient = None
    _apps_v1_api: AppsV1Api = None
    _core_v1_api: CoreV1Api = None

    def __init__(self, context: DeploymentContext):
        super().__init__(
            cluster=context.name,
            namespace=context.namespace,
            labels=context.labels,
        )
        self.context = context
        self.service_outcomes = []

    @classmethod
    def from_spec(
        cls,
        name: str,
        namespace: str,
        spec: RedisReplicationSpec,
        labels: Optional[Dict[str, str]] = None,
        annotations: Optional[Dict[str, str]] = None,
        owner_reference: Optional[Mapping[str, Any]] = None,
        logger: Logger = None,
    ) -> "RedisReplication":
        context = generate_deployment_context(
            name, namespace, owner_reference, labels, annotations
        )
        group = RedisReplication(context)
        group.logger = logger or logging.getLogger(__name__)
        group.spec = spec
        group.annotations = dict(annotations or {})
        group.stateful_set_name = RedisReplicationResources.stateful_set_name(name)
        group.headless_service_name = RedisReplicationResources.headless_service_name(
            name
        )
        return group

    async def synchronize(self) -> "RedisReplication":
        """Ensure the service topology, then the stateful set."""
        await self.ensure_services()
        await self.ensure_stateful_set()
        return self

    def prepare_service_topology(self) -> List[ServiceParameters]:
        return generate_service_topology(self.context, self.spec)

    async def ensure_services(self) -> List[ServiceOutcome]:
        """Apply the five services of the group in order.

        A failure on a fatal service (headless, primary) is logged and raised
        as is, the remaining services are not attempted. Failures on the other
        services are logged and recorded as non fatal.
        """
        self.service_outcomes = []
        for params in self.prepare_service_topology():
            name = params.meta.name
            try:
                await self.create_or_update_service(
                    self.namespace,
                    params.meta,
                    self.context.owner_reference,
                    params.enable_metrics,
                    params.headless,
                    params.service_type,
                    params.selector,
                )
            except Exception as ex:
                self.sensor.on_service_apply_failed(
                    self.cluster, name, self.namespace, params.kind.value, params.fatal, ex
                )
                if params.fatal:
                    self.logger.error(
                        f"Cannot create {params.kind.value} service {name} "
                        f"for {self.KIND} {self.cluster}: {ex}"
                    )
                    self.service_outcomes.append(
                        ServiceOutcome(params.kind, name, Outcome.FAILED_FATAL, ex)
                    )
                    raise
                self.logger.error(
                    f"Cannot create {params.kind.value} service {name} "
                    f"for {self.KIND} {self.cluster}, continuing: {ex}"
                )
                self.service_outcomes.append(
                    ServiceOutcome(params.kind, name, Outcome.FAILED_NON_FATAL, ex)
                )
                continue
            self.service_outcomes.append(
                ServiceOutcome(params.kind, name, Outcome.APPLIED)
            )
        return self.service_outcomes

    async def ensure_stateful_set(self) -> V1StatefulSet:
        """Apply the stateful set of the group; any failure is logged and raised."""
        try:
            return await self.create_or_update_stateful_set(
                self.namespace,
                self.stateful_set_meta,
                self.stateful_set_params,
                self.context.owner_reference,
                self.init_container_params,
                self.container_params,
                self.spec.sidecars,
                self.labels.redis_label_selectors().as_dict(),
                self.headless_service_name,
            )
        except Exception as ex:
            self.logger.error(
                f"Cannot create statefulset {self.stateful_set_name} "
                f"for {self.KIND} {self.cluster}: {ex}"
            )
            raise

    async def update_role_label_pods(self, role: str, pods: List[str]) -> None:
        """Set the `redis-role` label of each pod, in order.

        Stops at the first pod that cannot be read or written and raises
        that error. Pods already updated keep their new label.
        """
        for pod_name in pods:
            try:
                pod = await self.fetch_pod(self.core_v1_api, pod_name, self.namespace)
            except Exception as ex:
                self.logger.error(f"Cannot get redis replication pod {pod_name}: {ex}")
                self.sensor.on_role_label_update(
                    self.cluster, pod_name, self.namespace, role, False
                )
                raise
            labels = dict(pod.metadata.labels or {})
            labels[Labels.REDIS_ROLE_LABEL] = role
            pod.metadata.labels = labels
            try:
                await self.replace_pod(self.core_v1_api, pod_name, self.namespace, pod)
            except Exception as ex:
                self.logger.error(f"Cannot update redis replication pod {pod_name}: {ex}")
                self.sensor.on_role_label_update(
                    self.cluster, pod_name, self.namespace, role, False
                )
                raise
            self.sensor.on_role_label_update(
                self.cluster, pod_name, self.namespace, role, True
            )
            self.logger.debug(f"Pod {pod_name} labeled {Labels.REDIS_ROLE_LABEL}={role}")

    @cached_property
    def container_params(self) -> ContainerParameters:
        return generate_container_params(self.spec, self.conf)

    @cached_property
    def init_container_params(self) -> InitContainerParameters:
        return generate_init_container_params(self.spec)

    @cached_property
    def stateful_set_params(self) -> StatefulSetParameters:
        return generate_stateful_set_params(self.spec, self.annotations)

    @cached_property
    def stateful_set_meta(self) -> ObjectMetaInfo:
        return generate_object_meta(
            self.stateful_set_name,
            self.namespace,
            self.labels,
            Annotations.stateful_set_annotations(self.cluster, self.context.annotations),
        )

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            # Use the shared API client if available, otherwise create a new one
            if self.shared_api_client is not None:
                self._api_client = self.shared_api_client
            else:
                self._api_client = ApiClient()
        return self._api_client

    @property
    def apps_v1_api(self) -> AppsV1Api:
        if self._apps_v1_api is None:
            self._apps_v1_api = AppsV1Api(self.api_client)
        return self._apps_v1_api

    @property
    def core_v1_api(self) -> CoreV1Api:
        if self._core_v1_api is None:
            self._core_v1_api = CoreV1Api(self.api_client)
        return self._core_v1_api
