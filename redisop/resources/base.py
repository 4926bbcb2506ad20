import asyncio
from logging import Logger
from typing import Any, Dict, Iterable, List, Mapping, Optional
from redisop.common.models.labels import Labels
from redisop.resources.params import (
    ContainerParameters,
    InitContainerParameters,
    ObjectMetaInfo,
    StatefulSetParameters,
)
from redisop.resources.service import (
    prepare_service,
    prepare_service_patch,
    prepare_service_watch_fields,
)
from redisop.resources.statefulset import (
    prepare_stateful_set,
    prepare_stateful_set_patch,
    prepare_stateful_set_watch_fields,
)
from redisop.sensors import SensorDelegate
from redisop.types.models import Sidecar
from redisop.types.settings import Settings
from redisop.utils.errors import already_exists_error
from redisop.utils.helpers import compute_hash
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CoreV1Api,
    V1DeleteOptions,
    V1Pod,
    V1Service,
    V1StatefulSet,
)


class BaseResource:
    """Base resource model."""

    logger: Logger
    conf: Settings
    sensor: SensorDelegate

    _cluster: str
    _namespace: str
    _labels: Labels

    def __init__(self, cluster: str, namespace: str, labels: Labels):
        self._cluster = cluster
        self._namespace = namespace
        self._labels = labels

    @property
    def cluster(self) -> str:
        return self._cluster

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def labels(self) -> Labels:
        return self._labels

    def compute_hash(self, data: Any) -> str:
        """Compute a murmur3 hash."""
        return compute_hash(data)

    async def create_or_update_service(
        self,
        namespace: str,
        meta: ObjectMetaInfo,
        owner_reference: Optional[Mapping[str, Any]],
        enable_metrics: bool,
        headless: bool,
        service_type: str,
        selector: Mapping[str, str],
    ) -> V1Service:
        """Create the service when missing, patch it when it drifted."""
        desired = prepare_service(
            meta, owner_reference, enable_metrics, headless, service_type, selector
        )
        service: V1Service = await self.fetch_service(
            self.core_v1_api, meta.name, namespace
        )
        if not service:
            await self._instrumented(
                meta.name,
                namespace,
                "service",
                "create",
                self.create_service(self.core_v1_api, namespace, desired),
            )
            return desired

        actual_hash = self.compute_hash(prepare_service_watch_fields(service))
        desired_hash = self.compute_hash(prepare_service_watch_fields(desired))
        if actual_hash != desired_hash:
            self.sensor.on_resource_drift_detected(
                self.cluster, meta.name, namespace, "service", ["spec"]
            )
            self.logger.info(f"Service {meta.name} drifted from desired state, patching.")
            await self._instrumented(
                meta.name,
                namespace,
                "service",
                "patch",
                self.patch_service(
                    self.core_v1_api,
                    meta.name,
                    namespace,
                    service=prepare_service_patch(desired),
                ),
            )
        return desired

    async def create_or_update_stateful_set(
        self,
        namespace: str,
        meta: ObjectMetaInfo,
        params: StatefulSetParameters,
        owner_reference: Optional[Mapping[str, Any]],
        init_params: InitContainerParameters,
        container_params: ContainerParameters,
        sidecars: Optional[Iterable[Sidecar]],
        selector: Mapping[str, str],
        service_name: str,
    ) -> V1StatefulSet:
        """Create the stateful set when missing, patch or recreate it when it drifted."""
        desired = prepare_stateful_set(
            meta,
            params,
            owner_reference,
            init_params,
            container_params,
            sidecars,
            selector,
            service_name,
        )
        stateful_set: V1StatefulSet = await self.fetch_stateful_set(
            self.apps_v1_api, meta.name, namespace
        )
        if not stateful_set:
            await self._instrumented(
                meta.name,
                namespace,
                "stateful_set",
                "create",
                self.create_stateful_set(self.apps_v1_api, namespace, desired),
            )
            return desired

        actual_hash = self.compute_hash(prepare_stateful_set_watch_fields(stateful_set))
        desired_hash = self.compute_hash(prepare_stateful_set_watch_fields(desired))
        if actual_hash == desired_hash:
            return desired

        self.sensor.on_resource_drift_detected(
            self.cluster, meta.name, namespace, "stateful_set", ["spec"]
        )
        if params.recreate_stateful_set:
            self.logger.info(
                f"Statefulset {meta.name} drifted and recreation is requested, recreating."
            )
            await self._instrumented(
                meta.name,
                namespace,
                "stateful_set",
                "recreate",
                self.recreate_stateful_set(self.apps_v1_api, namespace, desired),
            )
        else:
            self.logger.info(f"Statefulset {meta.name} drifted from desired state, patching.")
            await self._instrumented(
                meta.name,
                namespace,
                "stateful_set",
                "patch",
                self.patch_stateful_set(
                    self.apps_v1_api,
                    meta.name,
                    namespace,
                    stateful_set=prepare_stateful_set_patch(desired),
                ),
            )
        return desired

    async def recreate_stateful_set(
        self, apps_v1_api: AppsV1Api, namespace: str, stateful_set: V1StatefulSet
    ):
        """Delete the stateful set leaving its pods running, then create it again."""
        await self.delete_stateful_set(
            apps_v1_api,
            stateful_set.metadata.name,
            namespace,
            delete_options=V1DeleteOptions(propagation_policy="Orphan"),
        )
        # Give k8s time to execute the deletion before recreating the statefulset.
        await asyncio.sleep(self.conf.statefulset_deletion_timeout_seconds)
        await self.create_stateful_set(apps_v1_api, namespace, stateful_set)

    async def _instrumented(
        self, resource_name: str, namespace: str, resource_type: str, operation: str, coro
    ):
        sensor_state = self.sensor.on_resource_sync_start(
            self.cluster, resource_name, namespace, resource_type
        )
        success, error = True, None
        try:
            return await coro
        except Exception as ex:
            success, error = False, ex
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                self.cluster,
                resource_name,
                namespace,
                resource_type,
                sensor_state,
                operation,
                success,
                error,
            )

    async def fetch_service(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> V1Service:
        """Retrieve the latest state of a service"""
        try:
            return await core_v1_api.read_namespaced_service(name=name, namespace=namespace)
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise

    async def create_service(
        self, core_v1_api: CoreV1Api, namespace: str, service: V1Service
    ) -> None:
        try:
            await core_v1_api.create_namespaced_service(namespace=namespace, body=service)
        except ApiException as ex:
            if already_exists_error(ex):
                await self.replace_service(
                    core_v1_api,
                    name=service.metadata.name,
                    namespace=namespace,
                    service=service,
                )
            else:
                raise

    async def replace_service(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, service: V1Service
    ):
        await core_v1_api.replace_namespaced_service(
            name=name,
            namespace=namespace,
            body=service,
        )

    async def patch_service(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, service: List[Dict]
    ):
        await core_v1_api.patch_namespaced_service(
            name=name,
            namespace=namespace,
            body=service,
        )

    async def fetch_stateful_set(
        self, apps_v1_api: AppsV1Api, name: str, namespace: str
    ) -> V1StatefulSet:
        try:
            return await apps_v1_api.read_namespaced_stateful_set(name=name, namespace=namespace)
        except ApiException as ex:
            if ex.status == 404:
                return None
            raise

    async def create_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        namespace: str,
        stateful_set: V1StatefulSet,
    ):
        try:
            await apps_v1_api.create_namespaced_stateful_set(
                namespace=namespace, body=stateful_set
            )
        except ApiException as ex:
            if already_exists_error(ex):
                await self.replace_stateful_set(
                    apps_v1_api,
                    name=stateful_set.metadata.name,
                    namespace=namespace,
                    stateful_set=stateful_set,
                )
            else:
                raise

    async def replace_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        stateful_set: V1StatefulSet,
    ):
        await apps_v1_api.replace_namespaced_stateful_set(
            name=name, namespace=namespace, body=stateful_set
        )

    async def patch_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        stateful_set: List[Dict],
    ):
        await apps_v1_api.patch_namespaced_stateful_set(
            name=name, namespace=namespace, body=stateful_set
        )

    async def delete_stateful_set(
        self,
        apps_v1_api: AppsV1Api,
        name: str,
        namespace: str,
        delete_options: V1DeleteOptions,
    ):
        try:
            await apps_v1_api.delete_namespaced_stateful_set(
                name=name, namespace=namespace, body=delete_options
            )
        except ApiException as ex:
            if ex.status == 404:
                return
            raise

    async def fetch_pod(self, core_v1_api: CoreV1Api, name: str, namespace: str) -> V1Pod:
        return await core_v1_api.read_namespaced_pod(name=name, namespace=namespace)

    async def replace_pod(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, pod: V1Pod
    ) -> V1Pod:
        return await core_v1_api.replace_namespaced_pod(
            name=name, namespace=namespace, body=pod
        )
