from typing import Any, Dict, List, Mapping, Optional
from kubernetes_asyncio.client import (
    V1ObjectMeta,
    V1OwnerReference,
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
)
from redisop.common.models.annotations import Annotations
from redisop.resources.params import (
    EXPORTER_PORT,
    EXPORTER_PORT_NAME,
    REDIS_PORT,
    REDIS_PORT_NAME,
    ObjectMetaInfo,
)
from redisop.utils.helpers import compute_hash


def prepare_owner_references(
    owner_reference: Optional[Mapping[str, Any]],
) -> Optional[List[V1OwnerReference]]:
    """Owner reference as built by `kopf.build_owner_reference`, as client models."""
    if not owner_reference:
        return None
    return [
        V1OwnerReference(
            api_version=owner_reference["apiVersion"],
            kind=owner_reference["kind"],
            name=owner_reference["name"],
            uid=owner_reference["uid"],
            controller=owner_reference.get("controller"),
            block_owner_deletion=owner_reference.get("blockOwnerDeletion"),
        )
    ]


def prepare_service_ports(enable_metrics: bool) -> List[V1ServicePort]:
    ports = [
        V1ServicePort(
            name=REDIS_PORT_NAME,
            protocol="TCP",
            port=REDIS_PORT,
            target_port=REDIS_PORT,
        )
    ]
    if enable_metrics:
        ports.append(
            V1ServicePort(
                name=EXPORTER_PORT_NAME,
                protocol="TCP",
                port=EXPORTER_PORT,
                target_port=EXPORTER_PORT,
            )
        )
    return ports


def prepare_service(
    meta: ObjectMetaInfo,
    owner_reference: Optional[Mapping[str, Any]],
    enable_metrics: bool,
    headless: bool,
    service_type: str,
    selector: Mapping[str, str],
) -> V1Service:
    """Build a service of the replication group, stamped with its hash."""
    annotations = dict(meta.annotations)
    spec = V1ServiceSpec(
        selector=dict(selector),
        type=service_type,
        ports=prepare_service_ports(enable_metrics),
    )
    if headless:
        spec.cluster_ip = "None"
        spec.publish_not_ready_addresses = True
    service = V1Service(
        api_version="v1",
        kind="Service",
        metadata=V1ObjectMeta(
            name=meta.name,
            namespace=meta.namespace,
            labels=dict(meta.labels),
            annotations=annotations,
            owner_references=prepare_owner_references(owner_reference),
        ),
        spec=spec,
    )
    annotations.update(
        Annotations.hash_annotation(compute_hash(service.to_dict()))
    )
    return service


def prepare_service_patch(service: V1Service) -> List[Dict]:
    """Prepare patch for service resource.
    A service can only have certain fields updated via patch.
    """
    patch = []

    patch.append(
        {
            "op": "replace",
            "path": "/spec/type",
            "value": service.spec.type,
        }
    )

    if service.spec.ports:
        patch.append(
            {
                "op": "replace",
                "path": "/spec/ports",
                "value": service.spec.ports,
            }
        )

    if service.spec.selector:
        patch.append(
            {
                "op": "replace",
                "path": "/spec/selector",
                "value": service.spec.selector,
            }
        )

    patch.append(
        {
            "op": "add",
            "path": "/metadata/labels",
            "value": service.metadata.labels,
        }
    )
    patch.append(
        {
            "op": "add",
            "path": "/metadata/annotations",
            "value": service.metadata.annotations,
        }
    )
    return patch


def prepare_service_watch_fields(service: V1Service) -> Dict:
    """
    Fields compared between the live and the desired service.
    The hash annotation covers every rendered field, the type is compared as is.
    """
    annotations = service.metadata.annotations or {}
    return {
        "metadata": {
            "annotations": {
                Annotations.RESOURCE_HASH_ANNOTATION: annotations.get(
                    Annotations.RESOURCE_HASH_ANNOTATION
                ),
            },
        },
        "spec": {
            "type": service.spec.type,
        },
    }
