from typing import Dict, Optional


class Annotations:
    """Annotations stamped on resources owned by a replication group."""

    REDISOP_DOMAIN: str = "redisop.io/"

    MANAGED_ANNOTATION = REDISOP_DOMAIN + "managed"

    INSTANCE_ANNOTATION = REDISOP_DOMAIN + "instance"

    RESOURCE_HASH_ANNOTATION = REDISOP_DOMAIN + "resource-hash"

    #: Presence on the group triggers a full statefulset replacement on change.
    RECREATE_STATEFULSET_ANNOTATION = REDISOP_DOMAIN + "recreate-statefulset"

    PROMETHEUS_SCRAPE_ANNOTATION = "prometheus.io/scrape"

    PROMETHEUS_PORT_ANNOTATION = "prometheus.io/port"

    #: Owner annotations that never propagate to child resources.
    IGNORED_OWNER_ANNOTATIONS = (
        "kubectl.kubernetes.io/last-applied-configuration",
        "kopf.zalando.org/last-handled-configuration",
    )

    IGNORED_OWNER_ANNOTATION_PREFIXES = ("kopf.zalando.org/",)

    @classmethod
    def filter_owner_annotations(
        cls, annotations: Optional[Dict[str, str]]
    ) -> Dict[str, str]:
        return {
            key: value
            for key, value in (annotations or {}).items()
            if key not in cls.IGNORED_OWNER_ANNOTATIONS
            and not key.startswith(cls.IGNORED_OWNER_ANNOTATION_PREFIXES)
        }

    @classmethod
    def service_annotations(
        cls,
        name: str,
        owner_annotations: Optional[Dict[str, str]],
        metrics_port: int,
        additional: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Annotations for a service of the group.

        Owner annotations come first, reserved keys override them and
        `additional` (service level overrides) is merged last.
        """
        annotations = cls.filter_owner_annotations(owner_annotations)
        annotations.update(
            {
                cls.MANAGED_ANNOTATION: "true",
                cls.INSTANCE_ANNOTATION: name,
                cls.PROMETHEUS_SCRAPE_ANNOTATION: "true",
                cls.PROMETHEUS_PORT_ANNOTATION: str(metrics_port),
            }
        )
        annotations.update(additional or {})
        return annotations

    @classmethod
    def stateful_set_annotations(
        cls, name: str, owner_annotations: Optional[Dict[str, str]]
    ) -> Dict[str, str]:
        annotations = cls.filter_owner_annotations(owner_annotations)
        annotations.update(
            {
                cls.MANAGED_ANNOTATION: "true",
                cls.INSTANCE_ANNOTATION: name,
            }
        )
        return annotations

    @classmethod
    def recreate_requested(cls, annotations: Optional[Dict[str, str]]) -> bool:
        """True when the recreate annotation is present, whatever its value."""
        return cls.RECREATE_STATEFULSET_ANNOTATION in (annotations or {})

    @classmethod
    def hash_annotation(cls, hash: str) -> Dict[str, str]:
        return {cls.RESOURCE_HASH_ANNOTATION: str(hash)}
