from typing import Dict, Optional


class ResourceLabels:
    REDISOP_DOMAIN: str = "redisop.io/"

    REDISOP_KIND_LABEL = REDISOP_DOMAIN + "kind"

    REDISOP_CLUSTER_LABEL = REDISOP_DOMAIN + "cluster"

    REDISOP_SETUP_TYPE_LABEL = REDISOP_DOMAIN + "setup-type"

    REDISOP_ROLE_LABEL = REDISOP_DOMAIN + "role"

    #: Replication role of a running pod (master/slave).
    REDIS_ROLE_LABEL = "redis-role"

    REDIS_ROLE_MASTER = "master"

    REDIS_ROLE_SLAVE = "slave"


class Labels(ResourceLabels):
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_NAME_LABEL = KUBERNETES_DOMAIN + "name"

    KUBERNETES_INSTANCE_LABEL = KUBERNETES_DOMAIN + "instance"

    KUBERNETES_PART_OF_LABEL = KUBERNETES_DOMAIN + "part-of"

    APPLICATION_NAME = "redis"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels.copy())
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels are dictionary."""
        return self._labels.copy()

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_redisop_kind(self, kind: str) -> "Labels":
        return self.include(self.REDISOP_KIND_LABEL, kind)

    def include_redisop_cluster(self, cluster: str) -> "Labels":
        return self.include(self.REDISOP_CLUSTER_LABEL, cluster)

    def include_redisop_setup_type(self, setup_type: str) -> "Labels":
        return self.include(self.REDISOP_SETUP_TYPE_LABEL, setup_type)

    def include_redisop_role(self, role: str) -> "Labels":
        return self.include(self.REDISOP_ROLE_LABEL, role)

    def include_redis_role(self, redis_role: str) -> "Labels":
        return self.include(self.REDIS_ROLE_LABEL, redis_role)

    def include_kubernetes_name(self, name: str) -> "Labels":
        return self.include(self.KUBERNETES_NAME_LABEL, name)

    def include_kubernetes_instance(self, instance_name: str) -> "Labels":
        return self.include(self.KUBERNETES_INSTANCE_LABEL, instance_name)

    def include_kubernetes_part_of(self, instance_name: str) -> "Labels":
        return self.include(
            self.KUBERNETES_PART_OF_LABEL,
            self.get_or_valid_instance_label_value(
                f"{self.APPLICATION_NAME}-{instance_name}"
            ),
        )

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    def get_or_valid_instance_label_value(self, instance: str):
        """Validates the instance name and if needed modifies it to make it a valid Label value:
        * (([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?
        * 63 characters max
        """
        if not instance:
            return ""
        value = instance[:63]
        return value.rstrip(".-_")

    def redis_label_selectors(self, redis_role: Optional[str] = None) -> "Labels":
        """Labels used to select the pods of a replication group.

        When `redis_role` is given the selector narrows down to pods
        currently labeled with that replication role.
        """
        selector_labels = [
            self.REDISOP_CLUSTER_LABEL,
            self.REDISOP_SETUP_TYPE_LABEL,
            self.REDISOP_ROLE_LABEL,
        ]
        selector = Labels(
            {key: self._labels[key] for key in selector_labels if key in self._labels}
        )
        if redis_role:
            selector.include_redis_role(redis_role)
        return selector

    def __str__(self):
        return f"Labels<{self._labels}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Labels):
            return NotImplemented
        return self._labels == other._labels

    @classmethod
    def generate_default_labels(
        cls,
        resource_name: str,
        resource_kind: str,
        setup_type: str,
        role: str,
        managed_by: str,
    ) -> "Labels":
        labels = Labels()
        return (
            labels.include_redisop_kind(resource_kind)
            .include_redisop_cluster(resource_name)
            .include_redisop_setup_type(setup_type)
            .include_redisop_role(role)
            .include_kubernetes_name(resource_name)
            .include_kubernetes_instance(resource_name)
            .include_kubernetes_part_of(resource_name)
            .include_kubernetes_managed_by(managed_by)
        )

    @classmethod
    def merge_owner_labels(
        cls, owner_labels: Optional[Dict[str, str]], reserved: "Labels"
    ) -> "Labels":
        """Merge owner supplied labels with reserved labels.

        Reserved keys win on conflict, every other owner key is kept.
        """
        return Labels(owner_labels or {}).update(reserved.as_dict())
