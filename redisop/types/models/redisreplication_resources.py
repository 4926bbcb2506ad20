class RedisReplicationResources:
    """Encapsulates the naming scheme used for the resources which the operator manages
    for a RedisReplication group."""

    @classmethod
    def stateful_set_name(self, cluster_name: str):
        """Returns the name of the StatefulSet for a group of the given name."""
        return cluster_name

    @classmethod
    def service_name(self, cluster_name: str):
        """Returns the name of the client facing service."""
        return cluster_name

    @classmethod
    def headless_service_name(self, cluster_name: str):
        """Returns the name of the headless service used for per pod DNS."""
        return f"{cluster_name}-headless"

    @classmethod
    def additional_service_name(self, cluster_name: str):
        """Returns the name of the service that may be exposed outside the cluster."""
        return f"{cluster_name}-additional"

    @classmethod
    def leader_service_name(self, cluster_name: str):
        return f"{cluster_name}-leader"

    @classmethod
    def follower_service_name(self, cluster_name: str):
        return f"{cluster_name}-follower"

