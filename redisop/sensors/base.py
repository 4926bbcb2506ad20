"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

The hook pattern:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for redis operator monitoring.

    Hooks cover the reconciliation of a replication group, the sync of its
    child Kubernetes resources and the role labels written on its pods.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, group_name, namespace, generation, trigger_source):
                return {'start_time': time.time()}

            def on_reconcile_complete(self, group_name, namespace, state, success, error=None):
                duration = time.time() - state['start_time']
                logger.info(f"Reconciled {group_name} in {duration}s")
    """

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        group_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when reconciliation of a replication group begins.

        Args:
            group_name: RedisReplication resource name
            namespace: Kubernetes namespace
            generation: Resource generation number
            trigger_source: What triggered reconciliation (create, update, resume)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        group_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when reconciliation of a replication group completes.

        Args:
            group_name: RedisReplication resource name
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether reconciliation succeeded
            error: Exception if reconciliation failed
        """
        pass

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when K8s resource sync begins.

        Args:
            group_name: Owning RedisReplication resource name
            resource_name: Actual K8s resource name being synced
            namespace: Kubernetes namespace
            resource_type: Type of resource (service, stateful_set)

        Returns:
            Optional state dict passed to on_resource_sync_complete
        """
        pass

    def on_resource_sync_complete(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when K8s resource sync completes.

        Args:
            group_name: Owning RedisReplication resource name
            resource_name: Actual K8s resource name being synced
            namespace: Kubernetes namespace
            resource_type: Type of resource
            state: State dict returned from on_resource_sync_start
            operation: Operation performed (create, patch, recreate)
            success: Whether operation succeeded
            error: Exception if operation failed
        """
        pass

    def on_resource_drift_detected(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Called when the live resource no longer matches the desired one.

        Args:
            group_name: Owning RedisReplication resource name
            resource_name: Actual K8s resource name with drift
            namespace: Kubernetes namespace
            resource_type: Type of resource with drift
            drift_fields: List of fields that drifted from desired state
        """
        pass

    def on_service_apply_failed(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        service_kind: str,
        fatal: bool,
        error: Exception,
    ) -> None:
        """Called when one service of the topology could not be applied.

        Args:
            group_name: Owning RedisReplication resource name
            resource_name: Service name
            namespace: Kubernetes namespace
            service_kind: headless, primary, additional, leader or follower
            fatal: Whether the failure aborts the remaining topology
            error: The failure
        """
        pass

    # =============================================================================
    # Role Label Hooks
    # =============================================================================

    def on_role_label_update(
        self,
        group_name: str,
        pod_name: str,
        namespace: str,
        role: str,
        success: bool,
    ) -> None:
        """Called after the role label of one pod was written (or failed to be).

        Args:
            group_name: Owning RedisReplication resource name
            pod_name: Pod whose label was updated
            namespace: Kubernetes namespace
            role: Role label value (master or slave)
            success: Whether the update succeeded
        """
        pass

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        group_name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Called when status is updated.

        Args:
            group_name: RedisReplication resource name
            namespace: Kubernetes namespace
            update_fields: List of status fields that were updated
        """
        pass

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return sensor state as dictionary.

        This method should be overridden by sensors that maintain state.

        Returns:
            Dictionary representation of sensor state
        """
        return {}
