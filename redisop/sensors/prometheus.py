"""Prometheus monitoring backend for the redis operator.

PrometheusMonitor collects operator lifecycle events and exposes them as
Prometheus metrics in three categories:

1. Reconciliation Loop Health - Duration, throughput, errors
2. Kubernetes Resource Sync - Operation counts, latency, drift detection,
   service topology failures
3. Role Labels - Pod role label updates

All metrics include labels for multi-dimensional analysis (group_name, namespace, etc.).
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import Counter, Histogram, REGISTRY, CollectorRegistry

from redisop.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the redis operator.

    Metrics are organized into categories:
    - redisop_reconcile_* - Reconciliation loop metrics
    - redisop_resource_* / redisop_service_* - Kubernetes resource sync metrics
    - redisop_role_label_* - Role label synchronization metrics

    Example:
        monitor = PrometheusMonitor()

        state = monitor.on_reconcile_start("cache", "default", 5, "update")
        monitor.on_reconcile_complete("cache", "default", state, True)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'redisop_reconcile_duration_seconds',
            'Time spent in reconciliation loop',
            labelnames=['group_name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'redisop_reconcile_total',
            'Total number of reconciliation attempts',
            labelnames=['group_name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'redisop_reconcile_errors_total',
            'Total number of reconciliation errors',
            labelnames=['group_name', 'namespace', 'error_type'],
            registry=registry,
        )

        # =============================================================================
        # Kubernetes Resource Sync Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'redisop_resource_sync_duration_seconds',
            'Time spent syncing Kubernetes resources',
            labelnames=['group_name', 'resource_name', 'namespace', 'resource_type', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            'redisop_resource_sync_total',
            'Total number of resource sync operations',
            labelnames=['group_name', 'resource_name', 'namespace', 'resource_type', 'operation', 'result'],
            registry=registry,
        )

        self.resource_sync_errors = Counter(
            'redisop_resource_sync_errors_total',
            'Total number of resource sync errors',
            labelnames=['group_name', 'resource_name', 'namespace', 'resource_type', 'error_type'],
            registry=registry,
        )

        self.resource_drift_detected = Counter(
            'redisop_resource_drift_detected_total',
            'Total number of resource drift detections',
            labelnames=['group_name', 'resource_name', 'namespace', 'resource_type', 'drift_field'],
            registry=registry,
        )

        self.service_apply_failures = Counter(
            'redisop_service_apply_failures_total',
            'Total number of services of the topology that failed to apply',
            labelnames=['group_name', 'resource_name', 'namespace', 'service_kind', 'fatal', 'error_type'],
            registry=registry,
        )

        # =============================================================================
        # Role Label Metrics
        # =============================================================================

        self.role_label_updates = Counter(
            'redisop_role_label_updates_total',
            'Total number of pod role label updates',
            labelnames=['group_name', 'namespace', 'role', 'result'],
            registry=registry,
        )

        # =============================================================================
        # Status Update Metrics
        # =============================================================================

        self.status_updates = Counter(
            'redisop_status_updates_total',
            'Total number of status updates',
            labelnames=['group_name', 'namespace', 'update_field'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

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
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        group_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if state:
            duration = time.time() - state['start_time']
            trigger_source = state['trigger_source']
            result = 'success' if success else 'failure'

            self.reconcile_duration.labels(
                group_name=group_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).observe(duration)

            self.reconcile_total.labels(
                group_name=group_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).inc()

        if error:
            self.reconcile_errors.labels(
                group_name=group_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

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
        """Record resource sync start time."""
        return {
            'start_time': time.time(),
            'resource_type': resource_type,
            'resource_name': resource_name,
        }

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
        """Record resource sync duration and result."""
        if state:
            duration = time.time() - state['start_time']
            result = 'success' if success else 'failure'

            self.resource_sync_duration.labels(
                group_name=group_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                operation=operation,
                result=result,
            ).observe(duration)

            self.resource_sync_total.labels(
                group_name=group_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                operation=operation,
                result=result,
            ).inc()

        if error:
            self.resource_sync_errors.labels(
                group_name=group_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                error_type=error.__class__.__name__,
            ).inc()

    def on_resource_drift_detected(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        """Record resource drift detection."""
        for field in drift_fields:
            self.resource_drift_detected.labels(
                group_name=group_name,
                resource_name=resource_name,
                namespace=namespace,
                resource_type=resource_type,
                drift_field=field,
            ).inc()

    def on_service_apply_failed(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        service_kind: str,
        fatal: bool,
        error: Exception,
    ) -> None:
        self.service_apply_failures.labels(
            group_name=group_name,
            resource_name=resource_name,
            namespace=namespace,
            service_kind=service_kind,
            fatal=str(fatal).lower(),
            error_type=error.__class__.__name__,
        ).inc()

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
        self.role_label_updates.labels(
            group_name=group_name,
            namespace=namespace,
            role=role,
            result='success' if success else 'failure',
        ).inc()

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        group_name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        """Record status update."""
        for field in update_fields:
            self.status_updates.labels(
                group_name=group_name,
                namespace=namespace,
                update_field=field,
            ).inc()
