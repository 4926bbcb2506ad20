"""Sensor delegation for fan-out pattern.

SensorDelegate routes sensor events to multiple monitoring backends
simultaneously. Each backend receives the same events and can maintain
independent state. A failing backend is logged and never interrupts the
operator or the other backends.
"""

from typing import Set, Dict, Optional, Any
import logging

from redisop.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    State tracking is handled per-sensor, so each backend receives its own
    state dict from start/complete hook pairs.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("cache", "default", 5, "update")
        delegate.on_reconcile_complete("cache", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        """Remove all sensors from the delegate."""
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def _log_error(self, sensor: OperatorSensor, hook: str, error: Exception) -> None:
        logger.error(
            f"Error in {sensor.__class__.__name__}.{hook}: {error}",
            exc_info=True,
        )

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        group_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate reconcile_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        if not self._sensors:
            return None

        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_reconcile_start(group_name, namespace, generation, trigger_source)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                self._log_error(sensor, "on_reconcile_start", e)

        return states if states else None

    def on_reconcile_complete(
        self,
        group_name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate reconcile_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(group_name, namespace, sensor_state, success, error)
            except Exception as e:
                self._log_error(sensor, "on_reconcile_complete", e)

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate resource_sync_start to all sensors."""
        if not self._sensors:
            return None

        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_resource_sync_start(group_name, resource_name, namespace, resource_type)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                self._log_error(sensor, "on_resource_sync_start", e)

        return states if states else None

    def on_resource_sync_complete(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate resource_sync_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_resource_sync_complete(
                    group_name, resource_name, namespace, resource_type, sensor_state, operation, success, error
                )
            except Exception as e:
                self._log_error(sensor, "on_resource_sync_complete", e)

    def on_resource_drift_detected(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: list[str],
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_resource_drift_detected(group_name, resource_name, namespace, resource_type, drift_fields)
            except Exception as e:
                self._log_error(sensor, "on_resource_drift_detected", e)

    def on_service_apply_failed(
        self,
        group_name: str,
        resource_name: str,
        namespace: str,
        service_kind: str,
        fatal: bool,
        error: Exception,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_service_apply_failed(group_name, resource_name, namespace, service_kind, fatal, error)
            except Exception as e:
                self._log_error(sensor, "on_service_apply_failed", e)

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
        for sensor in self._sensors:
            try:
                sensor.on_role_label_update(group_name, pod_name, namespace, role, success)
            except Exception as e:
                self._log_error(sensor, "on_role_label_update", e)

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        group_name: str,
        namespace: str,
        update_fields: list[str],
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_status_update(group_name, namespace, update_fields)
            except Exception as e:
                self._log_error(sensor, "on_status_update", e)

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return aggregated state from all sensors.

        Returns:
            Dict mapping sensor class name to its state dict
        """
        return {
            sensor.__class__.__name__: sensor.asdict()
            for sensor in self._sensors
        }
