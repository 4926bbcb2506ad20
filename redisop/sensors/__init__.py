"""Redis Operator Sensor Framework.

Non-invasive instrumentation of operator lifecycle events through a
hook-based pattern.

Key components:
- OperatorSensor: Base class defining lifecycle hooks for operator events
- SensorDelegate: Fan-out pattern for routing events to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter

Usage:
    from redisop.sensors import SensorDelegate, PrometheusMonitor

    delegate = SensorDelegate()
    delegate.add(PrometheusMonitor())
"""

from redisop.sensors.base import OperatorSensor
from redisop.sensors.delegate import SensorDelegate
from redisop.sensors.prometheus import PrometheusMonitor
from redisop.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
