import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Seconds to wait for statefulset deletion to complete prior to recreating it
STATEFULSET_DELETION_TIMEOUT_SECONDS = int(
    _getenv("STATEFULSET_DELETION_TIMEOUT_SECONDS", 5)
)

#: Image used for the metrics exporter sidecar when the spec does not set one
REDIS_EXPORTER_IMAGE = _getenv(
    "REDIS_EXPORTER_IMAGE", "quay.io/opstree/redis-exporter:v1.44.0"
)

#: Port of the Prometheus metrics HTTP server exposed by the operator
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))

#: Start the Prometheus metrics HTTP server at operator startup
METRICS_ENABLED = bool(_getenv("METRICS_ENABLED", True))


class Settings:
    """Operator settings"""

    statefulset_deletion_timeout_seconds: int = STATEFULSET_DELETION_TIMEOUT_SECONDS
    redis_exporter_image: str = REDIS_EXPORTER_IMAGE
    metrics_port: int = METRICS_PORT
    metrics_enabled: bool = METRICS_ENABLED

    def __init__(
        self,
        *args,
        statefulset_deletion_timeout_seconds: int = None,
        redis_exporter_image: str = None,
        metrics_port: int = None,
        metrics_enabled: bool = None,
        **kwargs,
    ):
        if statefulset_deletion_timeout_seconds is not None:
            self.statefulset_deletion_timeout_seconds = (
                statefulset_deletion_timeout_seconds
            )

        if redis_exporter_image is not None:
            self.redis_exporter_image = redis_exporter_image

        if metrics_port is not None:
            self.metrics_port = metrics_port

        if metrics_enabled is not None:
            self.metrics_enabled = metrics_enabled
