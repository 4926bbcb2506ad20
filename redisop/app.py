import kopf
import logging
import redisop.handlers.redisreplication as redisreplication
from redisop.types.settings import Settings
from redisop.resources import RedisReplication
from redisop.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    RedisReplication.conf = memo.conf

    # Create a shared ApiClient for all resources to prevent connection leaks
    RedisReplication.shared_api_client = ApiClient()
    logger.info("Shared Kubernetes API client initialized")

    # Initialize sensor infrastructure
    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    RedisReplication.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    if memo.conf.metrics_enabled:
        init_metrics_server(memo.conf.metrics_port)
    else:
        logger.warning("Metrics server is disabled as per configuration.")

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = 2

    # Post events to the Kubernetes API for logging >= Warning
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    if RedisReplication.shared_api_client is not None:
        await RedisReplication.shared_api_client.close()
        RedisReplication.shared_api_client = None
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "redisreplication",
]
