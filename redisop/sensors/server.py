"""HTTP server for exposing Prometheus metrics.

A simple HTTP server exposes the /metrics endpoint for Prometheus scraping.
It uses the built-in prometheus_client HTTP server in a background thread to
avoid blocking the operator event loop.
"""

import logging
from threading import Thread
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server.

    Metrics are served at http://0.0.0.0:port/metrics.

    Args:
        port: Port to listen on (default: 8000)
    """
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server(port: int = 8000) -> Thread:
    """Start the metrics server in a daemon thread so it never blocks shutdown."""
    thread = Thread(target=start_metrics_server, args=(port,), daemon=True)
    thread.start()

    logger.info(f"Metrics server initialization complete (port: {port})")
    return thread
