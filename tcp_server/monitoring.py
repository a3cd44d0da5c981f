"""
GT06 TCP Server Monitoring
Prometheus metrics and periodic stats logging
"""
import json
import logging
import time
from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collect and report GT06 TCP server metrics"""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.prom_connections = Gauge(
            'gt06_tcp_active_connections', 'Active GT06 TCP connections', registry=self.registry
        )
        self.prom_frames = Counter(
            'gt06_tcp_frames_total', 'Frames extracted from device streams', ['kind'], registry=self.registry
        )
        self.prom_responses = Counter(
            'gt06_tcp_responses_total', 'Replies written to devices', ['protocol'], registry=self.registry
        )
        self.prom_fallbacks = Counter(
            'gt06_tcp_decode_fallbacks_total', 'Frames that decoded to a fallback record', registry=self.registry
        )
        self.prom_errors = Counter(
            'gt06_tcp_errors_total', 'Total processing errors', ['error_type'], registry=self.registry
        )

    def start_exporter(self, port: int):
        """Expose metrics over HTTP for Prometheus scraping"""
        start_http_server(port, registry=self.registry)
        logger.info(f"Prometheus metrics exposed on port {port}")

    def record_frame(self, kind: str, fallback: bool):
        self.prom_frames.labels(kind=kind).inc()
        if fallback:
            self.prom_fallbacks.inc()

    def record_response(self, protocol: int):
        self.prom_responses.labels(protocol=f"0x{protocol:02X}").inc()

    def report_error(self, error_type: str, details: str = None):
        self.prom_errors.labels(error_type=error_type).inc()
        logger.error(f"GT06 TCP Error [{error_type}]: {details}")

    def set_active_connections(self, count: int):
        self.prom_connections.set(count)


class StatsLogger:
    """Periodic stats logging for the GT06 TCP Server"""

    def __init__(self, server_instance, interval: int = 60):
        self.server = server_instance
        self.interval = interval
        self.last_report = time.time()

    def report(self) -> Dict[str, Any]:
        """Log the server status as a JSON line and return it"""
        stats = self.server.get_status()
        logger.info(f"GT06 TCP Metrics: {json.dumps(stats, default=str)}")
        self.last_report = time.time()
        return stats

    def periodic_report(self) -> Optional[Dict[str, Any]]:
        """Report when the interval has elapsed since the last report"""
        if time.time() - self.last_report >= self.interval:
            return self.report()
        return None
