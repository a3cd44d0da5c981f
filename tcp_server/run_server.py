#!/usr/bin/env python3
"""
Run the GT06 TCP Server
Usage: python -m tcp_server.run_server [port]
"""
import asyncio
import logging
import signal
import sys
import uuid

from config import settings
from logs.logconfig import configure_logging
from tcp_server.gps_tcp_server import GPSTrackerTCPServer
from tcp_server.protocols import get_supported_protocols

logger = logging.getLogger(__name__)


async def main(port: int):
    """Run the GT06 TCP server until SIGINT/SIGTERM"""
    server = GPSTrackerTCPServer(host=settings.GPS_TCP_HOST, port=port)

    if settings.METRICS_PORT:
        server.metrics.start_exporter(settings.METRICS_PORT)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(server.shutdown()))

    logger.info(f"Starting {settings.APP_NAME} on port {port}")
    logger.info(f"Protocols: {', '.join(get_supported_protocols())}")
    logger.info(f"Packet log: {settings.PACKET_LOG_FILE}")

    await server.start()


def run():
    """Console entry point"""
    port = int(sys.argv[1]) if len(sys.argv) > 1 else settings.GPS_TCP_PORT
    configure_logging(uuid.uuid4().hex[:8])

    try:
        asyncio.run(main(port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
