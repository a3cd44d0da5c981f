"""
GT06 GPS Tracker TCP Server
One FrameReassembler per connection; every frame is decoded, logged and
answered before the next one is considered
"""
import asyncio
import logging
import socket
import time
from datetime import datetime
from typing import Optional, Dict, Any

from config import settings
from logs.logconfig import PACKET_LOGGER
from tcp_server.monitoring import MetricsCollector, StatsLogger
from tcp_server.protocols import (
    FrameReassembler,
    GT06ProtocolHandler,
    protocol_id,
    serial_number,
)
from tcp_server.protocols.base import bytes_to_hex

logger = logging.getLogger(__name__)
packet_logger = logging.getLogger(PACKET_LOGGER)

TIMEOUT_CHECK_INTERVAL = 30  # seconds between idle checks
STATS_INTERVAL = 60  # seconds between stats reports


class GT06ClientProtocol(asyncio.Protocol):
    """Handle an individual GT06 tracker connection"""

    def __init__(self, server):
        self.server = server
        self.handler = server.handler
        self.reassembler = FrameReassembler()
        self.transport = None
        self.peername = None
        self.conn_id = None
        self.last_activity = time.time()
        self.frame_count = 0
        self.timeout_task = None

    def connection_made(self, transport):
        """Handle new connection"""
        self.transport = transport
        self.peername = transport.get_extra_info('peername')
        self.conn_id = f"{self.peername}_{time.time()}"

        if len(self.server.active_connections) >= self.server.max_connections:
            logger.warning(f"Max connections reached, rejecting {self.peername}")
            transport.close()
            return

        self.server.active_connections[self.conn_id] = self
        self.server.stats['connections_total'] += 1
        self.server.metrics.set_active_connections(len(self.server.active_connections))

        sock = transport.get_extra_info('socket')
        if sock is not None:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        logger.info(f"GT06 tracker connected from {self.peername} (total: {len(self.server.active_connections)})")
        self.timeout_task = asyncio.create_task(self._monitor_timeout())

    def connection_lost(self, exc):
        """Handle connection loss; any partial frame is dropped with the reassembler"""
        if exc:
            logger.info(f"GT06 tracker disconnected from {self.peername}: {exc}")
        else:
            logger.info(f"GT06 tracker disconnected from {self.peername}")

        if self.reassembler.pending():
            logger.debug(f"Discarding {self.reassembler.pending()} unframed bytes from {self.peername}")

        if self.timeout_task:
            self.timeout_task.cancel()

        self.server.active_connections.pop(self.conn_id, None)
        self.server.metrics.set_active_connections(len(self.server.active_connections))

    def data_received(self, data):
        """Feed incoming bytes and answer every completed frame in order"""
        self.last_activity = time.time()
        for frame in self.reassembler.feed(data):
            self.process_frame(frame)

    def process_frame(self, frame: bytes):
        """Decode, log and answer one complete frame"""
        self.frame_count += 1
        self.server.stats['frames_received'] += 1
        logger.debug(f"Frame #{self.frame_count} from {self.peername}: {bytes_to_hex(frame)}")
        packet_logger.info(f"PACKET: {bytes_to_hex(frame)}")

        record = self.handler.parse_message(frame)
        logger.info(f"{self.peername}: {record}")
        packet_logger.info(str(record))
        self.server.metrics.record_frame(record.kind, record.fallback)
        if record.fallback:
            self.server.stats['decode_fallbacks'] += 1

        protocol = protocol_id(frame)
        try:
            response = self.handler.create_response(protocol, serial_number(frame))
        except ValueError as e:
            logger.warning(f"Cannot answer frame from {self.peername}: {e}")
            self.server.metrics.report_error('response', str(e))
            return

        if response is None:
            return
        if not self.transport or self.transport.is_closing():
            return

        self.transport.write(response)
        self.server.stats['responses_sent'] += 1
        self.server.metrics.record_response(protocol)
        logger.debug(f"Sent reply 0x{protocol:02X} to {self.peername}: {bytes_to_hex(response)}")
        packet_logger.info(f"ACK 0x{protocol:02X} sent: {bytes_to_hex(response)}")

    async def _monitor_timeout(self):
        """Close the connection once it has been silent for too long"""
        try:
            while True:
                await asyncio.sleep(min(TIMEOUT_CHECK_INTERVAL, self.server.connection_timeout))

                if time.time() - self.last_activity > self.server.connection_timeout:
                    logger.warning(f"Connection timeout for {self.peername}")
                    if self.transport and not self.transport.is_closing():
                        self.transport.close()
                    break

        except asyncio.CancelledError:
            pass


class GPSTrackerTCPServer:
    """TCP server for GT06 GPS trackers"""

    def __init__(
        self,
        host: str = settings.GPS_TCP_HOST,
        port: int = settings.GPS_TCP_PORT,
        max_connections: int = settings.MAX_CONNECTIONS,
        connection_timeout: int = settings.CONNECTION_TIMEOUT,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.host = host
        self.port = port
        self.max_connections = max_connections
        self.connection_timeout = connection_timeout
        self.handler = GT06ProtocolHandler()
        self.metrics = metrics or MetricsCollector()
        self.stats_logger = StatsLogger(self, interval=STATS_INTERVAL)
        self.server = None
        self.active_connections: Dict[str, GT06ClientProtocol] = {}
        self.stats = {
            'start_time': None,
            'connections_total': 0,
            'frames_received': 0,
            'responses_sent': 0,
            'decode_fallbacks': 0,
        }
        self.started = asyncio.Event()
        self.shutdown_event = asyncio.Event()

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on (differs from port when port is 0)"""
        if not self.server or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    async def start(self):
        """Start the TCP server and serve until shutdown"""
        try:
            self.stats['start_time'] = datetime.now()

            loop = asyncio.get_running_loop()
            self.server = await loop.create_server(
                lambda: GT06ClientProtocol(self),
                self.host,
                self.port,
                reuse_address=True,
            )

            logger.info(f"GT06 TCP Server started on {self.host}:{self.bound_port}")
            logger.info(f"Configuration:")
            logger.info(f"  - Max connections: {self.max_connections}")
            logger.info(f"  - Connection timeout: {self.connection_timeout}s")
            self.started.set()

            monitor_task = asyncio.create_task(self._monitor_server())

            async with self.server:
                await self.shutdown_event.wait()

            monitor_task.cancel()

        except Exception as e:
            logger.error(f"Error starting TCP server: {e}")
            raise

    async def shutdown(self):
        """Graceful shutdown"""
        logger.info("Shutting down GT06 TCP Server...")

        for conn in list(self.active_connections.values()):
            if conn.transport and not conn.transport.is_closing():
                conn.transport.close()

        if self.server:
            self.server.close()
            await self.server.wait_closed()

        self.shutdown_event.set()
        logger.info("GT06 TCP Server stopped")

    async def _monitor_server(self):
        """Log statistics periodically"""
        try:
            while True:
                await asyncio.sleep(10)
                self.stats_logger.periodic_report()
        except asyncio.CancelledError:
            pass

    def get_status(self) -> Dict[str, Any]:
        """Get server status"""
        start_time = self.stats['start_time']
        return {
            'status': 'running' if self.server and self.server.is_serving() else 'stopped',
            'uptime': str(datetime.now() - start_time) if start_time else None,
            'active_connections': len(self.active_connections),
            'connections_total': self.stats['connections_total'],
            'frames_received': self.stats['frames_received'],
            'responses_sent': self.stats['responses_sent'],
            'decode_fallbacks': self.stats['decode_fallbacks'],
        }
