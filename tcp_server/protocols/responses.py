"""
Server replies to GT06 frames: generic ACK and time calibration
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from .base import int_to_bcd
from .framing import build_frame
from .ids import ProtocolId

logger = logging.getLogger(__name__)

# Protocols the device expects a generic ACK for
ACK_PROTOCOLS = frozenset({
    ProtocolId.LOGIN,
    ProtocolId.HEARTBEAT,
    ProtocolId.GPS,
    ProtocolId.ALARM,
    ProtocolId.ALARM_MULTI,
    ProtocolId.LBS_MULTI,
    ProtocolId.ADDRESS_REQUEST,
    ProtocolId.GPS_4G,
    ProtocolId.LBS_4G,
    ProtocolId.MULTI_FENCE_ALARM,
})


def build_ack(protocol: int, serial: bytes) -> bytes:
    """10-byte ACK: 78 78 05 <protocol> <serial> <crc> 0D 0A"""
    return build_frame(protocol, b"", serial)


def build_time_response(serial: bytes, now: Optional[datetime] = None) -> bytes:
    """
    16-byte time calibration reply carrying the current UTC time
    as BCD yy MM dd HH mm ss
    """
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = bytes(int_to_bcd(v) for v in (
        now.year - 2000, now.month, now.day, now.hour, now.minute, now.second
    ))
    return build_frame(ProtocolId.TIME_CALIBRATION, stamp, serial)


def build_response(protocol: int, serial: bytes, now: Optional[datetime] = None) -> Optional[bytes]:
    """
    Reply due for a frame with the given protocol id and serial
    Returns:
        Frame bytes, or None when the device expects no reply
    """
    if protocol == ProtocolId.TIME_CALIBRATION:
        return build_time_response(serial, now)
    if protocol in ACK_PROTOCOLS:
        return build_ack(protocol, serial)
    logger.debug(f"No reply defined for protocol 0x{protocol:02X}")
    return None
