"""
GPS Tracker Protocol Handlers
"""
from typing import List

from .base import BaseProtocolHandler, DecodedRecord
from .checksum import crc16_x25
from .framing import FrameReassembler, build_frame, content_of, protocol_id, serial_number
from .gt06 import GT06ProtocolHandler, decode
from .ids import ProtocolId
from .responses import ACK_PROTOCOLS, build_response

HANDLERS = [
    GT06ProtocolHandler,
]


def get_supported_protocols() -> List[str]:
    """Get list of supported protocol names"""
    return [h().get_protocol_name() for h in HANDLERS]


__all__ = [
    'ACK_PROTOCOLS',
    'BaseProtocolHandler',
    'DecodedRecord',
    'FrameReassembler',
    'GT06ProtocolHandler',
    'ProtocolId',
    'build_frame',
    'build_response',
    'content_of',
    'crc16_x25',
    'decode',
    'get_supported_protocols',
    'protocol_id',
    'serial_number',
]
