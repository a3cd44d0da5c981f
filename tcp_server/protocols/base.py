"""
Base protocol handler and shared decode helpers for GPS trackers
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class DecodedRecord:
    """
    Description of one frame's payload
    kind names the protocol variant; fallback marks raw, too-short,
    unknown and error forms
    """
    protocol_id: Optional[int]
    kind: str
    message: str
    fields: Dict[str, Any] = field(default_factory=dict)
    fallback: bool = False

    @property
    def protocol_label(self) -> str:
        if self.protocol_id is None:
            return "--"
        return f"0x{self.protocol_id:02X}"

    def __str__(self) -> str:
        return f"Protocol {self.protocol_label} -> {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'protocol_id': self.protocol_label,
            'kind': self.kind,
            'message': self.message,
            'fallback': self.fallback,
            **self.fields,
        }


class BaseProtocolHandler(ABC):
    """Base class for binary GPS tracker protocol handlers"""

    @abstractmethod
    def get_protocol_name(self) -> str:
        """Get the name of this protocol"""
        pass

    @abstractmethod
    def can_handle(self, frame: bytes) -> bool:
        """Check if this handler can process the given frame"""
        pass

    @abstractmethod
    def parse_message(self, frame: bytes) -> DecodedRecord:
        """Decode a complete frame; never raises"""
        pass

    @abstractmethod
    def create_response(self, protocol: int, serial: bytes) -> Optional[bytes]:
        """Bytes to send back for a frame, or None when nothing is due"""
        pass


def bytes_to_hex(data: bytes) -> str:
    """Upper-case, space separated hex"""
    return data.hex(' ').upper()


def bcd_to_int(byte: int) -> int:
    return ((byte >> 4) & 0x0F) * 10 + (byte & 0x0F)


def int_to_bcd(value: int) -> int:
    if not 0 <= value <= 99:
        raise ValueError(f"BCD byte holds 0-99, got {value}")
    return ((value // 10) << 4) | (value % 10)


def bcd_to_string(bcd_bytes: bytes) -> str:
    """Convert packed BCD bytes to a digit string without leading zeros"""
    result = ""
    for byte in bcd_bytes:
        result += f"{(byte >> 4) & 0x0F:01d}{byte & 0x0F:01d}"
    return result.lstrip('0')
