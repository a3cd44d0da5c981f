"""
GT06 Protocol Handler
Decodes GT06-family binary frames (0x7878 sync, 0x0D0A trailer) into
DecodedRecord descriptions through a protocol id -> decoder table
"""
import logging
import struct
from typing import Callable, Dict, Optional

from .base import (
    BaseProtocolHandler,
    DecodedRecord,
    bcd_to_int,
    bcd_to_string,
    bytes_to_hex,
)
from .framing import LENGTH_OVERHEAD, SYNC
from .ids import ProtocolId
from .responses import build_response

logger = logging.getLogger(__name__)

# Java-style trim: drop anything up to and including space at both ends
_TRIM_CHARS = ''.join(chr(c) for c in range(0x21))

Decoder = Callable[[int, bytes], DecodedRecord]


def _ascii(content: bytes) -> str:
    return content.decode('ascii', errors='replace').strip(_TRIM_CHARS)


def _raw(protocol: int, kind: str, label: str, content: bytes) -> DecodedRecord:
    raw_hex = bytes_to_hex(content)
    return DecodedRecord(protocol, kind, f"{label} RAW={raw_hex}", {'raw_hex': raw_hex}, fallback=True)


def _too_short(protocol: int, kind: str, label: str, content: bytes) -> DecodedRecord:
    return DecodedRecord(
        protocol, kind, f"{label} packet too short",
        {'raw_hex': bytes_to_hex(content)}, fallback=True
    )


def _text(kind: str, label: str) -> Decoder:
    def decode_text(protocol: int, content: bytes) -> DecodedRecord:
        text = _ascii(content)
        return DecodedRecord(protocol, kind, f"{label}: {text}", {'text': text})
    return decode_text


def _hex_only(kind: str, label: str) -> Decoder:
    def decode_hex(protocol: int, content: bytes) -> DecodedRecord:
        return _raw(protocol, kind, label, content)
    return decode_hex


def decode_login(protocol: int, content: bytes) -> DecodedRecord:
    """IMEI as packed BCD, leading zeros stripped"""
    if len(content) < 8:
        return _too_short(protocol, 'login', "LOGIN", content)
    imei = bcd_to_string(content)
    return DecodedRecord(protocol, 'login', f"LOGIN IMEI={imei}", {'imei': imei})


def decode_heartbeat(protocol: int, content: bytes) -> DecodedRecord:
    if len(content) < 2:
        return _too_short(protocol, 'heartbeat', "HEARTBEAT", content)
    status = content[0]
    fields = {
        'ignition': bool(status & 0x02),
        'charging': bool(status & 0x04),
        'blocked': bool(status & 0x80),
        'status': status,
    }
    message = (
        f"STATUS Ign={fields['ignition']} Charge={fields['charging']} "
        f"Blocked={fields['blocked']} Code=0x{status:02X}"
    )
    return DecodedRecord(protocol, 'heartbeat', message, fields)


def decode_gps(protocol: int, content: bytes) -> DecodedRecord:
    """
    Location report
    Bytes 0-5: day, month, year-2000, hour, minute, second (binary)
    Byte 6: low nibble = satellites
    Bytes 7-10 / 11-14: latitude / longitude in 1/30000 minute
    Byte 15: speed km/h
    Bytes 16-17: course (low 10 bits), bit 12 = fix valid
    """
    if len(content) < 18:
        return _too_short(protocol, 'gps', "GPS", content)

    day, month, year, hour, minute, second, sats = struct.unpack('>7B', content[0:7])
    lat_raw, lon_raw, speed, flags = struct.unpack('>IIBH', content[7:18])

    fields = {
        'gps_time': f"{year + 2000:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{second:02d}",
        'satellites': sats & 0x0F,
        'latitude': lat_raw / 60.0 / 30000.0,
        'longitude': lon_raw / 60.0 / 30000.0,
        'speed': speed,
        'course': flags & 0x03FF,
        'gps_valid': bool(flags & 0x1000),
    }
    message = (
        f"GPS {fields['gps_time']} | Sat:{fields['satellites']} | "
        f"Lat:{fields['latitude']:.6f} | Lon:{fields['longitude']:.6f} | "
        f"Speed:{speed}km/h | Course:{fields['course']}° | Valid:{fields['gps_valid']}"
    )
    return DecodedRecord(protocol, 'gps', message, fields)


def decode_alarm(protocol: int, content: bytes) -> DecodedRecord:
    if len(content) < 6:
        return _raw(protocol, 'alarm', "ALARM", content)
    day, month, year, hour, minute, second = content[0:6]
    # year is the device's two-digit value, not widened to four digits
    utc = f"{day:02d}-{month:02d}-{year:02d} {hour:02d}:{minute:02d}:{second:02d}"
    data_hex = bytes_to_hex(content[6:])
    return DecodedRecord(protocol, 'alarm', f"ALARM UTC={utc} DATA={data_hex}", {'utc': utc, 'data_hex': data_hex})


def decode_time_calibration(protocol: int, content: bytes) -> DecodedRecord:
    if len(content) < 6:
        return _raw(protocol, 'time_calibration', "TIME CALIB", content)
    year, month, day, hour, minute, second = (bcd_to_int(b) for b in content[0:6])
    device_time = f"{year + 2000:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{second:02d}"
    return DecodedRecord(
        protocol, 'time_calibration', f"TIME CALIBRATION {device_time}", {'device_time': device_time}
    )


def decode_multi_fence(protocol: int, content: bytes) -> DecodedRecord:
    if not content:
        return _raw(protocol, 'multi_fence_alarm', "MULTI-FENCE", content)
    return DecodedRecord(
        protocol, 'multi_fence_alarm', f"MULTI-FENCE ALARM ID={content[0]}", {'fence_id': content[0]}
    )


def decode_unknown(protocol: int, content: bytes) -> DecodedRecord:
    raw_hex = bytes_to_hex(content)
    return DecodedRecord(
        protocol, 'unknown', f"Unknown protocol 0x{protocol:02X} (content: {raw_hex})",
        {'raw_hex': raw_hex}, fallback=True
    )


DECODERS: Dict[int, Decoder] = {
    ProtocolId.LOGIN: decode_login,
    ProtocolId.HEARTBEAT: decode_heartbeat,
    ProtocolId.GPS: decode_gps,
    ProtocolId.GPS_4G: decode_gps,
    ProtocolId.RESPONSE_ONLINE: _text('response_online', "RESPONSE ONLINE"),
    ProtocolId.ALARM: decode_alarm,
    ProtocolId.LBS_MULTI: _hex_only('lbs_multi', "LBS MULTI(BASE)"),
    ProtocolId.ADDRESS_REQUEST: _hex_only('address_request', "ADDRESS REQUEST"),
    ProtocolId.ONLINE_COMMAND: _hex_only('online_command', "ONLINE COMMAND"),
    ProtocolId.TIME_CALIBRATION: decode_time_calibration,
    ProtocolId.INFO_TRANSFER: _text('info_transfer', "INFO TRANSFER"),
    ProtocolId.CHINESE_ADDRESS: _text('chinese_address', "CHINESE ADDRESS"),
    ProtocolId.ENGLISH_ADDRESS: _text('english_address', "ENGLISH ADDRESS"),
    ProtocolId.LBS_4G: _hex_only('lbs_4g', "LBS 4G"),
    ProtocolId.MULTI_FENCE_ALARM: decode_multi_fence,
}


def decode(frame: bytes) -> DecodedRecord:
    """
    Describe a complete frame
    Never raises: malformed frames and content degrade to fallback records
    """
    if len(frame) < 5:
        return DecodedRecord(None, 'invalid', "Packet too short", {'raw_hex': bytes_to_hex(frame)}, fallback=True)
    if frame[0:2] != SYNC:
        return DecodedRecord(
            None, 'invalid', "Not a GT06 frame or invalid header", {'raw_hex': bytes_to_hex(frame)}, fallback=True
        )

    protocol = frame[3]
    content_length = frame[2] - LENGTH_OVERHEAD
    if content_length < 0 or len(frame) < 4 + content_length + 2:
        return DecodedRecord(
            protocol, 'invalid', "Malformed or incomplete packet", {'raw_hex': bytes_to_hex(frame)}, fallback=True
        )
    content = frame[4:4 + content_length]

    decoder = DECODERS.get(protocol, decode_unknown)
    try:
        return decoder(protocol, content)
    except Exception as e:
        logger.error(f"Error decoding GT06 protocol 0x{protocol:02X}: {e}")
        return DecodedRecord(
            protocol, 'decode_error', f"decode error: 0x{protocol:02X}: {e}",
            {'raw_hex': bytes_to_hex(content)}, fallback=True
        )


class GT06ProtocolHandler(BaseProtocolHandler):
    """Handler for GT06-family trackers framed by 0x7878 ... 0x0D0A"""

    def get_protocol_name(self) -> str:
        return "GT06"

    def can_handle(self, frame: bytes) -> bool:
        return len(frame) >= 2 and frame[0:2] == SYNC

    def parse_message(self, frame: bytes) -> DecodedRecord:
        return decode(frame)

    def create_response(self, protocol: int, serial: bytes) -> Optional[bytes]:
        return build_response(protocol, serial)
