"""
GT06 protocol identifiers (byte 3 of every frame)
"""
from enum import IntEnum


class ProtocolId(IntEnum):
    LOGIN = 0x01
    HEARTBEAT = 0x13
    CHINESE_ADDRESS = 0x17
    RESPONSE_ONLINE = 0x21
    GPS = 0x22
    ALARM = 0x26
    ALARM_MULTI = 0x27
    LBS_MULTI = 0x28
    ADDRESS_REQUEST = 0x2A
    ONLINE_COMMAND = 0x80
    TIME_CALIBRATION = 0x8A
    INFO_TRANSFER = 0x94
    ENGLISH_ADDRESS = 0x97
    GPS_4G = 0xA0
    LBS_4G = 0xA1
    MULTI_FENCE_ALARM = 0xA4
