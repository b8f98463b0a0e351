"""
PCAP frame data models.
"""

from .frame import (
    GlobalHeader,
    PacketRecord,
    decode_captured_length,
    GLOBAL_HEADER_LEN,
    RECORD_HEADER_LEN,
    DEFAULT_MAX_PAYLOAD,
)

__all__ = [
    'GlobalHeader',
    'PacketRecord',
    'decode_captured_length',
    'GLOBAL_HEADER_LEN',
    'RECORD_HEADER_LEN',
    'DEFAULT_MAX_PAYLOAD',
]
