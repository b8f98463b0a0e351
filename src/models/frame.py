# Frame data model
"""
PCAP frame models for pcapmux.

Reference: https://wiki.wireshark.org/Development/LibpcapFileFormat

Stream structure:
- 24-byte global header (opaque to the multiplexer)
- Repeated packet records:
  - 16-byte record header (incl_len at offset 8, little-endian u32)
  - Payload of exactly incl_len bytes

THESE MODELS ARE IMMUTABLE. Bytes are forwarded verbatim, never rewritten.
"""

from dataclasses import dataclass
from typing import Tuple
import struct

GLOBAL_HEADER_LEN = 24
RECORD_HEADER_LEN = 16
DEFAULT_MAX_PAYLOAD = 65536

# incl_len lives at bytes 8..12 of the record header
_CAPTURED_LENGTH = struct.Struct('<I')
_CAPTURED_LENGTH_OFFSET = 8


def decode_captured_length(header: bytes) -> int:
    """Decode captured_length (incl_len) from a 16-byte record header."""
    if len(header) != RECORD_HEADER_LEN:
        raise ValueError(
            f"record header must be {RECORD_HEADER_LEN} bytes, got {len(header)}"
        )
    return _CAPTURED_LENGTH.unpack_from(header, _CAPTURED_LENGTH_OFFSET)[0]


@dataclass(frozen=True)
class GlobalHeader:
    """
    The 24-byte preamble of a capture stream.

    Fields (magic, version, snaplen, linktype...) are not interpreted;
    only the length is fixed.
    """
    data: bytes

    def __post_init__(self):
        if len(self.data) != GLOBAL_HEADER_LEN:
            raise ValueError(
                f"global header must be {GLOBAL_HEADER_LEN} bytes, got {len(self.data)}"
            )


@dataclass(frozen=True)
class PacketRecord:
    """
    One captured packet: record header plus payload.

    The pair is the atomic unit written to the output sink; header and
    payload must never be separated by another source's bytes.
    """
    header: bytes
    """16-byte record header, forwarded verbatim"""

    payload: bytes
    """Exactly captured_length bytes, forwarded verbatim"""

    def __post_init__(self):
        expected = decode_captured_length(self.header)
        if len(self.payload) != expected:
            raise ValueError(
                f"payload is {len(self.payload)} bytes but header declares {expected}"
            )

    @property
    def captured_length(self) -> int:
        return decode_captured_length(self.header)

    @property
    def size(self) -> int:
        """Total bytes this record occupies on the wire format."""
        return RECORD_HEADER_LEN + len(self.payload)

    @property
    def chunks(self) -> Tuple[bytes, bytes]:
        return (self.header, self.payload)
