"""
PCAP stream framing: reader and exceptions.
"""

from .frame_reader import FrameReader
from .exceptions import (
    PcapError,
    PcapFormatError,
    PcapTruncatedError,
    PcapRecordTooLargeError,
    PcapReadError,
    PcapReaderClosedError,
    SinkWriteError,
)

__all__ = [
    'FrameReader',
    'PcapError',
    'PcapFormatError',
    'PcapTruncatedError',
    'PcapRecordTooLargeError',
    'PcapReadError',
    'PcapReaderClosedError',
    'SinkWriteError',
]
