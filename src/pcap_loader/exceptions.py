# Custom exceptions

"""
Custom exceptions for pcapmux stream processing.
"""

class PcapError(Exception):
    """Base exception for all PCAP stream errors."""
    pass

class PcapFormatError(PcapError):
    """Raised when a PCAP stream's framing is invalid."""
    pass

class PcapTruncatedError(PcapFormatError):
    """Raised when a PCAP stream ends in the middle of a frame."""
    pass

class PcapRecordTooLargeError(PcapFormatError):
    """Raised when a record declares more payload than we accept."""

    def __init__(self, captured_length: int, max_payload: int):
        super().__init__(
            f"captured_length {captured_length} exceeds maximum payload {max_payload}"
        )
        self.captured_length = captured_length
        self.max_payload = max_payload

class PcapReadError(PcapError):
    """Raised when the underlying stream fails (not end-of-stream)."""
    pass

class PcapReaderClosedError(PcapError):
    """Raised when a reader is used after it hit an error."""
    pass

class SinkWriteError(PcapError):
    """Raised when writing to the shared output sink fails."""
    pass
