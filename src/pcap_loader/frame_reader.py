"""
PCAP stream frame reader.

Reference: https://wiki.wireshark.org/Development/LibpcapFileFormat

Unlike a file reader this works on live, unseekable streams (the stdout of
a capture process), so frames are pulled with blocking reads and nothing
is buffered beyond the frame being read.
"""

from typing import BinaryIO, Iterator, Optional

from .exceptions import (
    PcapReadError,
    PcapReaderClosedError,
    PcapRecordTooLargeError,
    PcapTruncatedError,
)
from models.frame import (
    GlobalHeader,
    PacketRecord,
    decode_captured_length,
    DEFAULT_MAX_PAYLOAD,
    GLOBAL_HEADER_LEN,
    RECORD_HEADER_LEN,
)


class FrameReader:
    """
    Reads the global header and packet records from one source stream.

    End-of-stream on a frame boundary is a clean end and is reported as
    ``None``. Anything else (short frame, oversized record, I/O failure)
    raises a ``PcapError`` and the reader is dead from then on; it never
    tries to re-synchronise.
    """

    def __init__(self, stream: BinaryIO, max_payload: int = DEFAULT_MAX_PAYLOAD):
        """
        Args:
            stream: Readable binary stream (pipe, file, BytesIO)
            max_payload: Largest captured_length accepted for a record
        """
        self.stream = stream
        self.max_payload = max_payload
        self._failed = False
        self._eof = False

    def _read_exact(self, size: int) -> bytes:
        """Read up to ``size`` bytes, looping over short reads until EOF."""
        buf = bytearray()
        while len(buf) < size:
            try:
                chunk = self.stream.read(size - len(buf))
            except (OSError, ValueError) as e:
                raise PcapReadError(f"read failed: {e}") from e
            if not chunk:
                break
            buf += chunk
        return bytes(buf)

    def _guard(self):
        if self._failed:
            raise PcapReaderClosedError("reader already failed")

    def read_global_header(self) -> Optional[GlobalHeader]:
        """
        Read the 24-byte global header.

        Returns:
            GlobalHeader, or None if the stream ended before any byte arrived

        Raises:
            PcapTruncatedError: If the stream ended inside the header
            PcapReadError: If the stream failed
        """
        self._guard()
        try:
            data = self._read_exact(GLOBAL_HEADER_LEN)
            if not data:
                self._eof = True
                return None
            if len(data) < GLOBAL_HEADER_LEN:
                raise PcapTruncatedError(
                    f"global header truncated: got {len(data)} of {GLOBAL_HEADER_LEN} bytes"
                )
            return GlobalHeader(data)
        except Exception:
            self._failed = True
            raise

    def read_next_record(self) -> Optional[PacketRecord]:
        """
        Read one packet record (header + payload).

        Returns:
            PacketRecord, or None on end-of-stream at a record boundary

        Raises:
            PcapTruncatedError: If the stream ended inside a record
            PcapRecordTooLargeError: If captured_length exceeds max_payload
            PcapReadError: If the stream failed
        """
        self._guard()
        if self._eof:
            return None
        try:
            header = self._read_exact(RECORD_HEADER_LEN)
            if not header:
                self._eof = True
                return None
            if len(header) < RECORD_HEADER_LEN:
                raise PcapTruncatedError(
                    f"record header truncated: got {len(header)} of {RECORD_HEADER_LEN} bytes"
                )

            captured_length = decode_captured_length(header)
            if captured_length > self.max_payload:
                raise PcapRecordTooLargeError(captured_length, self.max_payload)

            payload = self._read_exact(captured_length)
            if len(payload) < captured_length:
                raise PcapTruncatedError(
                    f"record payload truncated: got {len(payload)} of {captured_length} bytes"
                )
        except Exception:
            self._failed = True
            raise

        return PacketRecord(header, payload)

    def __iter__(self) -> Iterator[PacketRecord]:
        """Yield records until clean end-of-stream."""
        while True:
            record = self.read_next_record()
            if record is None:
                return
            yield record
