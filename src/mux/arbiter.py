"""
Output sink arbiter: serialises writes from concurrent workers.
"""
import threading
from typing import BinaryIO

from pcap_loader.exceptions import SinkWriteError


class OutputArbiter:
    """
    Sole owner of the shared output sink.

    Every ``write_atomic`` call writes all of its chunks back to back while
    holding one lock, so a global header or a (record header, payload) pair
    is never split by another worker's bytes.
    """

    def __init__(self, sink: BinaryIO, flush: bool = True):
        self._sink = sink
        self._flush = flush
        self._lock = threading.Lock()
        self.units_written = 0
        self.bytes_written = 0

    def _write_all(self, chunk: bytes):
        view = memoryview(chunk)
        while view:
            written = self._sink.write(view)
            # Non-blocking raw sink with no room: the unit cannot be completed
            if written is None:
                raise SinkWriteError("output would block, write incomplete")
            view = view[written:]

    def write_atomic(self, *chunks: bytes):
        """
        Write ``chunks`` contiguously.

        Raises:
            SinkWriteError: If the sink fails; only this call is aborted
        """
        with self._lock:
            try:
                for chunk in chunks:
                    self._write_all(chunk)
                if self._flush:
                    self._sink.flush()
            except (OSError, ValueError) as e:
                raise SinkWriteError(f"write to output failed: {e}") from e
            self.units_written += 1
            self.bytes_written += sum(len(c) for c in chunks)
