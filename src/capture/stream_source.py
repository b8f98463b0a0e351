"""
Source backed by an already-open binary stream.
"""
from typing import BinaryIO, Optional

from .icapture_source import ISource


class StreamSource(ISource):
    """Wraps a file object, pipe or BytesIO."""

    def __init__(self, description: str, stream: BinaryIO, close_stream: bool = True):
        super().__init__(description)
        self._stream: Optional[BinaryIO] = stream
        self._close_stream = close_stream

    def open(self) -> BinaryIO:
        if self._stream is None:
            raise RuntimeError(f"Source {self.description} already closed")
        return self._stream

    def close(self):
        if self._stream is not None and self._close_stream:
            self._stream.close()
        self._stream = None
