"""
Abstract interface for capture sources feeding the multiplexer.
"""
from abc import ABC, abstractmethod
from typing import BinaryIO


class ISource(ABC):
    """
    One independent producer of a pcap byte stream.

    The multiplexer only reads from the stream returned by ``open()`` and
    calls ``close()`` once it is done with it; everything else about the
    producer's lifecycle is up to the implementation.
    """

    def __init__(self, description: str):
        self.description = description

    @abstractmethod
    def open(self) -> BinaryIO:
        """
        Start the source and return its readable byte stream.

        Calling it again returns the same stream.
        """
        pass

    @abstractmethod
    def close(self):
        """Release the stream and any producer behind it."""
        pass

    def terminate(self):
        """Ask the producer to stop without waiting for its stream to drain."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.description!r})"
