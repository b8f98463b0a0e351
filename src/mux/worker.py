"""
Source worker: drives one source stream into the shared output.
"""
import enum
import logging
import threading
from typing import Any, Dict, Optional

from capture.icapture_source import ISource
from pcap_loader.exceptions import PcapError, SinkWriteError
from pcap_loader.frame_reader import FrameReader
from .arbiter import OutputArbiter
from .config import MuxConfig
from .dedup import HeaderLatch, PublishResult

logger = logging.getLogger(__name__)


class WorkerState(enum.Enum):
    STARTING = "starting"
    HEADER_PENDING = "header_pending"
    STREAMING = "streaming"
    CLOSED = "closed"


class SourceWorker:
    """
    Reads one source until it ends or fails, forwarding its records.

    Lifecycle: STARTING -> HEADER_PENDING -> STREAMING -> CLOSED. Every
    failure stays local to this worker: it is logged, the worker closes
    its source and the other workers carry on.
    """

    def __init__(self, source: ISource, latch: HeaderLatch,
                 arbiter: OutputArbiter, config: Optional[MuxConfig] = None):
        self.source = source
        self.description = source.description
        self._latch = latch
        self._arbiter = arbiter
        self.config = config or MuxConfig()

        self.state = WorkerState.STARTING
        self.opened = False
        self.header_result: Optional[PublishResult] = None
        self.error: Optional[BaseException] = None
        self.records_forwarded = 0
        self.bytes_forwarded = 0

        # Set once the worker is past HEADER_PENDING (or closed)
        self.header_done = threading.Event()
        self.finished = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(
            target=self.run,
            name=f"pcapmux-{self.description}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker to close. Returns True once it has."""
        return self.finished.wait(timeout)

    def run(self):
        try:
            self._run()
        finally:
            self._close()

    def _run(self):
        try:
            stream = self.source.open()
        except OSError as e:
            self.error = e
            logger.error("[%s] Failed to open source: %s", self.description, e)
            return
        self.opened = True

        logger.debug("[%s] reading", self.description)
        reader = FrameReader(stream, max_payload=self.config.max_payload)
        self.state = WorkerState.HEADER_PENDING

        try:
            header = reader.read_global_header()
        except PcapError as e:
            self.error = e
            logger.warning("[%s] Failed to read global header: %s", self.description, e)
            return
        if header is None:
            logger.info("[%s] stream ended before global header", self.description)
            return

        try:
            self.header_result = self._latch.try_publish(
                header, self._arbiter, self.description)
        except SinkWriteError as e:
            self.error = e
            logger.error("[%s] Error writing global header: %s", self.description, e)
            return

        logger.info("[%s] global header %s", self.description, self.header_result.value)
        self.state = WorkerState.STREAMING
        self.header_done.set()

        try:
            for record in reader:
                self._arbiter.write_atomic(*record.chunks)
                self.records_forwarded += 1
                self.bytes_forwarded += record.size
        except SinkWriteError as e:
            self.error = e
            logger.error("[%s] Error writing packet: %s", self.description, e)
        except PcapError as e:
            self.error = e
            logger.warning("[%s] Error reading packet: %s", self.description, e)

    def _close(self):
        self.state = WorkerState.CLOSED
        try:
            self.source.close()
        except OSError as e:
            logger.warning("[%s] Error closing source: %s", self.description, e)
        finally:
            self.header_done.set()
            self.finished.set()
        logger.info("[%s] closed after %d records (%d bytes)",
                    self.description, self.records_forwarded, self.bytes_forwarded)

    def stats(self) -> Dict[str, Any]:
        return {
            'source': self.description,
            'state': self.state.value,
            'header': self.header_result.value if self.header_result else None,
            'records_forwarded': self.records_forwarded,
            'bytes_forwarded': self.bytes_forwarded,
            'error': str(self.error) if self.error else None,
        }
