"""
Multiplexer supervisor: one worker per source, joined at the end.
"""
import logging
from typing import Any, BinaryIO, Dict, List, Optional, Sequence

from capture.icapture_source import ISource
from .arbiter import OutputArbiter
from .config import MuxConfig
from .dedup import HeaderLatch
from .worker import SourceWorker

logger = logging.getLogger(__name__)


class Multiplexer:
    """
    Merges several pcap streams into one sink.

    The sink is only ever touched through the arbiter. ``run`` blocks until
    every source has ended; it imposes no timeout and does not close the
    sink (callers stop sources by killing their producers).

    With ``serial_headers`` the sources are opened (spawned) one at a time,
    each only after the previous one delivered its global header or ended.
    If a source then fails to open, the remaining sources are never started,
    the running ones are terminated and ``aborted`` is set.
    """

    def __init__(self, sink: BinaryIO, config: Optional[MuxConfig] = None):
        self.config = config or MuxConfig()
        self.arbiter = OutputArbiter(sink, flush=self.config.flush)
        self.latch: Optional[HeaderLatch] = None
        self.workers: List[SourceWorker] = []
        self.aborted = False

    def run(self, sources: Sequence[ISource]):
        self.latch = HeaderLatch()
        self.aborted = False
        self.workers = []

        for source in sources:
            worker = SourceWorker(source, self.latch, self.arbiter, self.config)
            self.workers.append(worker)
            worker.start()
            if not self.config.serial_headers:
                continue
            # Worker opens the source itself; the next one waits for its header
            worker.header_done.wait()
            if not worker.opened:
                self._abort()
                break

        for worker in self.workers:
            worker.join()

        logger.info("[pcapmux exiting] %d units, %d bytes written",
                    self.arbiter.units_written, self.arbiter.bytes_written)

    def _abort(self):
        self.aborted = True
        logger.error("[pcapmux] source failed to start, stopping the others")
        for worker in self.workers:
            if worker.opened:
                worker.source.terminate()

    def summary(self) -> List[Dict[str, Any]]:
        return [worker.stats() for worker in self.workers]
