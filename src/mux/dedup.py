"""
Global header deduplication: a one-shot latch shared by all workers.
"""
import enum
import logging
import threading
from typing import Optional

from models.frame import GlobalHeader
from .arbiter import OutputArbiter

logger = logging.getLogger(__name__)


class PublishResult(enum.Enum):
    PUBLISHED = "published"
    SUPPRESSED = "suppressed"


class HeaderLatch:
    """
    Lets exactly one global header through to the output.

    The first caller wins regardless of header content. Losers wait until
    the winner's header has been written, so no record can reach the sink
    ahead of it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._published = False
        self.winner: Optional[str] = None

    @property
    def published(self) -> bool:
        return self._published

    def try_publish(self, header: GlobalHeader, arbiter: OutputArbiter,
                    description: str = "") -> PublishResult:
        """
        Publish ``header`` if no header has been published yet.

        Raises:
            SinkWriteError: Only to the winner, if its header write failed.
                The latch stays closed either way.
        """
        with self._lock:
            if self._published:
                logger.debug("[%s] global header suppressed (winner: %s)",
                             description, self.winner)
                return PublishResult.SUPPRESSED
            self._published = True
            self.winner = description
            logger.debug("[%s] publishing global header", description)
            arbiter.write_atomic(header.data)
            return PublishResult.PUBLISHED
