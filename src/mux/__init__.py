"""
Pcap stream multiplexer core.
"""

from .config import MuxConfig
from .arbiter import OutputArbiter
from .dedup import HeaderLatch, PublishResult
from .worker import SourceWorker, WorkerState
from .supervisor import Multiplexer

__all__ = [
    'MuxConfig',
    'OutputArbiter',
    'HeaderLatch',
    'PublishResult',
    'SourceWorker',
    'WorkerState',
    'Multiplexer',
]
