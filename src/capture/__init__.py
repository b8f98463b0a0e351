"""
Capture sources feeding the multiplexer.
"""

from .icapture_source import ISource
from .stream_source import StreamSource
from .command_source import CommandSource, ssh_source, shell_source
from .dummy_source import DummySource

__all__ = [
    'ISource',
    'StreamSource',
    'CommandSource',
    'ssh_source',
    'shell_source',
    'DummySource',
]
