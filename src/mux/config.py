"""
Multiplexer configuration.
"""
from dataclasses import dataclass

from models.frame import DEFAULT_MAX_PAYLOAD


@dataclass
class MuxConfig:
    """Settings shared by the supervisor and every source worker."""
    max_payload: int = DEFAULT_MAX_PAYLOAD
    """Largest captured_length accepted; bigger records close the source"""

    flush: bool = True
    """Flush the sink after each atomic unit (keeps live readers current)"""

    serial_headers: bool = False
    """Start each worker only after the previous one read its global header"""

    def __post_init__(self):
        if self.max_payload <= 0:
            raise ValueError(f"max_payload must be positive, got {self.max_payload}")
