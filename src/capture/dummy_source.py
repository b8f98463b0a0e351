"""
Dummy capture source for trying pcapmux without tcpdump.
"""
import io
import random
import struct
import time
from typing import BinaryIO, Iterable, Optional

from scapy.all import Ether, IP, UDP, Raw, raw

from .icapture_source import ISource

PCAP_MAGIC = 0xA1B2C3D4
DLT_EN10MB = 1


def global_header_bytes(link_type: int = DLT_EN10MB, snaplen: int = 65535) -> bytes:
    """Little-endian pcap 2.4 global header (24 bytes)."""
    return struct.pack('<IHHiIII', PCAP_MAGIC, 2, 4, 0, 0, snaplen, link_type)


def record_bytes(data: bytes, timestamp: Optional[float] = None,
                 wire_length: Optional[int] = None) -> bytes:
    """Record header (16 bytes) followed by ``data``."""
    if timestamp is None:
        timestamp = time.time()
    ts_sec = int(timestamp)
    ts_usec = int((timestamp - ts_sec) * 1_000_000)
    if wire_length is None:
        wire_length = len(data)
    return struct.pack('<IIII', ts_sec, ts_usec, len(data), wire_length) + data


def build_pcap(packets: Iterable[bytes], link_type: int = DLT_EN10MB,
               start_ts: float = 1_700_000_000.0) -> bytes:
    """Complete pcap stream holding ``packets`` one millisecond apart."""
    out = bytearray(global_header_bytes(link_type))
    for i, data in enumerate(packets):
        out += record_bytes(data, timestamp=start_ts + i / 1000.0)
    return bytes(out)


class DummySource(ISource):
    """Generates a small, valid Ethernet/IPv4/UDP capture in memory."""

    def __init__(self, description: str, count: int = 10, seed: Optional[int] = None):
        super().__init__(description)
        self.count = count
        self._rng = random.Random(seed)
        self._stream: Optional[BinaryIO] = None

    def generate_packet(self, index: int) -> bytes:
        """Generate one dummy frame tagged with the source and index."""
        host = self._rng.randint(1, 254)
        frame = (
            Ether(src='00:11:22:33:44:55', dst='ff:ff:ff:ff:ff:ff')
            / IP(src=f'192.168.1.{host}', dst='10.0.0.1')
            / UDP(sport=self._rng.randint(1024, 65535), dport=9)
            / Raw(load=f'{self.description}:{index}'.encode())
        )
        return raw(frame)

    def open(self) -> BinaryIO:
        if self._stream is None:
            packets = [self.generate_packet(i) for i in range(self.count)]
            self._stream = io.BytesIO(build_pcap(packets))
        return self._stream

    def close(self):
        if self._stream is not None:
            self._stream.close()
