import io
import os
import struct
import sys
import threading
import time
import unittest

# Add src to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(project_root, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from scapy.all import rdpcap

from capture.dummy_source import DummySource, build_pcap, global_header_bytes, record_bytes
from capture.stream_source import StreamSource
from mux.config import MuxConfig
from mux.dedup import PublishResult
from mux.supervisor import Multiplexer
from mux.worker import WorkerState
from pcap_loader.exceptions import (
    PcapReadError,
    PcapRecordTooLargeError,
    PcapTruncatedError,
    SinkWriteError,
)
from pcap_loader.frame_reader import FrameReader

RUN_TIMEOUT = 20.0


def header_of(byte: int) -> bytes:
    return bytes([byte]) * 24


def pipe_source(description: str, data: bytes, step: int = 7, delay: float = 0.0) -> StreamSource:
    """Source fed through a real pipe by a writer thread, ``step`` bytes at a time."""
    read_fd, write_fd = os.pipe()

    def feed():
        with os.fdopen(write_fd, 'wb', buffering=0) as w:
            for i in range(0, len(data), step):
                w.write(data[i:i + step])
                if delay:
                    time.sleep(delay)

    threading.Thread(target=feed, daemon=True).start()
    return StreamSource(description, os.fdopen(read_fd, 'rb'))


def tagged(source: str, count: int):
    return [f'{source}:{i}'.encode() for i in range(count)]


def parse_output(out: bytes):
    reader = FrameReader(io.BytesIO(out))
    header = reader.read_global_header()
    return header, list(reader)


class FailingStream:
    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def read(self, size=-1):
        chunk = self._buf.read(size)
        if not chunk:
            raise OSError(5, "Input/output error")
        return chunk

    def close(self):
        pass


class FailAfterSink(io.BytesIO):
    """Accepts ``limit`` write calls, then behaves like a closed pipe."""

    def __init__(self, limit: int):
        super().__init__()
        self.limit = limit
        self.calls = 0

    def write(self, data):
        self.calls += 1
        if self.calls > self.limit:
            raise BrokenPipeError(32, "Broken pipe")
        return super().write(data)


class MultiplexerTests(unittest.TestCase):
    def run_mux(self, sources, config=None, sink=None):
        sink = sink if sink is not None else io.BytesIO()
        mux = Multiplexer(sink, config)
        runner = threading.Thread(target=mux.run, args=(sources,), daemon=True)
        runner.start()
        runner.join(RUN_TIMEOUT)
        self.assertFalse(runner.is_alive(), "multiplexer did not finish")
        return mux, sink

    def test_end_to_end_two_sources(self):
        a = header_of(0xAA) + record_bytes(b'\xde\xad\xbe\xef', timestamp=1.0)
        b = header_of(0xBB) + record_bytes(b'\x01\x02', timestamp=2.0)
        config = MuxConfig(serial_headers=True)

        mux, sink = self.run_mux([StreamSource("A", io.BytesIO(a)),
                                  StreamSource("B", io.BytesIO(b))], config)
        out = sink.getvalue()

        self.assertEqual(out[:24], header_of(0xAA))
        self.assertNotIn(header_of(0xBB), out)
        self.assertEqual(len(out), 24 + 20 + 18)
        rest = out[24:]
        rec_a, rec_b = a[24:], b[24:]
        self.assertIn(rest, (rec_a + rec_b, rec_b + rec_a))

        self.assertEqual(mux.latch.winner, "A")
        results = {w.description: w.header_result for w in mux.workers}
        self.assertEqual(results, {"A": PublishResult.PUBLISHED, "B": PublishResult.SUPPRESSED})

    def test_single_header_from_many_sources(self):
        sources = [
            StreamSource(f"s{i}", io.BytesIO(header_of(i + 1) + build_pcap(tagged(f"s{i}", 3))[24:]))
            for i in range(6)
        ]
        mux, sink = self.run_mux(sources)
        out = sink.getvalue()

        header, records = parse_output(out)
        winner_index = int(mux.latch.winner[1:])
        self.assertEqual(header.data, header_of(winner_index + 1))
        self.assertEqual(len(records), 18)
        self.assertEqual(len(out), 24 + sum(r.size for r in records))
        published = [w for w in mux.workers if w.header_result is PublishResult.PUBLISHED]
        self.assertEqual(len(published), 1)

    def test_atomicity_and_per_source_order_over_pipes(self):
        names = ["alpha", "bravo", "charlie", "delta"]
        sources = [pipe_source(name, build_pcap(tagged(name, 50)), step=5) for name in names]

        mux, sink = self.run_mux(sources)
        header, records = parse_output(sink.getvalue())

        self.assertIsNotNone(header)
        self.assertEqual(len(records), 200)
        by_source = {}
        for record in records:
            name, index = record.payload.decode().split(':')
            by_source.setdefault(name, []).append(int(index))
        for name in names:
            self.assertEqual(by_source[name], list(range(50)), f"{name} out of order")
        for worker in mux.workers:
            self.assertEqual(worker.state, WorkerState.CLOSED)
            self.assertIsNone(worker.error)
            self.assertEqual(worker.records_forwarded, 50)

    def test_truncated_source_does_not_stop_others(self):
        good = build_pcap(tagged("good", 5))
        bad = (header_of(0x01) + record_bytes(b'bad:0')
               + struct.pack('<IIII', 0, 0, 100, 100) + b'x' * 10)

        mux, sink = self.run_mux([pipe_source("good", good, delay=0.001),
                                  StreamSource("bad", io.BytesIO(bad))])
        header, records = parse_output(sink.getvalue())

        payloads = [r.payload for r in records]
        self.assertEqual([p for p in payloads if p.startswith(b'good')], tagged("good", 5))
        self.assertEqual([p for p in payloads if p.startswith(b'bad')], [b'bad:0'])
        workers = {w.description: w for w in mux.workers}
        self.assertIsInstance(workers["bad"].error, PcapTruncatedError)
        self.assertIsNone(workers["good"].error)

    def test_silent_source_contributes_nothing(self):
        good = build_pcap(tagged("good", 2))
        config = MuxConfig(serial_headers=True)
        mux, sink = self.run_mux([StreamSource("empty", io.BytesIO(b'')),
                                  StreamSource("good", io.BytesIO(good))], config)

        self.assertEqual(sink.getvalue(), good)
        empty = mux.workers[0]
        self.assertEqual(empty.state, WorkerState.CLOSED)
        self.assertIsNone(empty.header_result)
        self.assertIsNone(empty.error)

    def test_only_silent_sources(self):
        mux, sink = self.run_mux([StreamSource(f"e{i}", io.BytesIO(b'')) for i in range(3)])
        self.assertEqual(sink.getvalue(), b'')
        self.assertFalse(mux.latch.published)

    def test_no_sources(self):
        mux, sink = self.run_mux([])
        self.assertEqual(sink.getvalue(), b'')
        self.assertEqual(mux.workers, [])

    def test_oversize_record_closes_source(self):
        data = build_pcap([b'ok', b'x' * 300, b'never'])
        mux, sink = self.run_mux([StreamSource("big", io.BytesIO(data))],
                                 MuxConfig(max_payload=256))
        header, records = parse_output(sink.getvalue())
        self.assertEqual([r.payload for r in records], [b'ok'])
        self.assertIsInstance(mux.workers[0].error, PcapRecordTooLargeError)

    def test_read_error_closes_source(self):
        data = build_pcap([b'one'])
        mux, sink = self.run_mux([StreamSource("flaky", FailingStream(data))])
        header, records = parse_output(sink.getvalue())
        self.assertEqual([r.payload for r in records], [b'one'])
        self.assertIsInstance(mux.workers[0].error, PcapReadError)

    def test_write_error_closes_workers_without_hanging(self):
        sink = FailAfterSink(limit=3)
        sources = [StreamSource(f"s{i}", io.BytesIO(build_pcap(tagged(f"s{i}", 10))))
                   for i in range(3)]
        mux, _ = self.run_mux(sources, sink=sink)

        errors = [w.error for w in mux.workers]
        self.assertTrue(any(isinstance(e, SinkWriteError) for e in errors))
        for worker in mux.workers:
            self.assertEqual(worker.state, WorkerState.CLOSED)

    def test_sources_are_closed(self):
        streams = [io.BytesIO(build_pcap([b'a'])), io.BytesIO(b'')]
        self.run_mux([StreamSource(str(i), s) for i, s in enumerate(streams)])
        self.assertTrue(all(s.closed for s in streams))

    def test_serial_headers_start_order(self):
        # "slow" holds back its header; with serial headers "fast" cannot win
        slow = pipe_source("slow", header_of(0x51) + record_bytes(b'slow:0'), step=4, delay=0.01)
        fast = StreamSource("fast", io.BytesIO(header_of(0xFA) + record_bytes(b'fast:0')))
        mux, sink = self.run_mux([slow, fast], MuxConfig(serial_headers=True))
        self.assertEqual(sink.getvalue()[:24], header_of(0x51))
        self.assertEqual(mux.latch.winner, "slow")

    def test_dummy_sources_produce_readable_pcap(self):
        sources = [DummySource(f"dummy{i}", count=25, seed=i) for i in range(3)]
        mux, sink = self.run_mux(sources)
        packets = rdpcap(io.BytesIO(sink.getvalue()))
        self.assertEqual(len(packets), 75)
        self.assertEqual(sink.getvalue()[:24], global_header_bytes())

    def test_summary(self):
        mux, _ = self.run_mux([StreamSource("one", io.BytesIO(build_pcap([b'abc', b'de'])))])
        summary = mux.summary()
        self.assertEqual(summary, [{
            'source': 'one',
            'state': 'closed',
            'header': 'published',
            'records_forwarded': 2,
            'bytes_forwarded': 16 * 2 + 5,
            'error': None,
        }])


if __name__ == "__main__":
    unittest.main()
