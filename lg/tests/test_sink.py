import gzip
import io
import os
import shutil
import tempfile
import threading
import unittest
from lg.lib.enums import Compress
from lg.lib.errors import SinkWriteError
from lg.lib.logging import get_logger
from lg.lib.sink import FileSink, TeeSink

logger = get_logger(__name__, "CRITICAL")


class BrokenStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise BrokenPipeError("pipe closed")


class FileSinkTest(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_write_plain(self):
        path = os.path.join(self.tmp_dir, "out.log")
        sink = FileSink(logger, path)
        sink.open()
        sink.write(b"one\n")
        sink.write(b"two\n")
        sink.close()
        with open(path, "rb") as fh:
            self.assertEqual(b"one\ntwo\n", fh.read())
        self.assertEqual(8, sink.bytes_written)

    def test_creates_parent_dirs_and_truncates(self):
        path = os.path.join(self.tmp_dir, "a", "b", "out.log")
        os.makedirs(os.path.dirname(path))
        with open(path, "wb") as fh:
            fh.write(b"previous contents")
        sink = FileSink(logger, path)
        sink.open()
        sink.write(b"new\n")
        sink.close()
        with open(path, "rb") as fh:
            self.assertEqual(b"new\n", fh.read())

    def test_gzip_round_trip(self):
        payload = [b"[STDOUT] hello\n", b"\xff\xfe raw bytes\r\n", b"x" * 200000 + b"\n"]
        gz_path = os.path.join(self.tmp_dir, "out.log.gz")
        plain_path = os.path.join(self.tmp_dir, "out.log")
        for path, compress in ((gz_path, Compress.GZ), (plain_path, Compress.NONE)):
            sink = FileSink(logger, path, compress)
            sink.open()
            for chunk in payload:
                sink.write(chunk)
            sink.close()

        with open(gz_path, "rb") as fh:
            compressed = fh.read()
        with open(plain_path, "rb") as fh:
            plain = fh.read()
        self.assertEqual(b"\x1f\x8b", compressed[:2])
        self.assertEqual(plain, gzip.decompress(compressed))
        self.assertLess(len(compressed), len(plain))

    def test_open_failure(self):
        blocker = os.path.join(self.tmp_dir, "file")
        with open(blocker, "w") as fh:
            fh.write("x")
        sink = FileSink(logger, os.path.join(blocker, "out.log"))
        with self.assertRaises(SinkWriteError):
            sink.open()
        self.assertFalse(sink.is_open)
        # Writes to a sink that failed to open are dropped.
        sink.write(b"ignored\n")
        sink.close()

    def test_write_failure_disables_sink(self):
        sink = FileSink(logger, os.path.join(self.tmp_dir, "out.log"))
        sink.open()
        sink.fh = BrokenStream()
        sink.write(b"one\n")
        self.assertIsInstance(sink.error, SinkWriteError)
        sink.write(b"two\n")
        self.assertEqual(0, sink.bytes_written)
        sink.close()

    def test_concurrent_writes_are_not_interleaved(self):
        path = os.path.join(self.tmp_dir, "out.log")
        sink = FileSink(logger, path)
        sink.open()
        lines = {"a": b"a" * 5000 + b"\n", "b": b"b" * 5000 + b"\n"}

        def writer(line):
            for _ in range(200):
                sink.write(line)

        threads = [threading.Thread(target=writer, args=(line,)) for line in lines.values()]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        sink.close()

        with open(path, "rb") as fh:
            written = fh.read().splitlines(keepends=True)
        self.assertEqual(400, len(written))
        for line in written:
            self.assertIn(line, lines.values())


class TeeSinkTest(unittest.TestCase):
    def test_write(self):
        stream = io.BytesIO()
        sink = TeeSink(logger, stream, "stdout")
        sink.write(b"partial")
        sink.write(b" line\n")
        sink.close()
        self.assertEqual(b"partial line\n", stream.getvalue())

    def test_broken_stream_disables_tee(self):
        sink = TeeSink(logger, BrokenStream(), "stdout")
        sink.write(b"x")
        self.assertTrue(sink.failed)
        sink.write(b"y")
        sink.close()
