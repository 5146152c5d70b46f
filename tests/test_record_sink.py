import io
import os
import shutil
import tempfile
import threading
import time
import unittest

import ujson as json

from lumigo_lambda.constants import RecordRole
from lumigo_lambda.errors import InvocationCancelledError, SinkError
from lumigo_lambda.record_sink import RecordSink, encode_records
from lumigo_lambda.span_record import SpanRecord
from lumigo_lambda.spans_dir_sink import SpansDirSink
from lumigo_lambda.stream_record_sink import FileRecordSink, StreamRecordSink

from tests.utils import get_execution_context


class BrokenStream(object):
    def write(self, data):
        raise OSError("disk full")

    def flush(self):
        pass


class SlowStream(io.StringIO):
    """Writes each line in two halves so unsynchronised writers interleave"""

    def write(self, data):
        half = len(data) // 2
        super().write(data[:half])
        time.sleep(0.0005)
        return super().write(data[half:])


class TestStreamRecordSink(unittest.TestCase):
    def test_one_line_per_emit(self):
        stream = io.StringIO()
        sink = StreamRecordSink(stream)

        sink.emit([SpanRecord(id="1_started")], RecordRole.START)
        sink.emit([SpanRecord(id="2"), SpanRecord(id="1")], RecordRole.END)

        lines = stream.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual([r["id"] for r in json.loads(lines[0])], ["1_started"])
        self.assertEqual([r["id"] for r in json.loads(lines[1])], ["2", "1"])
        decoded = [SpanRecord.from_dict(r) for r in json.loads(lines[1])]
        self.assertEqual(decoded, [SpanRecord(id="2"), SpanRecord(id="1")])

    def test_empty_emit_writes_nothing(self):
        stream = io.StringIO()
        StreamRecordSink(stream).emit([], RecordRole.END)
        self.assertEqual(stream.getvalue(), "")

    def test_closed_sink_drops_records(self):
        stream = io.StringIO()
        sink = StreamRecordSink(stream)
        sink.close()

        sink.emit([SpanRecord(id="1")], RecordRole.END)

        self.assertTrue(sink.stopped)
        self.assertEqual(stream.getvalue(), "")
        # streams that were passed in stay open
        self.assertFalse(stream.closed)

    def test_close_twice(self):
        sink = StreamRecordSink(io.StringIO())
        sink.close()
        sink.close()
        self.assertTrue(sink.stopped)

    def test_write_failure(self):
        sink = StreamRecordSink(BrokenStream())
        with self.assertRaises(SinkError):
            sink.emit([SpanRecord(id="1")], RecordRole.END)

    def test_flush_after_deadline(self):
        sink = StreamRecordSink(io.StringIO())
        ctx = get_execution_context(deadline_ms=int(time.time() * 1000) - 1)
        with self.assertRaises(InvocationCancelledError):
            sink.flush(ctx)

    def test_close_after_deadline_still_stops(self):
        sink = StreamRecordSink(io.StringIO())
        ctx = get_execution_context(deadline_ms=int(time.time() * 1000) - 1)
        with self.assertRaises(InvocationCancelledError):
            sink.close(ctx)
        self.assertTrue(sink.stopped)

    def test_base_sink_requires_write(self):
        with self.assertRaises(NotImplementedError):
            RecordSink().emit([SpanRecord(id="1")], RecordRole.END)


class TestConcurrentEmit(unittest.TestCase):
    threads = 8
    emits_per_thread = 25

    def emit_batches(self, sink, worker, errors):
        for i in range(self.emits_per_thread):
            records = [
                SpanRecord(id=f"{worker}-{i}-child"),
                SpanRecord(id=f"{worker}-{i}"),
            ]
            try:
                sink.emit(records, RecordRole.END)
            except Exception as e:
                errors.append(e)

    def run_workers(self, sink, errors, during=None):
        workers = [
            threading.Thread(target=self.emit_batches, args=(sink, n, errors))
            for n in range(self.threads)
        ]
        for worker in workers:
            worker.start()
        if during is not None:
            during()
        for worker in workers:
            worker.join()

    def test_concurrent_emits_write_whole_lines(self):
        stream = SlowStream()
        sink = StreamRecordSink(stream)
        errors = []

        self.run_workers(sink, errors)

        self.assertEqual(errors, [])
        lines = stream.getvalue().splitlines()
        self.assertEqual(len(lines), self.threads * self.emits_per_thread)
        ids = set()
        for line in lines:
            batch = json.loads(line)
            self.assertEqual(len(batch), 2)
            self.assertEqual(batch[0]["id"], batch[1]["id"] + "-child")
            ids.add(batch[1]["id"])
        expected = {
            f"{n}-{i}"
            for n in range(self.threads)
            for i in range(self.emits_per_thread)
        }
        self.assertEqual(ids, expected)

    def test_close_during_emits(self):
        stream = SlowStream()
        sink = StreamRecordSink(stream)
        errors = []

        self.run_workers(sink, errors, during=sink.close)

        self.assertEqual(errors, [])
        self.assertTrue(sink.stopped)
        written = stream.getvalue()
        for line in written.splitlines():
            self.assertEqual(len(json.loads(line)), 2)

        sink.emit([SpanRecord(id="late")], RecordRole.END)
        self.assertEqual(stream.getvalue(), written)

class TestFileSinks(unittest.TestCase):
    def setUp(self):
        self.directory = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.directory, ignore_errors=True)

    def test_file_sink_appends(self):
        path = os.path.join(self.directory, "nested", "spans.log")
        sink = FileRecordSink(path)
        sink.emit([SpanRecord(id="1_started")], RecordRole.START)
        sink.emit([SpanRecord(id="1")], RecordRole.END)
        sink.close()

        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(json.loads(lines[1])[0]["id"], "1")

    def test_spans_dir_sink(self):
        directory = os.path.join(self.directory, "lumigo-spans")
        sink = SpansDirSink(directory)
        sink.emit([SpanRecord(id="1_started")], RecordRole.START)
        sink.emit([SpanRecord(id="2"), SpanRecord(id="1")], RecordRole.END)

        names = sorted(os.listdir(directory))
        self.assertEqual(len(names), 2)
        end_file = [n for n in names if n.endswith("_end")]
        start_file = [n for n in names if n.endswith("_span")]
        self.assertEqual(len(end_file), 1)
        self.assertEqual(len(start_file), 1)

        with open(os.path.join(directory, end_file[0]), encoding="utf-8") as f:
            records = json.loads(f.read())
        self.assertEqual([r["id"] for r in records], ["2", "1"])

    def test_spans_dir_not_writable(self):
        blocker = os.path.join(self.directory, "file")
        with open(blocker, "w") as f:
            f.write("")
        sink = SpansDirSink(os.path.join(blocker, "spans"))
        with self.assertRaises(SinkError):
            sink.emit([SpanRecord(id="1")], RecordRole.END)


class TestEncodeRecords(unittest.TestCase):
    def test_newline_terminated_array(self):
        line = encode_records([SpanRecord(id="1", event='{"url": "http://a/b"}')])
        self.assertTrue(line.endswith("\n"))
        self.assertEqual(json.loads(line)[0]["event"], '{"url": "http://a/b"}')
        self.assertIn("http://a/b", line)
