import enum
import logging
import threading
import traceback

import ujson as json
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

from lumigo_lambda.cold_start import process_state as default_process_state
from lumigo_lambda.constants import PARENT_SPAN_NAME, RecordRole
from lumigo_lambda.errors import LumigoError, SinkError
from lumigo_lambda.transform import record_role, span_to_record

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_FOR_REQUEST = 1024 * 500


class SinkTarget(enum.Enum):
    STDOUT = "stdout"
    FILE = "file"
    SPANS_DIR = "spans_dir"


def _select_sink_target(cfg):
    if cfg.print_stdout:
        return SinkTarget.STDOUT
    if cfg.tracing_file:
        return SinkTarget.FILE
    return SinkTarget.SPANS_DIR


def select_record_sink(cfg):
    target = _select_sink_target(cfg)
    logger.debug("identified record sink as %s", target)
    if target == SinkTarget.STDOUT:
        from lumigo_lambda.stream_record_sink import StreamRecordSink

        return StreamRecordSink()
    if target == SinkTarget.FILE:
        from lumigo_lambda.stream_record_sink import FileRecordSink

        return FileRecordSink(cfg.tracing_file)

    from lumigo_lambda.spans_dir_sink import SpansDirSink

    return SpansDirSink(cfg.spans_dir)


class LumigoSpanExporter(SpanExporter):
    """
    Converts finished spans into Lumigo records and hands them to a sink.

    The span named after the function is written on its own as soon as it
    ends. Every other span of the trace is buffered until the
    LumigoParentSpan ends, then the buffer is written as the end batch.
    """

    def __init__(self, sink, function_name=None, process_state=None, max_size=None):
        self.sink = sink
        self.function_name = function_name
        self.process_state = process_state or default_process_state
        self.max_size = (
            max_size if max_size is not None else DEFAULT_MAX_SIZE_FOR_REQUEST
        )
        self._encoder_lock = threading.Lock()
        self._contexts = {}
        self._pending = {}
        self._pending_size = {}

        self._stopped_lock = threading.Lock()
        self._stopped = False

    def register_context(self, trace_id, ctx):
        with self._encoder_lock:
            self._contexts[trace_id] = ctx

    def release_context(self, trace_id):
        with self._encoder_lock:
            self._contexts.pop(trace_id, None)
            leftover = self._pending.pop(trace_id, None)
            self._pending_size.pop(trace_id, None)
        if leftover:
            logger.debug(
                "dropping %s spans that ended after the invocation", len(leftover)
            )

    def export(self, spans):
        with self._stopped_lock:
            stopped = self._stopped
        if stopped or not spans:
            return SpanExportResult.SUCCESS

        result = SpanExportResult.SUCCESS
        with self._encoder_lock:
            for span in spans:
                try:
                    self._export_span(span)
                except SinkError as e:
                    logger.error("failed to store span %s: %s", span.name, e)
                    result = SpanExportResult.FAILURE
                except Exception as e:
                    tb = traceback.format_exc().replace("\n", "\r")
                    logger.warning(
                        "failed to export span %s. Error %s. Traceback: %s",
                        span.name,
                        e,
                        tb,
                    )
        return result

    def _export_span(self, span):
        trace_id = span.context.trace_id
        ctx = self._contexts.get(trace_id)
        record = span_to_record(
            span, ctx, self.function_name, process_state=self.process_state
        )
        function_name = self.function_name or record.name
        if record_role(span.name, function_name) == RecordRole.START:
            logger.debug("writing start span")
            self.sink.emit([record], RecordRole.START)
            return

        is_end_span = span.name == PARENT_SPAN_NAME
        size = len(json.dumps(record.to_dict()))
        total = self._pending_size.get(trace_id, 0) + size
        if total > self.max_size and not is_end_span:
            logger.error("spans total size is bigger than max size")
        else:
            self._pending.setdefault(trace_id, []).append(record)
            self._pending_size[trace_id] = total

        if is_end_span:
            records = self._pending.pop(trace_id, [])
            self._pending_size.pop(trace_id, None)
            logger.debug("writing end span")
            self.sink.emit(records, RecordRole.END)

    def force_flush(self, timeout_millis=30000):
        try:
            self.sink.flush()
        except LumigoError as e:
            logger.error("failed to flush record sink: %s", e)
            return False
        return True

    def shutdown(self):
        with self._stopped_lock:
            self._stopped = True
        try:
            self.sink.close()
        except LumigoError as e:
            logger.error("failed to close record sink: %s", e)
            return
        logger.debug("finished writing spans files")
