import logging
import threading

import ujson as json

from lumigo_lambda.errors import InvocationCancelledError, SinkError

logger = logging.getLogger(__name__)


class RecordSink:
    """
    Destination of exported span records. ``emit`` writes one JSON array of
    records per call and is serialised by ``_write_lock``; the stopped flag
    has its own lock since ``close`` may race with an in-flight export.
    """

    def __init__(self):
        self._write_lock = threading.Lock()
        self._stopped_lock = threading.Lock()
        self._stopped = False

    def emit(self, records, role):
        if not records:
            return
        try:
            line = encode_records(records)
        except (TypeError, ValueError, OverflowError) as e:
            raise SinkError(f"failed to encode {role.value} records: {e}") from e
        with self._write_lock:
            if self.stopped:
                logger.debug("sink is closed, dropping %s records", len(records))
                return
            self._write(line, role)

    def flush(self, ctx=None):
        _check_cancelled(ctx)
        with self._write_lock:
            if not self.stopped:
                self._flush()

    def close(self, ctx=None):
        with self._stopped_lock:
            already_stopped = self._stopped
            self._stopped = True
        _check_cancelled(ctx)
        if not already_stopped:
            with self._write_lock:
                self._close()

    @property
    def stopped(self):
        with self._stopped_lock:
            return self._stopped

    def _write(self, line, role):
        raise NotImplementedError()

    def _flush(self):
        pass

    def _close(self):
        pass


def encode_records(records):
    payload = [record.to_dict() for record in records]
    return json.dumps(payload, escape_forward_slashes=False) + "\n"


def _check_cancelled(ctx):
    if ctx is not None and ctx.is_cancelled():
        raise InvocationCancelledError(
            f"invocation {ctx.request_id} passed its deadline"
        )
