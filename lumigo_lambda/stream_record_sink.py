import logging
import os
import sys

from lumigo_lambda.errors import SinkError
from lumigo_lambda.record_sink import RecordSink

logger = logging.getLogger(__name__)


class StreamRecordSink(RecordSink):
    """
    Writes records as line-delimited JSON to a text stream, stdout unless a
    stream is given. Streams that were passed in are never closed.
    """

    def __init__(self, stream=None):
        super().__init__()
        self._stream = stream
        self._owns_stream = False

    @property
    def stream(self):
        # resolved lazily so that a replaced sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, line, role):
        try:
            self.stream.write(line)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"failed to write {role.value} records: {e}") from e
        logger.debug("wrote %s records to %s", role.value, self.stream)

    def _flush(self):
        try:
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"failed to flush records: {e}") from e

    def _close(self):
        if self._owns_stream and self._stream is not None:
            self._stream.close()


class FileRecordSink(StreamRecordSink):
    """Appends records to a process-local file, opened on first write"""

    def __init__(self, path):
        super().__init__()
        self.path = path
        self._owns_stream = True

    @property
    def stream(self):
        if self._stream is None:
            directory = os.path.dirname(self.path)
            try:
                if directory:
                    os.makedirs(directory, exist_ok=True)
                self._stream = open(self.path, "a", encoding="utf-8")
            except OSError as e:
                raise SinkError(f"failed to open span data store {self.path}: {e}")
        return self._stream
