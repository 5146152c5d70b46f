import logging
import os
import uuid

from lumigo_lambda.constants import RecordRole
from lumigo_lambda.errors import SinkError
from lumigo_lambda.record_sink import RecordSink

logger = logging.getLogger(__name__)

START_SUFFIX = "_span"
END_SUFFIX = "_end"


class SpansDirSink(RecordSink):
    """
    Writes every emit into a fresh file of the spans directory, where the
    Lumigo extension collects them: ``<uuid>_span`` for start records and
    ``<uuid>_end`` for end records.
    """

    def __init__(self, directory):
        super().__init__()
        self.directory = directory

    def _write(self, line, role):
        suffix = START_SUFFIX if role == RecordRole.START else END_SUFFIX
        path = os.path.join(self.directory, f"{uuid.uuid4().hex}{suffix}")
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            raise SinkError(f"failed to write span data store {path}: {e}") from e
        logger.debug("wrote %s records to %s", role.value, path)
