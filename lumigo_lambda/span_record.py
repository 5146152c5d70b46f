from typing import Optional


class SpanTiming(object):
    """Start and end of a span, in milliseconds since epoch"""

    def __init__(self, started: int, ended: int):
        self.started = started
        self.ended = ended

    @classmethod
    def from_span(cls, span):
        start_ns = span.start_time or 0
        end_ns = span.end_time or start_ns
        return cls(start_ns // 1_000_000, end_ns // 1_000_000)


class ErrorRecord(object):
    def __init__(self, type="", message="", stacktrace=""):
        self.type = type
        self.message = message
        self.stacktrace = stacktrace

    def is_empty(self):
        return not (self.type or self.message or self.stacktrace)

    def to_dict(self):
        return {
            "type": self.type,
            "message": self.message,
            "stacktrace": self.stacktrace,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            type=data.get("type", ""),
            message=data.get("message", ""),
            stacktrace=data.get("stacktrace", ""),
        )

    def __eq__(self, other):
        if not isinstance(other, ErrorRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"ErrorRecord(type={self.type!r}, message={self.message!r})"


class SpanInfo(object):
    def __init__(
        self,
        log_stream_name="",
        log_group_name="",
        trace_root="",
        tracer_version="",
    ):
        self.log_stream_name = log_stream_name
        self.log_group_name = log_group_name
        self.trace_root = trace_root
        self.tracer_version = tracer_version

    def to_dict(self):
        return {
            "logStreamName": self.log_stream_name,
            "logGroupName": self.log_group_name,
            "traceId": {"Root": self.trace_root},
            "tracer": {"version": self.tracer_version},
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            log_stream_name=data.get("logStreamName", ""),
            log_group_name=data.get("logGroupName", ""),
            trace_root=(data.get("traceId") or {}).get("Root", ""),
            tracer_version=(data.get("tracer") or {}).get("version", ""),
        )

    def __eq__(self, other):
        if not isinstance(other, SpanInfo):
            return NotImplemented
        return self.to_dict() == other.to_dict()


# attribute name -> JSON field name, in output order
_FIELDS = (
    ("id", "id"),
    ("parent_id", "parentId"),
    ("transaction_id", "transactionId"),
    ("runtime", "runtime"),
    ("region", "region"),
    ("event", "event"),
    ("token", "token"),
    ("memory_allocated", "memoryAllocated"),
    ("account", "account"),
    ("envs", "envs"),
    ("lambda_type", "type"),
    ("name", "name"),
    ("readiness", "readiness"),
    ("lambda_container_id", "lambda_container_id"),
    ("started", "started"),
    ("ended", "ended"),
    ("max_finish_time", "maxFinishTime"),
)


class SpanRecord(object):
    """
    A span in the Lumigo schema. ``return_value`` and ``error`` are left out
    of the JSON entirely when they are None.
    """

    def __init__(
        self,
        id="",
        parent_id="",
        transaction_id="",
        runtime="",
        region="",
        event="",
        token="",
        memory_allocated="",
        account="",
        envs="",
        lambda_type="",
        name="",
        readiness="",
        return_value: Optional[str] = None,
        lambda_container_id="",
        info: Optional[SpanInfo] = None,
        started=0,
        ended=0,
        max_finish_time=0,
        error: Optional[ErrorRecord] = None,
    ):
        self.id = id
        self.parent_id = parent_id
        self.transaction_id = transaction_id
        self.runtime = runtime
        self.region = region
        self.event = event
        self.token = token
        self.memory_allocated = memory_allocated
        self.account = account
        self.envs = envs
        self.lambda_type = lambda_type
        self.name = name
        self.readiness = readiness
        self.return_value = return_value
        self.lambda_container_id = lambda_container_id
        self.info = info if info is not None else SpanInfo()
        self.started = started
        self.ended = ended
        self.max_finish_time = max_finish_time
        self.error = error

    def to_dict(self):
        data = {key: getattr(self, attr) for attr, key in _FIELDS}
        data["info"] = self.info.to_dict()
        if self.return_value is not None:
            data["return_value"] = self.return_value
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data

    @classmethod
    def from_dict(cls, data):
        kwargs = {attr: data.get(key) for attr, key in _FIELDS if key in data}
        kwargs["info"] = SpanInfo.from_dict(data.get("info") or {})
        kwargs["return_value"] = data.get("return_value")
        if data.get("error") is not None:
            kwargs["error"] = ErrorRecord.from_dict(data["error"])
        return cls(**kwargs)

    def __eq__(self, other):
        if not isinstance(other, SpanRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (
            f"SpanRecord(id={self.id!r}, name={self.name!r}, "
            f"type={self.lambda_type!r}, readiness={self.readiness!r})"
        )
