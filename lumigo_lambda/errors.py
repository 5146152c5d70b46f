class LumigoError(Exception):
    """Base class for errors raised by the tracer itself."""


class ConfigurationError(LumigoError, ValueError):
    pass


class InvalidShapeError(LumigoError, TypeError):
    """The handler cannot be adapted to the uniform invocation interface."""


class DecodeError(LumigoError, ValueError):
    """The raw payload cannot be decoded into the handler's parameter type."""


class SinkError(LumigoError, IOError):
    pass


class InvocationCancelledError(LumigoError):
    """The invocation deadline passed before the sink was flushed or closed."""
