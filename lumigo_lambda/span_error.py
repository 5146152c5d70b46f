import logging
import traceback
from typing import Optional

from lumigo_lambda.constants import SpanAttributes
from lumigo_lambda.span_record import ErrorRecord

logger = logging.getLogger(__name__)

_ERROR_FIELDS = (
    ("type", SpanAttributes.ERROR_TYPE),
    ("message", SpanAttributes.ERROR_MESSAGE),
    ("stacktrace", SpanAttributes.ERROR_STACKTRACE),
)


def extract_error(attrs) -> Optional[ErrorRecord]:
    """
    Build the error sub-record from the span attributes. Any subset of the
    three error attributes may be present; None is returned when all of them
    are empty.
    """
    fields = {}
    for field, key in _ERROR_FIELDS:
        value = attrs.get_str(key)
        if value is None:
            logger.debug("unable to fetch lambda %s from span", key)
            value = ""
        fields[field] = value
    error = ErrorRecord(**fields)
    if error.is_empty():
        return None
    return error


def error_attributes(exc):
    """Span attributes describing an invocation failure"""
    if exc.__traceback__ is not None:
        stacktrace = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    else:
        # returned rather than raised, report where it surfaced
        stacktrace = "".join(traceback.format_stack())
    return {
        SpanAttributes.ERROR_TYPE: type(exc).__name__,
        SpanAttributes.ERROR_MESSAGE: str(exc),
        SpanAttributes.ERROR_STACKTRACE: stacktrace,
    }
