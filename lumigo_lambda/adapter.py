import enum
import inspect
import logging
import types
import typing

import ujson as json

from lumigo_lambda.context import ExecutionContext
from lumigo_lambda.errors import DecodeError, InvalidShapeError

logger = logging.getLogger(__name__)

# unannotated parameters with these names receive the execution context
CONTEXT_PARAM_NAMES = ("ctx", "context", "lambda_context")
CONTEXT_TYPE_NAMES = ("ExecutionContext", "LambdaContext")

_UNION_TYPES = tuple(
    t for t in (typing.Union, getattr(types, "UnionType", None)) if t is not None
)
_PASSTHROUGH_TYPES = (None, typing.Any, object, inspect.Parameter.empty)
_PLAIN_JSON_TYPES = (str, int, float, bool, dict, list)


class CallStrategy(enum.Enum):
    NO_ARGS = "()"
    PAYLOAD = "(payload)"
    CONTEXT = "(ctx)"
    CONTEXT_PAYLOAD = "(ctx, payload)"


class ReturnStrategy(enum.Enum):
    NONE = "()"
    RESULT = "(result)"
    ERROR = "(error)"
    RESULT_ERROR = "(result, error)"


class HandlerShape(object):
    """How a handler is called and how its return value is read"""

    __slots__ = ("call", "returns", "payload_type")

    def __init__(self, call, returns, payload_type=None):
        self.call = call
        self.returns = returns
        self.payload_type = payload_type

    @property
    def takes_payload(self):
        return self.call in (CallStrategy.PAYLOAD, CallStrategy.CONTEXT_PAYLOAD)

    def __eq__(self, other):
        if not isinstance(other, HandlerShape):
            return NotImplemented
        return (self.call, self.returns, self.payload_type) == (
            other.call,
            other.returns,
            other.payload_type,
        )

    def __hash__(self):
        return hash((self.call, self.returns))

    def __repr__(self):
        return f"HandlerShape({self.call.value} -> {self.returns.value})"


class HandlerAdapter(object):
    """A handler together with the shape it was classified as at wrap time"""

    def __init__(self, handler):
        self.shape = classify(handler)
        self.handler = handler

    def invoke(self, ctx, raw_payload):
        return invoke(self.shape, self.handler, ctx, raw_payload)


def classify(handler):
    """Inspect a handler once and return its HandlerShape.

    Raises InvalidShapeError when the handler cannot be called through the
    uniform ``(ctx, raw_payload) -> (result, error)`` interface.
    """
    if handler is None:
        raise InvalidShapeError("handler is nil")
    if not callable(handler):
        raise InvalidShapeError(
            f"handler kind {type(handler).__name__} is not callable"
        )
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError) as e:
        raise InvalidShapeError(f"cannot inspect handler signature: {e}") from e

    hints = _get_type_hints(handler)
    params = [
        p
        for p in signature.parameters.values()
        if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD) and p.default is p.empty
    ]
    if len(params) > 2:
        raise InvalidShapeError(
            f"handlers may not take more than two arguments, but handler takes {len(params)}"
        )
    for param in params:
        if param.kind == param.KEYWORD_ONLY:
            raise InvalidShapeError(
                f"handler argument '{param.name}' is keyword-only and cannot be passed"
            )
    annotations = [hints.get(p.name, p.annotation) for p in params]

    payload_type = None
    if len(params) == 0:
        call = CallStrategy.NO_ARGS
    elif len(params) == 1:
        if _is_context_param(params[0], annotations[0]):
            call = CallStrategy.CONTEXT
        else:
            call = CallStrategy.PAYLOAD
            payload_type = _payload_type(annotations[0])
    else:
        if not _is_context_param(params[0], annotations[0]):
            raise InvalidShapeError(
                "handler takes two arguments, but the first is not Context. "
                f"got {_describe(params[0], annotations[0])}"
            )
        call = CallStrategy.CONTEXT_PAYLOAD
        payload_type = _payload_type(annotations[1])

    returns = _classify_return(hints.get("return", signature.return_annotation))
    shape = HandlerShape(call, returns, payload_type)
    logger.debug("classified handler %r as %r", handler, shape)
    return shape


def invoke(shape, handler, ctx, raw_payload):
    """Call the handler exactly once and normalise the outcome.

    Returns ``(result, error)``. A payload that cannot be decoded yields a
    DecodeError without calling the handler; an exception raised by the
    handler is returned as the error.
    """
    payload = None
    if shape.takes_payload:
        try:
            payload = decode_payload(raw_payload, shape.payload_type)
        except DecodeError as e:
            return None, e

    if shape.call == CallStrategy.NO_ARGS:
        args = ()
    elif shape.call == CallStrategy.PAYLOAD:
        args = (payload,)
    elif shape.call == CallStrategy.CONTEXT:
        args = (ctx,)
    else:
        args = (ctx, payload)

    try:
        output = handler(*args)
    except Exception as e:
        return None, e
    return split_output(shape.returns, output)


def split_output(returns, output):
    if returns == ReturnStrategy.NONE:
        return None, None
    if returns == ReturnStrategy.RESULT:
        return output, None
    if returns == ReturnStrategy.ERROR:
        if isinstance(output, Exception):
            return None, output
        return output, None

    if not isinstance(output, tuple) or not output:
        return output, None
    *head, last = output
    if last is not None and not isinstance(last, Exception):
        return output, None
    if not head:
        result = None
    elif len(head) == 1:
        result = head[0]
    else:
        result = tuple(head)
    return result, last


def decode_payload(raw_payload, payload_type=None):
    """Decode a raw JSON payload into the type the handler declares"""
    if isinstance(raw_payload, (bytes, bytearray)):
        try:
            raw_payload = raw_payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"payload is not valid UTF-8: {e}") from e

    if raw_payload is None or (isinstance(raw_payload, str) and not raw_payload.strip()):
        value = None
    elif isinstance(raw_payload, str):
        try:
            value = json.loads(raw_payload)
        except ValueError as e:
            raise DecodeError(f"failed to decode payload: {e}") from e
    else:
        value = raw_payload
    return _coerce(value, payload_type)


def _coerce(value, target):
    if any(target is t for t in _PASSTHROUGH_TYPES) or isinstance(target, str):
        return value

    origin = typing.get_origin(target)
    if origin is not None and origin in _UNION_TYPES:
        args = typing.get_args(target)
        if value is None and type(None) in args:
            return None
        errors = []
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _coerce(value, arg)
            except DecodeError as e:
                errors.append(str(e))
        raise DecodeError("; ".join(errors))
    if origin is not None:
        if inspect.isclass(origin) and isinstance(value, origin):
            return value
        raise DecodeError(
            f"cannot unmarshal {_json_kind(value)} into {_type_name(target)}"
        )
    if not inspect.isclass(target):
        return value

    if target is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if target is int and isinstance(value, bool):
        raise DecodeError("cannot unmarshal bool into int")
    if target in _PLAIN_JSON_TYPES:
        if isinstance(value, target):
            return value
        raise DecodeError(
            f"cannot unmarshal {_json_kind(value)} into {target.__name__}"
        )
    if isinstance(value, target):
        return value
    try:
        if isinstance(value, dict):
            return target(**value)
        return target(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(
            f"cannot unmarshal {_json_kind(value)} into {target.__name__}: {e}"
        ) from e


def _get_type_hints(handler):
    if inspect.isclass(handler):
        target = handler.__init__
    elif inspect.isfunction(handler) or inspect.ismethod(handler):
        target = handler
    else:
        target = getattr(handler, "__call__", handler)
    try:
        return typing.get_type_hints(target)
    except Exception:
        # unresolvable forward references, fall back to the raw annotations
        return {}


def _is_context_param(param, annotation):
    if annotation is param.empty:
        return param.name in CONTEXT_PARAM_NAMES
    if inspect.isclass(annotation):
        return (
            issubclass(annotation, ExecutionContext)
            or annotation.__name__ in CONTEXT_TYPE_NAMES
        )
    if isinstance(annotation, str):
        return annotation.rsplit(".", 1)[-1] in CONTEXT_TYPE_NAMES
    return False


def _payload_type(annotation):
    if annotation is inspect.Parameter.empty:
        return None
    return annotation


def _is_error_type(annotation):
    if inspect.isclass(annotation):
        return issubclass(annotation, BaseException)
    origin = typing.get_origin(annotation)
    if origin is not None and origin in _UNION_TYPES:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return bool(args) and all(_is_error_type(a) for a in args)
    return False


def _classify_return(annotation):
    if annotation is inspect.Signature.empty:
        return ReturnStrategy.RESULT
    if annotation is None or annotation is type(None):
        return ReturnStrategy.NONE
    if _is_error_type(annotation):
        return ReturnStrategy.ERROR
    if typing.get_origin(annotation) is tuple:
        args = typing.get_args(annotation)
        if len(args) == 2 and _is_error_type(args[1]):
            return ReturnStrategy.RESULT_ERROR
    return ReturnStrategy.RESULT


def _describe(param, annotation):
    if annotation is param.empty:
        return f"'{param.name}'"
    return f"'{param.name}: {_type_name(annotation)}'"


def _type_name(annotation):
    if inspect.isclass(annotation):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


def _json_kind(value):
    if value is None:
        return "null"
    return type(value).__name__
