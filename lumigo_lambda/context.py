import os
import time

from lumigo_lambda.cold_start import process_state
from lumigo_lambda.constants import LambdaEnv
from lumigo_lambda.xray import parse_trace_root


class ExecutionContext(object):
    """
    Identifies one invocation. Built by the wrapper when the invocation
    starts and immutable afterwards.

    When created from the AWS runtime's context object, attributes that are
    not defined here (``get_remaining_time_in_millis``, ``function_version``,
    ``client_context``, ...) are read from it.
    """

    __slots__ = (
        "request_id",
        "invoked_function_arn",
        "deadline_ms",
        "trace_root",
        "container_id",
        "warm_start",
        "lambda_context",
    )

    def __init__(
        self,
        request_id="",
        invoked_function_arn="",
        deadline_ms=None,
        trace_root="",
        container_id=None,
        warm_start=None,
        lambda_context=None,
        state=None,
    ):
        state = state or process_state
        if container_id is None:
            container_id = state.container_id
        if warm_start is None:
            warm_start = state.is_warm_start()
        for name, value in (
            ("request_id", request_id or ""),
            ("invoked_function_arn", invoked_function_arn or ""),
            ("deadline_ms", deadline_ms),
            ("trace_root", trace_root or ""),
            ("container_id", container_id),
            ("warm_start", bool(warm_start)),
            ("lambda_context", lambda_context),
        ):
            object.__setattr__(self, name, value)

    @classmethod
    def from_lambda_context(cls, lambda_context, state=None):
        deadline_ms = None
        get_remaining = getattr(lambda_context, "get_remaining_time_in_millis", None)
        if callable(get_remaining):
            try:
                deadline_ms = int(time.time() * 1000) + int(get_remaining())
            except (TypeError, ValueError):
                deadline_ms = None
        return cls(
            request_id=getattr(lambda_context, "aws_request_id", ""),
            invoked_function_arn=getattr(lambda_context, "invoked_function_arn", ""),
            deadline_ms=deadline_ms,
            trace_root=parse_trace_root(
                os.environ.get(LambdaEnv.XRAY_TRACE_ID_HEADER_NAME, "")
            ),
            lambda_context=lambda_context,
            state=state,
        )

    def is_cancelled(self):
        if self.deadline_ms is None:
            return False
        return int(time.time() * 1000) >= self.deadline_ms

    def __setattr__(self, name, value):
        raise AttributeError(f"ExecutionContext is immutable, cannot set {name}")

    def __delattr__(self, name):
        raise AttributeError(f"ExecutionContext is immutable, cannot delete {name}")

    def __getattr__(self, name):
        # only reached for names that are not slots
        lambda_context = object.__getattribute__(self, "lambda_context")
        if lambda_context is None:
            raise AttributeError(name)
        return getattr(lambda_context, name)

    def __repr__(self):
        return (
            f"ExecutionContext(request_id={self.request_id!r}, "
            f"invoked_function_arn={self.invoked_function_arn!r}, "
            f"deadline_ms={self.deadline_ms!r})"
        )
