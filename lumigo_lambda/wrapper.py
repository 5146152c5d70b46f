# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.
import logging
import traceback

import ujson as json

from lumigo_lambda.adapter import HandlerAdapter
from lumigo_lambda.cold_start import process_state as default_process_state
from lumigo_lambda.config import config as default_config
from lumigo_lambda.context import ExecutionContext
from lumigo_lambda.errors import ConfigurationError, DecodeError, InvalidShapeError
from lumigo_lambda.exporter import LumigoSpanExporter, select_record_sink
from lumigo_lambda.patch import patch_all
from lumigo_lambda.tracing import InvocationTracer, create_tracer_provider

logger = logging.getLogger(__name__)

"""
Usage:

from lumigo_lambda.wrapper import lumigo_lambda_wrapper

@lumigo_lambda_wrapper
def my_lambda_handle(context, event):
    requests.get("https://www.lumigo.io")
"""


class _NoopDecorator(object):
    def __init__(self, func):
        self.func = func

    def __call__(self, *args, **kwargs):
        return self.func(*args, **kwargs)

    def invoke(self, ctx, raw_payload):
        return self.func.invoke(ctx, raw_payload)


class _LumigoDecorator(object):
    """
    Decorator that adapts a handler to ``invoke(ctx, raw_payload)`` and
    traces every invocation into Lumigo span records.
    """

    _force_wrap = False

    def __new__(cls, func, *args, **kwargs):
        """
        A handler that is already wrapped gets a passthrough, so every
        invocation is traced once. With _force_wrap set, as tests do, a real
        decorator is always built.
        """
        try:
            if cls._force_wrap or not isinstance(func, _LumigoDecorator):
                wrapped = super(_LumigoDecorator, cls).__new__(cls)
                logger.debug("lumigo_lambda_wrapper wrapped")
                return wrapped
            else:
                logger.debug("lumigo_lambda_wrapper already wrapped")
                return _NoopDecorator(func)
        except Exception as e:
            logger.error(format_err_with_traceback(e))
            return func

    def __init__(self, func, config=None, sink=None, process_state=None):
        """Classifies the handler and sets up the exporter, once per wrap"""
        self.func = func
        self.config = config or default_config
        self.process_state = process_state or default_process_state
        self.adapter = None
        self.wrap_error = None
        self.traced = False
        self.exporter = None
        self.tracer_provider = None

        try:
            self.adapter = HandlerAdapter(func)
        except InvalidShapeError as e:
            logger.error("failed to wrap handler: %s", e)
            self.wrap_error = e
            return

        try:
            if self.config.debug:
                logging.getLogger("lumigo_lambda").setLevel(logging.DEBUG)
            if not self.config.enabled:
                logger.debug("lumigo tracer is disabled, handler runs untraced")
                return
            self.config.validate()

            self.exporter = LumigoSpanExporter(
                sink or select_record_sink(self.config),
                function_name=self.config.function_name,
                process_state=self.process_state,
                max_size=self.config.max_size_for_request,
            )
            self.tracer_provider = create_tracer_provider(self.config, self.exporter)
            if self.config.trace_http:
                patch_all(self.tracer_provider)
            self.traced = True
            logger.debug("lumigo_lambda_wrapper initialized")
        except ConfigurationError as e:
            logger.error("handler runs untraced: %s", e)
            self.wrap_error = e
        except Exception as e:
            logger.error(format_err_with_traceback(e))

    def __call__(self, event, context, **kwargs):
        """Entry point for the AWS Python runtime"""
        try:
            raw_payload = json.dumps(event, escape_forward_slashes=False)
        except (TypeError, ValueError, OverflowError) as e:
            raise DecodeError(f"failed to encode lambda event: {e}") from e
        result, error = self.invoke(context, raw_payload)
        if error is not None:
            raise error
        return result

    def invoke(self, ctx, raw_payload):
        """Run the handler once, returning its ``(result, error)`` untouched"""
        if self.adapter is None:
            return None, self.wrap_error
        if ctx is None:
            # no runtime context, still snapshot the warm marker now
            ctx = ExecutionContext(state=self.process_state)
        elif not isinstance(ctx, ExecutionContext):
            ctx = ExecutionContext.from_lambda_context(ctx, state=self.process_state)
        if not self.traced:
            return self.adapter.invoke(ctx, raw_payload)

        tracer = self._before(ctx, raw_payload)
        result, error = None, None
        try:
            result, error = self.adapter.invoke(ctx, raw_payload)
            return result, error
        finally:
            self._after(tracer, result, error)

    def _before(self, ctx, raw_payload):
        try:
            tracer = InvocationTracer(
                self.tracer_provider,
                self.exporter,
                ctx,
                self.config.function_name,
                process_state=self.process_state,
                flush_timeout_ms=self.config.flush_timeout_ms,
            )
            tracer.start(raw_payload)
            logger.debug("lumigo_lambda_wrapper _before() done")
            return tracer
        except Exception as e:
            logger.error(format_err_with_traceback(e))
            return None

    def _after(self, tracer, result, error):
        try:
            if tracer is None or tracer.span is None:
                self.process_state.mark_warm()
                return
            tracer.end(result, error)
            logger.debug("lumigo_lambda_wrapper _after() done")
        except Exception as e:
            logger.error(format_err_with_traceback(e))


def format_err_with_traceback(e):
    tb = traceback.format_exc().replace("\n", "\r")
    return f"Error {e}. Traceback: {tb}"


lumigo_lambda_wrapper = _LumigoDecorator
