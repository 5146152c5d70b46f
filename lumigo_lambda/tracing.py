# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

import logging
import os
import uuid

import ujson as json
from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor
from opentelemetry.trace import Status, StatusCode

from lumigo_lambda.cold_start import process_state as default_process_state
from lumigo_lambda.constants import (
    LambdaEnv,
    PARENT_SPAN_NAME,
    SpanAttributes,
    TRACER_NAME,
)
from lumigo_lambda.errors import LumigoError
from lumigo_lambda.span_error import error_attributes
from lumigo_lambda.version import __version__

logger = logging.getLogger(__name__)


def new_resource(cfg):
    """Resource describing the function, carrying the Lumigo token"""
    attrs = {
        SpanAttributes.TOKEN: cfg.token,
        SpanAttributes.SERVICE_NAME: cfg.service_name,
        "service.name": cfg.service_name or cfg.function_name,
        "cloud.provider": "aws",
        "cloud.region": os.environ.get(LambdaEnv.REGION, ""),
        "faas.name": os.environ.get(LambdaEnv.FUNCTION_NAME, ""),
        "faas.version": os.environ.get(LambdaEnv.FUNCTION_VERSION, ""),
    }
    if cfg.enable_thread_safe:
        attrs[SpanAttributes.GLOBAL_TRANSACTION_ID] = f"c_{uuid.uuid4()}"
        attrs[SpanAttributes.GLOBAL_PARENT_ID] = str(uuid.uuid4())
    return Resource.create(attrs)


def create_tracer_provider(cfg, exporter, synchronous=False):
    provider = TracerProvider(resource=new_resource(cfg))
    if synchronous:
        processor = SimpleSpanProcessor(exporter)
    else:
        processor = BatchSpanProcessor(exporter)
    provider.add_span_processor(processor)
    return provider


def _payload_text(raw_payload):
    if raw_payload is None:
        return ""
    if isinstance(raw_payload, (bytes, bytearray)):
        return raw_payload.decode("utf-8", errors="replace")
    if isinstance(raw_payload, str):
        return raw_payload
    return json.dumps(raw_payload, escape_forward_slashes=False)


class InvocationTracer(object):
    """
    Spans of a single invocation: the LumigoParentSpan around the handler
    and the start span named after the function.
    """

    def __init__(
        self,
        tracer_provider,
        exporter,
        ctx,
        function_name,
        process_state=None,
        flush_timeout_ms=3000,
    ):
        self.tracer_provider = tracer_provider
        self.exporter = exporter
        self.ctx = ctx
        self.function_name = function_name
        self.process_state = process_state or default_process_state
        self.flush_timeout_ms = flush_timeout_ms
        self.span = None
        self.trace_id = None
        self._token = None
        self._tracer = tracer_provider.get_tracer(TRACER_NAME, __version__)

    def start(self, raw_payload):
        event = _payload_text(raw_payload)
        self.span = self._tracer.start_span(
            PARENT_SPAN_NAME, attributes={SpanAttributes.EVENT: event}
        )
        self.trace_id = self.span.get_span_context().trace_id
        self.exporter.register_context(self.trace_id, self.ctx)

        parent = trace.set_span_in_context(self.span)
        start_span = self._tracer.start_span(
            self.function_name,
            context=parent,
            attributes={SpanAttributes.EVENT: event},
        )
        start_span.end()
        # outgoing calls made by the handler become children of the parent span
        self._token = otel_context.attach(parent)

    def end(self, result, error):
        try:
            if error is None:
                try:
                    response = json.dumps(result, escape_forward_slashes=False)
                    self.span.set_attribute(SpanAttributes.RESPONSE, response)
                except (TypeError, ValueError, OverflowError) as e:
                    logger.error("failed to track response: %s", e)
            else:
                self.span.set_attributes(error_attributes(error))
                self.span.set_status(Status(StatusCode.ERROR, str(error)))
        finally:
            self.process_state.mark_warm()
            if self._token is not None:
                otel_context.detach(self._token)
                self._token = None
            self.span.end()
            self.flush()

    def flush(self):
        try:
            if not self.tracer_provider.force_flush(self.flush_timeout_ms):
                logger.error(
                    "failed to flush spans within %sms", self.flush_timeout_ms
                )
            self.exporter.sink.flush(self.ctx)
        except LumigoError as e:
            logger.error("failed to flush span records: %s", e)
        finally:
            self.exporter.release_context(self.trace_id)
