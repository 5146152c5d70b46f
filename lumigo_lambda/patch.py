# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

import logging
import sys

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from wrapt import wrap_function_wrapper as wrap
from wrapt.importer import when_imported

from lumigo_lambda.constants import HTTP_SPAN_NAME, TRACER_NAME
from lumigo_lambda.version import __version__

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 2048

_patched_modules = set()
_tracer_provider = None


def patch_all(tracer_provider=None):
    """
    Trace the outgoing HTTP calls of the handler. Spans are created with
    ``tracer_provider``, the global provider when none was given.
    """
    global _tracer_provider
    if tracer_provider is not None:
        _tracer_provider = tracer_provider
    for module_name in _PATCHES:
        _patch_on_import(module_name)


def _patch_on_import(module_name):
    # the handler may import the client before or after it gets wrapped
    if module_name in sys.modules:
        _apply_patch(sys.modules[module_name])
    else:
        when_imported(module_name)(_apply_patch)


def _apply_patch(module):
    module_name = module.__name__
    if module_name in _patched_modules:
        return
    _patched_modules.add(module_name)
    target, wrapper = _PATCHES[module_name]
    try:
        wrap(module_name, target, wrapper)
        logger.debug("Patched %s.%s", module_name, target)
    except Exception:
        logger.debug("Failed to patch %s", module_name, exc_info=True)


def _get_tracer():
    provider = _tracer_provider or trace.get_tracer_provider()
    return provider.get_tracer(TRACER_NAME, __version__)


def _wrap_requests_send(func, instance, args, kwargs):
    """Record a `requests` call as an HttpSpan of the current invocation"""
    request = kwargs.get("request") or args[0]
    with _get_tracer().start_as_current_span(
        HTTP_SPAN_NAME,
        kind=SpanKind.CLIENT,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        span.set_attribute("http.method", request.method or "")
        span.set_attribute("http.url", request.url or "")
        request_body = _body_text(request.body)
        if request_body:
            span.set_attribute("http.request_body", request_body)

        try:
            response = func(*args, **kwargs)
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise

        span.set_attribute("http.status_code", response.status_code)
        if response.status_code >= 400:
            span.set_status(Status(StatusCode.ERROR))
        # reading a streamed body here would consume it for the caller
        if not kwargs.get("stream"):
            response_body = _body_text(response.content)
            if response_body:
                span.set_attribute("http.response_body", response_body)
        return response


def _body_text(body):
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        body = body[:MAX_BODY_SIZE].decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return ""
    return body[:MAX_BODY_SIZE]


# module -> (attribute to wrap, wrapper)
_PATCHES = {
    "requests": ("Session.send", _wrap_requests_send),
}
