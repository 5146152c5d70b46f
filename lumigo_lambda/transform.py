import logging
import re

import ujson as json

from lumigo_lambda.attributes import collect_attributes
from lumigo_lambda.aws import parse_arn
from lumigo_lambda.cold_start import process_state as default_process_state
from lumigo_lambda.constants import (
    LambdaEnv,
    LambdaType,
    PARENT_SPAN_NAME,
    RecordRole,
    SpanAttributes,
)
from lumigo_lambda.span_error import extract_error
from lumigo_lambda.span_record import SpanInfo, SpanRecord, SpanTiming
from lumigo_lambda.version import __version__
from lumigo_lambda.xray import parse_trace_root, parse_transaction_id

logger = logging.getLogger(__name__)

STARTED_SUFFIX = "_started"
MASKED_VALUE = "****"
_secret_key_pattern = re.compile(
    r"token|password|secret|key|credential|authorization", re.IGNORECASE
)


def is_start_span(span_name, function_name):
    return bool(function_name) and span_name == function_name


def record_role(span_name, function_name):
    if is_start_span(span_name, function_name):
        return RecordRole.START
    return RecordRole.END


def lambda_type(span_name, function_name):
    if span_name == function_name or span_name == PARENT_SPAN_NAME:
        return LambdaType.FUNCTION
    return LambdaType.HTTP


def get_account_id(invoked_function_arn):
    try:
        return parse_arn(invoked_function_arn).account_id
    except ValueError as e:
        logger.error("failed to parse ARN: %s", e)
        return ""


def get_trace_root(ctx, environ):
    if ctx is not None and ctx.trace_root:
        return ctx.trace_root
    return parse_trace_root(environ.get(LambdaEnv.XRAY_TRACE_ID_HEADER_NAME, ""))


def get_env_vars(environ):
    envs = {
        key: MASKED_VALUE if _secret_key_pattern.search(key) else value
        for key, value in environ.items()
    }
    try:
        return json.dumps(envs, escape_forward_slashes=False)
    except (TypeError, OverflowError, ValueError) as e:
        logger.error("unable to fetch lambda environment vars: %s", e)
        return ""


def _required_attribute(attrs, key, description):
    value = attrs.get_str(key)
    if value is None:
        logger.error("unable to fetch %s from span", description)
    return value


def transform(
    attrs,
    ctx,
    timing,
    span_name,
    function_name,
    process_state=None,
):
    """
    Map the attributes of one span, plus the invocation's execution context,
    onto a SpanRecord.

    Never raises for missing data: every absent attribute or context field is
    logged and leaves the matching record field empty.
    """
    process_state = process_state or default_process_state
    environ = attrs.environ
    function_name = function_name or environ.get(LambdaEnv.FUNCTION_NAME, "")

    record = SpanRecord(started=timing.started, ended=timing.ended)
    record.lambda_container_id = process_state.container_id

    if ctx is not None:
        record.id = ctx.request_id
        if record.id and is_start_span(span_name, function_name):
            record.id += STARTED_SUFFIX
        record.account = get_account_id(ctx.invoked_function_arn)
        record.max_finish_time = ctx.deadline_ms or 0
        warm_start = ctx.warm_start
    else:
        logger.error("unable to fetch the execution context of span %s", span_name)
        warm_start = None

    token = _required_attribute(attrs, SpanAttributes.TOKEN, "lumigo token")
    record.token = token or ""
    event = _required_attribute(attrs, SpanAttributes.EVENT, "lambda event")
    record.event = event or ""
    record.return_value = _required_attribute(
        attrs, SpanAttributes.RESPONSE, "lambda response"
    )
    record.parent_id = attrs.get_str(SpanAttributes.GLOBAL_PARENT_ID) or ""

    record.region = environ.get(LambdaEnv.REGION, "")
    record.memory_allocated = environ.get(LambdaEnv.MEMORY_SIZE, "")
    record.runtime = environ.get(LambdaEnv.EXECUTION_ENV, "")
    record.name = environ.get(LambdaEnv.FUNCTION_NAME, "")

    trace_root = get_trace_root(ctx, environ)
    if not trace_root:
        logger.error("unable to fetch Amazon Trace ID")
    record.info = SpanInfo(
        log_stream_name=environ.get(LambdaEnv.LOG_STREAM_NAME, ""),
        log_group_name=environ.get(LambdaEnv.LOG_GROUP_NAME, ""),
        trace_root=trace_root,
        tracer_version=__version__,
    )
    record.transaction_id = parse_transaction_id(trace_root)
    if not record.transaction_id:
        logger.error("unable to fetch transaction ID")

    record.readiness = process_state.readiness(warm_start, environ)
    record.lambda_type = lambda_type(span_name, function_name)
    record.error = extract_error(attrs)
    record.envs = get_env_vars(environ)
    return record


def span_to_record(span, ctx, function_name, process_state=None, environ=None):
    """Collect the attributes of a finished SDK span and transform them"""
    attrs = collect_attributes(span, environ=environ)
    return transform(
        attrs,
        ctx,
        SpanTiming.from_span(span),
        span.name,
        function_name,
        process_state=process_state,
    )
