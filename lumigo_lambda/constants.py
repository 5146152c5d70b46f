# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

import enum

# Name of the root span opened around every invocation
PARENT_SPAN_NAME = "LumigoParentSpan"
HTTP_SPAN_NAME = "HttpSpan"
TRACER_NAME = "lumigo"


# Attribute keys the exporter reads back from spans
class SpanAttributes(object):
    TOKEN = "lumigo_token"
    EVENT = "event"
    RESPONSE = "response"
    ERROR_TYPE = "error_type"
    ERROR_MESSAGE = "error_message"
    ERROR_STACKTRACE = "error_stacktrace"
    SERVICE_NAME = "service_name"
    GLOBAL_TRANSACTION_ID = "globalTransactionId"
    GLOBAL_PARENT_ID = "globalParentId"
    SPAN_KIND = "span.kind"


# AWS Lambda runtime environment
class LambdaEnv(object):
    FUNCTION_NAME = "AWS_LAMBDA_FUNCTION_NAME"
    FUNCTION_VERSION = "AWS_LAMBDA_FUNCTION_VERSION"
    REGION = "AWS_REGION"
    MEMORY_SIZE = "AWS_LAMBDA_FUNCTION_MEMORY_SIZE"
    EXECUTION_ENV = "AWS_EXECUTION_ENV"
    LOG_GROUP_NAME = "AWS_LAMBDA_LOG_GROUP_NAME"
    LOG_STREAM_NAME = "AWS_LAMBDA_LOG_STREAM_NAME"
    INITIALIZATION_TYPE = "AWS_LAMBDA_INITIALIZATION_TYPE"
    XRAY_TRACE_ID_HEADER_NAME = "_X_AMZN_TRACE_ID"
    WARM_START = "IS_WARM_START"


PROVISIONED_CONCURRENCY = "provisioned-concurrency"


class Readiness(object):
    COLD = "cold"
    WARM = "warm"


class LambdaType(object):
    FUNCTION = "function"
    HTTP = "http"


class RecordRole(enum.Enum):
    START = "start"
    END = "end"
