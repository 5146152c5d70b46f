from unittest.mock import MagicMock

from lumigo_lambda.cold_start import ProcessState
from lumigo_lambda.context import ExecutionContext

TEST_FUNCTION_ARN = "arn:aws:lambda:us-west-1:123457598159:function:python-layer-test:1"
TEST_TRACE_HEADER = (
    "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1"
)


def get_mock_context(
    aws_request_id="request-id-1",
    memory_limit_in_mb="256",
    invoked_function_arn=TEST_FUNCTION_ARN,
    function_version="1",
    remaining_time_in_millis=3000,
    client_context={},
):
    lambda_context = MagicMock()
    lambda_context.aws_request_id = aws_request_id
    lambda_context.memory_limit_in_mb = memory_limit_in_mb
    lambda_context.invoked_function_arn = invoked_function_arn
    lambda_context.function_version = function_version
    lambda_context.get_remaining_time_in_millis.return_value = remaining_time_in_millis
    lambda_context.client_context = client_context
    return lambda_context


def get_execution_context(
    request_id="request-id-1",
    invoked_function_arn=TEST_FUNCTION_ARN,
    deadline_ms=None,
    trace_root="1-5759e988-bd862e3fe1be46a994272793",
    state=None,
    **kwargs,
):
    return ExecutionContext(
        request_id=request_id,
        invoked_function_arn=invoked_function_arn,
        deadline_ms=deadline_ms,
        trace_root=trace_root,
        state=state or ProcessState(),
        **kwargs,
    )


def lambda_environ(**overrides):
    environ = {
        "AWS_LAMBDA_FUNCTION_NAME": "python-layer-test",
        "AWS_REGION": "us-west-1",
        "AWS_LAMBDA_FUNCTION_MEMORY_SIZE": "128",
        "AWS_EXECUTION_ENV": "AWS_Lambda_python3.12",
        "AWS_LAMBDA_LOG_GROUP_NAME": "/aws/lambda/python-layer-test",
        "AWS_LAMBDA_LOG_STREAM_NAME": "2024/01/01/[$LATEST]abcdef",
        "_X_AMZN_TRACE_ID": TEST_TRACE_HEADER,
    }
    environ.update(overrides)
    return environ
