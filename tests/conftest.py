"""Shared test fixtures."""

import json

import pytest


@pytest.fixture
def lambda_context():
    """Mock Lambda context for testing."""

    class MockLambdaContext:
        def __init__(self):
            self.function_name = "leaderboard-test"
            self.function_version = "$LATEST"
            self.invoked_function_arn = (
                "arn:aws:lambda:us-east-1:123456789012:function:leaderboard-test"
            )
            self.memory_limit_in_mb = 128
            self.remaining_time_in_millis = lambda: 30000
            self.log_group_name = "/aws/lambda/leaderboard-test"
            self.log_stream_name = "2024/01/01/[$LATEST]test"
            self.aws_request_id = "test-request-id"

    return MockLambdaContext()


def create_api_event(
    method: str,
    path: str,
    body: dict = None,
    query_params: dict = None,
    path_params: dict = None,
) -> dict:
    """Helper function to create API Gateway events."""
    return {
        "resource": path,
        "path": path,
        "httpMethod": method,
        "headers": {"Content-Type": "application/json"},
        "queryStringParameters": query_params,
        "pathParameters": path_params,
        "body": json.dumps(body) if body is not None else None,
        "isBase64Encoded": False,
        "requestContext": {
            "httpMethod": method,
            "path": path,
            "stage": "test",
            "requestId": "test-request-id",
        },
    }
