"""Pytest configuration and shared fixtures.

This module provides:
- AWS credential mocking for moto
- Mocked DynamoDB catalog table and S3 catalog bucket
- Sample catalog text (airing and finished sections)
- Stream token fixtures with a controllable clock
- API Gateway event and Lambda context helpers
"""

import json
import os
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

# Set dummy AWS credentials BEFORE importing any application code
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

# Set application environment variables
os.environ["ENVIRONMENT"] = "dev"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["CATALOG_TABLE"] = "test-anime-catalog"
os.environ["CATALOG_BUCKET"] = "test-catalog-bucket"
os.environ["STREAM_TOKEN_SECRET"] = "test-secret-that-is-at-least-32-characters"
os.environ["STREAM_TOKEN_TTL_SECONDS"] = "300"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_TRACE_DISABLED"] = "true"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "AnimeCatalog"

from src.catalog_store.repository import DynamoDBCatalogStore, clear_store_cache  # noqa: E402
from src.shared.aws_clients import clear_client_cache  # noqa: E402
from src.shared.models import StreamTokenConfig  # noqa: E402
from src.stream_access.tokens import StreamTokenService  # noqa: E402

TEST_SECRET = "test-secret-that-is-at-least-32-characters"


class FakeClock:
    """Manually advanced clock for token expiry tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# AWS Fixtures
# =============================================================================


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def mocked_aws(aws_credentials: None) -> Generator[None, None, None]:
    """Activate moto and reset cached clients around the test."""
    with mock_aws():
        clear_client_cache()
        clear_store_cache()
        yield
        clear_client_cache()
        clear_store_cache()


@pytest.fixture
def catalog_table(mocked_aws: None) -> Any:
    """Create the DynamoDB catalog table keyed by id."""
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    table = dynamodb.create_table(
        TableName="test-anime-catalog",
        AttributeDefinitions=[
            {"AttributeName": "id", "AttributeType": "S"},
        ],
        KeySchema=[
            {"AttributeName": "id", "KeyType": "HASH"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def catalog_store(catalog_table: Any) -> DynamoDBCatalogStore:
    """Catalog store bound to the mocked table."""
    return DynamoDBCatalogStore(table=catalog_table)


@pytest.fixture
def s3_client(mocked_aws: None) -> Any:
    """Mocked S3 client with the catalog bucket created."""
    client = boto3.client("s3", region_name="us-east-1")
    client.create_bucket(Bucket="test-catalog-bucket")
    return client


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_airing_text() -> str:
    """Airing section with out-of-order seasons/episodes and noise lines."""
    return """
Naruto 2012 (Lunes)
1x02|http://cdn/naruto/1x02.mp4
1x01|http://cdn/x.mp4
# comment lines are ignored
Naruto 2x01.mp4|http://cdn/naruto/2x01.mp4

Frieren Beyond Journey's End 2023 (Viernes)
Frieren 1x10|https://cdn.example.com/frieren/1x10.mp4
Frieren 1x09|https://cdn.example.com/frieren/1x09.mp4
this line has no pipe
"""


@pytest.fixture
def sample_finished_text() -> str:
    """Finished section; day groups are not recognized here."""
    return """
Death Note 2006
1x01|https://cdn.example.com/death-note/1x01.mp4
1x02|https://cdn.example.com/death-note/1x02.mp4
Cowboy Bebop 1998
1x01|https://cdn.example.com/bebop/1x01.mp4
"""


# =============================================================================
# Stream Token Fixtures
# =============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Controllable clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def token_config() -> StreamTokenConfig:
    """Valid token configuration with the default TTL."""
    return StreamTokenConfig(secret=TEST_SECRET, ttl_seconds=300)


@pytest.fixture
def token_service(token_config: StreamTokenConfig, fake_clock: FakeClock) -> StreamTokenService:
    """Token service driven by the fake clock."""
    return StreamTokenService(token_config, clock=fake_clock)


# =============================================================================
# Lambda / API Gateway Fixtures
# =============================================================================


class MockContext:
    function_name = "test"
    memory_limit_in_mb = 128
    invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test"
    aws_request_id = "test-request-id"


@pytest.fixture
def lambda_context() -> MockContext:
    """Minimal Lambda context for Powertools decorators."""
    return MockContext()


@pytest.fixture
def api_event() -> Callable[..., dict]:
    """Factory for API Gateway REST proxy events."""

    def _build(
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> dict:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        return {
            "resource": path,
            "path": path,
            "httpMethod": method,
            "headers": headers or {},
            "multiValueHeaders": {},
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "pathParameters": None,
            "stageVariables": None,
            "requestContext": {
                "requestId": "test-request-id",
                "stage": "test",
                "path": path,
                "httpMethod": method,
            },
            "body": body,
            "isBase64Encoded": False,
        }

    return _build


@pytest.fixture
def s3_put_event() -> Callable[..., dict]:
    """Factory for S3 PutObject events on the catalog bucket."""

    def _build(*keys: str) -> dict:
        return {
            "Records": [
                {
                    "eventVersion": "2.1",
                    "eventSource": "aws:s3",
                    "awsRegion": "us-east-1",
                    "eventTime": "2024-01-15T10:00:00.000Z",
                    "eventName": "ObjectCreated:Put",
                    "s3": {
                        "bucket": {
                            "name": "test-catalog-bucket",
                            "arn": "arn:aws:s3:::test-catalog-bucket",
                        },
                        "object": {
                            "key": key,
                            "size": 1024,
                            "eTag": "abc123",
                        },
                    },
                }
                for key in keys
            ]
        }

    return _build
