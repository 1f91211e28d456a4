"""Shared pytest fixtures for aws-infra tests."""

import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError

# Keep rotating log files out of the working tree
os.environ.setdefault(
    "AWS_INFRA_LOG_DIR", str(Path(tempfile.gettempdir()) / "aws-infra-test-logs")
)

REGION = "us-west-2"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so no test can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)


@pytest.fixture
def mock_client():
    """A MagicMock standing in for a boto3 client."""
    return MagicMock()


@pytest.fixture
def mock_session(mock_client):
    """A session whose client() always returns ``mock_client``."""
    session = MagicMock(spec=boto3.Session)
    session.region_name = REGION
    session.client.return_value = mock_client
    return session


@pytest.fixture
def aws_session():
    """A real boto3 session, for use under moto's mock_aws."""
    return boto3.Session(region_name=REGION)


def make_client_error(code: str, message: str = "error", operation: str = "Operation", status: int = 400) -> ClientError:
    """Build a botocore ClientError with the given code and HTTP status."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def paginate(client: MagicMock, *pages):
    """Make ``client.get_paginator(...).paginate(...)`` yield ``pages``."""
    client.get_paginator.return_value.paginate.return_value = list(pages)
