"""Unit tests for the shared manager plumbing and factories."""

import pytest
from botocore.exceptions import ProfileNotFound

from aws_infra.core.aws import (
    create_autoscaling_manager,
    create_cloudformation_manager,
    create_ec2_manager,
    create_kms_manager,
    create_s3_manager,
    create_ssm_manager,
    create_sts_manager,
)
from aws_infra.utils.exceptions import APIError
from tests.conftest import make_client_error


@pytest.mark.parametrize(
    "factory,service",
    [
        (create_autoscaling_manager, "autoscaling"),
        (create_cloudformation_manager, "cloudformation"),
        (create_ec2_manager, "ec2"),
        (create_kms_manager, "kms"),
        (create_s3_manager, "s3"),
        (create_ssm_manager, "ssm"),
        (create_sts_manager, "sts"),
    ],
)
def test_factories_bind_service_client(factory, service, mock_session, mock_client):
    manager = factory(mock_session, "eu-west-1")

    mock_session.client.assert_called_once_with(service, region_name="eu-west-1")
    assert manager.client is mock_client
    assert manager.region == "eu-west-1"


def test_region_falls_back_to_default(mock_session):
    mock_session.region_name = None
    assert create_sts_manager(mock_session).region == "us-west-2"


def test_raise_api_error_keeps_cause(mock_session):
    manager = create_sts_manager(mock_session)
    error = make_client_error("ServiceUnavailable", status=503)

    with pytest.raises(APIError) as exc_info:
        manager._raise_api_error("get_caller_identity", error)

    assert exc_info.value.retryable is True
    assert exc_info.value.__cause__ is error
    assert str(exc_info.value).startswith("failed get_caller_identity:")


def test_client_creation_failure_becomes_api_error(mock_session):
    mock_session.client.side_effect = ProfileNotFound(profile="no-such-profile")

    with pytest.raises(APIError) as exc_info:
        create_ec2_manager(mock_session)

    assert exc_info.value.retryable is False
    assert "no-such-profile" in str(exc_info.value)
