"""Unit tests for AutoScalingManager."""

from unittest.mock import patch

import pytest

from aws_infra.core.aws.autoscaling import (
    AutoScalingManager,
    is_error_retryable_set_instance_health,
)
from aws_infra.utils.exceptions import APIError
from tests.conftest import make_client_error, paginate


@pytest.fixture
def manager(mock_session):
    return AutoScalingManager(mock_session)


def test_set_instance_health(manager, mock_client):
    mock_client.set_instance_health.return_value = {"ResponseMetadata": {"RequestId": "req-1"}}

    manager.set_instance_health("i-1", "Unhealthy")

    mock_client.set_instance_health.assert_called_once_with(
        InstanceId="i-1", HealthStatus="Unhealthy"
    )


def test_set_instance_health_rejects_unknown_status(manager, mock_client):
    with pytest.raises(ValueError):
        manager.set_instance_health("i-1", "Sick")
    mock_client.set_instance_health.assert_not_called()


def test_resource_contention_is_retryable(manager, mock_client):
    mock_client.set_instance_health.side_effect = make_client_error("ResourceContention")

    with pytest.raises(APIError) as exc_info:
        manager.set_instance_health("i-1", "Healthy")

    assert exc_info.value.retryable is True


def test_throttling_is_retryable(manager, mock_client):
    mock_client.set_instance_health.side_effect = make_client_error("Throttling")

    with pytest.raises(APIError) as exc_info:
        manager.set_instance_health("i-1", "Healthy")

    assert exc_info.value.retryable is True


def test_validation_error_is_not_retryable(manager, mock_client):
    mock_client.set_instance_health.side_effect = make_client_error("ValidationError")

    with pytest.raises(APIError) as exc_info:
        manager.set_instance_health("i-1", "Healthy")

    assert exc_info.value.retryable is False


def test_is_error_retryable_set_instance_health():
    assert is_error_retryable_set_instance_health(make_client_error("ResourceContention"))
    assert not is_error_retryable_set_instance_health(make_client_error("Throttling"))


def test_describe_groups(manager, mock_client):
    paginate(
        mock_client,
        {
            "AutoScalingGroups": [
                {
                    "AutoScalingGroupName": "web",
                    "MinSize": 1,
                    "MaxSize": 2,
                    "DesiredCapacity": 1,
                    "Instances": [{"InstanceId": "i-1", "HealthStatus": "Healthy"}],
                }
            ]
        },
    )

    groups = manager.describe_groups(["web"])

    assert groups[0].name == "web"
    assert groups[0].instances == {"i-1": "Healthy"}
    mock_client.get_paginator.return_value.paginate.assert_called_once_with(
        AutoScalingGroupNames=["web"]
    )


@patch("aws_infra.utils.retry.time.sleep")
def test_describe_groups_gives_up_after_retries(mock_sleep, manager, mock_client):
    mock_client.get_paginator.return_value.paginate.side_effect = make_client_error(
        "InternalFailure", status=500
    )

    with pytest.raises(APIError) as exc_info:
        manager.describe_groups()

    assert exc_info.value.retryable is True
    assert mock_sleep.call_count == 2
