"""Unit tests for EC2Manager."""

from unittest.mock import patch

import pytest

from aws_infra.core.aws.ec2 import EC2Manager, create_ec2_manager
from aws_infra.utils.exceptions import APIError, OperationError
from tests.conftest import make_client_error, paginate


def _instance(instance_id, state="running", name="web"):
    return {
        "InstanceId": instance_id,
        "InstanceType": "t3.micro",
        "State": {"Name": state},
        "Tags": [{"Key": "Name", "Value": name}],
    }


@pytest.fixture
def manager(mock_session):
    return EC2Manager(mock_session)


def test_client_created_for_session_region(mock_session):
    manager = create_ec2_manager(mock_session)
    mock_session.client.assert_called_once_with("ec2", region_name="us-west-2")
    assert manager.region == "us-west-2"


def test_describe_instances_flattens_reservations(manager, mock_client):
    paginate(
        mock_client,
        {"Reservations": [{"Instances": [_instance("i-1")]}, {"Instances": [_instance("i-2")]}]},
        {"Reservations": [{"Instances": [_instance("i-3")]}]},
    )

    instances = manager.describe_instances()

    assert [i["InstanceId"] for i in instances] == ["i-1", "i-2", "i-3"]
    mock_client.get_paginator.assert_called_with("describe_instances")


def test_list_instances_builds_filters(manager, mock_client):
    paginate(mock_client, {"Reservations": [{"Instances": [_instance("i-1", name="web-prod")]}]})

    instances = manager.list_instances(name="web", states=["running"], tags={"Env": "prod"})

    assert instances[0].name == "web-prod"
    mock_client.get_paginator.return_value.paginate.assert_called_once_with(
        Filters=[
            {"Name": "tag:Name", "Values": ["*web*"]},
            {"Name": "instance-state-name", "Values": ["running"]},
            {"Name": "tag:Env", "Values": ["prod"]},
        ]
    )


def test_list_instances_keeps_explicit_wildcards(manager, mock_client):
    paginate(mock_client, {"Reservations": []})

    manager.list_instances(name="web-*")

    mock_client.get_paginator.return_value.paginate.assert_called_once_with(
        Filters=[{"Name": "tag:Name", "Values": ["web-*"]}]
    )


def test_describe_instances_wraps_errors(manager, mock_client):
    mock_client.get_paginator.return_value.paginate.side_effect = make_client_error(
        "UnauthorizedOperation", status=403
    )

    with pytest.raises(APIError) as exc_info:
        manager.describe_instances()

    assert exc_info.value.retryable is False
    assert "describe_instances" in str(exc_info.value)


@patch("aws_infra.utils.retry.time.sleep")
def test_describe_instances_retries_throttling(mock_sleep, manager, mock_client):
    mock_client.get_paginator.return_value.paginate.side_effect = [
        make_client_error("RequestLimitExceeded"),
        [{"Reservations": [{"Instances": [_instance("i-1")]}]}],
    ]

    assert len(manager.describe_instances()) == 1
    mock_sleep.assert_called_once()


def test_stop_instances_returns_transitions(manager, mock_client):
    mock_client.stop_instances.return_value = {
        "StoppingInstances": [
            {
                "InstanceId": "i-1",
                "PreviousState": {"Name": "running"},
                "CurrentState": {"Name": "stopping"},
            }
        ]
    }

    assert manager.stop_instances(["i-1"]) == [("i-1", "running", "stopping")]
    mock_client.stop_instances.assert_called_once_with(InstanceIds=["i-1"])


def test_change_state_requires_ids(manager):
    with pytest.raises(ValueError):
        manager.terminate_instances([])


def test_start_instances_wraps_errors(manager, mock_client):
    mock_client.start_instances.side_effect = make_client_error("IncorrectInstanceState")

    with pytest.raises(APIError):
        manager.start_instances(["i-1"])


@patch("aws_infra.core.aws.ec2.time.sleep")
def test_wait_instances_polls_until_state(mock_sleep, manager, mock_client):
    mock_client.get_paginator.return_value.paginate.side_effect = [
        [{"Reservations": [{"Instances": [_instance("i-1", "pending")]}]}],
        [{"Reservations": [{"Instances": [_instance("i-1", "running")]}]}],
    ]

    instances = manager.wait_instances(["i-1"], "running", timeout=60, interval=5)

    assert instances[0].state == "running"
    mock_sleep.assert_called_once_with(5)


@patch("aws_infra.core.aws.ec2.time.sleep")
@patch("aws_infra.core.aws.ec2.time.monotonic")
def test_wait_instances_times_out(mock_monotonic, mock_sleep, manager, mock_client):
    mock_monotonic.side_effect = [0.0, 0.0, 10.0, 20.0]
    paginate(mock_client, {"Reservations": [{"Instances": [_instance("i-1", "stopping")]}]})

    with pytest.raises(OperationError) as exc_info:
        manager.wait_instances(["i-1"], "stopped", timeout=15, interval=10)

    assert exc_info.value.retryable is True
    assert "i-1" in str(exc_info.value)


def test_describe_volumes(manager, mock_client):
    paginate(
        mock_client,
        {"Volumes": [{"VolumeId": "vol-1", "Size": 20, "VolumeType": "gp3", "State": "available"}]},
    )

    volumes = manager.describe_volumes()

    assert volumes[0].volume_id == "vol-1"
    assert volumes[0].size_gib == 20


def test_create_tags(manager, mock_client):
    manager.create_tags(["i-1"], {"Env": "prod"})

    mock_client.create_tags.assert_called_once_with(
        Resources=["i-1"], Tags=[{"Key": "Env", "Value": "prod"}]
    )


def test_create_tags_requires_tags(manager):
    with pytest.raises(ValueError):
        manager.create_tags(["i-1"], {})
