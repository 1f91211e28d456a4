"""Unit tests for exceptions and validation rules."""

import pytest

from aws_infra.utils.exceptions import APIError, AWSInfraError, OperationError, ValidationRules


def test_errors_carry_retryable_flag():
    error = APIError("failed describe_instances", retryable=True)
    assert isinstance(error, AWSInfraError)
    assert error.retryable is True
    assert str(error) == "failed describe_instances"
    assert OperationError("timed out").retryable is False


@pytest.mark.parametrize(
    "value,expected",
    [
        ("i-1234abcd", True),
        ("i-0123456789abcdef0", True),
        ("i-123", False),
        ("ami-1234abcd", False),
    ],
)
def test_validate_instance_id(value, expected):
    assert ValidationRules.validate_instance_id(value) is expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1234abcd-12ab-34cd-56ef-1234567890ab", True),
        ("alias/app-key", True),
        ("arn:aws:kms:us-west-2:123456789012:key/1234abcd-12ab-34cd-56ef-1234567890ab", True),
        ("not-a-key", False),
    ],
)
def test_validate_kms_key_id(value, expected):
    assert ValidationRules.validate_kms_key_id(value) is expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("my-bucket", True),
        ("logs.example.com", True),
        ("ab", False),
        ("My-Bucket", False),
        ("bad..name", False),
        ("192.168.1.1", False),
    ],
)
def test_validate_bucket_name(value, expected):
    assert ValidationRules.validate_bucket_name(value) is expected


def test_validate_parameter_and_stack_names():
    assert ValidationRules.validate_parameter_name("/app/prod/db-password")
    assert not ValidationRules.validate_parameter_name("has space")
    assert ValidationRules.validate_stack_name("network-prod")
    assert not ValidationRules.validate_stack_name("1-starts-with-digit")
