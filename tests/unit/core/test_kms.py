"""Unit tests for KMSManager."""

import pytest
from moto import mock_aws

from aws_infra.core.aws.kms import KMSManager, normalize_alias
from aws_infra.utils.exceptions import APIError
from tests.conftest import make_client_error


@pytest.fixture
def kms(aws_session):
    with mock_aws():
        yield KMSManager(aws_session)


def test_normalize_alias():
    assert normalize_alias("app") == "alias/app"
    assert normalize_alias("alias/app") == "alias/app"


def test_create_key_and_alias(kms):
    key = kms.create_key("application data", tags={"Env": "prod"})
    alias = kms.create_alias("app-data", key.key_id)

    described = kms.describe_key(key.key_id)

    assert alias == "alias/app-data"
    assert described.description == "application data"
    assert described.state == "Enabled"
    assert described.aliases == ["alias/app-data"]


def test_list_keys_includes_aliases(kms):
    first = kms.create_key("first")
    kms.create_key("second")
    kms.create_alias("first", first.key_id)

    keys = {key.key_id: key for key in kms.list_keys()}

    assert len(keys) == 2
    assert keys[first.key_id].aliases == ["alias/first"]


def test_encrypt_decrypt(kms):
    key = kms.create_key("crypto")

    ciphertext = kms.encrypt(key.key_id, b"secret payload")

    assert ciphertext != b"secret payload"
    assert kms.decrypt(ciphertext) == b"secret payload"


def test_generate_data_key(kms):
    key = kms.create_key("envelope")

    data_key = kms.generate_data_key(key.key_id)

    assert len(data_key.plaintext) == 32
    assert kms.decrypt(data_key.ciphertext) == data_key.plaintext


def test_schedule_key_deletion(kms):
    key = kms.create_key("short lived")

    assert kms.schedule_key_deletion(key.key_id, 7) is True
    assert kms.describe_key(key.key_id).is_pending_deletion


@pytest.mark.parametrize("days", [6, 31])
def test_schedule_key_deletion_validates_window(kms, days):
    with pytest.raises(ValueError):
        kms.schedule_key_deletion("any-key", days)


def test_schedule_key_deletion_already_pending(mock_session, mock_client):
    mock_client.schedule_key_deletion.side_effect = make_client_error(
        "KMSInvalidStateException", message="Key is pending deletion"
    )

    assert KMSManager(mock_session).schedule_key_deletion("k-1", 7) is False


def test_describe_missing_key(kms):
    with pytest.raises(APIError):
        kms.describe_key("11111111-2222-3333-4444-555555555555")
