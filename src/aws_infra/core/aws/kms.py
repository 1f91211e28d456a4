"""KMS Manager for key lifecycle and envelope encryption."""

from collections import defaultdict
from typing import Dict, List, Optional

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.constants import KMS_MAX_PENDING_WINDOW_DAYS, KMS_MIN_PENDING_WINDOW_DAYS
from aws_infra.core.models import DataKey, KeyInfo, dict_to_tags
from aws_infra.utils.retry import error_code, with_retry


def normalize_alias(alias: str) -> str:
    return alias if alias.startswith("alias/") else f"alias/{alias}"


class KMSManager(BaseManager):
    """AWS KMS key manager."""

    service_name = "kms"

    def create_key(
        self,
        description: str,
        key_spec: str = "SYMMETRIC_DEFAULT",
        key_usage: str = "ENCRYPT_DECRYPT",
        tags: Optional[Dict[str, str]] = None,
    ) -> KeyInfo:
        self.logger.info(f"Creating KMS key '{description}' ({key_spec}, {key_usage})")
        params = {"Description": description, "KeySpec": key_spec, "KeyUsage": key_usage}
        if tags:
            params["Tags"] = dict_to_tags(tags, key_name="TagKey", value_name="TagValue")
        try:
            response = self.client.create_key(**params)
        except AWS_ERRORS as e:
            self._raise_api_error("create_key", e)

        key = KeyInfo.from_aws_metadata(response["KeyMetadata"])
        self.logger.info(f"Created KMS key {key.key_id} ({key.arn})")
        return key

    def create_alias(self, alias: str, key_id: str) -> str:
        """Point an alias at a key; returns the normalized ``alias/...`` name."""
        alias = normalize_alias(alias)
        try:
            self.client.create_alias(AliasName=alias, TargetKeyId=key_id)
        except AWS_ERRORS as e:
            self._raise_api_error(f"create_alias {alias}", e)
        self.logger.info(f"Created alias {alias} for key {key_id}")
        return alias

    @with_retry()
    def describe_key(self, key_id: str) -> KeyInfo:
        try:
            response = self.client.describe_key(KeyId=key_id)
        except AWS_ERRORS as e:
            self._raise_api_error(f"describe_key {key_id}", e)
        key = KeyInfo.from_aws_metadata(response["KeyMetadata"])
        key.aliases = self._aliases_by_key().get(key.key_id, [])
        return key

    def _aliases_by_key(self) -> Dict[str, List[str]]:
        aliases = defaultdict(list)
        try:
            paginator = self.client.get_paginator("list_aliases")
            for page in paginator.paginate():
                for alias in page.get("Aliases", []):
                    if alias.get("TargetKeyId"):
                        aliases[alias["TargetKeyId"]].append(alias["AliasName"])
        except AWS_ERRORS as e:
            self._raise_api_error("list_aliases", e)
        return aliases

    @with_retry()
    def list_keys(self) -> List[KeyInfo]:
        """List keys with their metadata and aliases."""
        key_ids = []
        try:
            paginator = self.client.get_paginator("list_keys")
            for page in paginator.paginate():
                key_ids.extend(k["KeyId"] for k in page.get("Keys", []))
        except AWS_ERRORS as e:
            self._raise_api_error("list_keys", e)

        aliases = self._aliases_by_key()
        keys = []
        for key_id in key_ids:
            try:
                metadata = self.client.describe_key(KeyId=key_id)["KeyMetadata"]
            except AWS_ERRORS as e:
                self._raise_api_error(f"describe_key {key_id}", e)
            keys.append(KeyInfo.from_aws_metadata(metadata, aliases.get(key_id, [])))
        return keys

    def schedule_key_deletion(self, key_id: str, pending_window_days: int = KMS_MIN_PENDING_WINDOW_DAYS) -> bool:
        """Schedule deletion; returns False if the key was already pending deletion."""
        if not KMS_MIN_PENDING_WINDOW_DAYS <= pending_window_days <= KMS_MAX_PENDING_WINDOW_DAYS:
            raise ValueError(
                f"pending window must be between {KMS_MIN_PENDING_WINDOW_DAYS} and "
                f"{KMS_MAX_PENDING_WINDOW_DAYS} days, got {pending_window_days}"
            )

        self.logger.info(f"Scheduling deletion of key {key_id} in {pending_window_days} days")
        try:
            response = self.client.schedule_key_deletion(
                KeyId=key_id, PendingWindowInDays=pending_window_days
            )
        except AWS_ERRORS as e:
            if error_code(e) == "KMSInvalidStateException" and "pending deletion" in str(e).lower():
                self.logger.warning(f"Key {key_id} is already pending deletion")
                return False
            self._raise_api_error(f"schedule_key_deletion {key_id}", e)

        self.logger.info(f"Key {key_id} will be deleted at {response.get('DeletionDate')}")
        return True

    def encrypt(self, key_id: str, plaintext: bytes) -> bytes:
        try:
            response = self.client.encrypt(KeyId=key_id, Plaintext=plaintext)
        except AWS_ERRORS as e:
            self._raise_api_error(f"encrypt with {key_id}", e)
        self.logger.debug(f"Encrypted {len(plaintext)} bytes with {key_id}")
        return response["CiphertextBlob"]

    def decrypt(self, ciphertext: bytes, key_id: Optional[str] = None) -> bytes:
        params = {"CiphertextBlob": ciphertext}
        if key_id:
            params["KeyId"] = key_id
        try:
            response = self.client.decrypt(**params)
        except AWS_ERRORS as e:
            self._raise_api_error("decrypt", e)
        return response["Plaintext"]

    def generate_data_key(self, key_id: str, key_spec: str = "AES_256") -> DataKey:
        try:
            response = self.client.generate_data_key(KeyId=key_id, KeySpec=key_spec)
        except AWS_ERRORS as e:
            self._raise_api_error(f"generate_data_key with {key_id}", e)
        return DataKey(
            key_id=response["KeyId"],
            plaintext=response["Plaintext"],
            ciphertext=response["CiphertextBlob"],
        )


def create_kms_manager(session: boto3.Session, region: Optional[str] = None) -> KMSManager:
    """Create KMSManager instance."""
    return KMSManager(session, region)
