"""STS Manager for caller identity."""

from typing import Optional

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.models import Identity
from aws_infra.utils.retry import with_retry


class STSManager(BaseManager):
    """AWS STS manager."""

    service_name = "sts"

    @with_retry()
    def get_identity(self) -> Identity:
        """Return the account, user id and ARN of the current credentials."""
        try:
            response = self.client.get_caller_identity()
        except AWS_ERRORS as e:
            self._raise_api_error("get_caller_identity", e)

        identity = Identity.from_aws_identity(response)
        self.logger.info(f"Caller identity: {identity.arn} (account {identity.account_id})")
        return identity


def create_sts_manager(session: boto3.Session, region: Optional[str] = None) -> STSManager:
    """Create STSManager instance."""
    return STSManager(session, region)
