"""Shared plumbing for the AWS service managers."""

from typing import NoReturn, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from aws_infra.core.constants import DEFAULT_AWS_REGION
from aws_infra.utils.exceptions import APIError
from aws_infra.utils.logger import setup_logger
from aws_infra.utils.retry import is_error_retryable

# Errors raised by boto3 clients that managers convert into APIError
AWS_ERRORS = (ClientError, BotoCoreError)


class BaseManager:
    """Base class holding a boto3 client for one AWS service."""

    service_name: str = ""

    def __init__(self, session: boto3.Session, region: Optional[str] = None):
        self.session = session
        self.region = region or session.region_name or DEFAULT_AWS_REGION
        self.logger = setup_logger(
            self.__class__.__module__, f"{self.service_name}_manager.log"
        )
        try:
            self.client = session.client(self.service_name, region_name=self.region)
        except AWS_ERRORS as e:
            self._raise_api_error(f"creating {self.service_name} client", e, retryable=False)

    def _raise_api_error(self, action: str, error: Exception, retryable: Optional[bool] = None) -> NoReturn:
        """Log and re-raise an SDK failure as APIError."""
        if retryable is None:
            retryable = is_error_retryable(error)
        self.logger.error(f"Failed {action}: {error} (retryable: {retryable})")
        raise APIError(f"failed {action}: {error}", retryable=retryable) from error
