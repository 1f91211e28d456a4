"""Exception classes and validation utilities for AWS infrastructure operations.

Every error raised by the AWS managers derives from ``AWSInfraError`` and
records whether the failed operation may succeed if retried.
"""

import re


class AWSInfraError(Exception):
    """Base error for AWS infrastructure operations."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable

    def __str__(self) -> str:
        return self.message


class APIError(AWSInfraError):
    """An AWS API call failed."""


class OperationError(AWSInfraError):
    """A non-API failure such as a polling timeout or a failed remote command."""


class CLIError(Exception):
    """Custom exception for CLI-related errors."""

    pass


class ValidationRules:
    """Validation utilities for AWS resource identifiers."""

    @staticmethod
    def validate_instance_id(instance_id: str) -> bool:
        """Validate EC2 instance ID format (i- followed by 8 or 17 hex chars)."""
        return bool(re.match(r"^i-([0-9a-f]{8}|[0-9a-f]{17})$", instance_id))

    @staticmethod
    def validate_kms_key_id(key_id: str) -> bool:
        """Accept a key UUID, key ARN, alias name or alias ARN."""
        patterns = (
            r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
            r"^mrk-[0-9a-f]{32}$",
            r"^arn:aws[a-z-]*:kms:[a-z0-9-]+:\d{12}:(key|alias)/.+$",
            r"^alias/[a-zA-Z0-9/_-]+$",
        )
        return any(re.match(pattern, key_id) for pattern in patterns)

    @staticmethod
    def validate_bucket_name(name: str) -> bool:
        """Validate S3 bucket naming rules (3-63 chars, lowercase, no IP form)."""
        if not re.match(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$", name):
            return False
        if ".." in name or re.match(r"^\d+\.\d+\.\d+\.\d+$", name):
            return False
        return True

    @staticmethod
    def validate_parameter_name(name: str) -> bool:
        """Validate SSM parameter name format."""
        if not name or len(name) > 2048:
            return False
        return bool(re.match(r"^/?[a-zA-Z0-9_.\-/]+$", name))

    @staticmethod
    def validate_stack_name(name: str) -> bool:
        """Validate CloudFormation stack name format."""
        return bool(re.match(r"^[a-zA-Z][-a-zA-Z0-9]{0,127}$", name))
