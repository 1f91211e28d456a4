"""CloudFormation Manager for stack lifecycle operations."""

import time
from typing import Dict, List, Optional

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, FIRST_POLL_WAIT
from aws_infra.core.models import StackInfo, dict_to_tags
from aws_infra.utils.exceptions import OperationError
from aws_infra.utils.retry import error_code, with_retry

# Every status except DELETE_COMPLETE
ACTIVE_STACK_STATUSES = [
    "CREATE_IN_PROGRESS",
    "CREATE_FAILED",
    "CREATE_COMPLETE",
    "ROLLBACK_IN_PROGRESS",
    "ROLLBACK_FAILED",
    "ROLLBACK_COMPLETE",
    "DELETE_IN_PROGRESS",
    "DELETE_FAILED",
    "UPDATE_IN_PROGRESS",
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_COMPLETE",
    "UPDATE_FAILED",
    "UPDATE_ROLLBACK_IN_PROGRESS",
    "UPDATE_ROLLBACK_FAILED",
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_ROLLBACK_COMPLETE",
    "REVIEW_IN_PROGRESS",
    "IMPORT_IN_PROGRESS",
    "IMPORT_COMPLETE",
    "IMPORT_ROLLBACK_IN_PROGRESS",
    "IMPORT_ROLLBACK_FAILED",
    "IMPORT_ROLLBACK_COMPLETE",
]


def is_stack_missing(error: Exception) -> bool:
    """DescribeStacks reports an unknown stack as a ValidationError."""
    return error_code(error) == "ValidationError" and "does not exist" in str(error)


class CloudFormationManager(BaseManager):
    """AWS CloudFormation stack manager."""

    service_name = "cloudformation"

    def create_stack(
        self,
        name: str,
        template_body: str,
        parameters: Optional[Dict[str, str]] = None,
        capabilities: Optional[List[str]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> str:
        """Create a stack; returns its stack id."""
        params = {"StackName": name, "TemplateBody": template_body}
        if parameters:
            params["Parameters"] = [
                {"ParameterKey": key, "ParameterValue": str(value)}
                for key, value in parameters.items()
            ]
        if capabilities:
            params["Capabilities"] = list(capabilities)
        if tags:
            params["Tags"] = dict_to_tags(tags)

        self.logger.info(f"Creating stack {name}")
        try:
            response = self.client.create_stack(**params)
        except AWS_ERRORS as e:
            self._raise_api_error(f"create_stack {name}", e)

        self.logger.info(f"Created stack {name} ({response['StackId']})")
        return response["StackId"]

    def delete_stack(self, name: str) -> None:
        self.logger.info(f"Deleting stack {name}")
        try:
            self.client.delete_stack(StackName=name)
        except AWS_ERRORS as e:
            self._raise_api_error(f"delete_stack {name}", e)

    @with_retry()
    def describe_stack(self, name: str) -> Optional[StackInfo]:
        """Describe a stack; None if it does not exist."""
        try:
            response = self.client.describe_stacks(StackName=name)
        except AWS_ERRORS as e:
            if is_stack_missing(e):
                return None
            self._raise_api_error(f"describe_stacks {name}", e)

        stacks = response.get("Stacks", [])
        return StackInfo.from_aws_stack(stacks[0]) if stacks else None

    @with_retry()
    def list_stacks(self, status_filter: Optional[List[str]] = None) -> List[StackInfo]:
        """List stack summaries, excluding deleted stacks unless asked for."""
        stacks = []
        try:
            paginator = self.client.get_paginator("list_stacks")
            for page in paginator.paginate(StackStatusFilter=status_filter or ACTIVE_STACK_STATUSES):
                stacks.extend(StackInfo.from_aws_stack(s) for s in page.get("StackSummaries", []))
        except AWS_ERRORS as e:
            self._raise_api_error("list_stacks", e)
        return stacks

    def poll_stack(
        self,
        name: str,
        desired_status: str,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> StackInfo:
        """Poll a stack until it reaches ``desired_status``.

        The first poll happens after one second, then every ``interval``.
        A stack that lands in a failed status other than the desired one
        stops polling with a non-retryable error. When waiting for
        DELETE_COMPLETE, a stack that no longer exists counts as deleted.
        """
        self.logger.info(
            f"Polling stack {name} for status {desired_status} "
            f"(timeout {timeout}s, interval {interval}s)"
        )

        start = time.monotonic()
        count = 0
        while True:
            elapsed = time.monotonic() - start
            if elapsed > timeout:
                break

            time.sleep(FIRST_POLL_WAIT if count == 0 else interval)
            count += 1

            stack = self.describe_stack(name)
            if stack is None:
                if desired_status == "DELETE_COMPLETE":
                    self.logger.info(f"Stack {name} no longer exists")
                    return StackInfo(name=name, status="DELETE_COMPLETE")
                raise OperationError(f"stack {name} does not exist", retryable=False)

            self.logger.info(f"Poll (current stack status {stack.status}, elapsed {elapsed:.1f}s)")

            if stack.status == desired_status:
                return stack

            if stack.is_failed:
                raise OperationError(
                    f"stack {name} reached {stack.status}: {stack.status_reason}",
                    retryable=False,
                )

        raise OperationError(
            f"stack {name} did not reach {desired_status} within {timeout}s", retryable=True
        )


def create_cloudformation_manager(session: boto3.Session, region: Optional[str] = None) -> CloudFormationManager:
    """Create CloudFormationManager instance."""
    return CloudFormationManager(session, region)
