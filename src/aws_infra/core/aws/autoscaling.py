"""EC2 Auto Scaling Manager."""

from typing import List, Optional

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.models import AutoScalingGroupInfo
from aws_infra.utils.retry import error_code, is_error_retryable, with_retry

HEALTH_STATUSES = ("Healthy", "Unhealthy")


def is_error_retryable_set_instance_health(error: Exception) -> bool:
    """SetInstanceHealth fails with ResourceContention while the group is busy."""
    return error_code(error) == "ResourceContention"


class AutoScalingManager(BaseManager):
    """AWS EC2 Auto Scaling manager."""

    service_name = "autoscaling"

    def set_instance_health(self, instance_id: str, status: str) -> None:
        """Sets the instance health: "Healthy" or "Unhealthy"."""
        if status not in HEALTH_STATUSES:
            raise ValueError(f"health status must be one of {HEALTH_STATUSES}, got '{status}'")

        self.logger.info(f"Setting instance health for '{instance_id}' with {status}")
        try:
            response = self.client.set_instance_health(
                InstanceId=instance_id, HealthStatus=status
            )
        except AWS_ERRORS as e:
            self._raise_api_error(
                "set_instance_health",
                e,
                retryable=is_error_retryable(e) or is_error_retryable_set_instance_health(e),
            )

        self.logger.info(
            f"Successfully set instance health for '{instance_id}' with {status} "
            f"(request id: {response.get('ResponseMetadata', {}).get('RequestId')})"
        )

    @with_retry()
    def describe_groups(self, names: Optional[List[str]] = None) -> List[AutoScalingGroupInfo]:
        groups = []
        params = {"AutoScalingGroupNames": list(names)} if names else {}
        try:
            paginator = self.client.get_paginator("describe_auto_scaling_groups")
            for page in paginator.paginate(**params):
                groups.extend(
                    AutoScalingGroupInfo.from_aws_group(g) for g in page.get("AutoScalingGroups", [])
                )
        except AWS_ERRORS as e:
            self._raise_api_error("describe_auto_scaling_groups", e)
        return groups


def create_autoscaling_manager(session: boto3.Session, region: Optional[str] = None) -> AutoScalingManager:
    """Create AutoScalingManager instance."""
    return AutoScalingManager(session, region)
