"""EC2 Manager for instance and volume operations."""

import time
from typing import Dict, List, Any, Optional, Tuple

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from aws_infra.core.models import InstanceInfo, VolumeInfo, dict_to_tags
from aws_infra.utils.exceptions import OperationError
from aws_infra.utils.retry import with_retry

# (instance id, previous state, current state)
StateTransition = Tuple[str, str, str]


class EC2Manager(BaseManager):
    """AWS EC2 resource manager."""

    service_name = "ec2"

    @with_retry()
    def describe_instances(
        self,
        filters: Optional[List[Dict[str, Any]]] = None,
        instance_ids: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Describe EC2 instances with optional filtering, following pagination."""
        params: Dict[str, Any] = {}
        if filters:
            params["Filters"] = filters
        if instance_ids:
            params["InstanceIds"] = instance_ids

        instances = []
        try:
            paginator = self.client.get_paginator("describe_instances")
            for page in paginator.paginate(**params):
                for reservation in page["Reservations"]:
                    instances.extend(reservation["Instances"])
        except AWS_ERRORS as e:
            self._raise_api_error("describe_instances", e)

        self.logger.debug(f"Described {len(instances)} instances")
        return instances

    def list_instances(
        self,
        name: Optional[str] = None,
        states: Optional[List[str]] = None,
        tags: Optional[Dict[str, str]] = None,
        instance_ids: Optional[List[str]] = None,
    ) -> List[InstanceInfo]:
        """List instances matching a Name pattern, states and exact tag values."""
        filters = []
        if name:
            pattern = name if "*" in name else f"*{name}*"
            filters.append({"Name": "tag:Name", "Values": [pattern]})
        if states:
            filters.append({"Name": "instance-state-name", "Values": list(states)})
        for key, value in (tags or {}).items():
            filters.append({"Name": f"tag:{key}", "Values": [value]})

        instances = self.describe_instances(filters=filters, instance_ids=instance_ids)
        return [InstanceInfo.from_aws_instance(instance) for instance in instances]

    def start_instances(self, instance_ids: List[str]) -> List[StateTransition]:
        """Start EC2 instances."""
        return self._change_state("start_instances", "StartingInstances", instance_ids)

    def stop_instances(self, instance_ids: List[str]) -> List[StateTransition]:
        """Stop EC2 instances."""
        return self._change_state("stop_instances", "StoppingInstances", instance_ids)

    def terminate_instances(self, instance_ids: List[str]) -> List[StateTransition]:
        """Terminate EC2 instances."""
        return self._change_state("terminate_instances", "TerminatingInstances", instance_ids)

    def _change_state(self, action: str, response_key: str, instance_ids: List[str]) -> List[StateTransition]:
        if not instance_ids:
            raise ValueError(f"{action} requires at least one instance id")

        self.logger.info(f"Calling {action} for {instance_ids}")
        try:
            response = getattr(self.client, action)(InstanceIds=list(instance_ids))
        except AWS_ERRORS as e:
            self._raise_api_error(action, e)

        transitions = []
        for change in response.get(response_key, []):
            transition = (
                change["InstanceId"],
                change["PreviousState"]["Name"],
                change["CurrentState"]["Name"],
            )
            self.logger.info(f"Instance {transition[0]}: {transition[1]} -> {transition[2]}")
            transitions.append(transition)
        return transitions

    def wait_instances(
        self,
        instance_ids: List[str],
        desired_state: str,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> List[InstanceInfo]:
        """Poll until every instance reaches ``desired_state``."""
        if not instance_ids:
            raise ValueError("wait_instances requires at least one instance id")

        self.logger.info(
            f"Waiting for {instance_ids} to reach '{desired_state}' "
            f"(timeout {timeout}s, interval {interval}s)"
        )
        start = time.monotonic()
        while True:
            instances = self.list_instances(instance_ids=instance_ids)
            pending = [i.instance_id for i in instances if i.state != desired_state]
            elapsed = time.monotonic() - start
            if not pending and len(instances) == len(set(instance_ids)):
                self.logger.info(f"All instances are '{desired_state}' after {elapsed:.1f}s")
                return instances

            self.logger.info(f"Still waiting on {pending} (elapsed {elapsed:.1f}s)")
            if elapsed + interval > timeout:
                break
            time.sleep(interval)

        raise OperationError(
            f"instances {pending} did not reach '{desired_state}' within {timeout}s",
            retryable=True,
        )

    @with_retry()
    def describe_volumes(self, filters: Optional[List[Dict[str, Any]]] = None) -> List[VolumeInfo]:
        """Describe EBS volumes."""
        volumes = []
        try:
            paginator = self.client.get_paginator("describe_volumes")
            for page in paginator.paginate(**({"Filters": filters} if filters else {})):
                volumes.extend(VolumeInfo.from_aws_volume(v) for v in page["Volumes"])
        except AWS_ERRORS as e:
            self._raise_api_error("describe_volumes", e)
        return volumes

    def create_tags(self, resource_ids: List[str], tags: Dict[str, str]) -> None:
        """Tag EC2 resources."""
        if not resource_ids or not tags:
            raise ValueError("create_tags requires resource ids and tags")
        try:
            self.client.create_tags(Resources=list(resource_ids), Tags=dict_to_tags(tags))
        except AWS_ERRORS as e:
            self._raise_api_error("create_tags", e)
        self.logger.info(f"Tagged {resource_ids} with {tags}")


def create_ec2_manager(session: boto3.Session, region: Optional[str] = None) -> EC2Manager:
    """Create EC2Manager instance."""
    return EC2Manager(session, region)
