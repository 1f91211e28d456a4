"""SSM Manager for parameters and remote commands."""

import time
from datetime import datetime
from typing import Dict, List, Optional

import boto3

from aws_infra.core.aws.base import AWS_ERRORS, BaseManager
from aws_infra.core.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, FIRST_POLL_WAIT
from aws_infra.core.models import CommandInvocation, CommandStatus, ParameterInfo
from aws_infra.utils.exceptions import OperationError
from aws_infra.utils.retry import error_code, with_retry


class SSMManager(BaseManager):
    """AWS SSM resource manager."""

    service_name = "ssm"

    @with_retry()
    def get_parameter(self, name: str, with_decryption: bool = True) -> Optional[ParameterInfo]:
        """Get SSM parameter; None if it does not exist."""
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=with_decryption)
        except AWS_ERRORS as e:
            if error_code(e) == "ParameterNotFound":
                self.logger.warning(f"Parameter {name} not found")
                return None
            self._raise_api_error(f"get_parameter {name}", e)
        return ParameterInfo.from_aws_parameter(response["Parameter"])

    @with_retry()
    def get_parameters(self, names: List[str], with_decryption: bool = True) -> Dict[str, str]:
        """Get multiple SSM parameters; unknown names are logged and omitted."""
        values = {}
        # GetParameters accepts at most 10 names per call
        for start in range(0, len(names), 10):
            batch = names[start:start + 10]
            try:
                response = self.client.get_parameters(Names=batch, WithDecryption=with_decryption)
            except AWS_ERRORS as e:
                self._raise_api_error("get_parameters", e)
            values.update({p["Name"]: p["Value"] for p in response["Parameters"]})
            if response.get("InvalidParameters"):
                self.logger.warning(f"Parameters not found: {response['InvalidParameters']}")
        return values

    def put_parameter(
        self,
        name: str,
        value: str,
        parameter_type: str = "String",
        overwrite: bool = True,
        description: Optional[str] = None,
    ) -> int:
        """Put SSM parameter; returns the new version."""
        params = {"Name": name, "Value": value, "Type": parameter_type, "Overwrite": overwrite}
        if description:
            params["Description"] = description
        try:
            response = self.client.put_parameter(**params)
        except AWS_ERRORS as e:
            self._raise_api_error(f"put_parameter {name}", e)

        version = response.get("Version", 0)
        self.logger.info(f"Parameter {name} updated successfully (version {version})")
        return version

    def delete_parameter(self, name: str) -> bool:
        """Delete SSM parameter; False if it did not exist."""
        try:
            self.client.delete_parameter(Name=name)
        except AWS_ERRORS as e:
            if error_code(e) == "ParameterNotFound":
                self.logger.warning(f"Parameter {name} not found")
                return False
            self._raise_api_error(f"delete_parameter {name}", e)
        self.logger.info(f"Deleted parameter {name}")
        return True

    @with_retry()
    def list_parameters(self, path: str = "/") -> List[ParameterInfo]:
        """List parameters under a path, recursively, without decrypting values."""
        parameters = []
        try:
            paginator = self.client.get_paginator("get_parameters_by_path")
            for page in paginator.paginate(Path=path, Recursive=True, WithDecryption=False):
                parameters.extend(ParameterInfo.from_aws_parameter(p) for p in page.get("Parameters", []))
        except AWS_ERRORS as e:
            self._raise_api_error(f"get_parameters_by_path {path}", e)
        return parameters

    def send_command(
        self,
        instance_ids: List[str],
        commands: List[str],
        document_name: str = "AWS-RunShellScript",
        comment: Optional[str] = None,
    ) -> str:
        """Send a shell command document to instances; returns the command id."""
        if not instance_ids or not commands:
            raise ValueError("send_command requires instance ids and commands")

        if comment is None:
            comment = f"aws-infra command at {datetime.now().isoformat(timespec='seconds')}"

        try:
            response = self.client.send_command(
                InstanceIds=list(instance_ids),
                DocumentName=document_name,
                Parameters={"commands": list(commands)},
                Comment=comment[:100],
            )
        except AWS_ERRORS as e:
            self._raise_api_error(f"send_command {document_name}", e)

        command_id = response["Command"]["CommandId"]
        self.logger.info(f"SSM command sent to {instance_ids}. Command ID: {command_id}")
        return command_id

    def poll_command(
        self,
        command_id: str,
        instance_id: str,
        desired_status: CommandStatus = CommandStatus.SUCCESS,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> CommandInvocation:
        """Poll a command invocation until it reaches ``desired_status``.

        The first poll happens after one second, then every ``interval``,
        until more than ``timeout`` seconds have elapsed. A Failed
        invocation ends polling early unless Failed is what we wait for.
        """
        self.logger.info(
            f"Polling invocation status for command '{command_id}' and instance '{instance_id}' "
            f"with desired status {desired_status.value} (timeout {timeout}s, interval {interval}s)"
        )

        start = time.monotonic()
        count = 0
        while True:
            elapsed = time.monotonic() - start
            if elapsed > timeout:
                break

            time.sleep(FIRST_POLL_WAIT if count == 0 else interval)
            count += 1

            try:
                response = self.client.get_command_invocation(
                    CommandId=command_id, InstanceId=instance_id
                )
            except AWS_ERRORS as e:
                # Invocations show up shortly after send_command returns
                if error_code(e) == "InvocationDoesNotExist":
                    self.logger.debug(f"Invocation for {command_id} not registered yet")
                    continue
                self._raise_api_error("get_command_invocation", e)

            invocation = CommandInvocation.from_aws_invocation(response)
            self.logger.info(
                f"Poll (current command status {invocation.status.value}, elapsed {elapsed:.1f}s)"
            )

            if desired_status != CommandStatus.FAILED and invocation.status == CommandStatus.FAILED:
                raise OperationError("command invocation failed", retryable=False)

            if invocation.status == desired_status:
                return invocation

        raise OperationError(
            f"failed to get command invocation {command_id} in time", retryable=True
        )

    def run_command(
        self,
        instance_id: str,
        commands: List[str],
        document_name: str = "AWS-RunShellScript",
        timeout: float = DEFAULT_POLL_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> CommandInvocation:
        """Send commands to one instance and wait for them to succeed."""
        command_id = self.send_command([instance_id], commands, document_name)
        return self.poll_command(
            command_id, instance_id, CommandStatus.SUCCESS, timeout=timeout, interval=interval
        )


def create_ssm_manager(session: boto3.Session, region: Optional[str] = None) -> SSMManager:
    """Create SSMManager instance."""
    return SSMManager(session, region)
