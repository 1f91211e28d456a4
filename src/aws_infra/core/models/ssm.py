"""Data models for SSM parameters and command invocations."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from aws_infra.core.processors.formatting import format_timestamp


class CommandStatus(Enum):
    """SSM command invocation statuses."""
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    DELAYED = "Delayed"
    SUCCESS = "Success"
    CANCELLED = "Cancelled"
    CANCELLING = "Cancelling"
    TIMED_OUT = "TimedOut"
    FAILED = "Failed"


@dataclass
class ParameterInfo:
    name: str
    value: str = ""
    parameter_type: str = "String"
    version: int = 0
    last_modified: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        value = "********" if self.parameter_type == "SecureString" and self.value else self.value
        return {
            "name": self.name,
            "type": self.parameter_type,
            "value": value,
            "version": self.version,
            "last_modified": format_timestamp(self.last_modified),
        }

    @classmethod
    def from_aws_parameter(cls, parameter: Dict[str, Any]) -> "ParameterInfo":
        """Create from GetParameter or DescribeParameters data (the latter has no value)."""
        return cls(
            name=parameter["Name"],
            value=parameter.get("Value", ""),
            parameter_type=parameter.get("Type", "String"),
            version=parameter.get("Version", 0),
            last_modified=parameter.get("LastModifiedDate"),
        )


@dataclass
class CommandInvocation:
    command_id: str
    instance_id: str
    status: CommandStatus
    stdout: str = ""
    stderr: str = ""
    response_code: int = -1

    def to_row(self) -> Dict[str, Any]:
        return {
            "command_id": self.command_id,
            "instance_id": self.instance_id,
            "status": self.status.value,
            "response_code": self.response_code,
        }

    @classmethod
    def from_aws_invocation(cls, invocation: Dict[str, Any]) -> "CommandInvocation":
        return cls(
            command_id=invocation["CommandId"],
            instance_id=invocation["InstanceId"],
            status=CommandStatus(invocation["Status"]),
            stdout=invocation.get("StandardOutputContent", ""),
            stderr=invocation.get("StandardErrorContent", ""),
            response_code=invocation.get("ResponseCode", -1),
        )
