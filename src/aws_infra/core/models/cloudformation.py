"""Data models for CloudFormation stacks."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from aws_infra.core.models.tags import tags_to_dict
from aws_infra.core.processors.formatting import format_timestamp

# Terminal statuses that mean the requested change did not go through
FAILED_STACK_STATUSES = {
    "CREATE_FAILED",
    "DELETE_FAILED",
    "ROLLBACK_FAILED",
    "ROLLBACK_COMPLETE",
    "UPDATE_FAILED",
    "UPDATE_ROLLBACK_FAILED",
    "UPDATE_ROLLBACK_COMPLETE",
    "IMPORT_ROLLBACK_FAILED",
    "IMPORT_ROLLBACK_COMPLETE",
}


@dataclass
class StackInfo:
    name: str
    status: str
    stack_id: str = ""
    status_reason: str = ""
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    outputs: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def is_failed(self) -> bool:
        return self.status in FAILED_STACK_STATUSES

    def to_row(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "reason": self.status_reason,
            "created": format_timestamp(self.created),
            "updated": format_timestamp(self.updated),
        }

    @classmethod
    def from_aws_stack(cls, stack: Dict[str, Any]) -> "StackInfo":
        """Create StackInfo from DescribeStacks or ListStacks (summary) data."""
        outputs = {
            output["OutputKey"]: output.get("OutputValue", "")
            for output in stack.get("Outputs", [])
        }
        return cls(
            name=stack["StackName"],
            status=stack["StackStatus"],
            stack_id=stack.get("StackId", ""),
            status_reason=stack.get("StackStatusReason", ""),
            created=stack.get("CreationTime"),
            updated=stack.get("LastUpdatedTime"),
            outputs=outputs,
            tags=tags_to_dict(stack.get("Tags")),
        )
