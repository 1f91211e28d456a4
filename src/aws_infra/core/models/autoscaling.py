"""Data models for EC2 Auto Scaling groups."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from aws_infra.core.models.tags import tags_to_dict


@dataclass
class AutoScalingGroupInfo:
    name: str
    min_size: int
    max_size: int
    desired_capacity: int
    instances: Dict[str, str] = field(default_factory=dict)  # instance id -> health status
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def unhealthy_instances(self) -> List[str]:
        return [iid for iid, health in self.instances.items() if health != "Healthy"]

    def to_row(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "min": self.min_size,
            "max": self.max_size,
            "desired": self.desired_capacity,
            "instances": len(self.instances),
            "unhealthy": len(self.unhealthy_instances),
        }

    @classmethod
    def from_aws_group(cls, group: Dict[str, Any]) -> "AutoScalingGroupInfo":
        return cls(
            name=group["AutoScalingGroupName"],
            min_size=group.get("MinSize", 0),
            max_size=group.get("MaxSize", 0),
            desired_capacity=group.get("DesiredCapacity", 0),
            instances={
                inst["InstanceId"]: inst.get("HealthStatus", "")
                for inst in group.get("Instances", [])
            },
            tags=tags_to_dict(group.get("Tags")),
        )
