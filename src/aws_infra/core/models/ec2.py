"""Simple data models for AWS EC2 instances and volumes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Any

from aws_infra.core.models.tags import tags_to_dict
from aws_infra.core.processors.formatting import format_bytes, format_timestamp


class InstanceState(Enum):
    """EC2 Instance states."""
    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


@dataclass
class InstanceInfo:
    """Simple instance information model."""
    instance_id: str
    name: str
    instance_type: str
    state: str
    availability_zone: str = ""
    private_ip: Optional[str] = None
    public_ip: Optional[str] = None
    launch_time: Optional[datetime] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.state == InstanceState.RUNNING.value

    def to_row(self) -> Dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "name": self.name,
            "type": self.instance_type,
            "state": self.state,
            "az": self.availability_zone,
            "private_ip": self.private_ip or "",
            "public_ip": self.public_ip or "",
            "launched": format_timestamp(self.launch_time),
        }

    @classmethod
    def from_aws_instance(cls, instance: Dict[str, Any]) -> "InstanceInfo":
        """Create InstanceInfo from AWS instance data."""
        tags = tags_to_dict(instance.get("Tags"))

        return cls(
            instance_id=instance["InstanceId"],
            name=tags.get("Name", ""),
            instance_type=instance.get("InstanceType", ""),
            state=instance.get("State", {}).get("Name", ""),
            availability_zone=instance.get("Placement", {}).get("AvailabilityZone", ""),
            private_ip=instance.get("PrivateIpAddress"),
            public_ip=instance.get("PublicIpAddress"),
            launch_time=instance.get("LaunchTime"),
            tags=tags,
        )


@dataclass
class VolumeInfo:
    """EBS volume information model."""
    volume_id: str
    size_gib: int
    volume_type: str
    state: str
    availability_zone: str = ""
    encrypted: bool = False
    attached_to: str = ""
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def size_bytes(self) -> int:
        return self.size_gib * 1024 ** 3

    def to_row(self) -> Dict[str, Any]:
        return {
            "volume_id": self.volume_id,
            "name": self.tags.get("Name", ""),
            "size": format_bytes(self.size_bytes),
            "type": self.volume_type,
            "state": self.state,
            "az": self.availability_zone,
            "encrypted": self.encrypted,
            "attached_to": self.attached_to,
        }

    @classmethod
    def from_aws_volume(cls, volume: Dict[str, Any]) -> "VolumeInfo":
        attachments = volume.get("Attachments") or []
        return cls(
            volume_id=volume["VolumeId"],
            size_gib=volume.get("Size", 0),
            volume_type=volume.get("VolumeType", ""),
            state=volume.get("State", ""),
            availability_zone=volume.get("AvailabilityZone", ""),
            encrypted=volume.get("Encrypted", False),
            attached_to=",".join(a.get("InstanceId", "") for a in attachments),
            tags=tags_to_dict(volume.get("Tags")),
        )
