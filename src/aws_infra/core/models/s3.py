"""Data models for S3 buckets, objects and sync results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from aws_infra.core.processors.formatting import format_bytes, format_timestamp


@dataclass
class BucketInfo:
    name: str
    created: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        return {"name": self.name, "created": format_timestamp(self.created)}

    @classmethod
    def from_aws_bucket(cls, bucket: Dict[str, Any]) -> "BucketInfo":
        return cls(name=bucket["Name"], created=bucket.get("CreationDate"))


@dataclass
class ObjectInfo:
    key: str
    size: int
    last_modified: Optional[datetime] = None
    etag: str = ""
    storage_class: str = "STANDARD"

    def to_row(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "size": format_bytes(self.size),
            "last_modified": format_timestamp(self.last_modified),
            "storage_class": self.storage_class,
        }

    @classmethod
    def from_aws_object(cls, obj: Dict[str, Any]) -> "ObjectInfo":
        return cls(
            key=obj["Key"],
            size=obj.get("Size", 0),
            last_modified=obj.get("LastModified"),
            etag=obj.get("ETag", "").strip('"'),
            storage_class=obj.get("StorageClass", "STANDARD"),
        )


@dataclass
class SyncResult:
    """Outcome of syncing a local directory to an S3 prefix."""
    uploaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    bytes_uploaded: int = 0
    dry_run: bool = False

    def to_row(self) -> Dict[str, Any]:
        return {
            "uploaded": len(self.uploaded),
            "skipped": len(self.skipped),
            "deleted": len(self.deleted),
            "bytes_uploaded": format_bytes(self.bytes_uploaded),
            "dry_run": self.dry_run,
        }


def total_size(objects: List[ObjectInfo]) -> int:
    return sum(obj.size for obj in objects)
