"""Data models for KMS keys."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from aws_infra.core.processors.formatting import format_timestamp


@dataclass
class KeyInfo:
    key_id: str
    arn: str = ""
    description: str = ""
    state: str = ""
    key_spec: str = ""
    key_usage: str = ""
    created: Optional[datetime] = None
    deletion_date: Optional[datetime] = None
    aliases: List[str] = field(default_factory=list)

    @property
    def is_pending_deletion(self) -> bool:
        return self.state == "PendingDeletion"

    def to_row(self) -> Dict[str, Any]:
        return {
            "key_id": self.key_id,
            "aliases": ",".join(self.aliases),
            "state": self.state,
            "spec": self.key_spec,
            "usage": self.key_usage,
            "description": self.description,
            "created": format_timestamp(self.created),
        }

    @classmethod
    def from_aws_metadata(cls, metadata: Dict[str, Any], aliases: Optional[List[str]] = None) -> "KeyInfo":
        """Create KeyInfo from a ``KeyMetadata`` structure."""
        return cls(
            key_id=metadata["KeyId"],
            arn=metadata.get("Arn", ""),
            description=metadata.get("Description", ""),
            state=metadata.get("KeyState", ""),
            key_spec=metadata.get("KeySpec", metadata.get("CustomerMasterKeySpec", "")),
            key_usage=metadata.get("KeyUsage", ""),
            created=metadata.get("CreationDate"),
            deletion_date=metadata.get("DeletionDate"),
            aliases=list(aliases or []),
        )


@dataclass
class DataKey:
    """Envelope encryption data key: use ``plaintext`` locally, store ``ciphertext``."""
    key_id: str
    plaintext: bytes = field(repr=False)
    ciphertext: bytes = field(repr=False)
