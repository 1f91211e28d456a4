"""Caller identity model."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Identity:
    account_id: str
    user_id: str
    arn: str

    @property
    def role_name(self) -> str:
        """Role (or user) name from the ARN.

        ``arn:aws:sts::123:assumed-role/Admin/session`` yields ``Admin``;
        ``arn:aws:iam::123:user/ops/alice`` yields ``alice``.
        """
        resource = self.arn.split(":", 5)[-1]
        parts = resource.split("/")
        if parts[0] == "assumed-role" and len(parts) >= 2:
            return parts[1]
        return parts[-1]

    def to_row(self) -> Dict[str, Any]:
        return {
            "account": self.account_id,
            "user_id": self.user_id,
            "arn": self.arn,
            "role": self.role_name,
        }

    @classmethod
    def from_aws_identity(cls, response: Dict[str, Any]) -> "Identity":
        return cls(
            account_id=response["Account"],
            user_id=response["UserId"],
            arn=response["Arn"],
        )
