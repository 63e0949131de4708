"""Common row fields and the compact user record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from eatery.image import Image
from eatery.uid import UID


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class SQLModel:
    """Id, status and timestamps shared by stored rows."""

    id: int = 0
    fake_id: UID | None = None
    status: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def mask(self, db_type: int) -> None:
        """Set the public identifier from the row id and object type."""
        self.fake_id = UID(self.id, db_type, 1)

    def to_dict(self) -> dict:
        return {
            "id": str(self.fake_id) if self.fake_id is not None else None,
            "status": self.status,
            "created_at": _timestamp(self.created_at),
            "updated_at": _timestamp(self.updated_at),
        }


@dataclass
class SimpleUser(SQLModel):
    """The public part of a user."""

    table_name: ClassVar[str] = "users"

    last_name: str = ""
    first_name: str = ""
    role: str = ""
    avatar: Image | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        body.update(last_name=self.last_name, first_name=self.first_name, role=self.role)
        if self.avatar is not None:
            body["avatar"] = self.avatar.to_dict()
        return body