"""Restaurant records, their create and update forms, and list filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from eatery.errors import (
    DB_TYPE_USER,
    AddressCannotBeBlankError,
    NameCannotBeBlankError,
)
from eatery.image import Image, images_to_json
from eatery.sqlmodel import SimpleUser, SQLModel

ENTITY_NAME = "Restaurant"
TABLE_NAME = "restaurants"


@dataclass
class Restaurant(SQLModel):
    """A stored restaurant with its optional owner."""

    table_name: ClassVar[str] = TABLE_NAME

    name: str = ""
    address: str = ""
    owner_id: int = 0
    logo: Image | None = None
    cover: list[Image] | None = None
    liked_count: int = 0
    has_liked: bool = False
    user: SimpleUser | None = None

    def mask(self, db_type: int) -> None:
        """Set public identifiers on the restaurant and on its owner."""
        super().mask(db_type)
        if self.user is not None:
            self.user.mask(DB_TYPE_USER)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body.update(
            name=self.name,
            address=self.address,
            logo=self.logo.to_dict() if self.logo is not None else None,
            cover=[image.to_dict() for image in self.cover] if self.cover is not None else None,
            liked_count=self.liked_count,
            has_liked=self.has_liked,
            user=self.user.to_dict() if self.user is not None else None,
        )
        return body


@dataclass
class RestaurantCreate(SQLModel):
    """The data needed to add a restaurant."""

    table_name: ClassVar[str] = TABLE_NAME

    name: str = ""
    address: str = ""
    owner_id: int = 0
    logo: Image | None = None
    cover: list[Image] | None = None

    def validate(self) -> None:
        """Trim name and address; raise if either is blank."""
        self.name = self.name.strip()
        if not self.name:
            raise NameCannotBeBlankError()
        self.address = self.address.strip()
        if not self.address:
            raise AddressCannotBeBlankError()


@dataclass
class RestaurantUpdate:
    """A partial change to a restaurant; unset fields are left alone."""

    table_name: ClassVar[str] = TABLE_NAME

    name: str | None = None
    address: str | None = None
    owner_id: int = 0
    status: int | None = None
    cover: list[Image] | None = None

    def validate(self) -> None:
        """Trim the given name and address; raise if either is blank."""
        if self.name is not None:
            self.name = self.name.strip()
            if not self.name:
                raise NameCannotBeBlankError()
        if self.address is not None:
            self.address = self.address.strip()
            if not self.address:
                raise AddressCannotBeBlankError()

    def changes(self) -> dict:
        """Column names mapped to the stored values of the fields that are set."""
        values: dict = {}
        if self.name is not None:
            values["name"] = self.name
        if self.address is not None:
            values["addr"] = self.address
        if self.owner_id:
            values["owner_id"] = self.owner_id
        if self.status is not None:
            values["status"] = self.status
        if self.cover is not None:
            values["cover"] = images_to_json(self.cover)
        return values


@dataclass
class Filter:
    """Restrictions on a restaurant listing."""

    user_id: int = 0