"""Success envelopes and paging parameters."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from eatery.uid import UID

MAX_LIMIT = 100
DEFAULT_LIMIT = 10


def _jsonable(value: Any) -> Any:
    if isinstance(value, UID):
        return str(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: _jsonable(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    return value


@dataclass
class Paging:
    """Page number, page size and the total row count."""

    page: int = 0
    limit: int = 0
    total: int = 0

    def process(self) -> None:
        """Replace out-of-range values with defaults."""
        if self.page <= 0:
            self.page = 1
        if self.limit <= 0 or self.limit > MAX_LIMIT:
            self.limit = DEFAULT_LIMIT

    def to_dict(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total}


@dataclass
class SuccessResponse:
    """A successful response body with optional paging and filter."""

    data: Any
    paging: Any = None
    filter: Any = None

    def to_dict(self) -> dict:
        body = {"data": _jsonable(self.data)}
        if self.paging is not None:
            body["paging"] = _jsonable(self.paging)
        if self.filter is not None:
            body["filter"] = _jsonable(self.filter)
        return body


def success_response(data, paging, filter) -> SuccessResponse:
    return SuccessResponse(data, paging, filter)


def simple_success_response(data) -> SuccessResponse:
    return SuccessResponse(data)