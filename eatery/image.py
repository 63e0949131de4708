"""Image records stored as JSON columns."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import ClassVar

_INT_FIELDS = ("id", "width", "height")
_STR_FIELDS = ("url", "cloud_name", "extension")


@dataclass
class Image:
    """An uploaded image and where it is stored."""

    table_name: ClassVar[str] = "image"

    id: int = 0
    url: str = ""
    width: int = 0
    height: int = 0
    cloud_name: str = ""
    extension: str = ""

    def fulfill(self, domain: str) -> None:
        """Prefix the stored path with the serving domain."""
        self.url = f"{domain}/{self.url}"

    def to_dict(self) -> dict:
        body = {"id": self.id, "url": self.url, "width": self.width, "height": self.height}
        if self.cloud_name:
            body["cloud_name"] = self.cloud_name
        if self.extension:
            body["extension"] = self.extension
        return body

    def to_json(self) -> bytes:
        """The column value: compact JSON bytes."""
        return _dump(self.to_dict())


def _dump(value) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _load(value):
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"failed to Marshal JSON value:{value}")
    return json.loads(bytes(value))


def _image_from_obj(obj) -> Image:
    if obj is None:
        return Image()
    if not isinstance(obj, dict):
        raise ValueError("cannot decode image from non-object JSON")
    fields = {}
    for name in _INT_FIELDS:
        item = obj.get(name)
        if item is None:
            continue
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValueError(f"image field {name!r} must be an integer")
        fields[name] = item
    for name in _STR_FIELDS:
        item = obj.get(name)
        if item is None:
            continue
        if not isinstance(item, str):
            raise ValueError(f"image field {name!r} must be a string")
        fields[name] = item
    return Image(**fields)


def image_from_json(value) -> Image:
    """Read an image from a JSON column value."""
    return _image_from_obj(_load(value))


def images_to_json(images) -> bytes | None:
    if images is None:
        return None
    return _dump([image.to_dict() for image in images])


def images_from_json(value) -> list[Image]:
    """Read a list of images from a JSON column value."""
    data = _load(value)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("cannot decode images from non-array JSON")
    return [_image_from_obj(item) for item in data]