"""Image uploads: the storage provider interface and the upload use case."""

from __future__ import annotations

import io
import time
from typing import Protocol, runtime_checkable

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from eatery.image import Image

DEFAULT_FOLDER = "img"
_SUPPORTED_FORMATS = frozenset({"JPEG", "PNG"})


@runtime_checkable
class UploadProvider(Protocol):
    """Somewhere uploaded files are kept and served from."""

    domain: str

    def save_file_uploaded(self, data: bytes, dst: str) -> Image:
        """Store data under dst and describe the stored file."""
        ...


def get_image_dimension(data: bytes) -> tuple[int, int]:
    """Return the width and height of a PNG or JPEG image; raise ValueError otherwise."""
    try:
        with PILImage.open(io.BytesIO(data)) as picture:
            if picture.format not in _SUPPORTED_FORMATS:
                raise ValueError("image: unknown format")
            width, height = picture.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(str(exc) or "image: unknown format") from exc
    return width, height


def _extension(path: str) -> str:
    """The suffix of the last path element from its final dot, or an empty string."""
    name = path.rpartition("/")[2]
    _, dot, tail = name.rpartition(".")
    return dot + tail if dot else ""


class UploadBiz:
    """Checks that an upload is an image and hands it to the provider."""

    def __init__(self, provider: UploadProvider) -> None:
        self.provider = provider

    def upload(self, data: bytes, folder: str, file_name: str) -> Image:
        try:
            width, height = get_image_dimension(data)
        except ValueError as exc:
            raise ValueError("file is not image") from exc

        if not folder.strip():
            folder = DEFAULT_FOLDER

        extension = _extension(file_name)
        destination = f"{folder}/{time.time_ns()}{extension}"

        try:
            image = self.provider.save_file_uploaded(data, destination)
        except Exception as exc:
            raise RuntimeError("cannot save file") from exc

        image.width = width
        image.height = height
        image.extension = extension
        return image