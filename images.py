"""
Project: Restaurant Back-Office (RBO)

Description:
Menu icon storage on local disk. Uploads are written under the upload
folder as ``<epoch-millis>-<name>`` and addressed by their public
``/public/menuIcons/<file>`` path.
"""

import os
import re
import time

from loguru import logger
from werkzeug.security import safe_join

from errors import NotFound, ValidationFailure

PUBLIC_PREFIX = "/public/menuIcons/"

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_WHITESPACE = re.compile(r"\s+")


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), DEFAULT_CONTENT_TYPE)


def _now_millis() -> int:
    return int(time.time() * 1000)


def stored_filename(original: str, millis: int = None) -> str:
    """``<epoch-millis>-<original name>`` with whitespace runs turned into dashes."""
    if millis is None:
        millis = _now_millis()
    base = os.path.basename((original or "").replace("\\", "/"))
    base = _WHITESPACE.sub("-", base.strip())
    if not base:
        raise ValidationFailure("Uploaded image has no filename")
    return f"{millis}-{base}"


class ImageStore:
    """Menu icons on local disk, addressed by their public ``/public/menuIcons`` path."""

    def __init__(self, root: str):
        self.root = root

    def save(self, upload) -> str:
        """Persist a werkzeug ``FileStorage`` and return the path to store on the menu item."""
        if upload is None or not upload.filename:
            raise ValidationFailure("No image file uploaded")
        os.makedirs(self.root, exist_ok=True)
        filename = stored_filename(upload.filename)
        target = os.path.join(self.root, filename)
        # Same millisecond and same original name: keep both files
        counter = 1
        while os.path.exists(target):
            stem, ext = os.path.splitext(filename)
            target = os.path.join(self.root, f"{stem}-{counter}{ext}")
            counter += 1
        upload.save(target)
        logger.info(f"Stored menu image {os.path.basename(target)}")
        return PUBLIC_PREFIX + os.path.basename(target)

    def resolve(self, image_path: str) -> str:
        """Absolute file path for a stored image path, or NotFound."""
        if not image_path or not image_path.startswith(PUBLIC_PREFIX):
            raise NotFound("Menu item image")
        path = safe_join(self.root, image_path[len(PUBLIC_PREFIX):])
        if path is None or not os.path.isfile(path):
            raise NotFound("Menu item image file")
        return path

    def discard(self, image_path: str) -> bool:
        """Remove a stored image; paths that are not ours or already gone are left alone."""
        try:
            path = self.resolve(image_path)
        except NotFound:
            return False
        os.remove(path)
        logger.info(f"Removed menu image {os.path.basename(path)}")
        return True

    def load(self, image_path: str):
        path = self.resolve(image_path)
        with open(path, "rb") as fh:
            return fh.read(), content_type_for(path)
