"""Content store for feature request attachments.

The lifecycle manager only records the locator strings returned here; it never
looks inside the blobs.
"""

import logging
import re
import uuid
from pathlib import Path

from backend.app.config import settings
from backend.app.errors import ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(filename: str) -> str:
    # Drop any directory part a browser or client may have sent
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "attachment"


class LocalAttachmentStore:
    """Writes blobs under ``<root>/<uuid>/<name>``.

    Locators are relative (``attachments/<uuid>/<name>``) so the data directory
    can move without rewriting rows.
    """

    prefix = "attachments"

    def __init__(self, root: Path, max_bytes: int | None = None) -> None:
        self.root = root
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_attachment_bytes

    def check(self, filename: str, size: int) -> None:
        if size > self.max_bytes:
            raise ValidationError(f"Attachment {filename!r} exceeds {self.max_bytes} bytes")

    def save(self, filename: str, data: bytes) -> str:
        self.check(filename, len(data))

        name = _safe_name(filename)
        key = uuid.uuid4().hex
        target_dir = self.root / key
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(data)

        locator = f"{self.prefix}/{key}/{name}"
        logger.debug("Stored attachment %s (%d bytes)", locator, len(data))
        return locator

    def path_for(self, locator: str) -> Path:
        prefix, _, rest = locator.partition("/")
        if prefix != self.prefix or not rest:
            raise ValidationError(f"Unknown attachment locator: {locator}")
        path = (self.root / rest).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValidationError(f"Unknown attachment locator: {locator}")
        return path

    def delete(self, locator: str) -> None:
        """Remove a stored blob. Missing blobs are ignored."""
        path = self.path_for(locator)
        path.unlink(missing_ok=True)
        # Each blob lives alone in its own key directory
        if path.parent != self.root.resolve() and path.parent.is_dir():
            try:
                path.parent.rmdir()
            except OSError:
                logger.warning("Could not remove attachment directory %s", path.parent)
        logger.debug("Removed attachment %s", locator)

    def delete_many(self, locators: list[str]) -> None:
        for locator in locators:
            self.delete(locator)


def get_attachment_store() -> LocalAttachmentStore:
    """FastAPI dependency for the configured attachment store."""
    return LocalAttachmentStore(settings.attachments_dir)
