"""
NoteBoard Backend - Image Preview Service
=========================================

What:  Validates selected images and keeps a local preview copy of each one.
How:   Checks extension, declared content type and size, then writes the
       bytes under STORAGE_ROOT/previews/<uuid><ext> with aiofiles.
Who:   Called by NoteBoard.select_image() before the platform upload starts;
       previews are served by GET /api/board/preview/{name}.
When:  A preview lives from image selection until removal, a failed upload,
       note creation or sign-out.

Validation order (cheapest first):
    1. Extension check: no content needed
    2. Content-Type check: uses the multipart header only
    3. Size check: rejects empty and oversized files
    4. MIME check: sniffs the leading bytes with python-magic

Security Model:
    - Preview names are generated UUIDs; no user input reaches the file system
    - resolve() refuses any name that escapes the preview directory
"""

import logging
import os
import uuid
from pathlib import Path
from typing import NamedTuple, Optional

import aiofiles
import magic

from noteboard.config import settings
from noteboard.exceptions import NotFoundError, PreviewStorageError, ValidationError

logger = logging.getLogger(__name__)

# What: Image formats the board accepts ("image/*" on the form)
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

# What: Content types accepted after sniffing the file header
ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}

# What: URL prefix under which previews are served (see routes/board.py)
PREVIEW_URL_PREFIX = "/api/board/preview"


class Preview(NamedTuple):
    """A stored preview: generated file name, absolute path, URL for the UI."""
    name: str
    path: Path
    url: str


class PreviewService:
    """
    Manages the lifecycle of local image previews.

    Directory Structure:
        storage/
        └── previews/
            ├── a1b2c3d4-5678-....png
            └── e5f6g7h8-9012-....jpg
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.preview_dir = (Path(storage_root or settings.storage_root) / "previews").resolve()
        self.preview_dir.mkdir(parents=True, exist_ok=True)
        logger.info("PreviewService initialized with preview_dir=%s", self.preview_dir)

    def validate_extension(self, filename: str) -> str:
        """
        Check that the file extension is an accepted image type.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        """Reject a declared content type that is not image/*. Missing is accepted."""
        if content_type and not content_type.lower().startswith("image/"):
            raise ValidationError(
                message=f"Content type '{content_type}' is not an image.",
                field="file",
                context={"content_type": content_type},
            )

    def validate_size(self, actual_size: int) -> None:
        """
        Validate file size against the configured maximum.

        Raises:
            ValidationError for empty files and files above settings.max_file_size
        """
        if actual_size <= 0:
            raise ValidationError(
                message="The selected file is empty.",
                field="file",
            )

        if actual_size > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) is too large. "
                    f"Maximum is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content: bytes, filename: str) -> str:
        """
        Check the actual file type from its leading bytes.

        A renamed file passes the extension and Content-Type checks; python-magic
        matches the header against known signatures (PNG starts with 89 50 4E 47).

        Returns: Detected MIME type (e.g. "image/png").
        Raises:
            ValidationError if the detected type is not an accepted image.
            PreviewStorageError if detection itself fails.
        """
        try:
            mime_type = magic.from_buffer(content[:2048], mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise PreviewStorageError(
                message="Could not verify the file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file does not look like an image."
                ),
                field="file",
                context={"detected_mime": mime_type, "filename": filename},
            )
        return mime_type

    def validate_image(self, filename: str, content_type: Optional[str], content: bytes) -> str:
        """Run every check in order; returns the detected MIME type."""
        self.validate_extension(filename)
        self.validate_content_type(content_type)
        self.validate_size(len(content))
        return self.validate_mime_type(content, filename)

    async def store(self, content: bytes, filename: str) -> Preview:
        """
        Write a preview copy of the selected image.

        Returns:
            Preview with the generated name and its URL.

        Raises:
            PreviewStorageError if the write fails.
        """
        name = f"{uuid.uuid4()}{Path(filename).suffix.lower()}"
        path = self.preview_dir / name

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store preview at %s: %s", path, str(e))
            raise PreviewStorageError(
                context={"path": str(path), "os_error": str(e)},
            )

        logger.debug("Preview stored: %s (%d bytes)", name, len(content))
        return Preview(name=name, path=path, url=f"{PREVIEW_URL_PREFIX}/{name}")

    def resolve(self, name: str) -> Path:
        """
        Map a preview name to its file.

        Raises:
            ValidationError: The name points outside the preview directory.
            NotFoundError: The preview does not exist (already discarded).
        """
        path = (self.preview_dir / name).resolve()
        if path.parent != self.preview_dir:
            raise ValidationError(message="Invalid preview path", field="name")
        if not path.is_file():
            raise NotFoundError(resource="preview", resource_id=name)
        return path

    async def discard(self, name: str) -> None:
        """
        Remove a preview file. Best-effort: missing files and OS errors are logged.
        """
        path = self.preview_dir / Path(name).name
        try:
            if path.exists():
                os.remove(path)
                logger.debug("Discarded preview: %s", name)
        except OSError as e:
            logger.warning("Failed to discard preview %s: %s", name, str(e))

    def is_writable(self) -> bool:
        """True when the preview directory exists and accepts new files."""
        return self.preview_dir.is_dir() and os.access(self.preview_dir, os.W_OK)


# ── Singleton Instance ────────────────────────────────────────────────────
preview_service = PreviewService()
