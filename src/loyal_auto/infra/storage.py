"""File storage for vehicle photos, expense receipts and passport documents.

Files are written under ``settings.upload_dir`` and served by the static
``/uploads`` mount. Only the returned URL is persisted by the services.
"""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile

from loyal_auto.app.config import get_settings
from loyal_auto.domain.errors import ValidationError

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
DOCUMENT_CONTENT_TYPES = IMAGE_CONTENT_TYPES | {"application/pdf"}

_EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
}


def content_type_for(path: Path) -> str:
    return _EXTENSION_CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")


class LocalFileStorage:
    """Stores uploads on local disk, one sub-folder per kind of document."""

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None):
        settings = get_settings()
        self.root = Path(root or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
        self.max_bytes = settings.max_upload_bytes

    async def save(
        self,
        file: UploadFile,
        folder: str,
        allowed_types: set[str] = IMAGE_CONTENT_TYPES,
    ) -> str:
        """Write one upload and return its public URL."""
        content_type = file.content_type or content_type_for(Path(file.filename or ""))
        if content_type not in allowed_types:
            raise ValidationError(f"Unsupported file type: {content_type}")

        content = await file.read()
        if not content:
            raise ValidationError("Empty file")
        if len(content) > self.max_bytes:
            raise ValidationError("File too large")

        # Strip path separators from the client filename and make it unique
        original_name = file.filename or "upload"
        safe_name = original_name.replace("/", "_").replace("\\", "_")
        unique_name = f"{uuid.uuid4().hex[:8]}_{safe_name}"

        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / unique_name).write_bytes(content)

        url = f"{self.url_prefix}/{folder}/{unique_name}"
        logger.info("Stored upload %s (%d bytes)", url, len(content))
        return url

    async def save_many(
        self,
        files: list[UploadFile],
        folder: str,
        allowed_types: set[str] = IMAGE_CONTENT_TYPES,
    ) -> list[str]:
        if not files:
            raise ValidationError("No files uploaded")
        urls = []
        try:
            for f in files:
                urls.append(await self.save(f, folder, allowed_types))
        except ValidationError:
            for url in urls:
                self.delete(url)
            raise
        return urls

    def resolve(self, url: str) -> Path | None:
        """Map a stored URL back to its file, or None if it is not ours or is missing."""
        if not url.startswith(self.url_prefix + "/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        path = (self.root / relative).resolve()
        if self.root.resolve() not in path.parents or not path.is_file():
            return None
        return path

    def delete(self, url: str) -> bool:
        """Remove a stored file; False when the URL is not one of ours."""
        path = self.resolve(url)
        if path is None:
            return False
        path.unlink()
        logger.info("Removed upload %s", url)
        return True


def get_storage() -> LocalFileStorage:
    """FastAPI dependency: the configured file store."""
    return LocalFileStorage()
