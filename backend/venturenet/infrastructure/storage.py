"""Attachment Storage - local file store for pitch decks, served under a public base URL.

Invariants:
    - Stored names are generated (uuid + whitelisted extension), never taken from the client
    - Files larger than max_bytes are rejected before anything is written
    - Blocking filesystem writes run in a worker thread
"""

import asyncio
import logging
import uuid
from pathlib import Path

from venturenet.core.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".ppt", ".pptx", ".key"}


class AttachmentStore:
    """Writes attachments under root_dir/<bucket>/ and returns their public URL."""

    def __init__(self, root_dir: str, public_base_url: str, max_bytes: int):
        self.root = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    async def save(self, bucket: str, owner_id: uuid.UUID, filename: str, content: bytes) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported file type '{ext or 'none'}'", field="file",
            )
        if not content:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(content) > self.max_bytes:
            raise ValidationError(
                f"File exceeds {self.max_bytes} bytes", field="file",
            )

        relative = Path(bucket) / str(owner_id) / f"{uuid.uuid4().hex}{ext}"
        target = self.root / relative
        try:
            await asyncio.to_thread(_write_file, target, content)
        except OSError as e:
            logger.error(f"Failed to store attachment {relative}: {e}", exc_info=True)
            raise StorageError("Failed to store attachment")
        logger.info(f"Stored attachment {relative}", extra={"user_id": owner_id})
        return f"{self.public_base_url}/uploads/{relative.as_posix()}"


def _write_file(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
