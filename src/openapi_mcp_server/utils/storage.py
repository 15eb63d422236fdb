"""Stable storage for OpenAPI documents submitted as raw content."""

import time
import uuid
from pathlib import Path
from typing import Optional, Union

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_FILENAME = "uploaded-spec.json"


class FileStorage:
    """Writes uploaded documents under a directory with unique names."""

    def __init__(self, upload_dir: Union[str, Path] = "uploads"):
        self.upload_dir = Path(upload_dir)

    def save(self, content: str, filename: Optional[str] = None) -> str:
        """Persist *content* and return the stored file's resolved path.

        Names are ``<epoch millis>_<filename>``; only the base name of
        *filename* is kept.
        """
        if content is None or not content.strip():
            raise ValueError("File content is empty")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        base = (Path(filename).name if filename else "") or DEFAULT_FILENAME
        stamp = int(time.time() * 1000)
        path = self.upload_dir / f"{stamp}_{base}"
        if path.exists():
            path = self.upload_dir / f"{stamp}_{uuid.uuid4().hex[:8]}_{base}"
        path.write_text(content, encoding="utf-8")

        logger.info("Stored uploaded document", path=str(path))
        return str(path.resolve())
