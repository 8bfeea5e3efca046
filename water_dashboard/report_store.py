import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from .config import resolve_download_dir

LOGGER = logging.getLogger(__name__)


class FileSink(Protocol):
    def deliver(self, filename: str, data: bytes, mime_type: str) -> Path: ...


class DirectorySink:
    """
    Delivers exported files into a download directory with a small JSON
    metadata sidecar. The file appears under its final name only once fully
    written.
    """

    def __init__(self, download_dir: Optional[Path] = None):
        self.download_dir = Path(download_dir) if download_dir else resolve_download_dir()

    def deliver(self, filename: str, data: bytes, mime_type: str) -> Path:
        name = Path(filename).name
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid delivery filename: {filename!r}")
        self.download_dir.mkdir(parents=True, exist_ok=True)
        target = self.download_dir / name

        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".part", dir=self.download_dir)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        metadata = {
            "filename": name,
            "mime_type": mime_type,
            "size": len(data),
            "delivered_at": datetime.now(timezone.utc).isoformat(),
            "path": str(target),
        }
        try:
            target.with_name(f"{name}.json").write_text(json.dumps(metadata, indent=2))
        except OSError as exc:
            # Metadata failures should not block delivery.
            LOGGER.warning("Could not write metadata for %s: %s", target, exc)
        LOGGER.info("Delivered %s (%d bytes, %s)", target, len(data), mime_type)
        return target
