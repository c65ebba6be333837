"""
Asset Store - generated media on disk, addressed by URL-style references.

Every image, music track and voice clip is written under the output
directory and handed out as a reference like
"/assets/outputs/<kind>/<id>.<ext>", which the API server can serve as a
static file. The store is the only thing that turns a reference back into
bytes.
"""

import logging
import uuid
from pathlib import Path

from config import OUTPUT_DIR, ASSET_URL_PREFIX

logger = logging.getLogger(__name__)

MIME_SUFFIXES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "audio/wav": ".wav",
}


class AssetStore:
    """
    Write media bytes to disk and resolve references back to bytes.

    References minted by one store are only resolvable by a store with the
    same root and url_prefix.
    """

    def __init__(self, root: Path = OUTPUT_DIR, url_prefix: str = ASSET_URL_PREFIX):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, data: bytes, kind: str, suffix: str) -> str:
        """
        Store bytes and return a fresh reference.

        Args:
            data: Raw media bytes
            kind: Subdirectory ("images", "music", "voices")
            suffix: File extension including the dot

        Returns:
            Reference URL for the stored file
        """
        directory = self.root / kind
        directory.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4().hex[:12]}{suffix}"
        (directory / filename).write_bytes(data)
        logger.debug(f"[AssetStore] Saved {kind}/{filename} ({len(data)} bytes)")
        return f"{self.url_prefix}/{kind}/{filename}"

    def put_typed(self, data: bytes, kind: str, mime_type: str) -> str:
        """Store bytes, picking the file extension from a mime type."""
        return self.put(data, kind, MIME_SUFFIXES.get(mime_type, ".bin"))

    def path_for(self, url: str) -> Path:
        """
        Resolve a reference to its file path.

        Raises:
            FileNotFoundError: if the reference isn't one of ours or the file is gone
        """
        prefix = self.url_prefix + "/"
        if not url or not url.startswith(prefix):
            raise FileNotFoundError(f"Not a stored asset: {url}")
        path = (self.root / url[len(prefix):]).resolve()
        if self.root not in path.parents or not path.is_file():
            raise FileNotFoundError(f"Asset not found: {url}")
        return path

    def read(self, url: str) -> bytes:
        """Read the bytes behind a reference."""
        return self.path_for(url).read_bytes()

    def exists(self, url: str) -> bool:
        try:
            self.path_for(url)
        except FileNotFoundError:
            return False
        return True
