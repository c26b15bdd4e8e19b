import re
import time
from pathlib import Path

from mywork.core.config import settings

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    # Drop any client-supplied directory parts before cleaning the name.
    name = Path(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "upload"


class LocalStorageProvider:
    """Writes uploads under the public uploads directory served at the uploads URL prefix."""

    def __init__(self, base_dir: str | None = None, url_prefix: str | None = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.uploads_url_prefix).rstrip("/")

    def build_filename(self, original_name: str) -> str:
        return f"{int(time.time() * 1000)}_{sanitize_filename(original_name)}"

    def save(self, original_name: str, content: bytes) -> str:
        """Stores the bytes and returns the public URL of the stored file."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        filename = self.build_filename(original_name)
        (self.base_dir / filename).write_bytes(content)
        return f"{self.url_prefix}/{filename}"

    def delete(self, url: str) -> None:
        filename = url.rsplit("/", 1)[-1]
        (self.base_dir / filename).unlink(missing_ok=True)


def get_storage_provider() -> LocalStorageProvider:
    return LocalStorageProvider()
