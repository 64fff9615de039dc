import os
import re
import shutil
from pathlib import Path
from uuid import uuid4

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    """Strip directories and replace characters that do not belong in a path."""
    name = Path(file_name.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("-", name).strip("-.")
    return cleaned or "file"


class FileSystemStore:
    """Media store for files attached to upload properties."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path).resolve()
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, path: str) -> Path:
        # Prevent traversal
        target = (self.base_path / path).resolve()
        if not target.is_relative_to(self.base_path):
            raise ValueError(f"Path traversal attempt detected: {path}")
        return target

    def save_file(self, property_id: int, file_name: str, source_path: str) -> str:
        """
        Copy a staged file into the store.

        Each call gets its own folder, so a new upload never overwrites the
        file it replaces. Returns the media path relative to the store root.
        """
        relative = f"{property_id}/{uuid4().hex[:12]}/{safe_file_name(file_name)}"
        target = self._safe_path(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source_path, target)
        return str(target.relative_to(self.base_path).as_posix())

    def get(self, path: str) -> bytes:
        """Retrieve bytes by path. Raises FileNotFoundError."""
        target = self._safe_path(path)
        if not target.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return target.read_bytes()

    def delete(self, path: str) -> None:
        target = self._safe_path(path)
        if target.exists():
            os.remove(target)
            # Remove the now empty per-upload folder
            try:
                target.parent.rmdir()
            except OSError:
                pass
