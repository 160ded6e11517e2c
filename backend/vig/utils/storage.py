"""Transient file storage utilities."""
import os
import secrets
import shutil
import tempfile
import time
from pathlib import Path

import aiofiles

from vig.config import get_settings

settings = get_settings()


class StorageService:
    """Local storage for generated artifacts and per-request scratch space."""

    def __init__(self, base_dir: str | None = None):
        self.base_dir = Path(base_dir or settings.artifact_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def generate_name(self, prefix: str, user_id: int, ext: str) -> str:
        """Generate an unguessable name from user id, a nanosecond timestamp and random bytes."""
        return f"{prefix}_{user_id}_{time.time_ns()}_{secrets.token_hex(8)}{ext}"

    async def save_file(self, content: bytes, name: str, subfolder: str) -> str:
        """
        Save file to storage.

        Returns:
            str: path relative to the storage root
        """
        dir_path = self.base_dir / subfolder
        dir_path.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(dir_path / name, "wb") as f:
            await f.write(content)

        return f"{subfolder}/{name}"

    async def delete_file(self, relative_path: str) -> bool:
        """Delete file from storage."""
        file_path = self.base_dir / relative_path
        try:
            if file_path.exists():
                os.remove(file_path)
                return True
            return False
        except OSError:
            return False

    def get_absolute_path(self, relative_path: str) -> Path:
        """Get absolute filesystem path for file, refusing paths outside the root."""
        full_path = (self.base_dir / relative_path).resolve()
        full_path.relative_to(self.base_dir.resolve())  # raises ValueError on traversal
        return full_path

    def create_workdir(self) -> Path:
        """Create a private scratch directory for one request."""
        work_root = self.base_dir / "work"
        work_root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix="job_", dir=work_root))

    def remove_workdir(self, path: Path) -> None:
        shutil.rmtree(path, ignore_errors=True)


# Global storage instance
storage = StorageService()
