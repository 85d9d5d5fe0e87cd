"""
Storage Service - user avatars on the local filesystem

Files live under AVATAR_STORAGE_DIR/avatars/{user_id}/ and are served by
the API under MEDIA_URL_PREFIX. One avatar per user: saving a new one
removes the previous file.
"""

from datetime import datetime, UTC
from pathlib import Path
from typing import Optional, Tuple

from loguru import logger

from config.config import AVATAR_STORAGE_DIR, AVATAR_MAX_BYTES, MEDIA_URL_PREFIX


ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class StorageService:
    """Avatar upload / removal"""

    def __init__(self, root: Optional[str] = None, max_bytes: int = AVATAR_MAX_BYTES):
        self.root = Path(root or AVATAR_STORAGE_DIR)
        self.max_bytes = max_bytes

    def _user_dir(self, user_id: int) -> Path:
        return self.root / "avatars" / str(user_id)

    def public_url(self, relative_path: str) -> str:
        return f"{MEDIA_URL_PREFIX}/{relative_path}"

    def path_from_url(self, url: Optional[str]) -> Optional[Path]:
        """Local file behind a public avatar URL (None for foreign URLs)"""
        prefix = f"{MEDIA_URL_PREFIX}/"
        if not url or not url.startswith(prefix):
            return None

        path = (self.root / url[len(prefix):]).resolve()
        if self.root.resolve() not in path.parents:
            return None
        return path

    def save_avatar(
        self,
        user_id: int,
        content: bytes,
        content_type: Optional[str],
        previous_url: Optional[str] = None,
    ) -> Tuple[Optional[str], str]:
        """
        Store avatar image

        Args:
            user_id: Owner
            content: Image bytes
            content_type: MIME type reported by the client
            previous_url: Current avatar URL (file is deleted)

        Returns:
            Tuple of (public URL or None, status code: ok, invalid_type,
            too_large, empty)
        """
        extension = ALLOWED_CONTENT_TYPES.get((content_type or "").lower())
        if not extension:
            return None, "invalid_type"
        if not content:
            return None, "empty"
        if len(content) > self.max_bytes:
            return None, "too_large"

        user_dir = self._user_dir(user_id)
        user_dir.mkdir(parents=True, exist_ok=True)

        timestamp = int(datetime.now(UTC).timestamp() * 1000)
        filename = f"avatar-{timestamp}.{extension}"
        (user_dir / filename).write_bytes(content)

        url = self.public_url(f"avatars/{user_id}/{filename}")
        if previous_url != url:
            self.delete_avatar(previous_url)

        logger.info(f"Avatar saved for user {user_id}: {url} ({len(content)} bytes)")
        return url, "ok"

    def delete_avatar(self, url: Optional[str]) -> bool:
        path = self.path_from_url(url)
        if not path or not path.exists():
            return False

        path.unlink()
        logger.info(f"Avatar removed: {path}")
        return True


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get singleton storage service instance"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
