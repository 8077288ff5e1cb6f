"""
Local avatar storage served from the static directory.
"""
import logging
import os
import shutil
import uuid

from parley.core.config import settings
from parley.core.errors import BadRequestError

logger = logging.getLogger(__name__)


class AvatarStorage:
    """Stores one avatar directory per user under ``base_dir``."""

    def __init__(self, base_dir: str = None, url_prefix: str = "/static"):
        self.base_dir = base_dir or os.path.join(settings.UPLOAD_DIR, "img")
        self.url_prefix = url_prefix

    def _user_dir(self, user_id: str) -> str:
        return os.path.join(self.base_dir, user_id)

    def validate(self, content_type: str, size: int) -> None:
        if content_type not in settings.ALLOWED_IMAGE_TYPES:
            raise BadRequestError(f"Invalid file type: {content_type}")
        if size > settings.MAX_UPLOAD_SIZE:
            raise BadRequestError("File too large")

    def save(self, user_id: str, filename: str, content: bytes) -> str:
        """Write the file and return its public URL."""
        user_dir = self._user_dir(user_id)
        os.makedirs(user_dir, exist_ok=True)

        file_ext = os.path.splitext(filename or "")[1].lower()
        unique_filename = f"{uuid.uuid4().hex}{file_ext}"
        with open(os.path.join(user_dir, unique_filename), "wb") as buffer:
            buffer.write(content)

        return f"{self.url_prefix}/img/{user_id}/{unique_filename}"

    def remove_file(self, user_id: str, url: str) -> None:
        """Best-effort removal of a single stored avatar."""
        if not url:
            return
        path = os.path.join(self._user_dir(user_id), os.path.basename(url))
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to remove avatar {path}: {e}")

    def remove(self, user_id: str) -> None:
        """Best-effort removal of everything stored for a user."""
        try:
            shutil.rmtree(self._user_dir(user_id), ignore_errors=False)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove avatar directory for user {user_id}: {e}")


def get_storage() -> AvatarStorage:
    """Dependency for avatar storage."""
    return AvatarStorage()
