# employee_api/core/uploads.py
import os
import time
import uuid
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from employee_api.core.config import Settings
from employee_api.core.exceptions import BadRequest, FileTooLarge

logger = logging.getLogger(__name__)

PROFILE_PICTURE_FIELD = "profile_picture"
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
CHUNK_SIZE = 64 * 1024


class UploadManager:
    """Disk-backed storage for profile pictures."""

    def __init__(self, upload_dir: str, max_size: int = 5 * 1024 * 1024):
        self.upload_dir = os.path.abspath(upload_dir)
        self.max_size = max_size
        os.makedirs(self.upload_dir, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadManager":
        return cls(settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)

    def path_for(self, filename: str) -> str:
        # stored names never carry directories
        return os.path.join(self.upload_dir, os.path.basename(filename))

    def exists(self, filename: str) -> bool:
        return os.path.isfile(self.path_for(filename))

    def _generate_name(self, extension: str) -> str:
        return f"{PROFILE_PICTURE_FIELD}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{extension}"

    def _check_type(self, upload: UploadFile) -> str:
        extension = os.path.splitext(upload.filename or "")[1].lower()
        content_type = (upload.content_type or "").lower()
        if extension not in ALLOWED_EXTENSIONS or (content_type and not content_type.startswith("image/")):
            raise BadRequest("Only image files are allowed (jpeg, jpg, png, gif)")
        return extension

    async def save(self, upload: UploadFile) -> str:
        """Store ``upload`` under a generated name and return that name."""
        extension = self._check_type(upload)
        filename = self._generate_name(extension)
        path = self.path_for(filename)

        written = 0
        out = await run_in_threadpool(open, path, "wb")
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_size:
                    break
                await run_in_threadpool(out.write, chunk)
        except Exception as e:
            await run_in_threadpool(out.close)
            self.delete(filename)
            logger.error(f"Failed to store upload '{upload.filename}': {str(e)}")
            raise
        await run_in_threadpool(out.close)

        if written > self.max_size:
            self.delete(filename)
            logger.warning(f"Rejected upload '{upload.filename}': larger than {self.max_size} bytes")
            raise FileTooLarge(f"File size too large. Maximum size is {self.max_size // (1024 * 1024)}MB")

        logger.info(f"Stored upload '{upload.filename}' as {filename} ({written} bytes)")
        return filename

    def delete(self, filename: Optional[str]) -> bool:
        """Best-effort removal; failures are logged and reported as False."""
        if not filename:
            return False
        path = self.path_for(filename)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug(f"Upload {filename} already gone")
            return False
        except OSError as e:
            logger.error(f"Error deleting file {filename}: {str(e)}")
            return False

        logger.info(f"Deleted upload {filename}")
        return True
