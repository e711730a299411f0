"""
Media storage helpers: uploads are written under MEDIA_DIR and served from MEDIA_BASE_URL
"""
import uuid
import logging
from pathlib import Path
from typing import List, Optional, Sequence
from fastapi import UploadFile
import aiofiles
from newsfeed.config import settings

logger = logging.getLogger(__name__)


def is_allowed_file(filename: Optional[str]) -> bool:
    """Check if file extension is allowed"""
    if not filename:
        return False
    return Path(filename).suffix.lower() in settings.ALLOWED_EXTENSIONS


async def save_upload_file(upload_file: UploadFile, folder: str = "") -> str:
    """
    Save an uploaded file to the media directory

    Returns:
        Public URL of the saved file
    """
    if not is_allowed_file(upload_file.filename):
        raise ValueError(f"File type not allowed: {upload_file.filename}")

    content = await upload_file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValueError(f"File too large: {upload_file.filename}")

    unique_filename = f"{uuid.uuid4()}{Path(upload_file.filename).suffix.lower()}"
    upload_dir = Path(settings.MEDIA_DIR) / folder
    upload_dir.mkdir(parents=True, exist_ok=True)

    async with aiofiles.open(upload_dir / unique_filename, 'wb') as out_file:
        await out_file.write(content)

    relative = f"{folder}/{unique_filename}" if folder else unique_filename
    return f"{settings.MEDIA_BASE_URL.rstrip('/')}/{relative}"


async def save_upload_files(upload_files: Sequence[UploadFile], folder: str = "") -> List[str]:
    """Save several uploads, skipping the ones that fail"""
    urls = []
    for upload_file in upload_files:
        if not upload_file or not upload_file.filename:
            continue
        try:
            urls.append(await save_upload_file(upload_file, folder))
        except (ValueError, OSError) as e:
            logger.warning(f"Skipping upload {upload_file.filename}: {e}")
    return urls
