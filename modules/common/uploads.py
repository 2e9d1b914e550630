# modules/common/uploads.py
import logging
import os
from typing import Iterable, Optional

from fastapi import HTTPException, UploadFile, status

from database.connection import CsvDatabase

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".gif", ".webp")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")


def extension_of(file: UploadFile, default: str = "") -> str:
    return os.path.splitext(file.filename or "")[1].lower() or default


def check_extension(file: UploadFile, allowed: Iterable[str], message: str) -> str:
    ext = extension_of(file)
    if ext not in allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return ext


def read_limited(db: CsvDatabase, file: UploadFile) -> bytes:
    """Read the upload, 413 when it exceeds ``max_file_upload_mb``."""
    max_mb = int(db.load_config()["max_file_upload_mb"])
    limit = max_mb * 1024 * 1024
    content = file.file.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Файл перевищує максимальний розмір {max_mb} МБ",
        )
    return content


def write_file(path: str, content: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as buffer:
        buffer.write(content)


def is_inside(path: str, directory: str) -> bool:
    path = os.path.abspath(path)
    directory = os.path.abspath(directory)
    return path.startswith(directory + os.sep)


def remove_stored_file(db: CsvDatabase, stored_path: Optional[str], keep: Optional[str] = None) -> None:
    """Delete a file referenced from a CSV cell; paths outside files/ are never touched."""
    if not stored_path:
        return
    full_path = db.absolute(stored_path)
    if keep and os.path.abspath(full_path) == os.path.abspath(keep):
        return
    if not is_inside(full_path, db.files_dir):
        logger.warning("Refusing to delete %s outside of %s", full_path, db.files_dir)
        return
    try:
        os.remove(full_path)
    except FileNotFoundError:
        pass
