"""
File handling for uploaded content:
- Filename sanitization and unique name generation.
- Extension and size validation against the configured limits.
- Saving framework upload objects under the upload directory.
- Path resolution and safe deletion of stored files.
"""

from __future__ import annotations

import hashlib
import logging
import os
import secrets
from pathlib import Path
from typing import Any, Dict

from starlette.datastructures import UploadFile

from backoffice.config.settings import settings

logger = logging.getLogger(__name__)

CONTENT_SUBDIR = "content"

DIR_PERMISSIONS = 0o755
FILE_PERMISSIONS = 0o644

_SAFE_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._- ")


class FileHandlerError(Exception):
    """Raised when an upload is rejected or cannot be stored."""
    pass


def safe_filename(filename: str) -> str:
    """Strip directory components and unsafe characters from a filename."""
    if not filename or not isinstance(filename, str):
        raise FileHandlerError("Filename must be a non-empty string")

    name = os.path.basename(filename.replace("\\", "/"))
    name = "".join(ch for ch in name if ch in _SAFE_CHARS).replace(" ", "_")
    name = name.lstrip(".-")

    if not name:
        raise FileHandlerError("Filename contains no valid characters")

    if len(name) > 255:
        stem, ext = os.path.splitext(name)
        name = stem[: 255 - len(ext)] + ext

    return name


def generate_unique_filename(original_name: str, *, prefix: str | None = None) -> str:
    """Unique filename keeping the original extension."""
    stem, ext = os.path.splitext(safe_filename(original_name))
    token = secrets.token_hex(8)
    if prefix:
        return f"{prefix}_{stem}_{token}{ext.lower()}"
    return f"{stem}_{token}{ext.lower()}"


def validate_file_extension(filename: str) -> bool:
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    return bool(ext) and ext in settings.ALLOWED_EXTENSIONS


def validate_file_size(size: int) -> bool:
    return 0 < size <= settings.MAX_UPLOAD_SIZE


def get_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def ensure_directory(path: str | Path) -> None:
    try:
        Path(path).mkdir(parents=True, exist_ok=True, mode=DIR_PERMISSIONS)
    except OSError as e:
        logger.error(f"Failed to create directory {path}: {e}")
        raise FileHandlerError(f"Failed to create directory: {e}") from e


def save_bytes_to_path(data: bytes, path: str | Path) -> Dict[str, Any]:
    """Write raw bytes and return the stored file's details."""
    if not data:
        raise FileHandlerError("Uploaded file is empty")

    path_obj = Path(path)
    try:
        ensure_directory(path_obj.parent)
        path_obj.write_bytes(data)
        path_obj.chmod(FILE_PERMISSIONS)
    except OSError as e:
        logger.error(f"Failed to save file {path}: {e}")
        raise FileHandlerError(f"Failed to save file: {e}") from e

    file_hash = get_file_hash(data)
    logger.info(f"File saved: {path_obj} (hash: {file_hash[:8]}...)")
    return {"path": str(path_obj), "filename": path_obj.name, "size": len(data), "hash": file_hash}


def upload(file: UploadFile, subdir: str = CONTENT_SUBDIR) -> Dict[str, Any]:
    """
    Store an uploaded file under the upload directory.

    Args:
        file: Upload received by the API layer
        subdir: Folder below UPLOAD_DIR

    Returns:
        filename, originalName, path, size, mimetype and public url

    Raises:
        FileHandlerError: missing name, disallowed extension or size
    """
    if file is None or not file.filename:
        raise FileHandlerError("No file uploaded")
    if not validate_file_extension(file.filename):
        raise FileHandlerError(
            f"File type not allowed. Allowed: {', '.join(sorted(settings.ALLOWED_EXTENSIONS))}"
        )

    data = file.file.read()
    if not validate_file_size(len(data)):
        raise FileHandlerError(
            f"File size must be between 1 byte and {settings.MAX_UPLOAD_SIZE} bytes"
        )

    final_name = generate_unique_filename(file.filename)
    stored = save_bytes_to_path(data, Path(settings.UPLOAD_DIR) / subdir / final_name)

    return {
        "filename": final_name,
        "originalName": file.filename,
        "path": stored["path"],
        "size": stored["size"],
        "mimetype": file.content_type,
        "url": f"{settings.UPLOAD_BASE_URL.rstrip('/')}/{subdir}/{final_name}",
    }


def resolve_path(stored_path: str) -> Path:
    """
    Resolve a stored path, refusing anything outside the upload directory.

    Raises:
        FileHandlerError: the path escapes UPLOAD_DIR
    """
    root = Path(settings.UPLOAD_DIR).resolve()
    candidate = Path(stored_path)
    if not candidate.is_absolute():
        candidate = Path.cwd() / candidate
    candidate = candidate.resolve()
    if candidate != root and root not in candidate.parents:
        raise FileHandlerError("File path is outside the upload directory")
    return candidate


def delete_file(stored_path: str) -> bool:
    """Delete a stored file; a missing file is only logged."""
    try:
        path_obj = resolve_path(stored_path)
        if path_obj.is_file():
            path_obj.unlink()
            logger.info(f"File deleted: {path_obj}")
            return True
        logger.warning(f"File not found or not a file: {path_obj}")
        return False
    except OSError as e:
        logger.error(f"Failed to delete file {stored_path}: {e}")
        raise FileHandlerError(f"Failed to delete file: {e}") from e
