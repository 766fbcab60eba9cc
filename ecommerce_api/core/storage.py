"""
Image storage for record covers and group photos.

Files are written under `IMG_DIR` with a random name and served by the
`/img` static mount, so the public path is `/img/<filename>`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from fastapi import HTTPException, UploadFile

from . import config

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
PUBLIC_PREFIX = "/img/"

logger = logging.getLogger(__name__)


def image_root() -> Path:
    root = Path(config.img_dir())
    root.mkdir(parents=True, exist_ok=True)
    return root


def validate_image(file: UploadFile) -> str:
    """
    Return the normalized file extension if this upload is an accepted image.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename.")

    ext = Path(file.filename).suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image type '{ext}'. Allowed: {sorted(ALLOWED_IMAGE_EXTENSIONS)}",
        )
    return ext


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Image too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


async def save_image(file: UploadFile | None) -> str | None:
    """
    Persist an uploaded image and return its public path, or None if no file was sent.
    """
    if file is None or not file.filename:
        return None

    ext = validate_image(file)
    data = await read_upload_bytes(file, max_bytes=config.max_image_bytes())
    if not data:
        raise HTTPException(status_code=400, detail="Image file is empty.")

    filename = f"{uuid4().hex}{ext}"
    (image_root() / filename).write_bytes(data)
    logger.info("image_saved filename=%s size_bytes=%s", filename, len(data))
    return PUBLIC_PREFIX + filename


def delete_image(public_path: str | None) -> bool:
    """
    Remove a previously saved image. Paths outside the image root are ignored.
    """
    if not public_path or not public_path.startswith(PUBLIC_PREFIX):
        return False

    name = Path(public_path[len(PUBLIC_PREFIX):]).name
    if not name:
        return False

    target = image_root() / name
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    logger.info("image_deleted filename=%s", name)
    return True
