import io
import time
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from gallery.errors import InvalidUpload
from gallery.storage import UPLOAD_PREFIX, S3Storage

logger = structlog.get_logger()


@dataclass
class StoredUpload:
    key: str
    url: str
    file_name: Optional[str]
    content_type: str


def upload_key(filename: Optional[str], now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{UPLOAD_PREFIX}{now_ms}-{filename or ''}"


def get_storage(request: Request) -> S3Storage:
    return request.app.state.storage


async def store_upload(request: Request, image: Optional[UploadFile] = File(None)) -> StoredUpload:
    """Dependency that puts the multipart ``image`` field into the bucket.

    The file is buffered in memory and written before the route body runs,
    so a route only ever sees uploads the bucket has accepted.
    """
    if image is None:
        raise InvalidUpload("No file uploaded")
    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidUpload("Only image uploads allowed")

    raw = await image.read()
    key = upload_key(image.filename)
    storage = get_storage(request)
    url = await run_in_threadpool(storage.put_object, io.BytesIO(raw), key, content_type)
    logger.info("object_stored", key=key, size=len(raw), content_type=content_type)
    return StoredUpload(key=key, url=url, file_name=image.filename, content_type=content_type)
