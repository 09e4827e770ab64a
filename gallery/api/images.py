"""
Database-backed gallery endpoints
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Form, Query, Response, status
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.db import get_session
from gallery.errors import ImageNotFound
from gallery.schemas import ErrorResponse, ImageItem, ImageListResponse, UploadResponse
from gallery.services.images import ImageRepository, next_page, parse_positive_int
from gallery.services.uploads import StoredUpload, get_storage, store_upload
from gallery.storage import S3Storage

logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 3

router = APIRouter(tags=["images"])


@router.post("/upload", response_model=UploadResponse, responses={400: {"model": ErrorResponse}})
async def upload_image(
    upload: StoredUpload = Depends(store_upload),
    description: Optional[str] = Form(None),
    session: AsyncSession = Depends(get_session),
):
    # The object is already in the bucket; a failed insert leaves it orphaned.
    record = await ImageRepository(session).add(upload.key, upload.url, upload.file_name, description)
    logger.info("image_uploaded", id=record.id, key=upload.key, url=upload.url)
    return UploadResponse(id=record.id, url=upload.url)


@router.get("/images", response_model=ImageListResponse)
async def list_images(
    page: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
    storage: S3Storage = Depends(get_storage),
):
    """Newest first, one presigned read URL per image."""
    page_no = parse_positive_int(page, DEFAULT_PAGE)
    page_size = parse_positive_int(size, DEFAULT_PAGE_SIZE)
    offset = (page_no - 1) * page_size

    repo = ImageRepository(session)
    rows = await repo.page(page_size, offset)
    urls = await run_in_threadpool(lambda: [storage.presigned_url(r.s3_key) for r in rows])
    total = await repo.count()

    images = [
        ImageItem(
            id=r.id,
            key=r.s3_key,
            url=url,
            fileName=r.file_name,
            fileDescription=r.file_description,
            uploadedAt=r.uploaded_at,
        )
        for r, url in zip(rows, urls)
    ]
    result = ImageListResponse(images_data=images, nextPage=next_page(page_no, page_size, total))
    # nextPage is omitted on the last page; item fields stay present even when null
    exclude = {"nextPage"} if result.nextPage is None else None
    return JSONResponse(content=result.model_dump(mode="json", exclude=exclude))


@router.delete(
    "/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def delete_image(
    image_id: int,
    session: AsyncSession = Depends(get_session),
    storage: S3Storage = Depends(get_storage),
):
    repo = ImageRepository(session)
    record = await repo.get(image_id)
    if record is None:
        raise ImageNotFound()
    key = record.s3_key

    # Object first, then row; no compensation if the row delete fails.
    await run_in_threadpool(storage.delete_object, key)
    await repo.delete(image_id)
    logger.info("image_deleted", id=image_id, key=key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
