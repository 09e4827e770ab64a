"""
Storage-only gallery endpoints: the bucket listing is the catalogue
"""
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.concurrency import run_in_threadpool

from gallery.schemas import BucketImage, BucketImageListResponse, BucketUploadResponse, ErrorResponse
from gallery.services.images import parse_positive_int
from gallery.services.uploads import StoredUpload, get_storage, store_upload
from gallery.storage import S3Storage

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 3

router = APIRouter(tags=["bucket-images"])


@router.post("/upload", response_model=BucketUploadResponse, responses={400: {"model": ErrorResponse}})
async def upload_image(upload: StoredUpload = Depends(store_upload)):
    logger.info("image_uploaded", key=upload.key, url=upload.url)
    return BucketUploadResponse(url=upload.url)


@router.get("/images", response_model=BucketImageListResponse, response_model_exclude_none=True)
async def list_images(
    size: Optional[str] = Query(None),
    token: Optional[str] = Query(None),
    storage: S3Storage = Depends(get_storage),
):
    page_size = parse_positive_int(size, DEFAULT_PAGE_SIZE)
    keys, next_token = await run_in_threadpool(storage.list_keys, page_size, token or None)
    if not keys:
        return BucketImageListResponse(images=[])

    urls = await run_in_threadpool(lambda: [storage.presigned_url(k) for k in keys])
    return BucketImageListResponse(
        images=[BucketImage(key=k, url=u) for k, u in zip(keys, urls)],
        nextToken=next_token,
    )


@router.delete("/images/{key:path}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_image(key: str, storage: S3Storage = Depends(get_storage)):
    # No existence check: deleting a missing key succeeds like any other.
    await run_in_threadpool(storage.delete_object, key)
    logger.info("image_deleted", key=key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
