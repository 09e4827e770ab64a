from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class UploadResponse(BaseModel):
    id: int
    url: str


class ImageItem(BaseModel):
    id: int
    key: str
    url: str
    fileName: Optional[str] = None
    fileDescription: Optional[str] = None
    uploadedAt: datetime


class ImageListResponse(BaseModel):
    images_data: List[ImageItem] = []
    nextPage: Optional[int] = None


class BucketUploadResponse(BaseModel):
    url: str


class BucketImage(BaseModel):
    key: str
    url: str


class BucketImageListResponse(BaseModel):
    images: List[BucketImage] = []
    nextToken: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    db: bool
