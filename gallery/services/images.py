from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.models import ImageRecord


class ImageRepository:
    """Metadata rows for stored images."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, s3_key: str, s3_url: str, file_name: Optional[str], description: Optional[str]) -> ImageRecord:
        record = ImageRecord(
            s3_key=s3_key,
            s3_url=s3_url,
            file_name=file_name,
            file_description=description or "",
        )
        self.session.add(record)
        await self.session.commit()
        return record

    async def page(self, limit: int, offset: int) -> Sequence[ImageRecord]:
        res = await self.session.execute(
            select(ImageRecord)
            .order_by(ImageRecord.uploaded_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return res.scalars().all()

    async def count(self) -> int:
        res = await self.session.execute(select(func.count()).select_from(ImageRecord))
        return int(res.scalar_one())

    async def get(self, image_id: int) -> Optional[ImageRecord]:
        res = await self.session.execute(select(ImageRecord).where(ImageRecord.id == image_id))
        return res.scalar_one_or_none()

    async def delete(self, image_id: int) -> int:
        res = await self.session.execute(delete(ImageRecord).where(ImageRecord.id == image_id))
        await self.session.commit()
        return res.rowcount


def parse_positive_int(value: Optional[str], default: int) -> int:
    """Lenient query parsing: anything that is not a positive integer means the default."""
    try:
        parsed = int(value) if value is not None else 0
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def next_page(page: int, size: int, total: int) -> Optional[int]:
    offset = (page - 1) * size
    return page + 1 if offset + size < total else None
