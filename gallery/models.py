from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from gallery.db import Base


class ImageRecord(Base):
    __tablename__ = "images"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    s3_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    s3_url: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_description: Mapped[str | None] = mapped_column(Text, nullable=True, default="")
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
