"""Shared fixtures for the gallery test suite.

The bucket is replaced by ``FakeStorage`` (same surface as ``S3Storage``)
and the database by an in-memory SQLite engine, so API tests run without
AWS or PostgreSQL.
"""

from __future__ import annotations

import io
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import gallery
from gallery.config import Settings
from gallery.db import create_session_factory, ensure_table
from gallery.errors import StorageError, StorageErrorKind
from gallery.main import create_app
from gallery.models import ImageRecord

STATIC_DIR = str(Path(gallery.__file__).parent / "static")
STORAGE_BASE = "https://test-bucket.s3.eu-west-1.amazonaws.com"


class FakeStorage:
    """In-memory bucket implementing the S3Storage methods the app calls."""

    bucket = "test-bucket"

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str | None]] = {}
        self.presign_calls: list[tuple[str, int]] = []
        self.deleted: list[str] = []
        self.fail_with: StorageError | None = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def object_url(self, key):
        return f"{STORAGE_BASE}/{key}"

    def put_object(self, file_obj, key, content_type=None):
        self._maybe_fail()
        self.objects[key] = (file_obj.read(), content_type)
        return self.object_url(key)

    def presigned_url(self, key, expires_in=3600):
        self.presign_calls.append((key, expires_in))
        return f"{self.object_url(key)}?X-Amz-Expires={expires_in}&X-Amz-Signature=test"

    def delete_object(self, key):
        self._maybe_fail()
        self.deleted.append(key)
        self.objects.pop(key, None)

    def list_keys(self, size, token=None, prefix="uploads/"):
        self._maybe_fail()
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        start = int(token) if token else 0
        page = keys[start:start + size]
        more = start + size < len(keys)
        return page, (str(start + size) if more else None)

    def ensure_bucket(self):
        return False


def storage_error(code="InternalError", kind=StorageErrorKind.OTHER):
    return StorageError(kind, code, f"simulated {code}")


def make_jpeg(size=(64, 64), color=(200, 120, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await ensure_table(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_settings():
    return Settings(
        _env_file=None,
        GALLERY_MODE="database",
        AWS_REGION="eu-west-1",
        S3_BUCKET="test-bucket",
        DB_SECRET_ARN="arn:aws:secretsmanager:eu-west-1:123456789012:secret:gallery-db",
        DB_HOST="db.internal",
        STATIC_DIR=STATIC_DIR,
    )


@pytest.fixture
def bucket_settings():
    return Settings(
        _env_file=None,
        GALLERY_MODE="storage",
        AWS_REGION="eu-west-1",
        S3_BUCKET="test-bucket",
        STATIC_DIR=STATIC_DIR,
    )


@pytest.fixture
def app(db_settings, storage, engine, session_factory):
    application = create_app(db_settings, run_bootstrap=False)
    application.state.storage = storage
    application.state.engine = engine
    application.state.session_factory = session_factory
    return application


@pytest.fixture
def bucket_app(bucket_settings, storage):
    application = create_app(bucket_settings, run_bootstrap=False)
    application.state.storage = storage
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def bucket_client(bucket_app):
    transport = ASGITransport(app=bucket_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def seed_images(session_factory, storage):
    """Insert rows (and matching objects) with distinct, increasing timestamps."""

    async def _seed(count: int) -> list[ImageRecord]:
        base = datetime(2024, 1, 1, 12, 0, 0)
        records = []
        async with session_factory() as session:
            for i in range(count):
                key = f"uploads/{1700000000000 + i}-photo{i}.jpg"
                storage.objects[key] = (b"jpeg", "image/jpeg")
                record = ImageRecord(
                    s3_key=key,
                    s3_url=storage.object_url(key),
                    file_name=f"photo{i}.jpg",
                    file_description=f"desc {i}",
                    uploaded_at=base + timedelta(minutes=i),
                )
                session.add(record)
                records.append(record)
            await session.commit()
        return records

    return _seed
