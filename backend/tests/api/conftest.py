"""Route test fixtures — FastAPI test client over an in-memory database.

Invariants:
    - get_db overridden with a FakeDatabase (indexes ensured like a real connect)
    - get_media_uploader overridden with a recording fake: no network in tests
    - Overrides cleared after every test
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_media_uploader
from app.db.indexes import ensure_indexes
from app.infrastructure.database import get_db
from app.main import app
from tests.factories import UPLOADED_URL
from tests.fake_mongo import FakeDatabase


class FakeUploader:
    def __init__(self):
        self.calls: list[dict] = []
        self.error: Exception | None = None

    async def upload(self, content, filename, content_type=None):
        self.calls.append({
            "content": content, "filename": filename, "content_type": content_type,
        })
        if self.error is not None:
            raise self.error
        return UPLOADED_URL


@pytest.fixture
async def fake_db():
    database = FakeDatabase()
    await ensure_indexes(database)
    return database


@pytest.fixture
def fake_uploader():
    return FakeUploader()


@pytest.fixture
async def client(fake_db, fake_uploader):
    """FastAPI test client with database and media host overridden."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_media_uploader] = lambda: fake_uploader

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
