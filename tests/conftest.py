"""Shared pytest fixtures."""

import os

os.environ.setdefault("SOURCEBOOK_DATABASE_PATH", ":memory:")
os.environ.setdefault("SOURCEBOOK_LLM_API_KEY", "test-key")

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from helpers import RecordingBackend  # noqa: E402
from sourcebook.db.database import Database  # noqa: E402
from sourcebook.models.source import Source, StoragePath  # noqa: E402
from sourcebook.orchestrator.fetcher import ContentFetcher  # noqa: E402
from sourcebook.extractors.pdf_heuristic import HeuristicPdfExtractor  # noqa: E402
from sourcebook.storage.blob import LocalBlobStorage  # noqa: E402


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    db = Database(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def storage(storage_root: Path) -> LocalBlobStorage:
    return LocalBlobStorage(storage_root)


@pytest.fixture
def fetcher(storage: LocalBlobStorage) -> ContentFetcher:
    return ContentFetcher(storage, drive=None, pdf_extractor=HeuristicPdfExtractor())


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def stored_source(storage_root: Path):
    """Factory writing a file to storage and returning its Source."""
    counter = iter(range(1000))

    def _make(
        name: str,
        data: bytes,
        mime_type: str = "text/plain",
        size: int | None = None,
        project_id: str | None = None,
    ) -> Source:
        index = next(counter)
        (storage_root / name).write_bytes(data)
        uploaded_at = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=index)
        return Source(
            name=name,
            mime_type=mime_type,
            size=len(data) if size is None else size,
            locator=StoragePath(name),
            uploaded_at=uploaded_at,
            project_id=project_id,
        )

    return _make
