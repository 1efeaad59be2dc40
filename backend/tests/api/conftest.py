"""Фикстуры API тестов: приложение без lifespan и мок сессии БД."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from labelkit.db.database import get_db
from labelkit.main import app


@pytest.fixture
def mock_db_session():
    """Мок AsyncSession для БД."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.delete = AsyncMock()
    return session


@pytest.fixture
def client(mock_db_session):
    """TestClient с подменённой БД (lifespan не запускается)."""

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
