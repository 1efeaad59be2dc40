from unittest.mock import AsyncMock, MagicMock

import pytest

from labelkit.db.models import RawTemplateRecord
from labelkit.repositories.raw_template_repository import RawTemplateRepository


@pytest.fixture
def mock_db_session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.delete = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_save_new_detects_tokens(mock_db_session):
    repo = RawTemplateRepository(mock_db_session)

    template = await repo.save("zpl-basic", "^XA^FD{{ sku }}^FS^FD{{barcode}}{{sku}}^XZ")

    record = mock_db_session.add.call_args.args[0]
    assert record.id == "zpl-basic"
    assert record.required_fields == ["sku", "barcode"]
    assert template.required_fields == ["sku", "barcode"]
    assert template.engine == "ZPL"


@pytest.mark.asyncio
async def test_save_overwrites_existing(mock_db_session):
    record = RawTemplateRecord(id="tspl", body="TEXT {{old}}", required_fields=["old"], optional_fields=[])
    mock_db_session.get.return_value = record
    repo = RawTemplateRepository(mock_db_session)

    template = await repo.save("tspl", "TEXT 10,10,\"1\",0,1,1,\"{{sku}}\"", optional_fields=["lot"])

    mock_db_session.add.assert_not_called()
    assert record.required_fields == ["sku"]
    assert template.optional_fields == ["lot"]


@pytest.mark.asyncio
async def test_get_recomputes_required_fields(mock_db_session):
    # Колонка устарела, но список токенов берётся из тела
    mock_db_session.get.return_value = RawTemplateRecord(
        id="t", body="{{ price }}", required_fields=["stale"], optional_fields=None
    )
    repo = RawTemplateRepository(mock_db_session)

    template = await repo.get("t")

    assert template.required_fields == ["price"]
    assert template.optional_fields == []


@pytest.mark.asyncio
async def test_get_missing(mock_db_session):
    repo = RawTemplateRepository(mock_db_session)
    assert await repo.get("nope") is None


@pytest.mark.asyncio
async def test_list(mock_db_session):
    result = MagicMock()
    result.scalars.return_value.all.return_value = [
        RawTemplateRecord(id="a", body="SIZE 2,1\nCLS", optional_fields=[]),
        RawTemplateRecord(id="b", body="^XA^XZ", optional_fields=[]),
    ]
    mock_db_session.execute.return_value = result
    repo = RawTemplateRepository(mock_db_session)

    templates = await repo.list()

    assert [(t.id, t.engine) for t in templates] == [("a", "TSPL"), ("b", "ZPL")]


@pytest.mark.asyncio
async def test_delete(mock_db_session):
    repo = RawTemplateRepository(mock_db_session)
    assert await repo.delete("nope") is False

    record = RawTemplateRecord(id="t", body="")
    mock_db_session.get.return_value = record
    assert await repo.delete("t") is True
    mock_db_session.delete.assert_awaited_once_with(record)
