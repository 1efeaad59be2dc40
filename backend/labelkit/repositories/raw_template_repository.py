"""Репозиторий сырых шаблонов ZPL/TSPL."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labelkit.db.models import RawTemplateRecord
from labelkit.services.raw_template import RawTemplate, detect_tokens


def to_raw_template(record: RawTemplateRecord) -> RawTemplate:
    """Доменный шаблон из записи (required_fields берутся из тела, а не из колонки)."""
    return RawTemplate(
        id=record.id,
        body=record.body,
        optional_fields=list(record.optional_fields or []),
    )


class RawTemplateRepository:
    """Репозиторий сырых шаблонов."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(
        self, template_id: str, body: str, optional_fields: list[str] | None = None
    ) -> RawTemplate:
        """Создать или перезаписать шаблон. Список токенов пересчитывается из тела."""
        record = await self.session.get(RawTemplateRecord, template_id)
        if record is None:
            record = RawTemplateRecord(id=template_id)
            self.session.add(record)

        record.body = body
        record.required_fields = detect_tokens(body)
        record.optional_fields = optional_fields or []
        await self.session.flush()
        return to_raw_template(record)

    async def list(self) -> list[RawTemplate]:
        """Все шаблоны, новые первыми."""
        result = await self.session.execute(
            select(RawTemplateRecord).order_by(RawTemplateRecord.updated_at.desc())
        )
        return [to_raw_template(record) for record in result.scalars().all()]

    async def get(self, template_id: str) -> RawTemplate | None:
        """Шаблон по ID или None."""
        record = await self.session.get(RawTemplateRecord, template_id)
        if record is None:
            return None
        return to_raw_template(record)

    async def delete(self, template_id: str) -> bool:
        """Удалить шаблон. Возвращает False, если записи нет."""
        record = await self.session.get(RawTemplateRecord, template_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True
