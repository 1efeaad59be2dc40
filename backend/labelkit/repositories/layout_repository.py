"""
Репозиторий сохранённых layout этикеток.

Перед записью layout проверяется (координаты в пределах холста)
и проходит через to_dict(), при чтении — через LabelLayout.from_dict().
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from labelkit.db.models import LabelTemplate
from labelkit.models.label_types import LabelLayout

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_TYPE = "tspl-layout"


class LayoutRepository:
    """Репозиторий для работы с layout этикеток."""

    def __init__(self, session: AsyncSession, template_type: str = DEFAULT_TEMPLATE_TYPE):
        self.session = session
        self.template_type = template_type

    async def create(self, name: str, layout: LabelLayout, is_default: bool = False) -> UUID:
        """
        Сохранить новый layout.

        Args:
            name: Название
            layout: Layout этикетки
            is_default: Сделать layout по умолчанию

        Returns:
            ID созданной записи

        Raises:
            LayoutValidationError: Если координаты вне холста
        """
        layout.validate_bounds()

        if is_default:
            await self._clear_defaults()

        template = LabelTemplate(
            id=uuid4(),
            name=name,
            template_type=self.template_type,
            canvas=layout.to_dict(),
            is_default=is_default,
        )
        self.session.add(template)
        await self.session.flush()
        await self.session.refresh(template)
        logger.info(f"[LAYOUT] Создан layout '{name}' (default={is_default})")
        return template.id

    async def list(self) -> list[LabelTemplate]:
        """Все layout типа: сначала по умолчанию, затем по имени."""
        result = await self.session.execute(
            select(LabelTemplate)
            .where(LabelTemplate.template_type == self.template_type)
            .order_by(LabelTemplate.is_default.desc(), LabelTemplate.name)
        )
        return list(result.scalars().all())

    async def get(self, layout_id: UUID) -> LabelTemplate | None:
        """Запись layout по ID."""
        result = await self.session.execute(
            select(LabelTemplate).where(
                LabelTemplate.id == layout_id,
                LabelTemplate.template_type == self.template_type,
            )
        )
        return result.scalar_one_or_none()

    async def get_layout(self, layout_id: UUID) -> LabelLayout | None:
        """LabelLayout по ID (недостающие ключи заменены значениями по умолчанию)."""
        template = await self.get(layout_id)
        if template is None:
            return None
        return LabelLayout.from_dict(template.canvas)

    async def update(
        self, layout_id: UUID, layout: LabelLayout, name: str | None = None
    ) -> LabelTemplate | None:
        """
        Обновить layout (и название, если передано).

        Raises:
            LayoutValidationError: Если координаты вне холста
        """
        layout.validate_bounds()

        template = await self.get(layout_id)
        if template is None:
            return None

        template.canvas = layout.to_dict()
        if name is not None:
            template.name = name
        await self.session.flush()
        await self.session.refresh(template)
        return template

    async def delete(self, layout_id: UUID) -> bool:
        """Удалить layout. Возвращает False, если записи нет."""
        template = await self.get(layout_id)
        if template is None:
            return False
        await self.session.delete(template)
        await self.session.flush()
        return True

    async def set_default(self, layout_id: UUID) -> LabelTemplate | None:
        """
        Сделать layout единственным по умолчанию в своём типе.

        Сброс остальных и установка выполняются в одной сессии
        (атомарность обеспечивает транзакция).
        """
        template = await self.get(layout_id)
        if template is None:
            return None

        await self._clear_defaults()
        template.is_default = True
        await self.session.flush()
        await self.session.refresh(template)
        logger.info(f"[LAYOUT] Layout по умолчанию: {template.name}")
        return template

    async def get_default(self) -> LabelTemplate | None:
        """Layout по умолчанию или None."""
        result = await self.session.execute(
            select(LabelTemplate)
            .where(
                LabelTemplate.template_type == self.template_type,
                LabelTemplate.is_default == True,  # noqa: E712
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _clear_defaults(self) -> None:
        await self.session.execute(
            update(LabelTemplate)
            .where(
                LabelTemplate.template_type == self.template_type,
                LabelTemplate.is_default == True,  # noqa: E712
            )
            .values(is_default=False)
        )
