"""
SQLAlchemy модели базы данных.

- LabelTemplate — сохранённые LabelLayout (JSON в колонке canvas)
- RawTemplateRecord — сырые шаблоны ZPL/TSPL
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from labelkit.db.database import Base


class LabelTemplate(Base):
    """
    Сохранённый layout этикетки.

    canvas хранит LabelLayout.to_dict() (camelCase JSON).
    Флаг is_default уникален в пределах template_type — следит репозиторий.
    """

    __tablename__ = "label_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        comment="Название layout",
    )
    template_type: Mapped[str] = mapped_column(
        String(50),
        index=True,
        default="tspl-layout",
        comment="Тип шаблона (tspl-layout)",
    )
    canvas: Mapped[dict] = mapped_column(
        JSON,
        comment="LabelLayout в JSON",
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        comment="Layout по умолчанию для своего типа",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Дата создания",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        comment="Дата обновления",
    )

    def __repr__(self) -> str:
        return f"<LabelTemplate {self.name} ({self.template_type})>"


class RawTemplateRecord(Base):
    """Сырой шаблон ZPL/TSPL с токенами {{name}}."""

    __tablename__ = "label_templates_raw"

    id: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        comment="Имя шаблона (задаёт пользователь)",
    )
    body: Mapped[str] = mapped_column(
        Text,
        comment="Тело шаблона как есть",
    )
    required_fields: Mapped[list] = mapped_column(
        JSON,
        default=list,
        comment="Токены тела (пересчитываются при сохранении)",
    )
    optional_fields: Mapped[list] = mapped_column(
        JSON,
        default=list,
        comment="Необязательные поля (для UI)",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        comment="Дата обновления",
    )

    def __repr__(self) -> str:
        return f"<RawTemplateRecord {self.id}>"
