"""
Начальная миграция: таблицы layout и сырых шаблонов этикеток.

Revision ID: 0001
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Создание таблиц."""

    # Сохранённые LabelLayout
    op.create_table(
        "label_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, comment="Название layout"),
        sa.Column(
            "template_type",
            sa.String(50),
            nullable=False,
            server_default="tspl-layout",
            comment="Тип шаблона (tspl-layout)",
        ),
        sa.Column("canvas", sa.JSON(), nullable=False, comment="LabelLayout в JSON"),
        sa.Column(
            "is_default",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Layout по умолчанию для своего типа",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_label_templates_template_type", "label_templates", ["template_type"])

    # Не больше одного layout по умолчанию на тип
    op.create_index(
        "uq_label_templates_default_per_type",
        "label_templates",
        ["template_type"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    # Сырые шаблоны ZPL/TSPL
    op.create_table(
        "label_templates_raw",
        sa.Column("id", sa.String(100), primary_key=True, comment="Имя шаблона"),
        sa.Column("body", sa.Text(), nullable=False, comment="Тело шаблона как есть"),
        sa.Column("required_fields", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("optional_fields", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    """Удаление таблиц."""
    op.drop_table("label_templates_raw")
    op.drop_index("uq_label_templates_default_per_type", table_name="label_templates")
    op.drop_index("ix_label_templates_template_type", table_name="label_templates")
    op.drop_table("label_templates")
