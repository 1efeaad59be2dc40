"""
Репозитории для работы с базой данных.

Repository Pattern обеспечивает:
- Абстракцию доступа к данным
- Централизованную логику запросов
- Упрощённое тестирование
"""

from labelkit.repositories.layout_repository import LayoutRepository
from labelkit.repositories.raw_template_repository import RawTemplateRepository

__all__ = [
    "LayoutRepository",
    "RawTemplateRepository",
]
