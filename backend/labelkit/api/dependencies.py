"""
Dependencies для FastAPI эндпоинтов.

Репозитории получают сессию запроса. Клиенты печати и резолвер
принтера — по одному на процесс (кэш резолвера живёт между запросами).
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from labelkit.config import get_settings
from labelkit.db.database import get_db
from labelkit.repositories import LayoutRepository, RawTemplateRepository
from labelkit.services.local_bridge import LocalBridgeClient
from labelkit.services.print_service import PrintService
from labelkit.services.printer_resolver import PrinterResolver
from labelkit.services.printnode import PrintNodeClient
from labelkit.services.tspl import QuotePolicy


async def get_layout_repo(db: AsyncSession = Depends(get_db)) -> LayoutRepository:
    """Dependency для получения LayoutRepository."""
    return LayoutRepository(db)


async def get_raw_template_repo(db: AsyncSession = Depends(get_db)) -> RawTemplateRepository:
    """Dependency для получения RawTemplateRepository."""
    return RawTemplateRepository(db)


@lru_cache
def get_printnode_client() -> PrintNodeClient:
    return PrintNodeClient()


@lru_cache
def get_bridge_client() -> LocalBridgeClient:
    return LocalBridgeClient()


@lru_cache
def get_printer_resolver() -> PrinterResolver:
    return PrinterResolver(get_printnode_client())


def get_print_service() -> PrintService:
    """Печать через PrintNode с автоподбором принтера."""
    return PrintService(
        get_printnode_client(),
        get_printer_resolver(),
        dpi=get_settings().preview_dpi,
    )


def get_bridge_print_service() -> PrintService:
    """Печать сырых команд через локальный мост (принтер выбирает мост)."""
    return PrintService(get_bridge_client())


def get_quote_policy() -> QuotePolicy:
    return QuotePolicy(get_settings().tspl_quote_policy)
