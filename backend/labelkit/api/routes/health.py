"""
Health check эндпоинты.

Проверка состояния сервиса и локального моста печати.
"""

from fastapi import APIRouter, Depends

from labelkit.api.dependencies import get_bridge_client
from labelkit.config import get_settings
from labelkit.services.local_bridge import LocalBridgeClient

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Базовая проверка состояния сервиса.

    Returns:
        Статус "ok" если сервис работает
    """
    return {"status": "ok"}


@router.get("/health/print")
async def health_print(
    bridge: LocalBridgeClient = Depends(get_bridge_client),
) -> dict[str, str | bool]:
    """Доступность сервисов печати (PrintNode настроен, мост запущен)."""
    settings = get_settings()
    return {
        "status": "ok",
        "printnode": settings.printnode_enabled,
        "bridge": await bridge.health(),
    }
