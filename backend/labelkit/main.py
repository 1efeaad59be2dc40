"""
Точка входа FastAPI приложения labelkit.

Этикетки 2"x1" для магазина карточек: TSPL, превью, PDF и печать.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from labelkit.api.routes import health, labels, layouts, printing, raw_templates
from labelkit.config import get_settings
from labelkit.db.database import close_db, init_db
from labelkit.logging_config import setup_logging
from labelkit.services.errors import (
    DISPATCH_FAILED,
    INVALID_INPUT,
    INVALID_LAYOUT,
    RENDER_FAILED,
    TRANSCODE_FAILED,
    DispatchError,
    FriendlyError,
    LayoutValidationError,
    MissingVariableError,
    RenderError,
    TranscodeError,
    ValidationError,
    missing_variable_error,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifecycle приложения.

    Инициализация при старте, очистка при завершении.
    """
    setup_logging()
    logger.info(f"[START] {settings.app_name} v{settings.app_version}")

    if settings.create_tables_on_startup:
        await init_db()
        logger.info("[DB] Таблицы созданы")

    if not settings.printnode_enabled:
        logger.warning("[PRINT] PRINTNODE_API_KEY не задан, облачная печать недоступна")

    yield

    await close_db()
    logger.info(f"[STOP] {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## labelkit API

Этикетки 2"x1" (203 DPI) для магазина коллекционных карточек.

### Возможности:

* **TSPL** — программа для термопринтера по layout, legacy-шаблону или сцене редактора
* **Превью** — PNG и PDF этикетки
* **Сырые шаблоны** — ZPL/TSPL с токенами {{name}}
* **Печать** — PrintNode с автоподбором принтера или локальный мост
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Подключение роутеров
app.include_router(health.router, tags=["Health"])
app.include_router(labels.router, prefix="/api/v1", tags=["Labels"])
app.include_router(layouts.router, prefix="/api/v1", tags=["Layouts"])
app.include_router(raw_templates.router, prefix="/api/v1", tags=["Raw Templates"])
app.include_router(printing.router, prefix="/api/v1", tags=["Printing"])


def _error_response(status_code: int, error: FriendlyError, **extra: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": {**error.to_dict(), **extra}})


@app.exception_handler(ValidationError)
async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    """Неверные входные данные → 422."""
    if isinstance(exc, MissingVariableError):
        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY, missing_variable_error(exc.token), token=exc.token
        )
    error = INVALID_LAYOUT if isinstance(exc, LayoutValidationError) else INVALID_INPUT
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        FriendlyError(error.message, error.hint, details=str(exc)),
    )


@app.exception_handler(RenderError)
async def render_error_handler(_request: Request, exc: RenderError) -> JSONResponse:
    logger.error(f"[RENDER] {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, RENDER_FAILED)


@app.exception_handler(TranscodeError)
async def transcode_error_handler(_request: Request, exc: TranscodeError) -> JSONResponse:
    logger.error(f"[RENDER] {exc}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, TRANSCODE_FAILED)


@app.exception_handler(DispatchError)
async def dispatch_error_handler(_request: Request, exc: DispatchError) -> JSONResponse:
    logger.error(f"[PRINT] {exc}")
    return _error_response(
        status.HTTP_502_BAD_GATEWAY,
        FriendlyError(DISPATCH_FAILED.message, DISPATCH_FAILED.hint, details=str(exc)),
    )


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Корневой эндпоинт — ссылка на документацию."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
