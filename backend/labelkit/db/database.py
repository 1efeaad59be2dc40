"""
Подключение к базе данных PostgreSQL.

Асинхронное подключение через asyncpg.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from labelkit.config import get_settings

settings = get_settings()

# Создаём асинхронный движок (соединение открывается при первом запросе)
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,  # Логирование SQL в debug режиме
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,  # Проверка соединения перед использованием
)

# Фабрика сессий
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Базовый класс для всех моделей."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency для получения сессии БД.

    Использование в FastAPI:
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Инициализация БД (создание таблиц).

    Вызывается в lifespan, если включён create_tables_on_startup.
    """
    from labelkit.db import models  # noqa: F401  регистрация моделей в metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Закрытие соединений с БД."""
    await engine.dispose()
