"""
Автоподбор принтера этикеток в PrintNode.

Ищет принтер Rollo по ключевым словам в имени, предпочитая известные модели.
Результат кэшируется на printer_cache_ttl_seconds, кэш перепроверяется
по живому списку принтеров.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from labelkit.config import Settings, get_settings
from labelkit.services.printnode import PrintNodePrinter

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRINTER_KEYWORDS = ("rollo", "x1038", "x1042")
EXCLUDED_KEYWORDS = ("x1040", "x1243221259")
PREFERRED_PRINTERS = ("Rollo X1038", "Rollo X1042", "Rollo Printer", "ROLLO")


class PrinterSource(Protocol):
    async def get_printers(self) -> list[PrintNodePrinter]: ...


@dataclass
class ResolvedPrinter:
    """Выбранный принтер."""

    id: int
    name: str


@dataclass
class CachedValue(Generic[T]):
    """Значение с временем получения."""

    value: T
    fetched_at: float

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return now - self.fetched_at < ttl_seconds


def is_label_printer(name: str) -> bool:
    """Имя похоже на принтер этикеток Rollo."""
    lowered = name.lower()
    if any(keyword in lowered for keyword in EXCLUDED_KEYWORDS):
        return False
    return any(keyword in lowered for keyword in PRINTER_KEYWORDS)


def choose_printer(printers: list[PrintNodePrinter]) -> PrintNodePrinter | None:
    """Предпочтительная модель, иначе первый подходящий принтер."""
    candidates = [printer for printer in printers if is_label_printer(printer.name)]
    if not candidates:
        return None

    for preferred in PREFERRED_PRINTERS:
        for printer in candidates:
            if preferred.lower() in printer.name.lower():
                return printer
    return candidates[0]


class PrinterResolver:
    """
    Подбор принтера с явным кэшем.

    Кэш принадлежит экземпляру резолвера (один на приложение).
    """

    def __init__(
        self,
        source: PrinterSource,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = settings or get_settings()
        self.source = source
        self.ttl_seconds = settings.printer_cache_ttl_seconds
        self.default_printer_id = settings.default_printer_id
        self._clock = clock
        self._cache: CachedValue[ResolvedPrinter] | None = None

    async def resolve(self) -> ResolvedPrinter | None:
        """
        Принтер для печати или None, если подходящего нет.

        Raises:
            DispatchError: Если список принтеров недоступен
        """
        now = self._clock()
        printers = await self.source.get_printers()
        by_id = {printer.id: printer for printer in printers}

        # Явно настроенный принтер имеет приоритет
        if self.default_printer_id is not None and self.default_printer_id in by_id:
            printer = by_id[self.default_printer_id]
            return ResolvedPrinter(id=printer.id, name=printer.name)

        if self._cache is not None and self._cache.is_fresh(self.ttl_seconds, now):
            if self._cache.value.id in by_id:
                return self._cache.value
            logger.info(f"[PRINT] Принтер {self._cache.value.name} пропал, ищем заново")
            self._cache = None

        printer = choose_printer(printers)
        if printer is None:
            logger.warning(f"[PRINT] Принтер этикеток не найден среди {len(printers)}")
            return None

        resolved = ResolvedPrinter(id=printer.id, name=printer.name)
        self._cache = CachedValue(value=resolved, fetched_at=now)
        logger.info(f"[PRINT] Выбран принтер: {printer.name} (id={printer.id})")
        return resolved

    def refresh(self) -> None:
        """Сброс кэша (следующий resolve выберет принтер заново)."""
        self._cache = None

    @property
    def cached(self) -> CachedValue[ResolvedPrinter] | None:
        return self._cache
