# backend/labelkit/models/print_types.py
"""
Типы заданий печати.

Документ уходит в сервис печати в одном из двух форматов:
растровый PDF или сырой текст команд (TSPL/ZPL).
"""

from dataclasses import dataclass, field
from enum import Enum

from labelkit.services.errors import ValidationError


class DocumentFormat(str, Enum):
    """Формат документа задания."""

    RASTER = "raster-document"  # PDF
    RAW = "raw-command-text"  # TSPL/ZPL


@dataclass
class PrintJob:
    """Задание печати."""

    document: bytes | str
    format: DocumentFormat
    target: int | str | None = None  # ID принтера PrintNode или имя принтера моста
    copies: int = 1
    title: str = "Label"

    def __post_init__(self) -> None:
        if self.copies < 1:
            raise ValidationError(f"Количество копий должно быть >= 1, получено: {self.copies}")

    @property
    def payload(self) -> bytes:
        """Содержимое документа в байтах."""
        if isinstance(self.document, str):
            return self.document.encode("utf-8")
        return self.document


@dataclass
class DispatchResult:
    """Результат отправки одного задания."""

    success: bool
    job_id: int | str | None = None
    error: str | None = None


@dataclass
class BatchResult:
    """Итог пакетной печати."""

    success_count: int = 0
    failed_count: int = 0
    first_error: str | None = None
    printer_name: str | None = None
    errors: list[str] = field(default_factory=list)

    def record_failure(self, error: str) -> None:
        self.failed_count += 1
        self.errors.append(error)
        if self.first_error is None:
            self.first_error = error
