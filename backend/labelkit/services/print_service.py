"""
Сервис печати этикеток.

Рендерит PDF (или берёт готовую программу TSPL), подбирает принтер
и отправляет задание. Пакетная печать считает успехи и ошибки
по каждой этикетке и не прерывается на ошибке.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from labelkit.models.label_types import LabelData, LabelFieldConfig
from labelkit.models.print_types import BatchResult, DispatchResult, DocumentFormat, PrintJob
from labelkit.services.errors import DispatchError, RenderError, TranscodeError
from labelkit.services.label_renderer import generate_label_pdf
from labelkit.services.printer_resolver import PrinterResolver, ResolvedPrinter

logger = logging.getLogger(__name__)

# (готово, всего)
ProgressCallback = Callable[[int, int], None]


class Dispatcher(Protocol):
    async def submit(self, job: PrintJob) -> DispatchResult: ...


class PrintService:
    """
    Печать этикеток через сервис печати.

    Использование:
        service = PrintService(PrintNodeClient(), resolver)
        result = await service.print_batch(items, field_config)
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        resolver: PrinterResolver | None = None,
        dpi: int = 203,
    ):
        self.dispatcher = dispatcher
        self.resolver = resolver
        self.dpi = dpi

    async def _resolve_target(self, target: int | str | None) -> tuple[int | str | None, str | None]:
        """Явный принтер или автоподбор. Возвращает (target, имя принтера)."""
        if target is not None:
            return target, str(target)
        if self.resolver is None:
            return None, None
        printer: ResolvedPrinter | None = await self.resolver.resolve()
        if printer is None:
            return None, None
        return printer.id, printer.name

    async def print_label(
        self,
        data: LabelData,
        field_config: LabelFieldConfig,
        copies: int = 1,
        title: str | None = None,
        target: int | str | None = None,
    ) -> DispatchResult:
        """
        Печать одной этикетки (растровый PDF).

        Raises:
            RenderError: Если растр не нарисован
            TranscodeError: Если не удалось собрать PDF
            DispatchError: Если принтер не найден
        """
        resolved, printer_name = await self._resolve_target(target)
        if resolved is None:
            raise DispatchError("Принтер не найден")

        pdf_bytes = await generate_label_pdf(field_config, data, self.dpi)
        job = PrintJob(
            document=pdf_bytes,
            format=DocumentFormat.RASTER,
            target=resolved,
            copies=copies,
            title=title or f"Label {data.sku}".strip(),
        )
        result = await self.dispatcher.submit(job)
        if result.success:
            logger.info(f"[PRINT] Этикетка {data.sku} → {printer_name}, копий: {copies}")
        return result

    async def print_tspl(
        self,
        program: str,
        copies: int = 1,
        target: int | str | None = None,
        title: str = "TSPL Label",
    ) -> DispatchResult:
        """
        Печать готовой программы TSPL/ZPL.

        Raises:
            DispatchError: Если принтер не найден
        """
        resolved, _ = await self._resolve_target(target)
        if resolved is None and self.resolver is not None:
            raise DispatchError("Принтер не найден")

        job = PrintJob(
            document=program,
            format=DocumentFormat.RAW,
            target=resolved,
            copies=copies,
            title=title,
        )
        return await self.dispatcher.submit(job)

    async def print_batch(
        self,
        items: Sequence[LabelData],
        field_config: LabelFieldConfig,
        target: int | str | None = None,
        max_concurrency: int = 1,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """
        Пакетная печать: одно задание на этикетку.

        Ошибка рендеринга или отправки считается одной неудачей
        и не прерывает остальные этикетки.

        Args:
            items: Данные этикеток
            field_config: Какие поля печатать
            target: Принтер (по умолчанию автоподбор)
            max_concurrency: Сколько этикеток обрабатывать одновременно (1 — по очереди)
            on_progress: Вызывается после каждой этикетки (готово, всего)

        Returns:
            BatchResult со счётчиками
        """
        total = len(items)
        result = BatchResult()

        try:
            resolved, printer_name = await self._resolve_target(target)
        except DispatchError as e:
            resolved, printer_name = None, None
            logger.error(f"[PRINT] Список принтеров недоступен: {e}")

        if resolved is None:
            result.failed_count = total
            result.first_error = "Принтер не найден"
            result.errors = ["Принтер не найден"] * total
            return result

        result.printer_name = printer_name
        done = 0
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def process(index: int, item: LabelData) -> None:
            nonlocal done
            async with semaphore:
                error = await self._print_one(item, field_config, resolved, index, total)
            if error is None:
                result.success_count += 1
            else:
                result.record_failure(error)
            done += 1
            if on_progress is not None:
                on_progress(done, total)

        if max_concurrency <= 1:
            for index, item in enumerate(items):
                await process(index, item)
        else:
            await asyncio.gather(*(process(index, item) for index, item in enumerate(items)))

        logger.info(
            f"[PRINT] Пакет: {result.success_count} успешно, "
            f"{result.failed_count} с ошибкой → {printer_name}"
        )
        return result

    async def _print_one(
        self,
        item: LabelData,
        field_config: LabelFieldConfig,
        target: int | str,
        index: int,
        total: int,
    ) -> str | None:
        """Одна этикетка пакета. Возвращает текст ошибки или None."""
        try:
            pdf_bytes = await generate_label_pdf(field_config, item, self.dpi)
        except (RenderError, TranscodeError) as e:
            logger.error(f"[PRINT] Этикетка {index + 1}/{total} не отрисована: {e}")
            return f"{item.sku or index + 1}: {e}"

        job = PrintJob(
            document=pdf_bytes,
            format=DocumentFormat.RASTER,
            target=target,
            title=f"Label {index + 1}/{total}",
        )
        try:
            dispatch = await self.dispatcher.submit(job)
        except DispatchError as e:
            dispatch = DispatchResult(success=False, error=str(e))
        except Exception as e:
            logger.exception(f"[PRINT] Этикетка {index + 1}/{total}: сбой отправки")
            dispatch = DispatchResult(success=False, error=str(e))

        if not dispatch.success:
            logger.error(f"[PRINT] Этикетка {index + 1}/{total} не отправлена: {dispatch.error}")
            return f"{item.sku or index + 1}: {dispatch.error}"
        return None
