"""
Клиент локального моста печати (desktop-приложение на 127.0.0.1:17777).

Протокол:
- GET  /health                              → 200
- GET  /printers                            → [{"name", "status", "isDefault"}]
- POST /print?printerName=<name>&copies=<n> → тело: сырой текст команд
    200 — всё отправлено {"success", "jobsSent", "message"}
    207 — частично {"jobsSent", "errors"}
    500 — ошибка
"""

import logging
from dataclasses import dataclass, field

import httpx

from labelkit.config import Settings, get_settings
from labelkit.models.print_types import DispatchResult, DocumentFormat, PrintJob
from labelkit.services.errors import DispatchError

logger = logging.getLogger(__name__)


@dataclass
class BridgePrinter:
    """Принтер, видимый мосту."""

    name: str
    status: str = "unknown"
    is_default: bool = False


@dataclass
class BridgePrintResult:
    """Ответ моста на /print."""

    success: bool
    jobs_sent: int = 0
    partial: bool = False
    message: str | None = None
    errors: list[str] = field(default_factory=list)


class LocalBridgeClient:
    """Клиент локального моста (legacy путь печати сырых команд)."""

    def __init__(
        self,
        base_url: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self.base_url = base_url or settings.bridge_url
        self.timeout = settings.bridge_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def health(self) -> bool:
        """Мост запущен и отвечает."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
                return response.status_code == 200
        except httpx.RequestError:
            return False

    async def list_printers(self) -> list[BridgePrinter]:
        """
        Принтеры, доступные мосту.

        Raises:
            DispatchError: Если мост не запущен
        """
        try:
            async with self._client() as client:
                response = await client.get("/printers")
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise DispatchError(f"Мост печати HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise DispatchError(f"Мост печати недоступен: {e}") from e

        return [
            BridgePrinter(
                name=item.get("name", ""),
                status=item.get("status", "unknown"),
                is_default=bool(item.get("isDefault", False)),
            )
            for item in data
        ]

    async def print_raw(
        self, text: str, printer_name: str | None = None, copies: int = 1
    ) -> BridgePrintResult:
        """
        Отправка сырого текста команд.

        Args:
            text: Программа TSPL/ZPL
            printer_name: Имя принтера (по умолчанию — принтер моста по умолчанию)
            copies: Количество копий
        """
        params: dict[str, str | int] = {"copies": copies}
        if printer_name:
            params["printerName"] = printer_name

        try:
            async with self._client() as client:
                response = await client.post(
                    "/print",
                    params=params,
                    content=text.encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                )
        except httpx.RequestError as e:
            logger.error(f"[BRIDGE] Мост недоступен: {e}")
            return BridgePrintResult(success=False, message=f"Мост печати недоступен: {e}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code == 200:
            return BridgePrintResult(
                success=True,
                jobs_sent=data.get("jobsSent", copies),
                message=data.get("message"),
            )

        if response.status_code == 207:
            errors = [str(error) for error in data.get("errors", [])]
            logger.warning(f"[BRIDGE] Частичная печать: {data.get('jobsSent', 0)}/{copies}")
            return BridgePrintResult(
                success=False,
                partial=True,
                jobs_sent=data.get("jobsSent", 0),
                errors=errors,
                message=f"Отправлено {data.get('jobsSent', 0)} из {copies}",
            )

        message = data.get("message") or data.get("error") or f"HTTP {response.status_code}"
        logger.error(f"[BRIDGE] Ошибка печати: {message}")
        return BridgePrintResult(success=False, message=message)

    async def submit(self, job: PrintJob) -> DispatchResult:
        """Задание печати через мост (только сырые команды)."""
        if job.format != DocumentFormat.RAW:
            return DispatchResult(success=False, error="Мост печатает только сырые команды")

        text = job.document if isinstance(job.document, str) else job.document.decode("utf-8")
        printer_name = str(job.target) if job.target is not None else None
        result = await self.print_raw(text, printer_name, job.copies)
        if result.success:
            return DispatchResult(success=True)
        return DispatchResult(
            success=False, error=result.message or "; ".join(result.errors) or "Ошибка моста"
        )
