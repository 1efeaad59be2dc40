"""
Клиент PrintNode API (облачная печать).

Документация: https://www.printnode.com/en/docs/api/curl
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from labelkit.config import Settings, get_settings
from labelkit.models.print_types import DispatchResult, DocumentFormat, PrintJob
from labelkit.services.errors import DispatchError

logger = logging.getLogger(__name__)

PRINTNODE_SOURCE = "labelkit"

CONTENT_TYPES = {
    DocumentFormat.RASTER: "pdf_base64",
    DocumentFormat.RAW: "raw_base64",
}


@dataclass
class PrintNodePrinter:
    """Принтер, подключённый к PrintNode."""

    id: int
    name: str
    state: str | None = None
    computer: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PrintNodePrinter":
        computer = data.get("computer") or {}
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            state=data.get("state"),
            computer=computer.get("name"),
        )


class PrintNodeClient:
    """
    Клиент PrintNode.

    Использование:
        client = PrintNodeClient()
        printers = await client.get_printers()
        result = await client.submit(PrintJob(document=pdf, format=DocumentFormat.RASTER, target=123))
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Инициализация клиента.

        Args:
            api_key: API ключ (по умолчанию из настроек)
            settings: Настройки приложения
            transport: Транспорт httpx (для тестов)
        """
        settings = settings or get_settings()
        self.api_key = api_key if api_key is not None else settings.printnode_api_key
        self.base_url = settings.printnode_base_url
        self.timeout = settings.printnode_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # Basic auth: ключ как логин, пустой пароль
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.api_key, ""),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def get_printers(self) -> list[PrintNodePrinter]:
        """
        Список принтеров аккаунта.

        Raises:
            DispatchError: Если PrintNode недоступен или ключ неверный
        """
        try:
            async with self._client() as client:
                response = await client.get("/printers")
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise DispatchError(f"PrintNode HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise DispatchError(f"PrintNode недоступен: {e}") from e

        return [PrintNodePrinter.from_api(item) for item in data]

    async def submit(self, job: PrintJob) -> DispatchResult:
        """
        Отправка задания печати.

        Ошибки сети и HTTP не выбрасываются, а возвращаются в DispatchResult.
        """
        if job.target is None:
            return DispatchResult(success=False, error="Не указан принтер")

        body = {
            "printerId": int(job.target),
            "title": job.title,
            "contentType": CONTENT_TYPES[job.format],
            "content": base64.b64encode(job.payload).decode("ascii"),
            "source": PRINTNODE_SOURCE,
            "qty": job.copies,
        }

        try:
            async with self._client() as client:
                response = await client.post("/printjobs", json=body)
                response.raise_for_status()
                job_id = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[PRINT] PrintNode HTTP {e.response.status_code}: {e.response.text}")
            return DispatchResult(
                success=False, error=f"PrintNode HTTP {e.response.status_code}: {e.response.text}"
            )
        except httpx.RequestError as e:
            logger.error(f"[PRINT] PrintNode недоступен: {e}")
            return DispatchResult(success=False, error=f"PrintNode недоступен: {e}")
        except ValueError as e:
            logger.error(f"[PRINT] PrintNode вернул не JSON: {e}")
            return DispatchResult(success=False, error=f"PrintNode вернул некорректный ответ: {e}")

        logger.info(
            f"[PRINT] Задание {job_id} → принтер {job.target}, копий: {job.copies}"
        )
        return DispatchResult(success=True, job_id=job_id)

    async def get_job_status(self, job_id: int) -> str | None:
        """Состояние задания (new, sent_to_client, done, error...) или None."""
        try:
            async with self._client() as client:
                response = await client.get(f"/printjobs/{job_id}")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[PRINT] Статус задания {job_id} недоступен: {e}")
            return None

        if isinstance(data, list):
            data = data[0] if data else {}
        return data.get("state")
