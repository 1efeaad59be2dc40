"""
API эндпоинты печати.

PrintNode (облако) для растровых PDF и TSPL, локальный мост для TSPL.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from labelkit.api.dependencies import (
    get_bridge_print_service,
    get_print_service,
    get_printer_resolver,
    get_printnode_client,
)
from labelkit.config import get_settings
from labelkit.models.schemas import (
    BatchResponse,
    DispatchResponse,
    JobStatusResponse,
    PrintBatchRequest,
    PrinterResponse,
    PrintLabelRequest,
    PrintTSPLRequest,
    ResolvedPrinterResponse,
    resolve_field_config,
)
from labelkit.services.errors import batch_partial_error
from labelkit.services.print_service import PrintService
from labelkit.services.printer_resolver import PrinterResolver, is_label_printer
from labelkit.services.printnode import PrintNodeClient
from labelkit.services.tspl import build_sample_label

router = APIRouter(prefix="/print")
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/label", response_model=DispatchResponse)
async def print_label(
    request: PrintLabelRequest,
    service: PrintService = Depends(get_print_service),
) -> DispatchResponse:
    """Печать одной этикетки (растровый PDF через PrintNode)."""
    result = await service.print_label(
        request.data.to_domain(),
        resolve_field_config(request.field_config, request.layout),
        copies=request.copies,
        title=request.title,
        target=request.printer_id,
    )
    return DispatchResponse(success=result.success, job_id=result.job_id, error=result.error)


@router.post("/batch", response_model=BatchResponse)
async def print_batch(
    request: PrintBatchRequest,
    service: PrintService = Depends(get_print_service),
) -> BatchResponse:
    """
    Пакетная печать: одно задание на этикетку.

    Ошибки отдельных этикеток не прерывают пакет.
    """
    if len(request.items) > settings.max_batch_size:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": f"Слишком много этикеток: {len(request.items)}",
                "hint": f"Максимум {settings.max_batch_size} за раз",
            },
        )

    result = await service.print_batch(
        [item.to_domain() for item in request.items],
        resolve_field_config(request.field_config, request.layout),
        target=request.printer_id,
        max_concurrency=request.max_concurrency or settings.batch_max_concurrency,
    )
    if result.failed_count and result.success_count:
        logger.warning(
            f"[PRINT] {batch_partial_error(result.success_count, result.failed_count).message}"
        )
    return BatchResponse(
        success_count=result.success_count,
        failed_count=result.failed_count,
        first_error=result.first_error,
        printer_name=result.printer_name,
    )


@router.post("/tspl", response_model=DispatchResponse)
async def print_tspl(
    request: PrintTSPLRequest,
    service: PrintService = Depends(get_print_service),
    bridge_service: PrintService = Depends(get_bridge_print_service),
) -> DispatchResponse:
    """Печать готовой программы TSPL/ZPL (PrintNode или локальный мост)."""
    if request.via_bridge:
        result = await bridge_service.print_tspl(
            request.program, copies=request.copies, target=request.printer_name
        )
    else:
        result = await service.print_tspl(
            request.program, copies=request.copies, target=request.printer_id
        )
    return DispatchResponse(success=result.success, job_id=result.job_id, error=result.error)


@router.post("/test", response_model=DispatchResponse)
async def print_test_label(
    printer_id: int | None = None,
    service: PrintService = Depends(get_print_service),
) -> DispatchResponse:
    """Тестовая этикетка для проверки принтера."""
    result = await service.print_tspl(build_sample_label(), target=printer_id, title="Test Label")
    return DispatchResponse(success=result.success, job_id=result.job_id, error=result.error)


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def job_status(
    job_id: int,
    client: PrintNodeClient = Depends(get_printnode_client),
) -> JobStatusResponse:
    """Состояние задания PrintNode (new, sent_to_client, done, error...)."""
    return JobStatusResponse(job_id=job_id, state=await client.get_job_status(job_id))


@router.get("/printers", response_model=list[PrinterResponse])
async def list_printers(
    client: PrintNodeClient = Depends(get_printnode_client),
) -> list[PrinterResponse]:
    """Принтеры PrintNode (с отметкой подходящих для этикеток)."""
    printers = await client.get_printers()
    return [
        PrinterResponse(
            id=printer.id,
            name=printer.name,
            state=printer.state,
            computer=printer.computer,
            is_label_printer=is_label_printer(printer.name),
        )
        for printer in printers
    ]


@router.post("/printers/refresh", response_model=ResolvedPrinterResponse)
async def refresh_printer(
    resolver: PrinterResolver = Depends(get_printer_resolver),
) -> ResolvedPrinterResponse:
    """Сброс кэша и повторный автоподбор принтера."""
    resolver.refresh()
    printer = await resolver.resolve()
    if printer is None:
        return ResolvedPrinterResponse()
    return ResolvedPrinterResponse(id=printer.id, name=printer.name)
