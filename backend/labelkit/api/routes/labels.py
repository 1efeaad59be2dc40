"""
API эндпоинты генерации этикеток.

TSPL (по layout, legacy, по сцене редактора), быстрая программа TSPL/ZPL
для карточки, превью PNG и PDF.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from labelkit.api.dependencies import get_quote_policy
from labelkit.config import get_settings
from labelkit.models.label_types import LabelLayout
from labelkit.models.schemas import (
    CardRenderRequest,
    CardRenderResponse,
    ProgramResponse,
    RasterRequest,
    SceneTSPLRequest,
    TSPLFromLayoutRequest,
    TSPLLegacyRequest,
    resolve_field_config,
)
from labelkit.services.card_data import render_card_program
from labelkit.services.label_renderer import generate_label_pdf, generate_label_png
from labelkit.services.scene_translator import fabric_to_tspl
from labelkit.services.tspl import (
    QuotePolicy,
    generate_boxed_layout_tspl,
    generate_tspl_from_layout,
    label_data_to_tspl,
)

router = APIRouter(prefix="/labels")
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/tspl", response_model=ProgramResponse)
async def tspl_from_layout(
    request: TSPLFromLayoutRequest,
    quote_policy: QuotePolicy = Depends(get_quote_policy),
) -> ProgramResponse:
    """
    Программа TSPL по layout и данным.

    Без layout используется стандартный.
    """
    layout = request.layout.to_domain() if request.layout else LabelLayout.default()
    program = generate_tspl_from_layout(
        layout,
        request.data.to_domain(),
        request.settings.to_domain() if request.settings else None,
        quote_policy,
    )
    return ProgramResponse(program=program)


@router.post("/tspl/legacy", response_model=ProgramResponse)
async def tspl_legacy(
    request: TSPLLegacyRequest,
    quote_policy: QuotePolicy = Depends(get_quote_policy),
) -> ProgramResponse:
    """Программа TSPL фиксированного layout (или layout с рамками)."""
    generator = generate_boxed_layout_tspl if request.boxed else label_data_to_tspl
    program = generator(
        request.data.to_domain(),
        request.field_config.to_domain(),
        request.settings.to_domain() if request.settings else None,
        quote_policy,
    )
    return ProgramResponse(program=program)


@router.post("/scene/tspl", response_model=ProgramResponse)
async def tspl_from_scene(
    request: SceneTSPLRequest,
    quote_policy: QuotePolicy = Depends(get_quote_policy),
) -> ProgramResponse:
    """Программа TSPL по сцене свободного редактора."""
    return ProgramResponse(program=fabric_to_tspl(request.objects, quote_policy))


@router.post("/render", response_model=CardRenderResponse)
async def render_card(request: CardRenderRequest) -> CardRenderResponse:
    """
    Программа TSPL (по умолчанию) или ZPL для карточки товара.

    Текст очищается от кавычек и переводов строк и обрезается до 50 символов.
    """
    card = render_card_program(request.to_domain(), request.printer_lang)
    return CardRenderResponse(
        program=card.program, correlation_id=card.correlation_id, lang=card.lang
    )


@router.post("/preview.png")
async def preview_png(request: RasterRequest) -> Response:
    """Превью этикетки в PNG (направляющие по запросу)."""
    png_bytes = await generate_label_png(
        resolve_field_config(request.field_config, request.layout),
        request.data.to_domain(),
        request.dpi or settings.preview_dpi,
        request.show_guides,
    )
    return Response(content=png_bytes, media_type="image/png")


@router.post("/pdf")
async def label_pdf(request: RasterRequest) -> Response:
    """PDF этикетки 2x1 дюйма (направляющие никогда не печатаются)."""
    pdf_bytes = await generate_label_pdf(
        resolve_field_config(request.field_config, request.layout),
        request.data.to_domain(),
        request.dpi or settings.preview_dpi,
    )
    logger.info(f"[RENDER] PDF для {request.data.sku or 'без SKU'}: {len(pdf_bytes)} байт")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="label.pdf"'},
    )
