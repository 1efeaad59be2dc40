"""
API эндпоинты сырых шаблонов ZPL/TSPL.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from labelkit.api.dependencies import get_raw_template_repo
from labelkit.models.schemas import (
    ProgramResponse,
    RawTemplateRenderRequest,
    RawTemplateResponse,
    RawTemplateSaveRequest,
)
from labelkit.repositories import RawTemplateRepository
from labelkit.services.errors import TEMPLATE_NOT_FOUND
from labelkit.services.raw_template import RawTemplate, render_raw_template

router = APIRouter(prefix="/raw-templates")


def _to_response(template: RawTemplate) -> RawTemplateResponse:
    return RawTemplateResponse(
        id=template.id,
        body=template.body,
        required_fields=template.required_fields,
        optional_fields=template.optional_fields,
        engine=template.engine,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TEMPLATE_NOT_FOUND.to_dict())


@router.get("", response_model=list[RawTemplateResponse])
async def list_raw_templates(
    repo: RawTemplateRepository = Depends(get_raw_template_repo),
) -> list[RawTemplateResponse]:
    """Все шаблоны, новые первыми."""
    return [_to_response(template) for template in await repo.list()]


@router.get("/{template_id}", response_model=RawTemplateResponse)
async def get_raw_template(
    template_id: str,
    repo: RawTemplateRepository = Depends(get_raw_template_repo),
) -> RawTemplateResponse:
    template = await repo.get(template_id)
    if template is None:
        raise _not_found()
    return _to_response(template)


@router.put("/{template_id}", response_model=RawTemplateResponse)
async def save_raw_template(
    template_id: str,
    request: RawTemplateSaveRequest,
    repo: RawTemplateRepository = Depends(get_raw_template_repo),
) -> RawTemplateResponse:
    """Создание или перезапись шаблона (тело хранится как есть)."""
    template = await repo.save(template_id, request.body, request.optional_fields)
    return _to_response(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_raw_template(
    template_id: str,
    repo: RawTemplateRepository = Depends(get_raw_template_repo),
) -> None:
    if not await repo.delete(template_id):
        raise _not_found()


@router.post("/{template_id}/render", response_model=ProgramResponse)
async def render_template(
    template_id: str,
    request: RawTemplateRenderRequest,
    repo: RawTemplateRepository = Depends(get_raw_template_repo),
) -> ProgramResponse:
    """
    Готовая программа: подстановка значений и защита размера 2x1.

    Не хватает значения токена — 422 с именем токена.
    """
    template = await repo.get(template_id)
    if template is None:
        raise _not_found()
    engine = request.engine or template.engine
    program = render_raw_template(template, request.values, engine)
    return ProgramResponse(program=program, lang=engine)
