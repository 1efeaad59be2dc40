"""
API эндпоинты сохранённых layout этикеток.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from labelkit.api.dependencies import get_layout_repo
from labelkit.db.models import LabelTemplate
from labelkit.models.label_types import LabelLayout
from labelkit.models.schemas import LayoutCreateRequest, LayoutResponse, LayoutUpdateRequest
from labelkit.repositories import LayoutRepository
from labelkit.services.errors import LAYOUT_NOT_FOUND

router = APIRouter(prefix="/layouts")


def _to_response(template: LabelTemplate) -> LayoutResponse:
    # Через from_dict: старые записи без части ключей получают значения по умолчанию
    return LayoutResponse(
        id=template.id,
        name=template.name,
        template_type=template.template_type,
        layout=LabelLayout.from_dict(template.canvas).to_dict(),
        is_default=template.is_default,
        updated_at=template.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=LAYOUT_NOT_FOUND.to_dict())


@router.get("", response_model=list[LayoutResponse])
async def list_layouts(repo: LayoutRepository = Depends(get_layout_repo)) -> list[LayoutResponse]:
    """Все layout: сначала по умолчанию, затем по имени."""
    return [_to_response(template) for template in await repo.list()]


@router.post("", response_model=LayoutResponse, status_code=status.HTTP_201_CREATED)
async def create_layout(
    request: LayoutCreateRequest,
    repo: LayoutRepository = Depends(get_layout_repo),
) -> LayoutResponse:
    """Сохранение нового layout (координаты проверяются)."""
    layout_id = await repo.create(request.name, request.layout.to_domain(), request.is_default)
    template = await repo.get(layout_id)
    if template is None:
        raise _not_found()
    return _to_response(template)


@router.get("/default", response_model=LayoutResponse)
async def get_default_layout(repo: LayoutRepository = Depends(get_layout_repo)) -> LayoutResponse:
    """Layout по умолчанию (404, если не выбран)."""
    template = await repo.get_default()
    if template is None:
        raise _not_found()
    return _to_response(template)


@router.get("/{layout_id}", response_model=LayoutResponse)
async def get_layout(
    layout_id: UUID,
    repo: LayoutRepository = Depends(get_layout_repo),
) -> LayoutResponse:
    template = await repo.get(layout_id)
    if template is None:
        raise _not_found()
    return _to_response(template)


@router.put("/{layout_id}", response_model=LayoutResponse)
async def update_layout(
    layout_id: UUID,
    request: LayoutUpdateRequest,
    repo: LayoutRepository = Depends(get_layout_repo),
) -> LayoutResponse:
    template = await repo.update(layout_id, request.layout.to_domain(), request.name)
    if template is None:
        raise _not_found()
    return _to_response(template)


@router.delete("/{layout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_layout(
    layout_id: UUID,
    repo: LayoutRepository = Depends(get_layout_repo),
) -> None:
    if not await repo.delete(layout_id):
        raise _not_found()


@router.post("/{layout_id}/default", response_model=LayoutResponse)
async def set_default_layout(
    layout_id: UUID,
    repo: LayoutRepository = Depends(get_layout_repo),
) -> LayoutResponse:
    """Сделать layout единственным по умолчанию."""
    template = await repo.set_default(layout_id)
    if template is None:
        raise _not_found()
    return _to_response(template)
