"""
Pydantic схемы для API.

Модели запросов и ответов. Доменные типы (dataclass) живут в label_types,
здесь только граница HTTP и преобразование в домен.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from labelkit.config import LABEL
from labelkit.models.label_types import LabelData, LabelFieldConfig, LabelLayout, PrinterSettings
from labelkit.services.card_data import CardItem

# === Layout ===


class FieldLayoutSchema(BaseModel):
    """Текстовое поле layout."""

    model_config = ConfigDict(populate_by_name=True)

    visible: bool = True
    x: int = Field(description="X в точках 203 DPI")
    y: int = Field(description="Y в точках 203 DPI")
    font_size: int = Field(default=1, ge=1, le=5, alias="fontSize", description="Размер шрифта TSPL")
    prefix: str = ""


class BarcodeLayoutSchema(BaseModel):
    """Область штрихкода/QR."""

    mode: Literal["qr", "barcode", "none"] = "none"
    x: int = 10
    y: int = 90
    width: int | None = Field(default=None, ge=1)
    height: int | None = Field(default=None, ge=1, le=LABEL.CANVAS_HEIGHT_DOTS)
    size: Literal["S", "M", "L"] = "M"


class PrinterSettingsSchema(BaseModel):
    """Параметры печати."""

    model_config = ConfigDict(populate_by_name=True)

    density: int | None = Field(default=None, ge=0, le=15)
    speed: int | None = Field(default=None, ge=2, le=8)
    gap_inches: float | None = Field(default=None, ge=0, alias="gapInches")

    def to_domain(self) -> PrinterSettings:
        return PrinterSettings(density=self.density, speed=self.speed, gap_inches=self.gap_inches)


class LabelLayoutSchema(BaseModel):
    """
    Layout этикетки.

    Отсутствующие поля заменяются значениями по умолчанию.
    """

    title: FieldLayoutSchema | None = None
    sku: FieldLayoutSchema | None = None
    price: FieldLayoutSchema | None = None
    lot: FieldLayoutSchema | None = None
    condition: FieldLayoutSchema | None = None
    barcode: BarcodeLayoutSchema | None = None
    printer: PrinterSettingsSchema | None = None

    def to_domain(self) -> LabelLayout:
        return LabelLayout.from_dict(self.model_dump(by_alias=True, exclude_none=True))


# === Данные этикетки ===


class LabelDataSchema(BaseModel):
    """Значения полей этикетки."""

    title: str = ""
    sku: str = ""
    price: str = ""
    lot: str = ""
    condition: str = ""
    barcode: str = ""

    def to_domain(self) -> LabelData:
        return LabelData(**self.model_dump())


class FieldConfigSchema(BaseModel):
    """Какие поля рисовать."""

    include_title: bool = True
    include_sku: bool = True
    include_price: bool = True
    include_lot: bool = True
    include_condition: bool = True
    barcode_mode: Literal["qr", "barcode", "none"] = "barcode"

    def to_domain(self) -> LabelFieldConfig:
        return LabelFieldConfig(**self.model_dump())


def resolve_field_config(
    field_config: FieldConfigSchema | None, layout: LabelLayoutSchema | None
) -> LabelFieldConfig:
    """Видимость полей: из layout, иначе из field_config, иначе всё включено."""
    if layout is not None:
        return LabelFieldConfig.from_layout(layout.to_domain())
    if field_config is not None:
        return field_config.to_domain()
    return LabelFieldConfig()


# === TSPL ===


class TSPLFromLayoutRequest(BaseModel):
    """TSPL по layout."""

    layout: LabelLayoutSchema | None = Field(default=None, description="Layout (по умолчанию — стандартный)")
    data: LabelDataSchema
    settings: PrinterSettingsSchema | None = None


class TSPLLegacyRequest(BaseModel):
    """TSPL фиксированного (legacy) или рамочного layout."""

    data: LabelDataSchema
    field_config: FieldConfigSchema = Field(default_factory=FieldConfigSchema)
    settings: PrinterSettingsSchema | None = None
    boxed: bool = Field(default=False, description="Layout с рамками")


class SceneTSPLRequest(BaseModel):
    """Сцена свободного редактора."""

    objects: list[dict[str, Any]] = Field(description="Объекты холста редактора")


class ProgramResponse(BaseModel):
    """Готовая программа для принтера."""

    program: str
    lang: Literal["TSPL", "ZPL"] = "TSPL"


class CardRenderRequest(BaseModel):
    """Карточка товара для быстрой программы TSPL/ZPL."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    lot_number: str | None = None
    price: str | None = None
    grade: str | None = None
    sku: str | None = None
    id: str | None = None
    printer_lang: Literal["TSPL", "ZPL"] = Field(default="TSPL", alias="printerLang")

    def to_domain(self) -> CardItem:
        return CardItem(
            id=self.id,
            title=self.title,
            sku=self.sku,
            price=self.price,
            lot=self.lot_number,
            grade=self.grade,
        )


class CardRenderResponse(BaseModel):
    """Программа карточки и ID для сопоставления с заданием."""

    model_config = ConfigDict(populate_by_name=True)

    program: str
    correlation_id: str = Field(alias="correlationId")
    lang: Literal["TSPL", "ZPL"]


# === Растр ===


class RasterRequest(BaseModel):
    """Запрос превью PNG / PDF."""

    data: LabelDataSchema
    field_config: FieldConfigSchema | None = None
    layout: LabelLayoutSchema | None = Field(default=None, description="Видимость полей из layout")
    dpi: int | None = Field(default=None, ge=24, le=600, description="По умолчанию preview_dpi")
    show_guides: bool = False


# === Сохранённые layout ===


class LayoutCreateRequest(BaseModel):
    """Создание layout."""

    name: str = Field(min_length=1, max_length=255)
    layout: LabelLayoutSchema = Field(default_factory=LabelLayoutSchema)
    is_default: bool = False


class LayoutUpdateRequest(BaseModel):
    """Обновление layout."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    layout: LabelLayoutSchema


class LayoutResponse(BaseModel):
    """Сохранённый layout."""

    id: UUID
    name: str
    template_type: str
    layout: dict[str, Any]
    is_default: bool
    updated_at: datetime | None = None


# === Сырые шаблоны ===


class RawTemplateSaveRequest(BaseModel):
    """Сохранение сырого шаблона."""

    body: str = Field(min_length=1)
    optional_fields: list[str] = Field(default_factory=list)


class RawTemplateResponse(BaseModel):
    """Сырой шаблон."""

    id: str
    body: str
    required_fields: list[str]
    optional_fields: list[str]
    engine: Literal["ZPL", "TSPL"]


class RawTemplateRenderRequest(BaseModel):
    """Значения токенов шаблона."""

    values: dict[str, str] = Field(default_factory=dict)
    engine: Literal["ZPL", "TSPL"] | None = None


# === Печать ===


class PrintLabelRequest(BaseModel):
    """Печать одной растровой этикетки."""

    data: LabelDataSchema
    field_config: FieldConfigSchema | None = None
    layout: LabelLayoutSchema | None = None
    copies: int = Field(default=1, ge=1, le=100)
    title: str | None = None
    printer_id: int | None = Field(default=None, description="По умолчанию автоподбор")


class PrintBatchRequest(BaseModel):
    """Пакетная печать."""

    items: list[LabelDataSchema] = Field(min_length=1)
    field_config: FieldConfigSchema | None = None
    layout: LabelLayoutSchema | None = None
    printer_id: int | None = None
    max_concurrency: int | None = Field(default=None, ge=1, le=16)


class PrintTSPLRequest(BaseModel):
    """Печать готовой программы."""

    program: str = Field(min_length=1)
    copies: int = Field(default=1, ge=1, le=100)
    printer_id: int | None = None
    via_bridge: bool = Field(default=False, description="Через локальный мост вместо PrintNode")
    printer_name: str | None = Field(default=None, description="Имя принтера для моста")


class DispatchResponse(BaseModel):
    """Результат отправки задания."""

    success: bool
    job_id: int | str | None = None
    error: str | None = None


class JobStatusResponse(BaseModel):
    """Состояние задания PrintNode (None, если недоступно)."""

    job_id: int
    state: str | None = None


class BatchResponse(BaseModel):
    """Итог пакетной печати."""

    success_count: int
    failed_count: int
    first_error: str | None = None
    printer_name: str | None = None


class PrinterResponse(BaseModel):
    """Принтер PrintNode."""

    id: int
    name: str
    state: str | None = None
    computer: str | None = None
    is_label_printer: bool = False


class ResolvedPrinterResponse(BaseModel):
    """Автоматически выбранный принтер."""

    id: int | None = None
    name: str | None = None
