# backend/labelkit/models/label_types.py
"""
Типы данных этикетки 2"x1".

- LabelLayout — каноническое описание полей и области штрихкода (точки 203 DPI)
- LabelData — значения, которые подставляются в layout
- TSPLOptions — набор команд для генератора TSPL
- SceneObject — фигуры свободного редактора
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from labelkit.services.errors import LayoutValidationError, ValidationError
from labelkit.services.geometry import clamp_barcode_position, clamp_field_position, in_canvas

BarcodeMode = Literal["qr", "barcode", "none"]
QRSize = Literal["S", "M", "L"]
ErrorLevel = Literal["L", "M", "Q", "H"]

FONT_SIZES = (1, 2, 3, 4, 5)
ROTATIONS = (0, 90, 180, 270)
QR_SIZES = ("S", "M", "L")
ERROR_LEVELS = ("L", "M", "Q", "H")
BARCODE_MODES = ("qr", "barcode", "none")

# Порядок полей важен: в таком порядке они уходят в TSPL
TEXT_FIELDS = ("title", "sku", "price", "lot", "condition")

# Сторона квадрата QR в редакторе по размеру S/M/L
QR_PREVIEW_SIZES = {"S": 40, "M": 60, "L": 80}


# === Layout ===


@dataclass
class FieldLayout:
    """Положение и видимость одного текстового поля."""

    visible: bool = True
    x: int = 0
    y: int = 0
    font_size: int = 1
    prefix: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "x": self.x,
            "y": self.y,
            "fontSize": self.font_size,
            "prefix": self.prefix,
        }


@dataclass
class BarcodeLayout:
    """Область штрихкода/QR."""

    mode: BarcodeMode = "none"
    x: int = 10
    y: int = 90
    width: int | None = None
    height: int | None = None
    size: QRSize = "M"

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "size": self.size,
        }

    @property
    def box(self) -> tuple[int, int]:
        """Размер области в редакторе (ширина, высота)."""
        side = QR_PREVIEW_SIZES.get(self.size, 60)
        return (self.width or side, self.height or side)


@dataclass
class PrinterSettings:
    """Параметры печати, сохранённые вместе с layout (не интерпретируются ядром)."""

    density: int | None = None
    speed: int | None = None
    gap_inches: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "density": self.density,
            "speed": self.speed,
            "gapInches": self.gap_inches,
        }

    def as_overrides(self) -> dict[str, Any]:
        """Только заданные параметры — для слияния с настройками печати."""
        values = {
            "density": self.density,
            "speed": self.speed,
            "gap_inches": self.gap_inches,
        }
        return {k: v for k, v in values.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PrinterSettings | None":
        if data is None:
            return None
        return cls(
            density=data.get("density"),
            speed=data.get("speed"),
            gap_inches=data.get("gapInches", data.get("gap_inches")),
        )


def _default_fields() -> dict[str, FieldLayout]:
    return {
        "title": FieldLayout(visible=True, x=15, y=15, font_size=2, prefix=""),
        "sku": FieldLayout(visible=True, x=15, y=45, font_size=1, prefix="SKU: "),
        "price": FieldLayout(visible=True, x=280, y=15, font_size=3, prefix="$"),
        "lot": FieldLayout(visible=True, x=15, y=70, font_size=1, prefix="LOT: "),
        "condition": FieldLayout(visible=True, x=200, y=45, font_size=1, prefix=""),
    }


def _load_field(raw: dict[str, Any] | None, default: FieldLayout) -> FieldLayout:
    raw = raw or {}
    font_size = raw.get("fontSize", raw.get("font_size"))
    return FieldLayout(
        visible=raw["visible"] if raw.get("visible") is not None else default.visible,
        x=raw["x"] if raw.get("x") is not None else default.x,
        y=raw["y"] if raw.get("y") is not None else default.y,
        font_size=font_size if font_size is not None else default.font_size,
        prefix=raw["prefix"] if raw.get("prefix") is not None else default.prefix,
    )


@dataclass
class LabelLayout:
    """
    Каноническое описание этикетки.

    Координаты — точки 203 DPI на холсте 386x203, начало в левом верхнем углу.
    При программном создании координаты НЕ ограничиваются — перед сохранением
    вызывающий код проверяет их через validate_bounds().
    """

    title: FieldLayout
    sku: FieldLayout
    price: FieldLayout
    lot: FieldLayout
    condition: FieldLayout
    barcode: BarcodeLayout
    printer: PrinterSettings | None = None

    @classmethod
    def default(cls) -> "LabelLayout":
        """Layout по умолчанию."""
        return cls(**_default_fields(), barcode=BarcodeLayout())

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "LabelLayout":
        """
        Загрузка layout из сохранённой записи.

        Отсутствующие ключи заменяются значениями по умолчанию,
        чтобы старые записи не ломали рендеринг.
        """
        data = data or {}
        defaults = _default_fields()
        fields = {name: _load_field(data.get(name), defaults[name]) for name in TEXT_FIELDS}

        raw_barcode = data.get("barcode") or {}
        base = BarcodeLayout()
        barcode = BarcodeLayout(
            mode=raw_barcode.get("mode") or base.mode,
            x=raw_barcode["x"] if raw_barcode.get("x") is not None else base.x,
            y=raw_barcode["y"] if raw_barcode.get("y") is not None else base.y,
            width=raw_barcode.get("width"),
            height=raw_barcode.get("height"),
            size=raw_barcode.get("size") or base.size,
        )

        return cls(
            **fields,
            barcode=barcode,
            printer=PrinterSettings.from_dict(data.get("printer")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Сериализация целиком (JSON-совместимо, camelCase как в сохранённых записях)."""
        result: dict[str, Any] = {name: self.field(name).to_dict() for name in TEXT_FIELDS}
        result["barcode"] = self.barcode.to_dict()
        if self.printer is not None:
            result["printer"] = self.printer.to_dict()
        return result

    def field(self, name: str) -> FieldLayout:
        """Текстовое поле по имени."""
        if name not in TEXT_FIELDS:
            raise ValidationError(f"Неизвестное поле: {name}")
        return getattr(self, name)

    def move_field(self, name: str, x: float, y: float, grid: int = 1) -> None:
        """
        Перемещение поля из редактора.

        В отличие от программного создания, позиция ограничивается холстом.
        """
        if name == "barcode":
            width, height = self.barcode.box
            self.barcode.x, self.barcode.y = clamp_barcode_position(x, y, width, height, grid)
            return
        target = self.field(name)
        target.x, target.y = clamp_field_position(x, y, grid)

    def validate_bounds(self) -> None:
        """
        Проверка координат перед сериализацией.

        Raises:
            LayoutValidationError: Если хотя бы одна позиция вне холста
        """
        problems = []
        for name in TEXT_FIELDS:
            item = self.field(name)
            if not in_canvas(item.x, item.y):
                problems.append(f"{name}=({item.x},{item.y})")
        if not in_canvas(self.barcode.x, self.barcode.y):
            problems.append(f"barcode=({self.barcode.x},{self.barcode.y})")
        if problems:
            raise LayoutValidationError(problems)


# === Данные этикетки ===


@dataclass(frozen=True)
class LabelData:
    """Значения для одной этикетки."""

    title: str = ""
    sku: str = ""
    price: str = ""
    lot: str = ""
    condition: str = ""
    barcode: str = ""  # Строка, кодируемая штрихкодом/QR (обычно = sku)


@dataclass
class LabelFieldConfig:
    """Какие поля показывать на растровой этикетке."""

    include_title: bool = True
    include_sku: bool = True
    include_price: bool = True
    include_lot: bool = True
    include_condition: bool = True
    barcode_mode: BarcodeMode = "barcode"

    @classmethod
    def from_layout(cls, layout: LabelLayout) -> "LabelFieldConfig":
        """
        Видимость полей из LabelLayout.

        Видимость бинарная: скрытое поле в печатном растре не рисуется вовсе
        (превью редактора показывает скрытые поля приглушёнными — это другой путь).
        """
        return cls(
            include_title=layout.title.visible,
            include_sku=layout.sku.visible,
            include_price=layout.price.visible,
            include_lot=layout.lot.visible,
            include_condition=layout.condition.visible,
            barcode_mode=layout.barcode.mode,
        )


# === Вход генератора TSPL ===


@dataclass
class TextLine:
    """Команда TEXT."""

    text: str
    x: int = 10
    y: int = 20
    font_size: int = 1
    rotation: int = 0

    def __post_init__(self) -> None:
        if self.font_size not in FONT_SIZES:
            raise ValidationError(f"Размер шрифта TSPL должен быть 1-5, получено: {self.font_size}")
        if self.rotation not in ROTATIONS:
            raise ValidationError(f"Поворот должен быть 0/90/180/270, получено: {self.rotation}")


@dataclass
class QRCode:
    """Команда QRCODE."""

    data: str
    x: int = 10
    y: int = 80
    size: QRSize = "M"
    error_level: ErrorLevel = "M"

    def __post_init__(self) -> None:
        if self.size not in QR_SIZES:
            raise ValidationError(f"Размер QR должен быть S/M/L, получено: {self.size}")
        if self.error_level not in ERROR_LEVELS:
            raise ValidationError(f"Уровень коррекции должен быть L/M/Q/H: {self.error_level}")


@dataclass
class Barcode:
    """Команда BARCODE (линейный штрихкод)."""

    data: str
    x: int = 10
    y: int = 80
    width: int = 2
    height: int = 50
    type: Literal["CODE128", "CODE39", "EAN13", "EAN8"] = "CODE128"


@dataclass
class Bar:
    """Команда BAR (линия/прямоугольник)."""

    x: int
    y: int
    width: int
    height: int


@dataclass
class TSPLOptions:
    """
    Набор команд для одной этикетки.

    Намеренно отделён от LabelLayout: строится из layout+данных
    или из сцены свободного редактора.
    """

    text_lines: list[TextLine] = field(default_factory=list)
    qrcode: QRCode | None = None
    barcode: Barcode | None = None
    lines: list[Bar] = field(default_factory=list)
    gap_inches: float = 0
    density: int = 10
    speed: int = 4

    def __post_init__(self) -> None:
        if not 0 <= self.density <= 15:
            raise ValidationError(f"Плотность должна быть 0-15, получено: {self.density}")
        if not 2 <= self.speed <= 8:
            raise ValidationError(f"Скорость должна быть 2-8, получено: {self.speed}")
        if self.gap_inches < 0:
            raise ValidationError(f"Зазор не может быть отрицательным: {self.gap_inches}")

    def set_qrcode(self, qrcode: QRCode) -> None:
        """Один QR на этикетку: повторный вызов заменяет предыдущий."""
        self.qrcode = qrcode


# === Сцена свободного редактора ===


@dataclass
class SceneMeta:
    """Метка картинки: что она изображает."""

    type: Literal["barcode", "qrcode"]
    data: str = ""


@dataclass
class SceneObject:
    """Фигура на холсте редактора."""

    type: str
    left: float = 0
    top: float = 0
    width: float = 0
    height: float = 0
    scale_x: float = 1
    scale_y: float = 1
    angle: float = 0
    font_size: float = 12
    text: str = ""
    name: str | None = None
    exclude_from_export: bool = False
    meta: SceneMeta | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneObject":
        """Чтение объекта из JSON редактора."""
        raw_meta = data.get("meta")
        meta = None
        if isinstance(raw_meta, dict) and raw_meta.get("type") in ("barcode", "qrcode"):
            meta = SceneMeta(type=raw_meta["type"], data=str(raw_meta.get("data") or ""))

        return cls(
            type=str(data.get("type", "")),
            left=data.get("left") or 0,
            top=data.get("top") or 0,
            width=data.get("width") or 0,
            height=data.get("height") or 0,
            scale_x=data.get("scaleX") or 1,
            scale_y=data.get("scaleY") or 1,
            angle=data.get("angle") or 0,
            font_size=data.get("fontSize") or 12,
            text=data.get("text") or "",
            name=data.get("name"),
            exclude_from_export=bool(data.get("excludeFromExport", False)),
            meta=meta,
        )


def scene_from_json(payload: list[dict[str, Any]] | dict[str, Any]) -> list[SceneObject]:
    """Сцена из JSON: список объектов или {"objects": [...]}."""
    objects = payload.get("objects", []) if isinstance(payload, dict) else payload
    return [SceneObject.from_dict(obj) for obj in objects]
