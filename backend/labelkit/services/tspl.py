# backend/labelkit/services/tspl.py
"""
Генератор TSPL (TSC Printer Language) для этикеток 2"x1" при 203 DPI.

Программа — по одной команде на строку, в фиксированном порядке:
SIZE, GAP, DENSITY, SPEED, DIRECTION, REFERENCE, CLS, затем TEXT
(в порядке входа — поздние команды могут перекрывать ранние),
QRCODE (не больше одного), BARCODE, BAR и ровно один PRINT 1.
Количество копий задаёт вызывающий код, повторяя отправку.
"""

import logging
from enum import Enum

from labelkit.config import LABEL
from labelkit.models.label_types import (
    Bar,
    Barcode,
    LabelData,
    LabelFieldConfig,
    LabelLayout,
    PrinterSettings,
    QRCode,
    TextLine,
    TSPLOptions,
)
from labelkit.services.errors import ValidationError
from labelkit.services.geometry import dots

logger = logging.getLogger(__name__)

# Ширина ячейки QR (в точках) по размеру S/M/L
QR_CELL_WIDTH = {"S": 3, "M": 4, "L": 6}

# Примерная ширина символа встроенного шрифта в точках по размеру 1-5
CHAR_WIDTH_BY_FONT_SIZE = {1: 6, 2: 12, 3: 18, 4: 24, 5: 30}

# Максимальная длина названия в TSPL (длиннее не влезает в 2 дюйма)
TITLE_MAX_CHARS = 25

DEFAULT_PREFIXES = {"sku": "SKU: ", "price": "$", "lot": "LOT: "}

# Символы, ломающие кавычки аргумента TSPL
_UNSAFE_CHARS = ('"', "\r", "\n")


class QuotePolicy(str, Enum):
    """Что делать с кавычками и переводами строк внутри текста команды."""

    PASSTHROUGH = "passthrough"  # Как есть (legacy, ломает кавычки команды)
    SANITIZE = "sanitize"  # Заменить на пробел
    REJECT = "reject"  # Ошибка валидации


def quote_text(text: str, policy: QuotePolicy = QuotePolicy.SANITIZE) -> str:
    """
    Подготовка текста для аргумента в кавычках.

    Правило экранирования кавычек зависит от прошивки принтера и не проверено,
    поэтому по умолчанию опасные символы заменяются пробелом.
    """
    policy = QuotePolicy(policy)
    if policy == QuotePolicy.PASSTHROUGH:
        return text
    if policy == QuotePolicy.REJECT:
        for char in _UNSAFE_CHARS:
            if char in text:
                raise ValidationError(f"Недопустимый символ {char!r} в тексте: {text!r}")
        return text
    for char in _UNSAFE_CHARS:
        text = text.replace(char, " ")
    return text


def _num(value: float) -> str:
    """Число без лишнего '.0' (0.0 → '0', 0.12 → '0.12')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_tspl(
    options: TSPLOptions | None = None,
    quote_policy: QuotePolicy = QuotePolicy.SANITIZE,
) -> str:
    """
    Собирает программу TSPL.

    Args:
        options: Команды этикетки (пустые — минимальная программа)
        quote_policy: Обработка кавычек в тексте и данных кодов

    Returns:
        Программа TSPL, строки разделены '\\n'
    """
    if options is None:
        options = TSPLOptions()

    commands: list[str] = [
        f"SIZE {LABEL.LABEL_WIDTH_IN},{LABEL.LABEL_HEIGHT_IN}",
        f"GAP {_num(options.gap_inches)},0",
        f"DENSITY {options.density}",
        f"SPEED {options.speed}",
        "DIRECTION 1",
        "REFERENCE 0,0",
        "CLS",
    ]

    # TEXT x,y,"font",rotation,x_scale,y_scale,"content"
    for line in options.text_lines:
        text = quote_text(line.text, quote_policy)
        commands.append(
            f'TEXT {line.x},{line.y},"0",{line.rotation},{line.font_size},{line.font_size},"{text}"'
        )

    # QRCODE x,y,level,cell_width,mode,rotation,"data"
    if options.qrcode is not None:
        qr = options.qrcode
        data = quote_text(qr.data, quote_policy)
        cell_width = QR_CELL_WIDTH[qr.size]
        commands.append(f'QRCODE {qr.x},{qr.y},{qr.error_level},{cell_width},A,0,"{data}"')

    # BARCODE x,y,"type",height,readable,rotation,narrow,wide,"data"
    if options.barcode is not None:
        bc = options.barcode
        data = quote_text(bc.data, quote_policy)
        commands.append(
            f'BARCODE {bc.x},{bc.y},"{bc.type}",{bc.height},1,0,{bc.width},{bc.width},"{data}"'
        )

    for bar in options.lines:
        commands.append(f"BAR {bar.x},{bar.y},{bar.width},{bar.height}")

    commands.append("PRINT 1")

    return "\n".join(commands)


def build_sample_label() -> str:
    """Тестовая этикетка для проверки принтера."""
    return build_tspl(
        TSPLOptions(
            text_lines=[TextLine(text="ALOHA CARD SHOP", x=10, y=20, font_size=2)],
            qrcode=QRCode(data="https://alohacardshop.com", x=10, y=80),
            lines=[Bar(x=10, y=190, width=386, height=2)],
        )
    )


def _with_prefix(value: str, prefix: str) -> str:
    """Префикс без удвоения (цена '$5' остаётся '$5')."""
    if prefix and value.startswith(prefix):
        return value
    return f"{prefix}{value}"


def _print_params(*sources: PrinterSettings | None) -> dict:
    params: dict = {}
    for source in sources:
        if source is not None:
            params.update(source.as_overrides())
    return params


def layout_to_tspl_options(
    layout: LabelLayout,
    data: LabelData,
    settings: PrinterSettings | None = None,
) -> TSPLOptions:
    """
    TSPLOptions из LabelLayout и данных.

    Видимые непустые поля идут в порядке: title, sku, price, lot, condition.
    Параметры печати: layout.printer, поверх — settings.
    """
    text_lines: list[TextLine] = []

    if layout.title.visible and data.title:
        text_lines.append(
            TextLine(
                text=_with_prefix(data.title[:TITLE_MAX_CHARS], layout.title.prefix),
                x=layout.title.x,
                y=layout.title.y,
                font_size=layout.title.font_size,
            )
        )

    for name in ("sku", "price", "lot"):
        field_layout = layout.field(name)
        value = getattr(data, name)
        if field_layout.visible and value:
            prefix = field_layout.prefix or DEFAULT_PREFIXES[name]
            text_lines.append(
                TextLine(
                    text=_with_prefix(value, prefix),
                    x=field_layout.x,
                    y=field_layout.y,
                    font_size=field_layout.font_size,
                )
            )

    if layout.condition.visible and data.condition:
        text_lines.append(
            TextLine(
                text=_with_prefix(data.condition, layout.condition.prefix),
                x=layout.condition.x,
                y=layout.condition.y,
                font_size=layout.condition.font_size,
            )
        )

    options = TSPLOptions(text_lines=text_lines, **_print_params(layout.printer, settings))

    region = layout.barcode
    if region.mode != "none" and data.barcode:
        if region.mode == "qr":
            options.set_qrcode(QRCode(data=data.barcode, x=region.x, y=region.y, size=region.size))
        elif region.mode == "barcode":
            options.barcode = Barcode(
                data=data.barcode,
                x=region.x,
                y=region.y,
                width=region.width or 2,
                height=region.height or 50,
            )

    return options


def generate_tspl_from_layout(
    layout: LabelLayout,
    data: LabelData,
    settings: PrinterSettings | None = None,
    quote_policy: QuotePolicy = QuotePolicy.SANITIZE,
) -> str:
    """Программа TSPL по позициям LabelLayout."""
    options = layout_to_tspl_options(layout, data, settings)
    logger.debug(f"[TSPL] layout: {len(options.text_lines)} текстовых строк")
    return build_tspl(options, quote_policy)


def label_data_to_tspl(
    data: LabelData,
    field_config: LabelFieldConfig | None = None,
    settings: PrinterSettings | None = None,
    quote_policy: QuotePolicy = QuotePolicy.SANITIZE,
) -> str:
    """
    Legacy фиксированный layout (для обратной совместимости).

    ┌──────────────────────────────┐
    │ Title                 $PRICE │
    │ SKU: ...      Condition      │
    │ LOT: ...                     │
    │ ▓▓ barcode / QR              │
    └──────────────────────────────┘

    Новый код должен использовать generate_tspl_from_layout.
    """
    if field_config is None:
        field_config = LabelFieldConfig()

    text_lines: list[TextLine] = []
    y_pos = 10

    if field_config.include_title and data.title:
        text_lines.append(TextLine(text=data.title[:TITLE_MAX_CHARS], x=10, y=y_pos, font_size=2))
        y_pos += 25

    # Вторая строка: SKU и состояние
    second_row_y = y_pos
    if field_config.include_sku and data.sku:
        text_lines.append(TextLine(text=f"SKU: {data.sku}", x=10, y=second_row_y, font_size=1))

    if field_config.include_condition and data.condition:
        text_lines.append(TextLine(text=data.condition, x=200, y=second_row_y, font_size=1))

    if field_config.include_sku or field_config.include_condition:
        y_pos = second_row_y + 20

    if field_config.include_lot and data.lot:
        text_lines.append(TextLine(text=f"LOT: {data.lot}", x=10, y=y_pos, font_size=1))
        y_pos += 20

    # Цена всегда справа сверху
    if field_config.include_price and data.price:
        text_lines.append(TextLine(text=_with_prefix(data.price, "$"), x=280, y=10, font_size=3))

    options = TSPLOptions(text_lines=text_lines, **_print_params(settings))

    if field_config.barcode_mode != "none" and data.barcode:
        code_y = max(y_pos + 10, 90)
        if field_config.barcode_mode == "qr":
            options.set_qrcode(QRCode(data=data.barcode, x=10, y=code_y, size="M"))
        elif field_config.barcode_mode == "barcode":
            options.barcode = Barcode(data=data.barcode, x=10, y=code_y, height=50, width=2)

    return build_tspl(options, quote_policy)


def calculate_optimal_font_size(
    text: str, max_width: int, max_font_size: int = 5, min_font_size: int = 1
) -> int:
    """
    Наибольший размер шрифта TSPL, при котором текст влезает в ширину.

    Ширина оценивается по среднему размеру символа встроенного шрифта.
    """
    for font_size in range(max_font_size, min_font_size - 1, -1):
        if len(text) * CHAR_WIDTH_BY_FONT_SIZE[font_size] <= max_width:
            return font_size
    return min_font_size


def generate_boxed_layout_tspl(
    data: LabelData,
    field_config: LabelFieldConfig,
    settings: PrinterSettings | None = None,
    quote_policy: QuotePolicy = QuotePolicy.SANITIZE,
) -> str:
    """
    Layout с рамками: состояние и цена сверху, код посередине, название внизу.

    ┌──────────────┬──────────────┐
    │  Condition   │    $PRICE    │
    ├──────────────┴──────────────┤
    │  ▓▓ barcode / QR            │
    ├─────────────────────────────┤
    │  Title                      │
    └─────────────────────────────┘
    """
    label_width = dots(LABEL.LABEL_WIDTH_IN)
    label_height = dots(LABEL.LABEL_HEIGHT_IN)

    top_box_height = 50
    title_box_height = 45
    barcode_box_height = label_height - top_box_height - title_box_height
    top_box_width = label_width // 2 - 5

    text_lines: list[TextLine] = []

    if field_config.include_condition and data.condition:
        text_lines.append(
            TextLine(
                text=data.condition,
                x=5,
                y=15,
                font_size=calculate_optimal_font_size(data.condition, top_box_width - 10, 3),
            )
        )

    if field_config.include_price and data.price:
        price_text = _with_prefix(data.price, "$")
        text_lines.append(
            TextLine(
                text=price_text,
                x=label_width // 2 + 5,
                y=15,
                font_size=calculate_optimal_font_size(price_text, top_box_width - 10, 4),
            )
        )

    if field_config.include_title and data.title:
        text_lines.append(
            TextLine(
                text=data.title,
                x=5,
                y=label_height - title_box_height + 10,
                font_size=calculate_optimal_font_size(data.title, label_width - 10, 3),
            )
        )

    lines = [
        Bar(x=0, y=top_box_height, width=label_width, height=2),
        Bar(x=0, y=label_height - title_box_height, width=label_width, height=2),
        Bar(x=label_width // 2, y=0, width=2, height=top_box_height),
    ]

    options = TSPLOptions(text_lines=text_lines, lines=lines, **_print_params(settings))

    if field_config.barcode_mode != "none" and data.barcode:
        code_x, code_y = 20, top_box_height + 10
        if field_config.barcode_mode == "qr":
            available_height = barcode_box_height - 20
            if available_height < 60:
                size = "S"
            elif available_height < 90:
                size = "M"
            else:
                size = "L"
            options.set_qrcode(QRCode(data=data.barcode, x=code_x, y=code_y, size=size))
        elif field_config.barcode_mode == "barcode":
            options.barcode = Barcode(
                data=data.barcode,
                x=code_x,
                y=code_y,
                height=min(50, barcode_box_height - 20),
                width=2,
            )

    return build_tspl(options, quote_policy)
