# backend/labelkit/services/label_renderer.py
"""
Растровый рендерер этикетки 2"x1" (Pillow) и сборка PDF (ReportLab).

Разметка задана в базовых пикселях поверхности 406x203. Масштаб превью
(dpi / 96) умножает все координаты и размеры шрифтов одновременно.

┌────────────┬──────────────────────────┐
│ CONDITION  │          $PRICE   LOT:.. │
├────────────┴──────────────────────────┤
│ SKU: ...                              │
│ Title line 1                          │
│ Title line 2                          │
│      ▌▌▐▐▌▌▐▌▐▐▌▌ barcode / QR        │
└───────────────────────────────────────┘
"""

import asyncio
import logging
from collections.abc import Callable
from functools import lru_cache
from io import BytesIO

from barcode import Code128
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from labelkit.config import LABEL
from labelkit.models.label_types import LabelData, LabelFieldConfig
from labelkit.services.errors import RenderError, TranscodeError
from labelkit.services.geometry import preview_scale

logger = logging.getLogger(__name__)

# Шрифты в порядке приоритета (Docker → Linux → Windows)
FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "C:/Windows/Fonts/arial.ttf",
]
BOLD_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
]

# Разметка в базовых пикселях: (x, y, ширина, высота)
RASTER_LAYOUT = {
    "padding": 10,
    "condition_box": (10, 10, 120, 60),
    "condition_text": (15, 15, 110, 50),
    "price_box": (140, 10, 256, 60),
    "price_text": (145, 15, 246, 50),
    "lot": (391, 25),  # Правый край, по центру верхнего поля
    "sku": (15, 74),
    "title": (15, 88, 376, 40),
    "barcode": (35, 132, 336, 60),
}

TITLE_LINE_HEIGHT = 20
TITLE_MAX_LINES = 2
SMALL_FONT_SIZE = 10
FALLBACK_FONT_SIZE = 12
MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 40

# Сетка заглушки QR
QR_PLACEHOLDER_MODULES = 21

# Measure: (текст, размер шрифта в базовых px) → ширина в базовых px
Measure = Callable[[str, int], float]


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """Шрифт нужного размера (встроенный шрифт Pillow, если системных нет)."""
    for path in BOLD_FONT_PATHS if bold else FONT_PATHS:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def calculate_font_size(
    text: str,
    max_width: float,
    max_height: float,
    measure: Measure,
    floor: int = MIN_FONT_SIZE,
    ceiling: int = MAX_FONT_SIZE,
) -> int:
    """
    Подбор размера шрифта, чтобы текст влез в рамку.

    Начинает с min(80% высоты, ceiling) и уменьшает на 2,
    пока текст не влезет по ширине или не будет достигнут floor.

    Returns:
        Размер шрифта в диапазоне [floor, ceiling]
    """
    font_size = int(min(max_height * 0.8, ceiling))
    while font_size > floor and measure(text, font_size) > max_width:
        font_size -= 2
    return max(floor, min(ceiling, font_size))


def wrap_words(
    text: str,
    max_width: float,
    measure: Callable[[str], float],
    max_lines: int = TITLE_MAX_LINES,
) -> list[str]:
    """
    Жадный перенос по словам.

    Слова, не поместившиеся в max_lines строк, отбрасываются без многоточия.
    Одно длинное слово занимает строку целиком, даже если шире рамки.
    """
    lines: list[str] = []
    current = ""

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if not current or measure(candidate) <= max_width:
            current = candidate
            continue
        lines.append(current)
        if len(lines) == max_lines:
            return lines
        current = word

    if current and len(lines) < max_lines:
        lines.append(current)
    return lines


class LabelRenderer:
    """
    Рисует этикетку на готовой поверхности Pillow.

    Поверхность принадлежит вызывающему коду: рендерер только рисует на ней.
    """

    def __init__(self, scale: float = 1.0):
        """
        Инициализация рендерера.

        Args:
            scale: Множитель всех координат и шрифтов (dpi / 96 для превью)
        """
        if scale <= 0:
            raise ValueError(f"Масштаб должен быть положительным: {scale}")
        self.scale = scale

    @property
    def surface_size(self) -> tuple[int, int]:
        """Ожидаемый размер поверхности в пикселях."""
        return (
            round(LABEL.LABEL_WIDTH_DOTS * self.scale),
            round(LABEL.LABEL_HEIGHT_DOTS * self.scale),
        )

    def draw(
        self,
        surface: Image.Image | None,
        field_config: LabelFieldConfig,
        data: LabelData,
        show_guides: bool = False,
    ) -> None:
        """
        Рисует этикетку.

        Args:
            surface: Изображение размером surface_size
            field_config: Какие поля рисовать
            data: Значения полей
            show_guides: Пунктирные рамки областей (только для превью)

        Raises:
            RenderError: Если поверхности нет или её размер не совпадает
        """
        if surface is None:
            raise RenderError("Поверхность для рисования недоступна")
        if surface.size != self.surface_size:
            raise RenderError(
                f"Неверный размер поверхности: {surface.size}, ожидается {self.surface_size}"
            )

        draw = ImageDraw.Draw(surface)
        width, height = surface.size

        # Фон и рамка
        draw.rectangle([0, 0, width - 1, height - 1], fill=LABEL.COLOR_WHITE)
        border = self._px(1)
        draw.rectangle(
            [border, border, width - 1 - border, height - 1 - border],
            outline=LABEL.COLOR_GUIDE,
            width=self._px(2),
        )

        if show_guides:
            for key in ("condition_box", "price_box", "title", "barcode"):
                self._draw_guide(draw, RASTER_LAYOUT[key])

        if field_config.include_condition and data.condition:
            self._draw_centered(draw, data.condition, RASTER_LAYOUT["condition_text"])

        if field_config.include_price and data.price:
            self._draw_centered(draw, data.price, RASTER_LAYOUT["price_text"])

        if field_config.include_lot and data.lot:
            x, y = RASTER_LAYOUT["lot"]
            draw.text(
                self._point(x, y),
                f"LOT: {data.lot}",
                fill=LABEL.COLOR_MUTED,
                font=load_font(self._px(SMALL_FONT_SIZE)),
                anchor="rm",
            )

        if field_config.include_sku and data.sku:
            x, y = RASTER_LAYOUT["sku"]
            draw.text(
                self._point(x, y),
                f"SKU: {data.sku}",
                fill=LABEL.COLOR_MUTED,
                font=load_font(self._px(SMALL_FONT_SIZE)),
                anchor="lt",
            )

        if field_config.include_title and data.title:
            self._draw_title(draw, data.title)

        if field_config.barcode_mode == "barcode" and data.barcode:
            self._draw_barcode(surface, draw, data.barcode)
        elif field_config.barcode_mode == "qr" and data.barcode:
            self._draw_qr_placeholder(draw, data.barcode)

    # === Вспомогательные методы ===

    def _px(self, value: float) -> int:
        """Базовые пиксели → пиксели поверхности (минимум 1)."""
        return max(1, round(value * self.scale))

    def _point(self, x: float, y: float) -> tuple[int, int]:
        return (round(x * self.scale), round(y * self.scale))

    def measure(self, text: str, font_size: int, bold: bool = False) -> float:
        """Ширина текста в базовых пикселях."""
        font = load_font(self._px(font_size), bold)
        return font.getlength(text) / self.scale

    def _draw_centered(self, draw: ImageDraw.ImageDraw, text: str, box: tuple) -> None:
        """Жирный текст по центру рамки с подбором размера."""
        x, y, w, h = box
        font_size = calculate_font_size(
            text, w, h, lambda value, size: self.measure(value, size, bold=True)
        )
        draw.text(
            self._point(x + w / 2, y + h / 2),
            text,
            fill=LABEL.COLOR_BLACK,
            font=load_font(self._px(font_size), bold=True),
            anchor="mm",
        )

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str) -> None:
        """
        Название в две строки.

        Размер подбирается один раз по всей строке против бюджета двух строк,
        затем текст переносится по словам.
        """
        x, y, w, _ = RASTER_LAYOUT["title"]
        font_size = calculate_font_size(
            title, w * TITLE_MAX_LINES, TITLE_LINE_HEIGHT, self.measure
        )
        lines = wrap_words(title, w, lambda value: self.measure(value, font_size))
        font = load_font(self._px(font_size))
        for index, line in enumerate(lines):
            draw.text(
                self._point(x, y + index * TITLE_LINE_HEIGHT),
                line,
                fill=LABEL.COLOR_BLACK,
                font=font,
                anchor="lt",
            )

    def _draw_barcode(self, surface: Image.Image, draw: ImageDraw.ImageDraw, value: str) -> None:
        """CODE128 в нижней полосе. При ошибке кодирования — данные текстом."""
        x, y, w, h = RASTER_LAYOUT["barcode"]
        try:
            image = self._generate_code128(value)
        except Exception as e:
            logger.warning(f"[RENDER] Штрихкод не сгенерирован ({value!r}): {e}")
            draw.text(
                self._point(x + w / 2, y + h / 2),
                value,
                fill=LABEL.COLOR_BLACK,
                font=load_font(self._px(FALLBACK_FONT_SIZE)),
                anchor="mm",
            )
            return

        target = (self._px(w), self._px(h))
        image = image.resize(target, Image.Resampling.NEAREST)
        surface.paste(image, self._point(x, y))

    def _generate_code128(self, value: str) -> Image.Image:
        """Штрихкод через python-barcode (без подписи — данные уже в SKU)."""
        buffer = BytesIO()
        options = {
            "module_width": 0.25,
            "module_height": 10.0,
            "quiet_zone": 1.0,
            "write_text": False,
            "dpi": LABEL.DPI,
        }
        Code128(value, writer=ImageWriter()).write(buffer, options=options)
        buffer.seek(0)
        return Image.open(buffer).convert("RGB")

    def _draw_qr_placeholder(self, draw: ImageDraw.ImageDraw, value: str) -> None:
        """
        Заглушка QR: детерминированный узор 21x21.

        Это НЕ сканируемый QR — настоящий QR печатает принтер командой QRCODE.
        """
        x, y, _, h = RASTER_LAYOUT["barcode"]
        cell = h / QR_PLACEHOLDER_MODULES
        for i in range(QR_PLACEHOLDER_MODULES):
            for j in range(QR_PLACEHOLDER_MODULES):
                if (i + j + len(value)) % 3 != 0:
                    continue
                left, top = self._point(x + j * cell, y + i * cell)
                right, bottom = self._point(x + (j + 1) * cell, y + (i + 1) * cell)
                draw.rectangle(
                    [left, top, max(left, right - 1), max(top, bottom - 1)],
                    fill=LABEL.COLOR_BLACK,
                )

    def _draw_guide(self, draw: ImageDraw.ImageDraw, box: tuple) -> None:
        """Пунктирная рамка области."""
        x, y, w, h = box
        left, top = self._point(x, y)
        right, bottom = self._point(x + w, y + h)
        dash, gap = self._px(4), self._px(3)
        for x1, y1, x2, y2 in (
            (left, top, right, top),
            (left, bottom, right, bottom),
            (left, top, left, bottom),
            (right, top, right, bottom),
        ):
            horizontal = y1 == y2
            start, end = (x1, x2) if horizontal else (y1, y2)
            position = start
            while position < end:
                stop = min(position + dash, end)
                if horizontal:
                    draw.line([(position, y1), (stop, y1)], fill=LABEL.COLOR_GUIDE)
                else:
                    draw.line([(x1, position), (x1, stop)], fill=LABEL.COLOR_GUIDE)
                position = stop + gap


def render_label_to_canvas(
    surface: Image.Image | None,
    field_config: LabelFieldConfig,
    label_data: LabelData,
    show_guides: bool = False,
    scale: float = 1.0,
) -> None:
    """Рисует этикетку на переданной поверхности (см. LabelRenderer.draw)."""
    LabelRenderer(scale).draw(surface, field_config, label_data, show_guides)


def render_label_image(
    field_config: LabelFieldConfig,
    data: LabelData,
    dpi: int = LABEL.DPI,
    show_guides: bool = False,
) -> Image.Image:
    """
    Растр этикетки с масштабом dpi / 96.

    Каждый вызов создаёт собственную поверхность.
    """
    renderer = LabelRenderer(preview_scale(dpi))
    surface = Image.new("RGB", renderer.surface_size, LABEL.COLOR_WHITE)
    renderer.draw(surface, field_config, data, show_guides)
    return surface


def _encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _encode_pdf(image: Image.Image) -> bytes:
    """PNG → одностраничный PDF 2"x1", изображение на всю страницу."""
    page_width = LABEL.LABEL_WIDTH_IN * inch
    page_height = LABEL.LABEL_HEIGHT_IN * inch

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=(page_width, page_height))
    c.drawImage(
        ImageReader(BytesIO(_encode_png(image))),
        0,
        0,
        width=page_width,
        height=page_height,
    )
    c.showPage()
    c.save()
    return buffer.getvalue()


def _render_and_encode(
    field_config: LabelFieldConfig,
    data: LabelData,
    dpi: int,
    encoder: Callable[[Image.Image], bytes],
    show_guides: bool = False,
) -> bytes:
    image = render_label_image(field_config, data, dpi, show_guides)
    try:
        return encoder(image)
    except Exception as e:
        raise TranscodeError(f"Ошибка кодирования этикетки: {e}") from e


async def generate_label_pdf(
    field_config: LabelFieldConfig,
    data: LabelData,
    dpi: int = LABEL.DPI,
) -> bytes:
    """
    PDF этикетки для печати (без направляющих).

    Рендеринг и кодирование выполняются в отдельном потоке,
    чтобы не блокировать event loop.

    Raises:
        RenderError: Если растр не нарисован
        TranscodeError: Если не удалось собрать PDF
    """
    pdf_bytes = await asyncio.to_thread(_render_and_encode, field_config, data, dpi, _encode_pdf)
    logger.debug(f"[RENDER] PDF {len(pdf_bytes)} байт, dpi={dpi}")
    return pdf_bytes


async def generate_label_png(
    field_config: LabelFieldConfig,
    data: LabelData,
    dpi: int = LABEL.DPI,
    show_guides: bool = False,
) -> bytes:
    """PNG этикетки (превью, направляющие по запросу)."""
    return await asyncio.to_thread(
        _render_and_encode, field_config, data, dpi, _encode_png, show_guides
    )
