"""
Конвертация единиц: дюймы, точки принтера (203 DPI) и пиксели превью.

Все масштабирования линейные и применяются одновременно к ширине,
высоте и размеру шрифта — иначе искажается пропорция.
"""

from labelkit.config import LABEL


def dots(inches: float) -> int:
    """Дюймы → точки принтера при 203 DPI."""
    return round(inches * LABEL.DPI)


def preview_scale(preview_dpi: float) -> float:
    """Коэффициент масштаба превью относительно экранных 96 DPI."""
    if preview_dpi <= 0:
        raise ValueError(f"DPI должен быть положительным: {preview_dpi}")
    return preview_dpi / LABEL.SCREEN_DPI


def scale_box(
    width: float, height: float, font_size: float, factor: float
) -> tuple[float, float, float]:
    """Масштабирует ширину, высоту и шрифт одним коэффициентом."""
    return width * factor, height * factor, font_size * factor


def snap(value: float, grid: int = 1) -> int:
    """Привязка к сетке редактора."""
    if grid <= 1:
        return round(value)
    return round(value / grid) * grid


def clamp_field_position(x: float, y: float, grid: int = 1) -> tuple[int, int]:
    """
    Ограничение позиции текстового поля при перетаскивании.

    Оставляет запас под сам текст у правого и нижнего края.
    """
    max_x = LABEL.CANVAS_WIDTH_DOTS - LABEL.FIELD_MIN_WIDTH_DOTS
    max_y = LABEL.CANVAS_HEIGHT_DOTS - LABEL.FIELD_MIN_HEIGHT_DOTS
    return (
        max(0, min(max_x, snap(x, grid))),
        max(0, min(max_y, snap(y, grid))),
    )


def clamp_barcode_position(
    x: float, y: float, width: int, height: int, grid: int = 1
) -> tuple[int, int]:
    """Ограничение позиции области штрихкода/QR с учётом её размера."""
    max_x = LABEL.CANVAS_WIDTH_DOTS - width
    max_y = LABEL.CANVAS_HEIGHT_DOTS - height
    return (
        max(0, min(max_x, snap(x, grid))),
        max(0, min(max_y, snap(y, grid))),
    )


def in_canvas(x: float, y: float) -> bool:
    """Точка внутри холста [0, 386) x [0, 203)."""
    return 0 <= x < LABEL.CANVAS_WIDTH_DOTS and 0 <= y < LABEL.CANVAS_HEIGHT_DOTS
