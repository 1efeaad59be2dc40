"""
Перевод сцены свободного редактора в TSPL.

Координаты сцены считаются точками 203 DPI. Поворот и размер шрифта
квантуются до значений, которые понимает принтер.
"""

import logging
from typing import Any

from labelkit.models.label_types import Bar, QRCode, SceneMeta, SceneObject, TextLine, TSPLOptions
from labelkit.services.tspl import QuotePolicy, build_tspl

logger = logging.getLogger(__name__)

TEXT_TYPES = ("textbox", "text")
BAR_TYPES = ("rect", "line")

# Отступ подписи под картинкой штрихкода (в точках)
BARCODE_CAPTION_OFFSET = 5

# Метка без данных: QR ведёт на заглушку, штрихкод подписывается словом BARCODE
QR_FALLBACK_DATA = "https://example.com"
BARCODE_FALLBACK_TEXT = "BARCODE"


def get_font_size(pixel_size: float) -> int:
    """Размер шрифта в пикселях → размер встроенного шрифта TSPL 1-5."""
    if pixel_size <= 12:
        return 1
    if pixel_size <= 18:
        return 2
    if pixel_size <= 24:
        return 3
    if pixel_size <= 32:
        return 4
    return 5


def get_rotation(angle: float) -> int:
    """Произвольный угол → ближайший из 0/90/180/270."""
    normalized = angle % 360
    if normalized >= 315 or normalized < 45:
        return 0
    if normalized < 135:
        return 90
    if normalized < 225:
        return 180
    return 270


def get_qr_size(width: float) -> str:
    """Ширина картинки QR → размер S/M/L."""
    if width <= 40:
        return "S"
    if width <= 80:
        return "M"
    return "L"


def mark_as_barcode(obj: SceneObject, data: str) -> SceneObject:
    """Помечает картинку как штрихкод с данными."""
    obj.meta = SceneMeta(type="barcode", data=data)
    return obj


def mark_as_qrcode(obj: SceneObject, data: str) -> SceneObject:
    """Помечает картинку как QR-код с данными."""
    obj.meta = SceneMeta(type="qrcode", data=data)
    return obj


def scene_to_tspl_options(scene: list[SceneObject]) -> TSPLOptions:
    """
    TSPLOptions из объектов сцены.

    - textbox/text → TEXT
    - rect/line → BAR (масштаб по осям независимо)
    - image с меткой qrcode → QRCODE (только первый, остальные отбрасываются)
    - image с меткой barcode → текст с данными под картинкой
      (нативного штрихкода в этом пути нет)
    - метка без данных получает заглушку (QR_FALLBACK_DATA, BARCODE_FALLBACK_TEXT)
    - служебные объекты (excludeFromExport, name='border') и прочее — пропускаются
    """
    options = TSPLOptions()

    for obj in scene:
        if obj.exclude_from_export or obj.name == "border":
            continue

        if obj.type in TEXT_TYPES:
            options.text_lines.append(
                TextLine(
                    text=obj.text,
                    x=round(obj.left),
                    y=round(obj.top),
                    font_size=get_font_size(obj.font_size),
                    rotation=get_rotation(obj.angle),
                )
            )

        elif obj.type in BAR_TYPES:
            options.lines.append(
                Bar(
                    x=round(obj.left),
                    y=round(obj.top),
                    width=round(obj.width * obj.scale_x),
                    height=round(obj.height * obj.scale_y),
                )
            )

        elif obj.type == "image" and obj.meta is not None:
            if obj.meta.type == "qrcode":
                if options.qrcode is not None:
                    logger.debug("[SCENE] Второй QR на сцене пропущен")
                    continue
                options.set_qrcode(
                    QRCode(
                        data=obj.meta.data or QR_FALLBACK_DATA,
                        x=round(obj.left),
                        y=round(obj.top),
                        size=get_qr_size(obj.width * obj.scale_x),
                    )
                )

            elif obj.meta.type == "barcode":
                caption_y = round(obj.top + obj.height * obj.scale_y + BARCODE_CAPTION_OFFSET)
                logger.debug(
                    f"[SCENE] Штрихкод заменён текстом в ({round(obj.left)}, {caption_y})"
                )
                options.text_lines.append(
                    TextLine(
                        text=obj.meta.data or BARCODE_FALLBACK_TEXT,
                        x=round(obj.left),
                        y=caption_y,
                        font_size=1,
                    )
                )

    return options


def fabric_to_tspl(
    scene: list[SceneObject] | list[dict[str, Any]],
    quote_policy: QuotePolicy = QuotePolicy.SANITIZE,
) -> str:
    """
    Программа TSPL для сцены редактора.

    Args:
        scene: Объекты сцены (SceneObject или JSON редактора)
        quote_policy: Обработка кавычек в тексте

    Returns:
        Программа TSPL
    """
    objects = [SceneObject.from_dict(obj) if isinstance(obj, dict) else obj for obj in scene]
    options = scene_to_tspl_options(objects)
    logger.info(
        f"[SCENE] {len(objects)} объектов → {len(options.text_lines)} TEXT, "
        f"{len(options.lines)} BAR, QR: {'да' if options.qrcode else 'нет'}"
    )
    return build_tspl(options, quote_policy)
