"""
Сборка LabelData из карточки товара.

Единая точка маппинга, чтобы превью и печать получали одинаковые данные.
Здесь же быстрая программа TSPL/ZPL для карточки (заголовок, лот, цена,
штрихкод Code 128) без сохранённого layout.
"""

import logging
import time
from dataclasses import dataclass
from typing import Literal

from labelkit.models.label_types import LabelData

logger = logging.getLogger(__name__)

NO_SKU = "NO-SKU"

# Поле карточки длиннее не помещается на 2x1 дюйма
CARD_TEXT_MAX_CHARS = 50

CardLang = Literal["TSPL", "ZPL"]

CONDITION_ABBREVIATIONS = {
    "Near Mint": "NM",
    "Lightly Played": "LP",
    "Moderately Played": "MP",
    "Heavily Played": "HP",
    "Damaged": "DMG",
    "Mint": "M",
}

CARD_TSPL = """SIZE 50 mm,25 mm
GAP 3 mm,0
DENSITY 10
SPEED 4
DIRECTION 1
CLS
TEXT 10,8,"FONT001",0,1,1,"{title}"
TEXT 10,45,"FONT001",0,1,1,"{lot}"
TEXT 300,45,"FONT001",0,1,1,"{price}"
BARCODE 10,70,"128",90,1,0,2,2,"{barcode}"
PRINT 1,1"""

CARD_ZPL = """^XA
^MMT
^PW406
^LL0203
^LS0
^FT10,30^A0N,25,25^FD{title}^FS
^FT10,70^A0N,20,20^FD{lot}^FS
^FT300,70^A0N,20,20^FD{price}^FS
^FT10,120^BCN,60,Y,N,N
^FD{barcode}^FS
^XZ"""


@dataclass
class CardItem:
    """Карточка из инвентаря."""

    id: str | None = None
    title: str | None = None
    sku: str | None = None
    price: str | None = None
    lot: str | None = None
    grade: str | None = None
    year: str | None = None
    brand_title: str | None = None
    card_number: str | None = None
    subject: str | None = None
    variant: str | None = None


@dataclass
class CardProgram:
    """Программа для карточки и ID для сопоставления с заданием печати."""

    program: str
    correlation_id: str
    lang: CardLang


def build_title_from_parts(
    year: str | None = None,
    brand: str | None = None,
    card_number: str | None = None,
    subject: str | None = None,
    variant: str | None = None,
) -> str:
    """Название из частей карточки (пустые части пропускаются)."""
    parts = [year, brand, card_number, subject, variant]
    return " ".join(part for part in parts if part)


def build_label_data_from_item(item: CardItem) -> LabelData:
    """
    LabelData из карточки: штрихкод = SKU, состояние = грейд.

    Готовое название карточки важнее собранного из частей.
    """
    sku = item.sku or item.id or NO_SKU
    return LabelData(
        title=item.title
        or build_title_from_parts(
            item.year, item.brand_title, item.card_number, item.subject, item.variant
        ),
        sku=sku,
        price=item.price or "",
        lot=item.lot or "",
        condition=item.grade or "",
        barcode=sku,
    )


def abbreviate_condition(condition: str) -> str:
    """Near Mint → NM и т.д. Неизвестные значения возвращаются как есть."""
    return CONDITION_ABBREVIATIONS.get(condition, condition)


def sanitize_card_text(text: str | None) -> str:
    """Кавычки и переводы строк ломают TSPL/ZPL: заменяем пробелом и обрезаем."""
    if not text:
        return ""
    for char in ('"', "\n", "\r"):
        text = text.replace(char, " ")
    return text[:CARD_TEXT_MAX_CHARS]


def card_correlation_id(item: CardItem, timestamp_ms: int | None = None) -> str:
    """<время в мс>-<id>-<sku> (пустые части пропускаются)."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    ids = "-".join(part for part in (item.id, item.sku) if part)
    return f"{timestamp_ms}-{ids}"


def render_card_program(
    item: CardItem, lang: CardLang = "TSPL", timestamp_ms: int | None = None
) -> CardProgram:
    """
    Программа TSPL или ZPL для карточки.

    Штрихкод: SKU, затем ID, затем NO-SKU (если после очистки пусто).
    Грейд в программу не попадает.
    """
    data = build_label_data_from_item(item)
    template = CARD_ZPL if lang == "ZPL" else CARD_TSPL
    program = template.format(
        title=sanitize_card_text(data.title),
        lot=sanitize_card_text(data.lot),
        price=sanitize_card_text(data.price),
        barcode=sanitize_card_text(item.sku or item.id) or NO_SKU,
    )
    correlation_id = card_correlation_id(item, timestamp_ms)
    logger.info(f"[RENDER] Карточка {correlation_id}: {lang}, {len(program)} символов")
    return CardProgram(program=program, correlation_id=correlation_id, lang=lang)
