"""
Сырые шаблоны ZPL/TSPL с токенами {{name}}.

Шаблон хранится как есть. Подстановка и защитные команды размера
добавляются только к результату.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from labelkit.services.errors import MissingVariableError

logger = logging.getLogger(__name__)

Engine = Literal["ZPL", "TSPL"]

TOKEN_PATTERN = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")

_ZPL_COMMAND = re.compile(r"\^[A-Z]{2}")
_ZPL_WIDTH = re.compile(r"\^PW\d+")
_ZPL_LENGTH = re.compile(r"\^LL\d+")
_TSPL_KEYWORDS = re.compile(r"\b(SIZE|DENSITY|SPEED|CLS|TEXT|BARCODE|PRINT)\b")
_TSPL_SIZE = re.compile(r"(^|\n)\s*SIZE\s+2\s*,\s*1\b", re.IGNORECASE)

ZPL_SIZE_HEADER = "^XA\n^PW406\n^LL203\n"
TSPL_SIZE_HEADER = "SIZE 2,1\n"

DEFAULT_ZPL_TEMPLATE = """^XA
^PW406
^LL203
^FO20,20^A0N,28,28^FD{{ sku }}^FS
^BY{{ module_width }},3,80
^FO20,60^BCN,80,N,N,N^FD{{ barcode }}^FS
^XZ"""

DEFAULT_TSPL_TEMPLATE = """SIZE 2,1
GAP 0,0
DENSITY 10
SPEED 4
DIRECTION 1
REFERENCE 0,0
CLS
TEXT 20,20,"0",0,1,1,"{{ sku }}"
BARCODE 20,60,"128",80,0,0,{{ module_width }},{{ module_width }},"{{ barcode }}"
PRINT 1"""


def detect_tokens(body: str) -> list[str]:
    """Имена токенов в порядке первого появления, без повторов."""
    return list(dict.fromkeys(TOKEN_PATTERN.findall(body)))


def interpolate(body: str, values: dict[str, object]) -> str:
    """
    Подстановка значений вместо всех вхождений токенов.

    Raises:
        MissingVariableError: Для первого токена без значения или с пустым значением
    """
    for token in detect_tokens(body):
        value = values.get(token)
        if value is None or str(value).strip() == "":
            raise MissingVariableError(token)

    # Значение вставляется буквально (без обработки обратных слешей)
    return TOKEN_PATTERN.sub(lambda match: str(values[match.group(1)]), body)


def detect_engine(body: str) -> Engine:
    """ZPL по командам ^XX, TSPL по ключевым словам, иначе ZPL."""
    if _ZPL_COMMAND.search(body) or "^XA" in body or "^XZ" in body:
        return "ZPL"
    if _TSPL_KEYWORDS.search(body):
        return "TSPL"
    return "ZPL"


def add_size_guards(body: str, engine: Engine) -> str:
    """
    Гарантирует размер 2"x1" в программе.

    ZPL: без ^PW или ^LL — снимает внешние ^XA/^XZ и оборачивает заново
    с ^PW406/^LL203. TSPL: без строки SIZE 2,1 — добавляет её в начало.
    Повторный вызов ничего не меняет.
    """
    if engine == "ZPL":
        if _ZPL_WIDTH.search(body) and _ZPL_LENGTH.search(body):
            return body
        inner = body.strip()
        if inner.startswith("^XA"):
            inner = inner[3:]
        if inner.endswith("^XZ"):
            inner = inner[:-3]
        return f"{ZPL_SIZE_HEADER}{inner.strip()}\n^XZ"

    if _TSPL_SIZE.search(body):
        return body
    return f"{TSPL_SIZE_HEADER}{body.strip()}"


@dataclass
class RawTemplate:
    """Сохранённый сырой шаблон."""

    id: str
    body: str
    optional_fields: list[str] = field(default_factory=list)

    @property
    def required_fields(self) -> list[str]:
        """Токены шаблона (всегда вычисляются из body)."""
        return detect_tokens(self.body)

    @property
    def engine(self) -> Engine:
        return detect_engine(self.body)


def render_raw_template(
    template: RawTemplate,
    values: dict[str, object],
    engine: Engine | None = None,
) -> str:
    """
    Готовая программа из шаблона: подстановка, затем защита размера.

    Args:
        template: Шаблон (не изменяется)
        values: Значения токенов
        engine: Язык принтера (по умолчанию определяется по телу шаблона)

    Returns:
        Программа для отправки на принтер

    Raises:
        MissingVariableError: Если не хватает значения токена
    """
    engine = engine or template.engine
    program = add_size_guards(interpolate(template.body, values), engine)
    logger.debug(f"[RAW] Шаблон {template.id} ({engine}): {len(program)} символов")
    return program
