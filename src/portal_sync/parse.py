from __future__ import annotations

import datetime
import math
import re

from .errors import BalanceParseFailure


DATE_RE = re.compile(r"^\s*(\d{2})/(\d{2})/(\d{4})")
_NOT_AMOUNT_RE = re.compile(r"[^0-9,+\-]")
# como parseFloat: sólo el número al inicio, el resto se ignora ("12.34-" -> 12.34)
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_LABEL_NOISE_RE = re.compile(r"[\n\t]")


def parse_amount(raw: str) -> float:
    """
    "1 234,56 €" -> 1234.56, "-123,45" -> -123.45.
    Devuelve NaN si no hay contenido numérico; quien llama decide si es fatal.
    """
    s = _NOT_AMOUNT_RE.sub("", raw or "")
    s = s.replace(",", ".")
    m = _LEADING_NUMBER_RE.match(s)
    if not m:
        return math.nan
    return float(m.group(0))


def parse_balance(raw: str) -> float:
    value = parse_amount(raw)
    if math.isnan(value):
        raise BalanceParseFailure(f"No se pudo leer el balance: {raw!r}")
    return value


def normalize_date(raw: str) -> datetime.date:
    """DD/MM/YYYY -> date. El día se toma literal, sin zona horaria."""
    m = DATE_RE.match(raw or "")
    if not m:
        raise ValueError(f"Fecha inválida: {raw!r}")
    dd, mm, yyyy = (int(g) for g in m.groups())
    return datetime.date(yyyy, mm, dd)


def clean_label(raw: str) -> str:
    return _LABEL_NOISE_RE.sub("", raw or "").strip()


def years_before(day: datetime.date, years: int) -> datetime.date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29/02 -> 28/02
        return day.replace(year=day.year - years, day=28)


def format_search_date(day: datetime.date) -> str:
    # formato D/MM/YYYY del formulario de búsqueda
    return f"{day.day}/{day.month:02d}/{day.year}"
