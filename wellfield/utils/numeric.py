"""Numeric primitives shared by the hydraulic models.

Well attributes arrive from spreadsheet-like inputs where decimal and
thousands separators depend on the user's locale. Everything that reaches
the models is first passed through :func:`sanitize` so that NaN and
infinities never leak into the interference matrix.
"""

from __future__ import annotations

import locale
import math
import re
from typing import Any

SECONDS_PER_DAY = 86400.0
LITRES_PER_CUBIC_METRE = 1000.0
WELL_RADIUS = 0.15
SICHARDT_COEFFICIENT = 3000.0

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def sanitize(value: Any) -> float:
    """Return ``value`` as a finite float, mapping ``None``/NaN/inf to 0."""

    if value is None:
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return value


def system_decimal_separator() -> str:
    """Decimal separator of the current process locale."""

    return locale.localeconv().get("decimal_point") or "."


def thousands_separator(decimal_separator: str) -> str:
    return "." if decimal_separator == "," else ","


def parse_local(value: Any, decimal_separator: str | None = None) -> float:
    """Parse locale formatted numeric text.

    Numbers are passed through unchanged (but sanitized). Empty or
    unparseable text yields ``0.0``; trailing garbage after a numeric
    prefix is ignored, so ``"12,5 m"`` parses as 12.5 under a comma locale.
    """

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return sanitize(value)
    if not value:
        return 0.0

    text = str(value)
    sep = decimal_separator or system_decimal_separator()
    text = text.replace(thousands_separator(sep), "")
    if sep != ".":
        text = text.replace(sep, ".", 1)

    match = _LEADING_NUMBER.match(text)
    if match is None:
        return 0.0
    return sanitize(float(match.group(0)))
