"""Free-text date parsing for bank exports.

Dates arrive as ISO strings, US or European slash dates, dotted or dashed
variants, textual month names, and sometimes with a trailing time. The result
is always a plain calendar date; no timezone conversion happens anywhere.

Known limitation: for numeric dates where both leading fields are <= 12
(e.g. ``03/04/2024``) the ``MM/DD/YYYY`` reading always wins. There is no
locale hint to disambiguate.
"""

from __future__ import annotations

import re
from datetime import date, datetime

# Formats accepted by the first ("native") pass, tried in order.
_NATIVE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%a %b %d %Y",
    "%a, %d %b %Y",
)

_SEPARATORS = re.compile(r"[./\\-]")
_TIME_SPLIT = re.compile(r"[ T]")


def _parse_native(s: str) -> date | None:
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in _NATIVE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _safe_date(year: str, month: str, day: str) -> date | None:
    if len(year) != 4:
        return None
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _parse_parts(s: str) -> date | None:
    parts = [p.strip() for p in _SEPARATORS.sub("/", s).split("/")]
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None
    a, b, c = parts
    # MM/DD/YYYY, then DD/MM/YYYY, then YYYY/MM/DD.
    return _safe_date(c, a, b) or _safe_date(c, b, a) or _safe_date(a, b, c)


def parse_date(raw: str | None, *, _recursed: bool = False) -> date | None:
    """Parse ``raw`` into a calendar date, or return ``None`` when invalid."""

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None

    parsed = _parse_native(s) or _parse_parts(s)
    if parsed is not None:
        return parsed

    # Embedded time component: retry once with the leading date token.
    if not _recursed and (" " in s or "T" in s):
        head = _TIME_SPLIT.split(s, maxsplit=1)[0]
        if head and head != s:
            return parse_date(head, _recursed=True)
    return None


__all__ = ["parse_date"]
