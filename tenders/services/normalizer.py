"""Map raw upstream records onto the fixed shape the rest of the pipeline uses.

Upstream records are loosely typed JSON: `brief` may be missing or not an
object, `date` may be an int, a digit string or an ISO date. Nothing here
raises; missing or malformed values degrade to the defaults below.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

UNTITLED = "Untitled"
UNKNOWN_TYPE = "unknown"
NO_DATE = 0

_DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d", "%Y/%m/%d")


@dataclass(frozen=True)
class NormalizedRecord:
    unit_id: str
    job_number: str
    title: str
    type: str
    date: int
    category: str = ""
    unit_name: str = ""
    companies: Tuple[str, ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _clean(value) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _first(*values) -> str:
    for value in values:
        cleaned = _clean(value)
        if cleaned:
            return cleaned
    return ""


def _company_names(value) -> Tuple[str, ...]:
    # award notices carry {"names": [...], "ids": [...], ...}
    if isinstance(value, dict):
        value = value.get("names")
    if not isinstance(value, list):
        return ()
    names = []
    for name in value:
        cleaned = _clean(name)
        if cleaned and cleaned not in names:
            names.append(cleaned)
    return tuple(names)


def normalize_date(value) -> int:
    """Return the date as a YYYYMMDD integer, or `NO_DATE` when it cannot be read."""
    if value is None or isinstance(value, bool):
        return NO_DATE
    if isinstance(value, float):
        if not value.is_integer():
            return NO_DATE
        value = int(value)
    text = str(value).strip()
    # ISO timestamps: keep the date part only
    text = re.split(r"[T ]", text, maxsplit=1)[0]
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if fmt == "%Y%m%d" and len(text) != 8:
            continue
        return parsed.year * 10000 + parsed.month * 100 + parsed.day
    return NO_DATE


def date_from_int(value: int) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(str(value), "%Y%m%d")
    except ValueError:
        return None


def normalize_record(raw) -> NormalizedRecord:
    if not isinstance(raw, dict):
        raw = {}
    brief = raw.get("brief")
    if not isinstance(brief, dict):
        brief = {}
    return NormalizedRecord(
        unit_id=_clean(raw.get("unit_id")),
        job_number=_clean(raw.get("job_number")),
        title=_first(brief.get("title"), raw.get("title"), brief.get("name")) or UNTITLED,
        type=_first(brief.get("type"), raw.get("type")) or UNKNOWN_TYPE,
        date=normalize_date(raw.get("date")),
        category=_first(brief.get("category"), raw.get("category")),
        unit_name=_clean(raw.get("unit_name")),
        companies=_company_names(brief.get("companies")),
        raw=raw,
    )
