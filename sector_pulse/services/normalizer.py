from __future__ import annotations

import math
import re
from typing import Any, Iterable

from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.sector import Leaders, SectorSnapshot

# Feed sentinels for "halted" / "not applicable".
_ZERO_SENTINELS = {"-", "", "0"}
# leading decimal prefix; trailing text such as a unit suffix is ignored
_DECIMAL_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

FIELD_NAMES = {
    "f12": "code",
    "f14": "name",
    "f2": "price",
    "f3": "change_pct",
    "f6": "turnover",
    "f10": "volume_ratio",
    "f22": "speed",
    "f62": "net_inflow",
}
_NUMERIC_FIELDS = ("price", "change_pct", "turnover", "volume_ratio", "speed", "net_inflow")

INSTRUMENT_FIELDS = ("f12", "f14", "f2", "f3", "f10", "f6", "f22")
SECTOR_FIELDS = ("f12", "f14", "f3")
MEMBER_FIELDS = ("f14", "f3", "f6", "f62")


def normalize_value(value: Any = None) -> float:
    """Return ``value`` as a float, mapping feed sentinels and garbage to 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str) and value.strip() in _ZERO_SENTINELS:
        return 0.0
    if isinstance(value, str):
        match = _DECIMAL_PREFIX.match(value)
        if match is None:
            return 0.0
        value = match.group(1)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_quote(raw: dict) -> Quote:
    row = {FIELD_NAMES[k]: v for k, v in raw.items() if k in FIELD_NAMES}
    return Quote(
        code=_text(row.get("code")),
        name=_text(row.get("name")),
        **{field: normalize_value(row.get(field)) for field in _NUMERIC_FIELDS},
    )


def parse_quotes(rows: Iterable[Any]) -> list[Quote]:
    return [parse_quote(row) for row in rows if isinstance(row, dict)]


def parse_sector(raw: dict, leaders: Leaders | None = None) -> SectorSnapshot:
    return SectorSnapshot(
        code=_text(raw.get("f12")),
        name=_text(raw.get("f14")),
        change_pct=normalize_value(raw.get("f3")),
        leaders=leaders,
    )
