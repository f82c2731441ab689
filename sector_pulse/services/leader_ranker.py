from __future__ import annotations

from typing import Sequence

from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.sector import LeaderEntry, Leaders


def _top(members: Sequence[Quote], field: str) -> LeaderEntry:
    # sorted() is stable; with reverse=True equal keys keep feed order
    best = sorted(members, key=lambda q: getattr(q, field), reverse=True)[0]
    return LeaderEntry(name=best.name, value=getattr(best, field))


def rank_leaders(members: Sequence[Quote]) -> Leaders | None:
    """Pick the gainer, turnover and fund-flow leaders of one sector.

    Returns ``None`` when the sector has no constituent rows; that means
    "leaders unknown" rather than an error. ``members`` is not modified.
    """
    if not members:
        return None
    rows = list(members)
    return Leaders(
        gainer=_top(rows, "change_pct"),
        volume=_top(rows, "turnover"),
        funds=_top(rows, "net_inflow"),
    )
