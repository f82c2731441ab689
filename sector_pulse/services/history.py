from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sector_pulse.schemas.history import HistorySnapshot
from sector_pulse.schemas.sector import SectorSnapshot
from sector_pulse.services.market_hours import to_exchange_time

HISTORY_CAPACITY = 12
SAMPLE_EVERY_MIN = 5


def time_label(now: datetime) -> str:
    return to_exchange_time(now).strftime("%H:%M")


def maybe_sample(
    now: datetime,
    sectors: Sequence[SectorSnapshot],
    history: list[HistorySnapshot],
    capacity: int = HISTORY_CAPACITY,
) -> list[HistorySnapshot]:
    """Return ``history`` with a snapshot for ``now`` appended when due.

    ``now`` is read in exchange time; naive values are taken as local.

    A point is taken on every 5th minute, or whenever the history is empty
    so a fresh session has something to plot. At most one point per minute
    label, and no point at all for a cycle without sector rows. The result
    keeps only the newest ``capacity`` points. The input list is returned
    as-is when nothing is recorded.
    """
    now = to_exchange_time(now)
    if now.minute % SAMPLE_EVERY_MIN != 0 and history:
        return history

    label = time_label(now)
    if history and history[-1].time == label:
        return history

    data = {sector.name: sector.change_pct for sector in sectors}
    if not data:
        return history
    updated = [*history, HistorySnapshot(time=label, data=data)]
    if len(updated) > capacity:
        updated = updated[-capacity:]
    return updated
