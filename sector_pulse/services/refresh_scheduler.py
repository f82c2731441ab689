from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Protocol, Sequence

from sector_pulse.schemas.history import HistorySnapshot
from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.refresh import DashboardSnapshot, RefreshState
from sector_pulse.schemas.sector import SectorSnapshot
from sector_pulse.services.history import HISTORY_CAPACITY, maybe_sample
from sector_pulse.services.leader_ranker import rank_leaders
from sector_pulse.services.market_hours import (
    IDLE_INTERVAL_SEC,
    TRADING_INTERVAL_SEC,
    exchange_now,
    is_trading,
    next_interval_sec,
)
from sector_pulse.services.normalizer import (
    INSTRUMENT_FIELDS,
    MEMBER_FIELDS,
    SECTOR_FIELDS,
    parse_quotes,
    parse_sector,
)

IDLE = "IDLE"
FETCHING = "FETCHING"
COUNTING_DOWN = "COUNTING_DOWN"
PAUSED = "PAUSED"


class MarketDataClient(Protocol):
    def fetch_quotes(
        self,
        market_filter: str,
        fields: Sequence[str],
        limit: int = 10,
        sort_field: str = "f3",
    ) -> List[Dict[str, Any]]:
        """Return feed rows sorted by ``sort_field`` descending, or ``[]``."""


class RefreshScheduler:
    """Countdown-driven poller for the instrument board and top sectors.

    ``tick()`` advances the countdown by one step and starts a fetch cycle
    when it reaches zero; ``trigger()`` starts one immediately. Only one
    cycle runs at a time, whichever thread asks for it.
    """

    def __init__(
        self,
        *,
        market_client: MarketDataClient,
        clock: Callable[[], datetime] | None = None,
        trading_checker: Callable[[datetime], bool] | None = None,
        instrument_filter: str = "b:MK0354",
        instrument_limit: int = 8,
        sector_filter: str = "m:90 t:2",
        sector_limit: int = 3,
        member_limit: int = 20,
        trading_interval_sec: int = TRADING_INTERVAL_SEC,
        idle_interval_sec: int = IDLE_INTERVAL_SEC,
        history_capacity: int = HISTORY_CAPACITY,
        auto_refresh: bool = True,
        tick_sec: float = 1.0,
    ) -> None:
        self.market_client = market_client
        self.clock = clock or exchange_now
        self.trading_checker = trading_checker or is_trading
        self.instrument_filter = instrument_filter
        self.instrument_limit = instrument_limit
        self.sector_filter = sector_filter
        self.sector_limit = sector_limit
        self.member_limit = member_limit
        self.trading_interval_sec = trading_interval_sec
        self.idle_interval_sec = idle_interval_sec
        self.history_capacity = history_capacity
        self.tick_sec = tick_sec

        self._lock = threading.Lock()
        self._state = RefreshState(auto_refresh=auto_refresh)
        self._quotes: list[Quote] = []
        self._sectors: list[SectorSnapshot] = []
        self._history: list[HistorySnapshot] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_cycle_calls = 0
        # only touched by the single in-flight cycle
        self._cycle_calls = 0

    def _interval_for(self, trading: bool) -> int:
        return next_interval_sec(
            trading,
            trading_interval=self.trading_interval_sec,
            idle_interval=self.idle_interval_sec,
        )

    def _begin_cycle_locked(self) -> bool:
        if self._state.in_flight:
            return False
        self._state.in_flight = True
        self._state.phase = FETCHING
        return True

    def _fetch(self) -> tuple[list[Quote], list[SectorSnapshot]]:
        self._cycle_calls = 1
        quotes = parse_quotes(
            self.market_client.fetch_quotes(
                self.instrument_filter,
                INSTRUMENT_FIELDS,
                limit=self.instrument_limit,
                sort_field="f3",
            )
        )

        self._cycle_calls += 1
        sector_rows = [
            row
            for row in self.market_client.fetch_quotes(
                self.sector_filter,
                SECTOR_FIELDS,
                limit=self.sector_limit,
                sort_field="f3",
            )
            if isinstance(row, dict)
        ][: self.sector_limit]

        sectors: list[SectorSnapshot] = []
        for raw in sector_rows:
            code = str(raw.get("f12") or "").strip()
            members: list[Quote] = []
            if code:
                self._cycle_calls += 1
                members = parse_quotes(
                    self.market_client.fetch_quotes(
                        f"b:{code}",
                        MEMBER_FIELDS,
                        limit=self.member_limit,
                        sort_field="f3",
                    )
                )
            sectors.append(parse_sector(raw, rank_leaders(members)))

        return quotes, sectors

    def _run_cycle(self) -> None:
        now = self.clock()
        trading = bool(self.trading_checker(now))
        with self._lock:
            self._state.trading = trading

        print(f"[REFRESH][cycle_start] at={now.isoformat(timespec='seconds')} trading={trading}", flush=True)
        try:
            quotes, sectors = self._fetch()
            with self._lock:
                self._quotes = quotes
                self._sectors = sectors
                previous = self._history
                self._history = maybe_sample(now, sectors, previous, capacity=self.history_capacity)
                sampled = self._history[-1].time if self._history is not previous else None
            if sampled is not None:
                print(f"[HISTORY][sample] label={sampled} sectors={len(sectors)}", flush=True)
        except Exception as exc:
            with self._lock:
                self._quotes = []
                self._sectors = []
            print(f"[REFRESH][cycle_error] error={exc!r}", flush=True)
        finally:
            self._finish_cycle(now, trading)

    def _finish_cycle(self, now: datetime, trading: bool) -> None:
        interval = self._interval_for(trading)
        with self._lock:
            self._state.in_flight = False
            self.last_cycle_calls = self._cycle_calls
            self._state.interval_sec = interval
            self._state.countdown = interval
            self._state.last_update = now.isoformat(timespec="seconds")
            self._state.cycles += 1
            self._state.phase = COUNTING_DOWN if self._state.auto_refresh else PAUSED
            quotes = len(self._quotes)
            sectors = len(self._sectors)
            history = len(self._history)
            phase = self._state.phase
            calls = self.last_cycle_calls

        print(
            "[REFRESH][cycle_done] "
            f"quotes={quotes} sectors={sectors} history={history} "
            f"calls={calls} next_interval={interval} phase={phase}",
            flush=True,
        )

    def trigger(self) -> bool:
        """Run a fetch cycle now; ``False`` if one is already in flight."""
        with self._lock:
            if not self._begin_cycle_locked():
                return False
        self._run_cycle()
        return True

    def tick(self) -> bool:
        with self._lock:
            if self._state.phase != COUNTING_DOWN:
                return False
            self._state.countdown = max(self._state.countdown - 1, 0)
            if self._state.countdown > 0:
                return False
            if not self._begin_cycle_locked():
                return False
        self._run_cycle()
        return True

    def set_auto_refresh(self, enabled: bool) -> RefreshState:
        with self._lock:
            self._state.auto_refresh = bool(enabled)
            # an in-flight cycle settles into PAUSED / COUNTING_DOWN on its own
            if not self._state.in_flight:
                if enabled and self._state.phase == PAUSED:
                    trading = bool(self.trading_checker(self.clock()))
                    interval = self._interval_for(trading)
                    self._state.trading = trading
                    self._state.interval_sec = interval
                    self._state.countdown = interval
                    self._state.phase = COUNTING_DOWN
                elif not enabled and self._state.phase == COUNTING_DOWN:
                    self._state.phase = PAUSED
            return self._state.model_copy(deep=True)

    def state(self) -> RefreshState:
        with self._lock:
            return self._state.model_copy(deep=True)

    def history(self) -> list[HistorySnapshot]:
        with self._lock:
            return list(self._history)

    def snapshot(self) -> DashboardSnapshot:
        with self._lock:
            return DashboardSnapshot(
                state=self._state,
                quotes=self._quotes,
                sectors=self._sectors,
                history=self._history,
            ).model_copy(deep=True)

    def _loop(self) -> None:
        if self.state().phase == IDLE:
            self.trigger()
        while not self._stop_event.wait(self.tick_sec):
            try:
                self.tick()
            except Exception as exc:  # pragma: no cover
                print(f"[REFRESH][tick_error] error={exc!r}", flush=True)
                continue

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="refresh-scheduler")
        print("[REFRESH][worker_start] thread=refresh-scheduler", flush=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        print("[REFRESH][worker_stop] thread=refresh-scheduler", flush=True)

    def metrics(self) -> dict[str, int | bool | str]:
        with self._lock:
            return {
                "phase": self._state.phase,
                "cycles": self._state.cycles,
                "in_flight": self._state.in_flight,
                "last_cycle_calls": self.last_cycle_calls,
                "history_len": len(self._history),
            }
