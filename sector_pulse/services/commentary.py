from __future__ import annotations

from typing import Protocol, Sequence

from sector_pulse.errors import CommentaryError
from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.refresh import DashboardSnapshot
from sector_pulse.schemas.sector import SectorSnapshot


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


def _fmt_pct(value: float) -> str:
    return f"{value:g}%"


def build_commentary_prompt(
    quotes: Sequence[Quote],
    sectors: Sequence[SectorSnapshot],
    top_n: int = 3,
) -> str:
    """Build the strategist prompt from the leading quotes and the sector list.

    ``quotes`` is expected in feed order (change% descending), so the first
    ``top_n`` rows are the leaders.
    """
    quote_part = ", ".join(f"{q.name}({_fmt_pct(q.change_pct)})" for q in quotes[:top_n])
    sector_part = ", ".join(f"{s.name}({_fmt_pct(s.change_pct)})" for s in sectors)
    return (
        "基于以下实时市场数据提供简短的专家分析（不超过150字）："
        f"可转债领涨：{quote_part or '无'}。"
        f"行业板块领涨：{sector_part or '无'}。"
        "请指出资金攻击方向和风险。"
    )


class CommentaryService:
    def __init__(self, *, generator: TextGenerator, top_n: int = 3) -> None:
        self.generator = generator
        self.top_n = top_n
        self.requests = 0
        self.failures = 0
        self.last_error: str | None = None

    def generate(self, snapshot: DashboardSnapshot) -> str:
        if not snapshot.quotes and not snapshot.sectors:
            raise CommentaryError(CommentaryError.NO_MARKET_DATA)

        prompt = build_commentary_prompt(snapshot.quotes, snapshot.sectors, top_n=self.top_n)
        self.requests += 1
        try:
            text = self.generator.generate(prompt)
        except CommentaryError as exc:
            self.failures += 1
            self.last_error = exc.reason
            print(f"[COMMENTARY][error] reason={exc.reason} detail={exc}", flush=True)
            raise
        self.last_error = None
        return text

    def metrics(self) -> dict[str, int | str | None]:
        return {
            "requests": self.requests,
            "failures": self.failures,
            "last_error": self.last_error,
        }
