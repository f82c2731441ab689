from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import requests


class EastMoneyRestClient:
    """EastMoney ``clist`` quote list client.

    Any transport or payload failure is reported as an empty list; callers
    treat that as "no data this cycle".
    """

    _BASE_URL = "https://push2.eastmoney.com"

    def __init__(
        self,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 5,
    ) -> None:
        self.base_url = (base_url or self._BASE_URL).rstrip("/")
        self.session = session or requests
        self.timeout = timeout
        self.requests_sent = 0
        self.failures = 0

    def fetch_quotes(
        self,
        market_filter: str,
        fields: Sequence[str],
        limit: int = 10,
        sort_field: str = "f3",
    ) -> List[Dict[str, Any]]:
        self.requests_sent += 1
        try:
            response = self.session.get(
                f"{self.base_url}/api/qt/clist/get",
                params={
                    "pn": "1",
                    "pz": str(limit),
                    "po": "1",
                    "np": "1",
                    "fltt": "2",
                    "invt": "2",
                    "fid": sort_field,
                    "fs": market_filter,
                    "fields": ",".join(fields),
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            self.failures += 1
            print(
                f"[FEED][fetch_error] fs={market_filter!r} error={exc}",
                flush=True,
            )
            return []

        data = payload.get("data") if isinstance(payload, dict) else None
        rows = data.get("diff") if isinstance(data, dict) else None
        # the feed sometimes keys diff rows by position instead of a list
        if isinstance(rows, dict):
            rows = list(rows.values())
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]
