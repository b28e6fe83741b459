from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

from swaptrace.adapters.chain.rate_limiter import SimpleRateLimiter, backoff_sleep, is_retryable_status
from swaptrace.config import settings
from swaptrace.core.dto import Candle
from swaptrace.core.errors import DataSourceError, RateLimitError
from swaptrace.ports.price_port import PricePort

logger = logging.getLogger(__name__)

INTERVAL_MS: Dict[str, int] = {
    "1m": 60_000,
    "3m": 3 * 60_000,
    "5m": 5 * 60_000,
    "15m": 15 * 60_000,
    "30m": 30 * 60_000,
    "1h": 60 * 60_000,
    "2h": 2 * 60 * 60_000,
    "4h": 4 * 60 * 60_000,
    "1d": 24 * 60 * 60_000,
}

KLINES_PATH = "/api/v3/klines"


class BinanceKlinesAdapter(PricePort):
    """SOL/USDT klines from the Binance public REST API, paged over any range."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        symbol: Optional[str] = None,
        interval: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = (base_url or settings.BINANCE_BASE_URL).rstrip("/")
        self._symbol = symbol or settings.BINANCE_SYMBOL
        self._interval = interval or settings.BINANCE_INTERVAL
        if self._interval not in INTERVAL_MS:
            raise ValueError(f"Unsupported interval: {self._interval}")
        self._limit = min(max(int(settings.BINANCE_LIMIT_PER_CALL), 1), 1000)
        self._timeout = settings.BINANCE_TIMEOUT_SEC
        self._max_retries = settings.BINANCE_MAX_RETRIES

        self._rl = SimpleRateLimiter(settings.BINANCE_REQUESTS_PER_SEC)
        self._session = session or requests.Session()

    def _get(self, params: Dict[str, Any]) -> Any:
        last_err: Optional[Exception] = None
        url = f"{self._base_url}{KLINES_PATH}"

        for attempt in range(self._max_retries + 1):
            try:
                self._rl.wait()
                resp = self._session.get(url, params=params, timeout=self._timeout)
                # 418: IP ban after ignoring 429s
                if resp.status_code in (418, 429):
                    last_err = RateLimitError(f"Binance HTTP {resp.status_code}")
                elif is_retryable_status(resp.status_code):
                    last_err = DataSourceError(f"Binance HTTP {resp.status_code}")
                elif not resp.ok:
                    raise DataSourceError(f"Binance HTTP {resp.status_code}: {resp.text[:200]}")
                else:
                    return resp.json()

            except DataSourceError:
                raise
            except (requests.RequestException, ValueError) as e:
                last_err = e

            if attempt < self._max_retries:
                backoff_sleep(attempt)

        raise DataSourceError(f"Binance failed after retries: {last_err}")

    @staticmethod
    def _to_candle(k: List[Any]) -> Candle:
        # [openTime, open, high, low, close, volume, closeTime, ...]
        return Candle(open_time=int(k[0]), close_time=int(k[6]), close=Decimal(str(k[4])))

    def get_sol_candles(self, start_ms: int, end_ms: int) -> List[Candle]:
        if end_ms <= start_ms:
            return []

        step = INTERVAL_MS[self._interval]
        out: List[Candle] = []
        next_start = int(start_ms)
        calls = 0

        while next_start <= end_ms:
            rows = self._get({
                "symbol": self._symbol,
                "interval": self._interval,
                "startTime": next_start,
                "endTime": int(end_ms),
                "limit": self._limit,
            })
            calls += 1
            if not isinstance(rows, list) or not rows:
                break

            before = len(out)
            for k in rows:
                c = self._to_candle(k)
                if c.open_time > end_ms:
                    break
                if not out or out[-1].open_time < c.open_time:
                    out.append(c)

            # a page with nothing new would be requested again forever
            if len(out) == before:
                break
            next_start = out[-1].open_time + step
            if len(rows) < self._limit:
                break

        logger.debug("binance %s %s: %d candles in %d call(s)", self._symbol, self._interval, len(out), calls)
        return out
