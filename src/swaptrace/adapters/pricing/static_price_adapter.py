from decimal import Decimal
from typing import List, Optional, Sequence

from swaptrace.core.dto import Candle
from swaptrace.ports.price_port import PricePort


class StaticPriceAdapter(PricePort):
    def __init__(self, candles: Optional[Sequence[Candle]] = None, flat_price: Optional[Decimal] = None):
        self._candles = sorted(candles or [], key=lambda c: c.open_time)
        self._flat = flat_price
        self.requests: List[tuple] = []

    def get_sol_candles(self, start_ms: int, end_ms: int) -> List[Candle]:
        self.requests.append((start_ms, end_ms))
        if self._flat is not None and not self._candles:
            # one candle spanning the whole range
            return [Candle(open_time=start_ms, close_time=end_ms + 1, close=self._flat)]
        return [c for c in self._candles if c.close_time >= start_ms and c.open_time <= end_ms]
