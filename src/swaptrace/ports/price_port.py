from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from swaptrace.core.dto import Candle


class PricePort(ABC):

    @abstractmethod
    def get_sol_candles(self, start_ms: int, end_ms: int) -> List[Candle]:
        """SOL/USD candles covering [start_ms, end_ms], sorted by open time."""
        raise NotImplementedError
