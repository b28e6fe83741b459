from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Candle:
    open_time: int          # ms epoch (UTC)
    close_time: int         # ms epoch (UTC)
    close: Decimal


@dataclass(frozen=True)
class SignatureInfo:
    signature: str
    slot: int
    block_time: Optional[int]
    failed: bool = False
