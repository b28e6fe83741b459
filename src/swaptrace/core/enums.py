from __future__ import annotations

from enum import Enum


class EdgeTag(str, Enum):
    NORMAL = "normal"
    DUST = "dust"
    FEE = "fee"
    TIP = "tip"


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    TRANSFER = "transfer"


class SwapKind(str, Enum):
    """Direction of a token-to-token leg relative to stablecoins."""

    BUY = "buy"
    SELL = "sell"
    SWAP = "swap"
