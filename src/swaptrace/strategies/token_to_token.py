from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Mapping

from swaptrace.core.constants import STABLECOIN_MINTS
from swaptrace.core.enums import EdgeTag, SwapKind
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import by_seq


def swap_kind(sold_mint: str, bought_mint: str) -> SwapKind:
    sold_stable = sold_mint in STABLECOIN_MINTS
    bought_stable = bought_mint in STABLECOIN_MINTS
    if bought_stable and not sold_stable:
        return SwapKind.SELL
    if sold_stable and not bought_stable:
        return SwapKind.BUY
    return SwapKind.SWAP


class TokenToTokenStrategy(LegStrategy):
    """Net signed balance per non-native mint; most negative is sold, most positive is bought."""

    name = "TokenToToken"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        net: Dict[str, Decimal] = defaultdict(Decimal)
        contrib: Dict[str, List[Edge]] = defaultdict(list)

        for e in edges:
            if e.is_native:
                continue
            is_out = e.source in scope.accounts or e.authority == w
            is_in = e.destination in scope.accounts
            if not (is_out or is_in):
                continue
            if is_in:
                net[e.mint] += e.amount
            if is_out:
                net[e.mint] -= e.amount
            contrib[e.mint].append(e)

        if len(net) < 2:
            return []

        sold = min(net, key=lambda m: net[m])
        bought = max(net, key=lambda m: net[m])
        if net[sold] >= 0 or net[bought] <= 0:
            return []

        return [SwapLeg(
            sold_mint=sold,
            sold_amount=-net[sold],
            bought_mint=bought,
            bought_amount=net[bought],
            path=by_seq(contrib[sold] + contrib[bought]),
            kind=swap_kind(sold, bought).value,
        )]
