from __future__ import annotations

from typing import List, Mapping, Optional

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope


def _last_before(edges: List[Edge], seq: int, native: bool) -> Optional[Edge]:
    for e in reversed(edges):
        if e.seq < seq and e.is_native == native and e.amount > 0:
            return e
    return None


class ProxyVaultSwapStrategy(LegStrategy):
    """token-out -> native-in -> native-out -> token-in, walked backwards from each token-in."""

    name = "ProxyVaultSwap"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        legs: List[SwapLeg] = []

        for fin in edges:
            if fin.is_native or fin.amount <= 0 or fin.destination not in scope.accounts:
                continue
            if fin.authority == w:
                continue

            sol_out = _last_before(edges, fin.seq, native=True)
            if sol_out is None:
                continue
            sol_in = _last_before(edges, sol_out.seq, native=True)
            if sol_in is None or sol_in.authority == w or sol_in.source in scope.accounts:
                continue
            token_out = _last_before(edges, sol_in.seq, native=False)
            if token_out is None or token_out.mint == fin.mint:
                continue
            if token_out.source not in scope.accounts and token_out.authority != w:
                continue

            legs.append(SwapLeg(
                sold_mint=token_out.mint,
                sold_amount=token_out.amount,
                bought_mint=NATIVE_MINT,
                bought_amount=sol_in.amount,
                path=[token_out, sol_in],
            ))
            legs.append(SwapLeg(
                sold_mint=NATIVE_MINT,
                sold_amount=sol_out.amount,
                bought_mint=fin.mint,
                bought_amount=fin.amount,
                path=[sol_out, fin],
            ))
        return legs
