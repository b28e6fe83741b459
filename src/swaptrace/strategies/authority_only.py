from __future__ import annotations

from typing import List, Mapping, Set

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import largest


class AuthorityOnlyStrategy(LegStrategy):
    """Fallback: any user-signed native outflow followed by a token inflow."""

    name = "AuthorityOnly"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        outs = [e for e in edges if e.is_native and e.authority == w and e.amount > 0]
        ins = [e for e in edges if not e.is_native and e.destination in scope.accounts and e.amount > 0]

        used: Set[int] = set()
        legs: List[SwapLeg] = []
        for inn in ins:
            cands = [
                o for o in outs
                if o.seq not in used and 0 < inn.seq - o.seq <= opts.window_total_from_out
            ]
            if not cands:
                continue
            pay = largest(cands)
            used.add(pay.seq)
            legs.append(SwapLeg(
                sold_mint=NATIVE_MINT,
                sold_amount=pay.amount,
                bought_mint=inn.mint,
                bought_amount=inn.amount,
                path=[pay, inn],
            ))
        return legs
