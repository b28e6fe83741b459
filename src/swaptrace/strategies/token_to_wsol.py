from __future__ import annotations

from typing import List, Mapping, Set

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import by_seq, is_dust, largest, total


class TokenToWsolStrategy(LegStrategy):
    """Native inflow from a counterparty paid for by token outflows the user signed."""

    name = "TokenToWsol"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        outs = [
            e for e in edges
            if not e.is_native and e.source in scope.accounts and e.authority == w
            and e.amount > 0 and not is_dust(tags, e)
        ]
        ins = [
            e for e in edges
            if e.is_native and e.destination in scope.accounts and e.authority != w
            and e.amount > 0 and not is_dust(tags, e)
        ]
        if not outs or not ins:
            return []

        used: Set[int] = set()
        legs: List[SwapLeg] = []
        for inn in ins:
            if opts.window_around_in is not None:
                cands = [o for o in outs if abs(o.seq - inn.seq) <= opts.window_around_in]
            else:
                cands = [o for o in outs if 0 < inn.seq - o.seq <= opts.window_total_from_out]
            cands = [o for o in cands if o.seq not in used]
            if not cands:
                continue

            top = largest(cands)
            chosen = [top]
            if opts.aggregate_outs:
                chosen = [o for o in cands if o.mint == top.mint]

            used.update(o.seq for o in chosen)
            legs.append(SwapLeg(
                sold_mint=top.mint,
                sold_amount=total(chosen),
                bought_mint=NATIVE_MINT,
                bought_amount=inn.amount,
                path=by_seq(chosen + [inn]),
            ))
        return legs
