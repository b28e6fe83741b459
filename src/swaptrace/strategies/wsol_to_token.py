from __future__ import annotations

from typing import List, Mapping, Set

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import by_seq, is_dust, largest, total


def native_candidates(outs: List[Edge], anchor: Edge, opts: MatchOptions) -> List[Edge]:
    """Outflows paired with `anchor`: symmetric window if set, else look-back, else look-ahead."""
    if opts.window_around_in is not None:
        return [o for o in outs if abs(o.seq - anchor.seq) <= opts.window_around_in]
    before = [o for o in outs if 0 < anchor.seq - o.seq <= opts.window_total_from_out]
    if before:
        return before
    return [o for o in outs if 0 < o.seq - anchor.seq <= opts.window_sol_after_in]


class WsolToTokenStrategy(LegStrategy):
    """Token inflow paid for by native outflows the user signed."""

    name = "WsolToToken"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        outs = [e for e in edges if e.is_native and e.authority == w and e.amount > 0 and not is_dust(tags, e)]
        ins = [
            e for e in edges
            if not e.is_native and e.destination in scope.accounts
            and e.authority not in scope.wallets and e.amount > 0
        ]
        if not outs or not ins:
            return []

        used: Set[int] = set()
        legs: List[SwapLeg] = []
        for inn in ins:
            cands = [o for o in native_candidates(outs, inn, opts) if o.seq not in used]
            if not cands:
                continue
            checked = [o for o in cands if o.checked]
            if checked:
                cands = checked

            chosen = [largest(cands)]
            if opts.aggregate_outs:
                summed = [o for o in cands if o.lamports >= opts.min_lamports_to_sum]
                if summed:
                    chosen = summed

            used.update(o.seq for o in chosen)
            legs.append(SwapLeg(
                sold_mint=NATIVE_MINT,
                sold_amount=total(chosen),
                bought_mint=inn.mint,
                bought_amount=inn.amount,
                path=by_seq(chosen + [inn]),
            ))
        return legs
