from __future__ import annotations

from typing import List, Mapping, Optional, Tuple

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import SolHub, by_seq, find_sol_hubs, is_dust, total


class AggregatorHubStrategy(LegStrategy):
    """
    Routed swaps that pass native value through an intermediary account.

    A user token-out is paired with the nearest later hub inflow (sell side);
    every later user token-in with a different mint is paired with the hub
    outflows around it (buy side).
    """

    name = "AggregatorHub"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        hubs = find_sol_hubs(edges, scope.wallets, exclude=scope.accounts)
        if not hubs:
            return []

        user_outs = [
            e for e in edges
            if not e.is_native and e.source in scope.accounts and e.authority == w and e.amount > 0
        ]
        user_ins = [
            e for e in edges
            if not e.is_native and e.destination in scope.accounts
            and e.authority not in scope.wallets and e.amount > 0
        ]

        legs: List[SwapLeg] = []
        for out in user_outs:
            found = self._nearest_hub_inflow(hubs, out, opts.window_out_to_sol_in)
            if found is None:
                continue
            hub = found

            # ---- buy side: later token-ins fed by this hub ----
            pairs: List[Tuple[Edge, List[Edge]]] = []
            for inn in user_ins:
                d = inn.seq - out.seq
                if d <= 0 or d > opts.window_total_from_out or inn.mint == out.mint:
                    continue
                around = [
                    h for h in hub.out_edges
                    if abs(h.seq - inn.seq) <= opts.window_hub_to_user_in and not is_dust(tags, h)
                ]
                if around:
                    pairs.append((inn, around))

            # ---- sell side: hub inflows up to the first forwarded value ----
            upper: Optional[int]
            if pairs:
                upper = max(h.seq for _, around in pairs for h in around)
            else:
                first = next((h for h in hub.out_edges if h.seq > out.seq), None)
                upper = first.seq if first is not None else None

            sol_ins = [
                h for h in hub.in_edges
                if h.seq > out.seq
                and (h.seq <= upper if upper is not None else h.seq - out.seq <= opts.window_out_to_sol_in)
                and not is_dust(tags, h)
            ]
            got = total(sol_ins)
            if got > 0:
                legs.append(SwapLeg(
                    sold_mint=out.mint,
                    sold_amount=out.amount,
                    bought_mint=NATIVE_MINT,
                    bought_amount=got,
                    path=by_seq([out] + sol_ins),
                ))

            for inn, around in pairs:
                legs.append(SwapLeg(
                    sold_mint=NATIVE_MINT,
                    sold_amount=total(around),
                    bought_mint=inn.mint,
                    bought_amount=inn.amount,
                    path=by_seq(around + [inn]),
                ))

        return legs

    @staticmethod
    def _nearest_hub_inflow(hubs: Mapping[str, SolHub], out: Edge, window: int) -> Optional[SolHub]:
        best: Optional[Tuple[int, SolHub]] = None
        for hub in hubs.values():
            for e in hub.in_edges:
                d = e.seq - out.seq
                if 0 < d <= window:
                    if best is None or e.seq < best[0]:
                        best = (e.seq, hub)
                    break
        return best[1] if best else None
