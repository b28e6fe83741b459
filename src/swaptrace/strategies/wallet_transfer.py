from __future__ import annotations

from decimal import Decimal
from typing import List, Mapping, Set

from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.base import LegStrategy, WalletScope
from swaptrace.strategies.utils import largest, total


class WalletToWalletTokenTransferStrategy(LegStrategy):
    """Plain outbound token transfers: runs of same-mint user outflows to outside accounts."""

    name = "WalletToWalletTokenTransfer"

    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        w = scope.wallet
        cands = [
            e for e in edges
            if not e.is_native
            and e.amount > 0
            and e.authority == w
            and e.source in scope.accounts
            and e.destination not in scope.accounts
            and tags.get(e.seq, EdgeTag.NORMAL) == EdgeTag.NORMAL
        ]

        used: Set[int] = set()
        legs: List[SwapLeg] = []
        for anchor in cands:
            if anchor.seq in used:
                continue
            run = [anchor]
            for e in cands:
                if e.seq <= run[-1].seq or e.seq in used or e.mint != anchor.mint:
                    continue
                if e.seq - run[-1].seq > opts.transfer_window:
                    break
                run.append(e)

            used.update(e.seq for e in run)
            legs.append(SwapLeg(
                sold_mint=anchor.mint,
                sold_amount=total(run),
                bought_mint="",
                bought_amount=Decimal(0),
                path=run,
                target_wallet=largest(run).destination,
            ))
        return legs
