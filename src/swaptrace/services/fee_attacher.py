from __future__ import annotations

import logging
from decimal import Decimal
from typing import AbstractSet, Any, Dict, List, Mapping, Optional, Sequence

from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, FeeItem, SwapLeg
from swaptrace.core.units import lamports_to_sol
from swaptrace.parsing import tx_access as txa

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


def _flows_for(
    leg: SwapLeg,
    edges: Sequence[Edge],
    own_accounts: AbstractSet[str],
    window: int,
) -> List[Edge]:
    """Native outflows of the leg's wallet within `window` seq of the leg's path."""
    w = leg.user_wallet
    seqs = leg.seqs()
    lo, hi = min(seqs) - window, max(seqs) + window
    return [
        e for e in edges
        if e.is_native
        and not e.synthetic
        and (e.authority == w or e.source == w)
        and e.destination not in own_accounts
        and lo <= e.seq <= hi
    ]


def _effective_tag(e: Edge, tags: Mapping[int, EdgeTag]) -> EdgeTag:
    # top-level native transfers are read as priority payments
    if e.depth == 0:
        return EdgeTag.TIP
    return tags.get(e.seq, EdgeTag.NORMAL)


def attach_fees(
    tx: Any,
    legs: List[SwapLeg],
    edges: Sequence[Edge],
    tags: Mapping[int, EdgeTag],
    user_wallets: Sequence[str],
    window: int = 200,
    user_token_accounts: Optional[Mapping[str, AbstractSet[str]]] = None,
) -> None:
    """
    Decompose the native flows around each leg into core / router / tip
    buckets, in place.

    Buy-shaped legs (native sold) get sold_core, router_fees, tip,
    transfers_only and sold_all_in. Sell-shaped legs (native bought) get
    router_fees, tip and transfers_only; sold_core stays unset.
    Transfers to the wallet's own accounts (wrapping) are not outflows, and
    synthetic residual edges are left out (the network fee is reported
    on its own).
    """
    network_fee = lamports_to_sol(txa.network_fee_lamports(tx))
    accounts_by_wallet = user_token_accounts or {}

    for leg in legs:
        leg.network_fee = network_fee
        if not leg.path or not leg.user_wallet:
            continue
        if not (leg.is_buy or leg.is_sell):
            continue

        own = set(accounts_by_wallet.get(leg.user_wallet, ()))
        own.discard(leg.user_wallet)
        flows = _flows_for(leg, edges, own, window)

        buckets: Dict[str, List[FeeItem]] = {"core": [], "router": [], "tip": []}
        for e in flows:
            tag = _effective_tag(e, tags)
            if leg.is_buy:
                if tag == EdgeTag.NORMAL:
                    buckets["core"].append(FeeItem(e.seq, e.amount))
                elif tag == EdgeTag.FEE:
                    buckets["router"].append(FeeItem(e.seq, e.amount))
                elif tag == EdgeTag.TIP:
                    buckets["tip"].append(FeeItem(e.seq, e.amount))
            else:
                if tag == EdgeTag.TIP:
                    buckets["tip"].append(FeeItem(e.seq, e.amount))
                else:
                    buckets["router"].append(FeeItem(e.seq, e.amount))

        core = sum((i.amount for i in buckets["core"]), ZERO)
        router = sum((i.amount for i in buckets["router"]), ZERO)
        tip = sum((i.amount for i in buckets["tip"]), ZERO)

        leg.router_fees = router
        leg.tip = tip
        if leg.is_buy:
            leg.sold_core = core
            leg.transfers_only = core + router + tip
            leg.sold_all_in = leg.transfers_only + network_fee
        else:
            leg.transfers_only = router + tip

        breakdown = {k: v for k, v in buckets.items() if v}
        leg.fee_breakdown = breakdown or None

    if legs:
        logger.debug("attached fees to %d legs (network fee %s SOL)", len(legs), network_fee)
