from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from swaptrace.core.models import ActionSide, Edge, SwapLeg, TradeAction
from swaptrace.core.units import dec_to_str


def _dec(x: Optional[Decimal]) -> Optional[str]:
    # strings keep full precision in JSON
    return dec_to_str(x) if x is not None else None


def edge_to_dict(e: Edge) -> Dict[str, Any]:
    return {
        "seq": e.seq,
        "source": e.source,
        "destination": e.destination,
        "mint": e.mint,
        "amount": _dec(e.amount),
        "authority": e.authority,
        "program_id": e.program_id,
        "depth": e.depth,
        "decimals": e.decimals,
        "checked": e.checked,
        "synthetic": e.synthetic,
    }


def leg_to_dict(leg: SwapLeg) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "user_wallet": leg.user_wallet,
        "strategy": leg.strategy,
        "sold_mint": leg.sold_mint,
        "sold_amount": _dec(leg.sold_amount),
        "bought_mint": leg.bought_mint,
        "bought_amount": _dec(leg.bought_amount),
        "path": [edge_to_dict(e) for e in leg.path],
    }
    if leg.kind:
        d["kind"] = leg.kind
    if leg.target_wallet:
        d["target_wallet"] = leg.target_wallet
    for name in ("sold_core", "router_fees", "tip", "network_fee", "transfers_only", "sold_all_in"):
        val = getattr(leg, name)
        if val is not None:
            d[name] = _dec(val)
    if leg.fee_breakdown:
        d["fee_breakdown"] = {
            k: [{"seq": i.seq, "amount": _dec(i.amount)} for i in items]
            for k, items in leg.fee_breakdown.items()
        }
    return d


def _side_to_dict(s: ActionSide) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if s.address:
        d["address"] = s.address
    if s.amount is not None:
        d["amount"] = _dec(s.amount)
    if s.symbol:
        d["symbol"] = s.symbol
    if s.target_wallet:
        d["target_wallet"] = s.target_wallet
    d["unit_price_usd"] = s.unit_price_usd
    d["amount_usd"] = s.amount_usd
    return d


def action_to_dict(a: TradeAction) -> Dict[str, Any]:
    return {
        "transaction_hash": a.transaction_hash,
        "transaction_type": a.transaction_type,
        "wallet_address": a.wallet_address,
        "transaction_date": a.transaction_date.isoformat(),
        "sold": _side_to_dict(a.sold),
        "bought": _side_to_dict(a.bought),
    }


def actions_to_list(actions: Sequence[TradeAction]) -> List[Dict[str, Any]]:
    return [action_to_dict(a) for a in actions]
