"""
Swap legs -> trade actions (buy / sell / transfer) with USD values.

Pricing is a thin multiplication against the SOL/USD candle series; only the
native side of a leg is priced, token unit prices are derived from it.
Token-to-token legs against a stablecoin are priced at 1 USD per stable unit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.dto import Candle
from swaptrace.core.enums import SwapKind, TradeType
from swaptrace.core.models import ActionSide, SwapLeg, TradeAction
from swaptrace.core.units import dec_to_str
from swaptrace.strategies.token_to_token import swap_kind

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


def sol_price_at(candles: Sequence[Candle], block_time: int) -> Optional[Decimal]:
    """Close of the candle holding the block's minute, else the nearest by open time."""
    if not candles:
        return None
    ts = (int(block_time) // 60) * 60 * 1000

    for c in candles:
        if c.open_time <= ts < c.close_time:
            return c.close

    nearest = min(candles, key=lambda c: abs(c.open_time - ts))
    return nearest.close


def usd_str(value: Optional[Decimal]) -> str:
    if value is None:
        return "0"
    places = 6 if abs(value) >= 1 else 18
    q = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return dec_to_str(q)


def block_time_to_date(block_time: int) -> datetime:
    return datetime.fromtimestamp(int(block_time or 0), tz=timezone.utc)


def legs_to_trade_actions(
    legs: Sequence[SwapLeg],
    tx_hash: str,
    block_time: int,
    candles: Sequence[Candle] = (),
    wallet: Optional[str] = None,
) -> List[TradeAction]:
    when = block_time_to_date(block_time)
    sol_usd = sol_price_at(candles, block_time)
    actions: List[TradeAction] = []

    for leg in legs:
        owner = leg.user_wallet or wallet or ""

        # ---- transfer out ----
        if leg.is_transfer:
            if leg.sold_amount <= 0:
                continue
            actions.append(TradeAction(
                transaction_hash=tx_hash,
                transaction_type=TradeType.TRANSFER.value,
                wallet_address=owner,
                transaction_date=when,
                sold=ActionSide(address=leg.sold_mint, amount=leg.sold_amount),
                bought=ActionSide(target_wallet=leg.target_wallet),
            ))
            continue

        # ---- buy: SOL -> token ----
        if leg.sold_mint == NATIVE_MINT:
            core = leg.sold_core if leg.sold_core is not None and leg.sold_core > 0 else leg.sold_amount
            sold_usd = core * sol_usd if sol_usd is not None else None
            unit = sold_usd / leg.bought_amount if sold_usd is not None and leg.bought_amount > 0 else None
            actions.append(TradeAction(
                transaction_hash=tx_hash,
                transaction_type=TradeType.BUY.value,
                wallet_address=owner,
                transaction_date=when,
                sold=ActionSide(
                    address=NATIVE_MINT,
                    amount=core,
                    symbol="SOL",
                    unit_price_usd=usd_str(sol_usd),
                    amount_usd=usd_str(sold_usd),
                ),
                bought=ActionSide(
                    address=leg.bought_mint,
                    amount=leg.bought_amount,
                    unit_price_usd=usd_str(unit),
                    amount_usd=usd_str(sold_usd if unit is not None else None),
                ),
            ))
            continue

        # ---- sell: token -> SOL ----
        if leg.bought_mint == NATIVE_MINT:
            net = leg.bought_amount
            gross = net + (leg.router_fees or ZERO) + (leg.tip or ZERO) + (leg.network_fee or ZERO)
            net_usd = net * sol_usd if sol_usd is not None else None
            gross_usd = gross * sol_usd if sol_usd is not None else None
            unit = gross_usd / leg.sold_amount if gross_usd is not None and leg.sold_amount > 0 else None
            actions.append(TradeAction(
                transaction_hash=tx_hash,
                transaction_type=TradeType.SELL.value,
                wallet_address=owner,
                transaction_date=when,
                sold=ActionSide(
                    address=leg.sold_mint,
                    amount=leg.sold_amount,
                    unit_price_usd=usd_str(unit),
                    amount_usd=usd_str(gross_usd),
                ),
                bought=ActionSide(
                    address=NATIVE_MINT,
                    amount=net,
                    symbol="SOL",
                    unit_price_usd=usd_str(sol_usd),
                    amount_usd=usd_str(net_usd),
                ),
            ))
            continue

        # ---- token <-> token, priced through the stablecoin side ----
        kind = swap_kind(leg.sold_mint, leg.bought_mint)
        if kind == SwapKind.BUY:
            usd = leg.sold_amount
            unit = usd / leg.bought_amount if leg.bought_amount > 0 else None
            actions.append(TradeAction(
                transaction_hash=tx_hash,
                transaction_type=TradeType.BUY.value,
                wallet_address=owner,
                transaction_date=when,
                sold=ActionSide(address=leg.sold_mint, amount=leg.sold_amount, unit_price_usd="1", amount_usd=usd_str(usd)),
                bought=ActionSide(
                    address=leg.bought_mint,
                    amount=leg.bought_amount,
                    unit_price_usd=usd_str(unit),
                    amount_usd=usd_str(usd),
                ),
            ))
            continue

        if kind == SwapKind.SELL:
            usd = leg.bought_amount
            unit = usd / leg.sold_amount if leg.sold_amount > 0 else None
            actions.append(TradeAction(
                transaction_hash=tx_hash,
                transaction_type=TradeType.SELL.value,
                wallet_address=owner,
                transaction_date=when,
                sold=ActionSide(
                    address=leg.sold_mint,
                    amount=leg.sold_amount,
                    unit_price_usd=usd_str(unit),
                    amount_usd=usd_str(usd),
                ),
                bought=ActionSide(address=leg.bought_mint, amount=leg.bought_amount, unit_price_usd="1", amount_usd=usd_str(usd)),
            ))
            continue

        # neither side is a stablecoin: unpriced
        actions.append(TradeAction(
            transaction_hash=tx_hash,
            transaction_type=TradeType.BUY.value,
            wallet_address=owner,
            transaction_date=when,
            sold=ActionSide(address=leg.sold_mint, amount=leg.sold_amount),
            bought=ActionSide(address=leg.bought_mint, amount=leg.bought_amount),
        ))

    logger.debug("%s: %d legs -> %d actions", tx_hash, len(legs), len(actions))
    return actions
