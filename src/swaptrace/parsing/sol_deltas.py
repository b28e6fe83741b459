from __future__ import annotations

import logging
from typing import Any, List, Sequence

from swaptrace.config import settings
from swaptrace.core.constants import NATIVE_DECIMALS, NATIVE_MINT, SOL_DELTA_SINK, SYSTEM_PROGRAM_ID
from swaptrace.core.models import Edge
from swaptrace.core.units import lamports_to_sol
from swaptrace.parsing import tx_access as txa

logger = logging.getLogger(__name__)


def push_user_sol_delta_edges(
    tx: Any,
    edges: List[Edge],
    user_wallets: Sequence[str],
    dust_lamports: int = settings.RESIDUAL_DUST_LAMPORTS,
) -> List[Edge]:
    """
    Append one synthetic native edge per wallet whose lamport balance
    change is not explained by native edges already touching it
    (rent refunds on close, program-side lamport moves, the network fee).

    Returns the synthetic edges that were appended.
    """
    if not user_wallets:
        return []

    keys = txa.account_keys(tx)
    added: List[Edge] = []

    for wallet in user_wallets:
        if wallet not in keys:
            continue
        pos = keys.index(wallet)
        delta = txa.native_balance(tx, pos, "postBalances") - txa.native_balance(tx, pos, "preBalances")
        if delta == 0:
            continue

        counted = 0
        for e in edges:
            if e.mint != NATIVE_MINT:
                continue
            if e.destination == wallet:
                counted += e.lamports
            if e.source == wallet:
                counted -= e.lamports

        residual = delta - counted
        if abs(residual) <= dust_lamports:
            continue

        next_seq = max((e.seq for e in edges), default=-1) + 1
        inbound = residual > 0
        synthetic = Edge(
            seq=next_seq,
            source=SOL_DELTA_SINK if inbound else wallet,
            destination=wallet if inbound else SOL_DELTA_SINK,
            mint=NATIVE_MINT,
            amount=lamports_to_sol(abs(residual)),
            authority=None if inbound else wallet,
            program_id=SYSTEM_PROGRAM_ID,
            depth=0,
            decimals=NATIVE_DECIMALS,
            synthetic=True,
        )
        edges.append(synthetic)
        added.append(synthetic)
        logger.debug(
            "residual native delta for %s: delta=%d counted=%d residual=%d (seq %d)",
            wallet, delta, counted, residual, next_seq,
        )

    return added
