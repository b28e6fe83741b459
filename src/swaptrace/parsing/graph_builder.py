from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from swaptrace.config import settings
from swaptrace.core.models import AccountIndex, Edge
from swaptrace.parsing.account_index import build_account_index_skeleton
from swaptrace.parsing.sol_deltas import push_user_sol_delta_edges
from swaptrace.parsing.visitors import InstructionVisitor, VisitContext, apply_visitors, default_visitors

logger = logging.getLogger(__name__)


def build_edges_and_index(
    tx: Any,
    user_wallets: Optional[Sequence[str]] = None,
    dust_lamports: int = settings.RESIDUAL_DUST_LAMPORTS,
    visitors: Optional[Sequence[InstructionVisitor]] = None,
) -> Tuple[List[Edge], AccountIndex]:
    """
    Turn a jsonParsed transaction into seq-ordered edges plus the account index.

    Residual native deltas are reconciled only when user wallets are given.
    """
    account_index = build_account_index_skeleton(tx)
    ctx = VisitContext(account_index)

    apply_visitors(tx, visitors or default_visitors(), ctx)
    edges = ctx.edges

    if user_wallets:
        push_user_sol_delta_edges(tx, edges, user_wallets, dust_lamports=dust_lamports)

    edges.sort(key=lambda e: e.seq)
    logger.debug("built %d edges, %d indexed accounts", len(edges), len(account_index))
    return edges, account_index
