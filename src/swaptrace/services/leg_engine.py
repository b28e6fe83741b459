"""
Per-transaction swap reconstruction.

    build edges -> user accounts -> tag -> multi-pass strategy match -> attach fees

Everything here is synchronous and CPU-bound over one transaction; callers
parallelize across transactions (see services/pool.py).
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Set

from swaptrace.core.enums import EdgeTag
from swaptrace.core.errors import NoUserWalletError
from swaptrace.core.models import AccountIndex, Edge, EngineConfig, MatchOptions, SwapLeg
from swaptrace.parsing.account_index import extract_user_token_accounts
from swaptrace.parsing.graph_builder import build_edges_and_index
from swaptrace.services.edge_tagger import tag_edges
from swaptrace.services.fee_attacher import attach_fees
from swaptrace.strategies.base import LegStrategy
from swaptrace.strategies.registry import DEFAULT_PIPELINE, FALLBACK_NAMES

logger = logging.getLogger(__name__)

_EXCLUDED = (EdgeTag.FEE, EdgeTag.TIP)
_EXCLUDED_FALLBACK = (EdgeTag.FEE, EdgeTag.TIP, EdgeTag.DUST)


def run_pipeline(
    edges: Sequence[Edge],
    tags: Mapping[int, EdgeTag],
    user_token_accounts: Mapping[str, AbstractSet[str]],
    user_wallets: Sequence[str],
    opts: Optional[MatchOptions] = None,
    strategies: Sequence[LegStrategy] = DEFAULT_PIPELINE,
    max_passes: int = 6,
) -> List[SwapLeg]:
    """
    Run strategies in priority order, pass after pass, until a pass accepts
    nothing or the pass budget runs out.

    A leg is accepted only if none of its path edges is consumed yet; its
    edges are then consumed. Strategies only ever see the unconsumed slice.
    """
    if not user_wallets:
        raise NoUserWalletError("at least one user wallet is required")

    opts = opts or MatchOptions()
    consumed: Set[int] = set()
    accepted: List[SwapLeg] = []

    for pass_no in range(1, max_passes + 1):
        progress = False
        for strategy in strategies:
            excluded = _EXCLUDED_FALLBACK if strategy.name in FALLBACK_NAMES else _EXCLUDED
            free = [
                e for e in edges
                if e.seq not in consumed and tags.get(e.seq, EdgeTag.NORMAL) not in excluded
            ]
            if not free:
                continue

            for leg in strategy.match(free, user_token_accounts, user_wallets, opts, tags):
                seqs = leg.seqs()
                if not seqs or any(s in consumed for s in seqs):
                    logger.debug("[pass %d] %s: rejected leg %s", pass_no, strategy.name, seqs)
                    continue
                consumed.update(seqs)
                accepted.append(leg)
                progress = True
                logger.debug(
                    "[pass %d] %s: accepted %s -> %s seqs=%s",
                    pass_no, strategy.name, leg.sold_mint, leg.bought_mint or "-", seqs,
                )

        if not progress:
            break
    else:
        logger.debug("pass budget (%d) exhausted with %d legs", max_passes, len(accepted))

    return accepted


def user_token_accounts_for(
    tx: Any,
    edges: Sequence[Edge],
    account_index: AccountIndex,
    user_wallets: Sequence[str],
) -> Dict[str, FrozenSet[str]]:
    """wallet -> accounts it controls (always including the wallet itself)."""
    out: Dict[str, FrozenSet[str]] = {}
    for w in user_wallets:
        accounts = set(extract_user_token_accounts(tx, w))
        accounts.update(e.source for e in edges if e.authority == w)
        accounts.update(account_index.accounts_owned_by(w))
        accounts.add(w)
        out[w] = frozenset(accounts)
    return out


def transaction_to_swap_legs(
    tx: Any,
    user_wallets: Sequence[str],
    config: Optional[EngineConfig] = None,
) -> List[SwapLeg]:
    if not user_wallets:
        raise NoUserWalletError("at least one user wallet is required")

    cfg = config or EngineConfig()
    wallets = list(user_wallets)

    edges, account_index = build_edges_and_index(tx, wallets, dust_lamports=cfg.residual_dust_lamports)
    if not edges:
        return []

    accounts = user_token_accounts_for(tx, edges, account_index, wallets)
    tags = tag_edges(edges, wallets, cfg.tagger, user_token_accounts=accounts)

    legs = run_pipeline(edges, tags, accounts, wallets, cfg.match, max_passes=cfg.max_passes)
    attach_fees(tx, legs, edges, tags, wallets, window=cfg.fee_window, user_token_accounts=accounts)

    logger.debug("%d edges -> %d legs", len(edges), len(legs))
    return legs
