"""
Edge classification: Normal / Dust / Fee / Tip.

Rules run as ordered layers over the whole edge list; a later layer may
rewrite an earlier tag. Thresholds are policy knobs (TaggerParams), not
derived truth: there is no on-chain signal that tells a tip from a fee.
"""

from __future__ import annotations

import logging
from collections import Counter
from decimal import Decimal
from types import MappingProxyType
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence, Set

from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, TaggerParams

logger = logging.getLogger(__name__)


def _native_outs(edges: Sequence[Edge], wallet: str) -> List[Edge]:
    return [e for e in edges if e.is_native and (e.authority == wallet or e.source == wallet)]


def tag_edges(
    edges: Sequence[Edge],
    user_wallets: Sequence[str],
    params: Optional[TaggerParams] = None,
    user_token_accounts: Optional[Mapping[str, AbstractSet[str]]] = None,
) -> Mapping[int, EdgeTag]:
    p = params or TaggerParams()
    wallets = set(user_wallets)
    ordered = sorted(edges, key=lambda e: e.seq)
    tags: Dict[int, EdgeTag] = {}

    # ---- 1) dust: absolute native floor, relative per-mint floor ----
    max_by_mint: Dict[str, Decimal] = {}
    for e in ordered:
        if e.amount > max_by_mint.get(e.mint, Decimal(0)):
            max_by_mint[e.mint] = e.amount

    for e in ordered:
        dust_abs = e.is_native and e.lamports < p.min_native_lamports
        mx = max_by_mint.get(e.mint, Decimal(0))
        dust_rel = mx > 0 and e.amount < mx * p.dust_rel_pct
        tags[e.seq] = EdgeTag.DUST if (dust_abs or dust_rel) else EdgeTag.NORMAL

    # ---- 2) repeated near-equal native outflows -> fee ----
    clustered: Set[int] = set()
    for w in user_wallets:
        outs = _native_outs(ordered, w)
        for i, a in enumerate(outs):
            group = [a]
            for b in outs[i + 1:]:
                if b.seq - a.seq > p.fee_cluster_window:
                    break
                if abs(b.lamports - a.lamports) <= p.fee_cluster_tolerance_lamports:
                    group.append(b)
            if len(group) >= p.fee_cluster_min_size:
                for g in group:
                    tags[g.seq] = EdgeTag.FEE
                    clustered.add(g.seq)

    # ---- 3) unchecked small native outflows signed by the user ----
    for w in user_wallets:
        outs = _native_outs(ordered, w)
        for e in outs:
            if e.authority != w or e.checked or tags[e.seq] == EdgeTag.FEE:
                continue
            lam = e.lamports
            larger_checked = any(
                o.checked
                and o.seq != e.seq
                and abs(o.seq - e.seq) <= p.unchecked_window
                and o.lamports >= p.unchecked_min_checked_lamports
                and o.lamports > lam
                for o in outs
            )
            if larger_checked:
                tags[e.seq] = EdgeTag.FEE
            elif lam <= p.tip_max_lamports:
                tags[e.seq] = EdgeTag.TIP
            elif lam <= p.fee_max_lamports:
                tags[e.seq] = EdgeTag.FEE

    # ---- 4) native outflows clustered around a token inflow ----
    for w in user_wallets:
        outs = _native_outs(ordered, w)
        if not outs:
            continue
        accounts = None
        if user_token_accounts is not None:
            accounts = set(user_token_accounts.get(w, ())) | {w}
        inflows = [
            e for e in ordered
            if not e.is_native
            and e.authority not in wallets
            and (accounts is None or e.destination in accounts)
        ]
        for inn in inflows:
            cluster = [o for o in outs if abs(o.seq - inn.seq) <= p.inflow_cluster_window]
            if not cluster:
                continue
            core = max(cluster, key=lambda o: (o.lamports, o.checked))
            if core.seq not in clustered:
                tags[core.seq] = EdgeTag.NORMAL
            for o in cluster:
                if o.seq == core.seq or tags[o.seq] in (EdgeTag.FEE, EdgeTag.TIP):
                    continue
                tags[o.seq] = EdgeTag.TIP if o.lamports <= p.tip_max_lamports else EdgeTag.FEE

    # ---- 5) tiny user token outflows into a dead-end account ----
    received = Counter((e.destination, e.mint) for e in ordered)
    forwarded = {(e.source, e.mint) for e in ordered}
    for e in ordered:
        if e.is_native or e.authority not in wallets or tags[e.seq] != EdgeTag.NORMAL:
            continue
        mx = max_by_mint.get(e.mint, Decimal(0))
        if mx <= 0 or e.amount > mx * p.sink_max_pct:
            continue
        key = (e.destination, e.mint)
        if received[key] == 1 and key not in forwarded:
            tags[e.seq] = EdgeTag.FEE

    if logger.isEnabledFor(logging.DEBUG):
        counts = Counter(t.value for t in tags.values())
        logger.debug("tagged %d edges: %s", len(tags), dict(counts))
    return MappingProxyType(tags)
