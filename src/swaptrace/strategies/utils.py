from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import AbstractSet, Dict, Iterable, List, Mapping, Set, Tuple

from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, SwapLeg


@dataclass
class SolHub:
    account: str
    in_edges: List[Edge] = field(default_factory=list)
    out_edges: List[Edge] = field(default_factory=list)


def find_sol_hubs(
    edges: Iterable[Edge],
    user_wallets: AbstractSet[str],
    exclude: AbstractSet[str] = frozenset(),
) -> Dict[str, SolHub]:
    """
    Accounts that both receive and forward native value under a
    non-user authority (router / aggregator intermediaries).
    """
    hubs: Dict[str, SolHub] = {}
    for e in edges:
        if not e.is_native or not e.authority or e.authority in user_wallets:
            continue
        if e.destination not in exclude:
            hubs.setdefault(e.destination, SolHub(e.destination)).in_edges.append(e)
        if e.source not in exclude:
            hubs.setdefault(e.source, SolHub(e.source)).out_edges.append(e)

    out: Dict[str, SolHub] = {}
    for acc, h in hubs.items():
        if h.in_edges and h.out_edges:
            h.in_edges.sort(key=lambda e: e.seq)
            h.out_edges.sort(key=lambda e: e.seq)
            out[acc] = h
    return out


def dedupe_legs(legs: Iterable[SwapLeg]) -> List[SwapLeg]:
    seen: Set[Tuple[str, str, Tuple[int, ...]]] = set()
    out: List[SwapLeg] = []
    for leg in legs:
        sig = leg.signature()
        if sig in seen:
            continue
        seen.add(sig)
        out.append(leg)
    return out


def is_dust(tags: Mapping[int, EdgeTag], e: Edge) -> bool:
    return tags.get(e.seq) == EdgeTag.DUST


def total(edges: Iterable[Edge]) -> Decimal:
    return sum((e.amount for e in edges), Decimal(0))


def by_seq(edges: Iterable[Edge]) -> List[Edge]:
    return sorted(edges, key=lambda e: e.seq)


def largest(edges: Iterable[Edge]) -> Edge:
    # ties go to the earliest edge
    best = None
    for e in edges:
        if best is None or e.amount > best.amount:
            best = e
    if best is None:
        raise ValueError("largest() of empty edge set")
    return best
