from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import AbstractSet, FrozenSet, List, Mapping, Optional, Sequence

from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.strategies.utils import dedupe_legs

logger = logging.getLogger(__name__)

NO_TAGS: Mapping[int, EdgeTag] = MappingProxyType({})


@dataclass(frozen=True)
class WalletScope:
    wallet: str
    accounts: FrozenSet[str]    # the wallet plus its token accounts
    wallets: FrozenSet[str]     # every user wallet of the transaction


class LegStrategy(ABC):
    """
    One pattern matcher. Pure over its inputs: it never sees the consumed
    set and never writes to the tag map.

    Matching runs once per user wallet, over the edges that do not touch
    any other user wallet, so a leg never mixes two wallets' edges.
    """

    name: str = ""

    def match(
        self,
        edges: Sequence[Edge],
        user_token_accounts: Mapping[str, AbstractSet[str]],
        user_wallets: Sequence[str],
        opts: Optional[MatchOptions] = None,
        tags: Optional[Mapping[int, EdgeTag]] = None,
    ) -> List[SwapLeg]:
        opts = opts or MatchOptions()
        tags = tags if tags is not None else NO_TAGS
        ordered = sorted(edges, key=lambda e: e.seq)
        all_wallets = frozenset(user_wallets)

        legs: List[SwapLeg] = []
        for wallet in user_wallets:
            accounts = frozenset(user_token_accounts.get(wallet, ())) | {wallet}
            scoped = _isolate(ordered, wallet, user_token_accounts, user_wallets)
            if not scoped:
                continue
            scope = WalletScope(wallet=wallet, accounts=accounts, wallets=all_wallets)
            for leg in self.match_wallet(scoped, scope, opts, tags):
                leg.user_wallet = wallet
                leg.strategy = self.name
                legs.append(leg)

        out = dedupe_legs(legs)
        if out:
            logger.debug("[%s] %d leg(s)", self.name, len(out))
        return out

    @abstractmethod
    def match_wallet(
        self,
        edges: List[Edge],
        scope: WalletScope,
        opts: MatchOptions,
        tags: Mapping[int, EdgeTag],
    ) -> List[SwapLeg]:
        raise NotImplementedError


def _isolate(
    edges: List[Edge],
    wallet: str,
    user_token_accounts: Mapping[str, AbstractSet[str]],
    user_wallets: Sequence[str],
) -> List[Edge]:
    others = [w for w in user_wallets if w != wallet]
    if not others:
        return edges
    foreign = set(others)
    for w in others:
        foreign.update(user_token_accounts.get(w, ()))
    foreign.discard(wallet)
    foreign.difference_update(user_token_accounts.get(wallet, ()))
    return [
        e for e in edges
        if e.source not in foreign and e.destination not in foreign and e.authority not in foreign
    ]
