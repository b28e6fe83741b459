from __future__ import annotations

from typing import Tuple

from swaptrace.strategies.aggregator_hub import AggregatorHubStrategy
from swaptrace.strategies.authority_only import AuthorityOnlyStrategy
from swaptrace.strategies.base import LegStrategy
from swaptrace.strategies.proxy_vault import ProxyVaultSwapStrategy
from swaptrace.strategies.token_to_token import TokenToTokenStrategy
from swaptrace.strategies.token_to_wsol import TokenToWsolStrategy
from swaptrace.strategies.wallet_transfer import WalletToWalletTokenTransferStrategy
from swaptrace.strategies.wsol_to_token import WsolToTokenStrategy

# priority order; the last entry is the fallback
DEFAULT_PIPELINE: Tuple[LegStrategy, ...] = (
    AggregatorHubStrategy(),
    ProxyVaultSwapStrategy(),
    TokenToTokenStrategy(),
    WsolToTokenStrategy(),
    TokenToWsolStrategy(),
    WalletToWalletTokenTransferStrategy(),
    AuthorityOnlyStrategy(),
)

FALLBACK_NAMES = frozenset({AuthorityOnlyStrategy.name})


def strategy_names() -> Tuple[str, ...]:
    return tuple(s.name for s in DEFAULT_PIPELINE)
