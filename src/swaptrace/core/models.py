from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

from swaptrace.config import settings
from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.units import to_lamports


# Movement graph

@dataclass(frozen=True)
class Edge:
    """
    One normalized value movement.

    `seq` is the only ordering signal; it is dense per transaction and
    follows traversal order (outer instructions, then inner groups).
    """

    seq: int
    source: str
    destination: str
    mint: str
    amount: Decimal
    authority: Optional[str] = None
    program_id: Optional[str] = None
    depth: int = 0
    decimals: Optional[int] = None
    checked: bool = False
    synthetic: bool = False
    parent_index: Optional[int] = None

    @property
    def is_native(self) -> bool:
        return self.mint == NATIVE_MINT

    @property
    def lamports(self) -> int:
        # only meaningful for native edges
        return to_lamports(self.amount) if self.is_native else 0


@dataclass
class AccountInfo:
    mint: Optional[str] = None
    decimals: Optional[int] = None
    owner: Optional[str] = None


class AccountIndex:
    """Account -> {mint, decimals, owner}. Grows only; writes merge."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountInfo] = {}

    def note(
        self,
        address: str,
        mint: Optional[str] = None,
        decimals: Optional[int] = None,
        owner: Optional[str] = None,
    ) -> AccountInfo:
        cur = self._accounts.get(address)
        if cur is None:
            cur = AccountInfo()
            self._accounts[address] = cur
        if mint:
            cur.mint = mint
        if decimals is not None:
            cur.decimals = decimals
        if owner:
            cur.owner = owner
        return cur

    def get(self, address: Optional[str]) -> Optional[AccountInfo]:
        if not address:
            return None
        return self._accounts.get(address)

    def mint_of(self, address: Optional[str]) -> Optional[str]:
        info = self.get(address)
        return info.mint if info else None

    def decimals_of(self, address: Optional[str]) -> Optional[int]:
        info = self.get(address)
        return info.decimals if info else None

    def accounts_owned_by(self, owner: str) -> List[str]:
        return [a for a, info in self._accounts.items() if info.owner == owner]

    def __contains__(self, address: object) -> bool:
        return address in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._accounts)


# Legs

@dataclass(frozen=True)
class FeeItem:
    seq: int
    amount: Decimal


@dataclass
class SwapLeg:
    sold_mint: str
    sold_amount: Decimal
    bought_mint: str
    bought_amount: Decimal
    path: List[Edge]
    user_wallet: str = ""

    target_wallet: Optional[str] = None
    kind: Optional[str] = None
    strategy: Optional[str] = None

    # decomposed native flows (SOL units), filled by the fee attacher
    sold_core: Optional[Decimal] = None
    router_fees: Optional[Decimal] = None
    tip: Optional[Decimal] = None
    network_fee: Optional[Decimal] = None
    transfers_only: Optional[Decimal] = None
    sold_all_in: Optional[Decimal] = None
    fee_breakdown: Optional[Dict[str, List[FeeItem]]] = None

    def seqs(self) -> List[int]:
        return [e.seq for e in self.path]

    def signature(self) -> Tuple[str, str, Tuple[int, ...]]:
        return (self.sold_mint, self.bought_mint, tuple(sorted(self.seqs())))

    @property
    def is_transfer(self) -> bool:
        return not self.bought_mint and self.bought_amount == 0

    @property
    def is_buy(self) -> bool:
        return self.sold_mint == NATIVE_MINT and bool(self.bought_mint)

    @property
    def is_sell(self) -> bool:
        return self.bought_mint == NATIVE_MINT


# Trade actions (downstream shape)

@dataclass
class ActionSide:
    address: Optional[str] = None
    amount: Optional[Decimal] = None
    symbol: Optional[str] = None
    unit_price_usd: str = "0"
    amount_usd: str = "0"
    target_wallet: Optional[str] = None


@dataclass
class TradeAction:
    transaction_hash: str
    transaction_type: str
    wallet_address: str
    transaction_date: datetime
    sold: ActionSide
    bought: ActionSide


# Configuration models

@dataclass(frozen=True)
class TaggerParams:
    min_native_lamports: int = settings.DUST_MIN_NATIVE_LAMPORTS
    dust_rel_pct: Decimal = settings.DUST_REL_PCT
    fee_cluster_window: int = settings.FEE_CLUSTER_WINDOW
    fee_cluster_tolerance_lamports: int = settings.FEE_CLUSTER_TOLERANCE_LAMPORTS
    fee_cluster_min_size: int = settings.FEE_CLUSTER_MIN_SIZE
    unchecked_window: int = settings.UNCHECKED_WINDOW
    unchecked_min_checked_lamports: int = settings.UNCHECKED_MIN_CHECKED_LAMPORTS
    tip_max_lamports: int = settings.TIP_MAX_LAMPORTS
    fee_max_lamports: int = settings.FEE_MAX_LAMPORTS
    inflow_cluster_window: int = settings.INFLOW_CLUSTER_WINDOW
    sink_max_pct: Decimal = settings.SINK_MAX_PCT


@dataclass(frozen=True)
class MatchOptions:
    window_out_to_sol_in: int = settings.WINDOW_OUT_TO_SOL_IN
    window_hub_to_user_in: int = settings.WINDOW_HUB_TO_USER_IN
    window_total_from_out: int = settings.WINDOW_TOTAL_FROM_OUT
    window_sol_after_in: int = settings.WINDOW_SOL_AFTER_IN
    # symmetric window around an inflow; overrides the directional look-back
    window_around_in: Optional[int] = settings.WINDOW_AROUND_IN
    min_lamports_to_sum: int = settings.MIN_LAMPORTS_TO_SUM
    aggregate_outs: bool = False
    transfer_window: int = settings.TRANSFER_CLUSTER_WINDOW


@dataclass(frozen=True)
class EngineConfig:
    tagger: TaggerParams = field(default_factory=TaggerParams)
    match: MatchOptions = field(default_factory=MatchOptions)
    residual_dust_lamports: int = settings.RESIDUAL_DUST_LAMPORTS
    max_passes: int = settings.MAX_PASSES
    fee_window: int = settings.FEE_ATTACH_WINDOW
