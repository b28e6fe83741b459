from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from swaptrace.core.constants import (
    ATA_PROGRAM_ID,
    NATIVE_DECIMALS,
    NATIVE_MINT,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_IDS,
)
from swaptrace.core.models import AccountIndex, Edge
from swaptrace.core.units import lamports_to_sol, to_decimal
from swaptrace.parsing import tx_access as txa

logger = logging.getLogger(__name__)


class VisitContext:
    """Mutable traversal state shared by the visitors of one transaction."""

    def __init__(self, account_index: AccountIndex) -> None:
        self.account_index = account_index
        self.edges: List[Edge] = []
        self.depth = 0
        self.parent_index: Optional[int] = None
        self._next_seq = 0

    def push_edge(
        self,
        source: str,
        destination: str,
        mint: str,
        amount: Decimal,
        authority: Optional[str] = None,
        program_id: Optional[str] = None,
        decimals: Optional[int] = None,
        checked: bool = False,
    ) -> Edge:
        e = Edge(
            seq=self._next_seq,
            source=source,
            destination=destination,
            mint=mint,
            amount=amount,
            authority=authority,
            program_id=program_id,
            depth=self.depth,
            decimals=decimals,
            checked=checked,
            parent_index=self.parent_index,
        )
        self._next_seq += 1
        self.edges.append(e)
        return e


class InstructionVisitor(ABC):
    @abstractmethod
    def supports(self, ix: Dict[str, Any]) -> bool:
        raise NotImplementedError

    @abstractmethod
    def visit(self, ix: Dict[str, Any], ctx: VisitContext) -> None:
        raise NotImplementedError


class TokenVisitor(InstructionVisitor):
    """
    SPL Token (legacy and 2022).

    - transfer / transferChecked -> edge
    - initializeAccount* -> account index gains {mint, decimals[, owner]}
    - closeAccount -> account index gains {owner}
    """

    def supports(self, ix: Dict[str, Any]) -> bool:
        return ix.get("program") in ("spl-token", "spl-token-2022") or txa.program_id(ix) in TOKEN_PROGRAM_IDS

    def visit(self, ix: Dict[str, Any], ctx: VisitContext) -> None:
        kind, info = txa.parsed(ix)
        if kind in ("transfer", "transferChecked"):
            self._transfer(ix, kind, info, ctx)
        elif kind in ("initializeAccount", "initializeAccount2", "initializeAccount3"):
            acc = info.get("account")
            mint = info.get("mint")
            if acc and mint:
                ctx.account_index.note(
                    acc,
                    mint=mint,
                    decimals=NATIVE_DECIMALS if mint == NATIVE_MINT else None,
                    owner=info.get("owner"),
                )
        elif kind == "closeAccount":
            acc = info.get("account")
            owner = info.get("owner")
            if acc and owner:
                ctx.account_index.note(acc, owner=owner)

    def _transfer(self, ix: Dict[str, Any], kind: str, info: Dict[str, Any], ctx: VisitContext) -> None:
        source = info.get("source")
        destination = info.get("destination")
        if not source or not destination:
            return

        idx = ctx.account_index
        mint = info.get("mint") or idx.mint_of(source) or idx.mint_of(destination)
        if not mint:
            logger.debug("token transfer with unresolved mint skipped: %s -> %s", source, destination)
            return

        token_amount = info.get("tokenAmount") if isinstance(info.get("tokenAmount"), dict) else {}
        decimals = token_amount.get("decimals")
        if not isinstance(decimals, int):
            decimals = idx.decimals_of(source)
        if decimals is None:
            decimals = idx.decimals_of(destination)
        if decimals is None and mint == NATIVE_MINT:
            decimals = NATIVE_DECIMALS

        amount = to_decimal(token_amount.get("uiAmountString"))
        if amount is None:
            amount = to_decimal(token_amount.get("uiAmount"))
        if amount is None:
            raw = to_decimal(token_amount.get("amount", info.get("amount")))
            if raw is None:
                amount = Decimal(0)
            elif decimals is not None:
                amount = raw.scaleb(-decimals)
            else:
                amount = raw

        ctx.push_edge(
            source=source,
            destination=destination,
            mint=mint,
            amount=abs(amount),
            authority=info.get("authority") or info.get("multisigAuthority"),
            program_id=txa.program_id(ix) or None,
            decimals=decimals,
            checked=kind == "transferChecked",
        )


class AssociatedTokenVisitor(InstructionVisitor):
    def supports(self, ix: Dict[str, Any]) -> bool:
        return ix.get("program") == "spl-associated-token-account" or txa.program_id(ix) == ATA_PROGRAM_ID

    def visit(self, ix: Dict[str, Any], ctx: VisitContext) -> None:
        kind, info = txa.parsed(ix)
        if kind not in ("create", "createIdempotent"):
            return
        acc = info.get("account")
        if acc:
            ctx.account_index.note(acc, mint=info.get("mint"), owner=info.get("wallet"))


class SystemVisitor(InstructionVisitor):
    def supports(self, ix: Dict[str, Any]) -> bool:
        return ix.get("program") == "system" or txa.program_id(ix) == SYSTEM_PROGRAM_ID

    def visit(self, ix: Dict[str, Any], ctx: VisitContext) -> None:
        kind, info = txa.parsed(ix)
        if kind not in ("transfer", "transferWithSeed"):
            return

        source = info.get("source") or info.get("fromPubkey") or info.get("from")
        destination = info.get("destination") or info.get("toPubkey") or info.get("to")
        if not source or not destination:
            return
        try:
            lamports = int(info.get("lamports") or 0)
        except (TypeError, ValueError):
            return
        if lamports <= 0:
            return

        ctx.push_edge(
            source=source,
            destination=destination,
            mint=NATIVE_MINT,
            amount=lamports_to_sol(lamports),
            authority=source,
            program_id=txa.program_id(ix) or SYSTEM_PROGRAM_ID,
            decimals=NATIVE_DECIMALS,
        )


class NoopVisitor(InstructionVisitor):
    """Matches anything, records nothing."""

    def supports(self, ix: Dict[str, Any]) -> bool:
        return True

    def visit(self, ix: Dict[str, Any], ctx: VisitContext) -> None:
        logger.debug(
            "ignored instruction program=%s type=%s depth=%d",
            ix.get("program") or txa.program_id(ix),
            txa.parsed(ix)[0],
            ctx.depth,
        )


def default_visitors() -> List[InstructionVisitor]:
    return [TokenVisitor(), AssociatedTokenVisitor(), SystemVisitor(), NoopVisitor()]


def _pick(ix: Dict[str, Any], visitors: Sequence[InstructionVisitor]) -> InstructionVisitor:
    for v in visitors:
        if v.supports(ix):
            return v
    return NoopVisitor()


def apply_visitors(tx: Any, visitors: Sequence[InstructionVisitor], ctx: VisitContext) -> None:
    ctx.depth = 0
    ctx.parent_index = None
    for i, ix in enumerate(txa.outer_instructions(tx)):
        ctx.parent_index = i
        _pick(ix, visitors).visit(ix, ctx)

    ctx.depth = 1
    for parent, ixs in txa.inner_groups(tx):
        ctx.parent_index = parent
        for ix in ixs:
            _pick(ix, visitors).visit(ix, ctx)
    ctx.depth = 0
    ctx.parent_index = None
