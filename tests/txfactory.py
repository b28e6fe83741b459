"""
Builders for jsonParsed-shaped Solana transactions used across the tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from swaptrace.core.constants import (
    ATA_PROGRAM_ID,
    COMPUTE_BUDGET_PROGRAM_ID,
    NATIVE_MINT,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from swaptrace.core.models import Edge

WALLET = "UserWa11et1111111111111111111111111111111111"
WALLET_B = "UserWa11etB222222222222222222222222222222222"
USER_ATA = "UserTokenAcc1111111111111111111111111111111"
USER_WSOL = "UserWsolAcc11111111111111111111111111111111"
POOL = "Poo1Vau1t11111111111111111111111111111111111"
POOL_WSOL = "Poo1WsolVau1t111111111111111111111111111111"
HUB = "RouterHub1111111111111111111111111111111111"
FRIEND = "FriendAcc11111111111111111111111111111111111"
MINT_A = "MintAAAA111111111111111111111111111111111111"
MINT_B = "MintBBBB111111111111111111111111111111111111"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class TxBuilder:
    """Accumulates instructions and balances, then renders a getTransaction result."""

    def __init__(self, signers=(WALLET,), block_time: int = 1_700_000_000, fee: int = 5000, err=None) -> None:
        self._keys: List[Dict[str, Any]] = []
        self._outer: List[Dict[str, Any]] = []
        self._inner: Dict[int, List[Dict[str, Any]]] = {}
        self._pre_tok: List[Dict[str, Any]] = []
        self._post_tok: List[Dict[str, Any]] = []
        self._native: Dict[str, tuple] = {}
        self.block_time = block_time
        self.fee = fee
        self.err = err
        for s in signers:
            self.key(s, signer=True)

    # ---- accounts ----

    def key(self, addr: str, signer: bool = False) -> int:
        for i, k in enumerate(self._keys):
            if k["pubkey"] == addr:
                k["signer"] = k["signer"] or signer
                return i
        self._keys.append({"pubkey": addr, "signer": signer, "writable": True})
        return len(self._keys) - 1

    def native_balance(self, addr: str, pre: int, post: int) -> "TxBuilder":
        self.key(addr)
        self._native[addr] = (pre, post)
        return self

    def token_balance(self, account: str, mint: str, owner: str, decimals: int = 6,
                      pre: str = "0", post: str = "0") -> "TxBuilder":
        pos = self.key(account)
        for bucket, amt in ((self._pre_tok, pre), (self._post_tok, post)):
            bucket.append({
                "accountIndex": pos,
                "mint": mint,
                "owner": owner,
                "uiTokenAmount": {"decimals": decimals, "uiAmountString": amt},
            })
        return self

    # ---- instructions ----

    def _add(self, ix: Dict[str, Any], inner_of: Optional[int]) -> "TxBuilder":
        if inner_of is None:
            self._outer.append(ix)
        else:
            self._inner.setdefault(inner_of, []).append(ix)
        return self

    def outer(self, program_id: str = COMPUTE_BUDGET_PROGRAM_ID) -> "TxBuilder":
        """An instruction nothing recognizes (placeholder parent for inner groups)."""
        return self._add({"programId": program_id, "accounts": [], "data": ""}, None)

    def sol_transfer(self, source: str, dest: str, lamports: int, inner_of: Optional[int] = None) -> "TxBuilder":
        self.key(source)
        self.key(dest)
        return self._add({
            "program": "system",
            "programId": SYSTEM_PROGRAM_ID,
            "parsed": {"type": "transfer", "info": {"source": source, "destination": dest, "lamports": lamports}},
        }, inner_of)

    def token_transfer(self, source: str, dest: str, amount, mint: Optional[str] = MINT_A,
                       authority: Optional[str] = WALLET, decimals: int = 6, checked: bool = True,
                       inner_of: Optional[int] = None) -> "TxBuilder":
        self.key(source)
        self.key(dest)
        amount = Decimal(str(amount))
        raw = str(int(amount.scaleb(decimals)))
        if checked:
            info = {
                "source": source,
                "destination": dest,
                "mint": mint,
                "authority": authority,
                "tokenAmount": {
                    "amount": raw,
                    "decimals": decimals,
                    "uiAmountString": format(amount.normalize(), "f"),
                },
            }
            kind = "transferChecked"
        else:
            info = {"source": source, "destination": dest, "authority": authority, "amount": raw}
            kind = "transfer"
        return self._add({
            "program": "spl-token",
            "programId": TOKEN_PROGRAM_ID,
            "parsed": {"type": kind, "info": info},
        }, inner_of)

    def wsol_transfer(self, source: str, dest: str, lamports: int, authority: Optional[str] = WALLET,
                      inner_of: Optional[int] = None) -> "TxBuilder":
        sol = Decimal(lamports).scaleb(-9)
        return self.token_transfer(source, dest, sol, mint=NATIVE_MINT, authority=authority,
                                   decimals=9, checked=True, inner_of=inner_of)

    def ata_create(self, wallet: str, account: str, mint: str, inner_of: Optional[int] = None) -> "TxBuilder":
        self.key(account)
        return self._add({
            "program": "spl-associated-token-account",
            "programId": ATA_PROGRAM_ID,
            "parsed": {
                "type": "createIdempotent",
                "info": {"source": wallet, "account": account, "wallet": wallet, "mint": mint},
            },
        }, inner_of)

    def init_account(self, account: str, mint: str, owner: str, inner_of: Optional[int] = None) -> "TxBuilder":
        self.key(account)
        return self._add({
            "program": "spl-token",
            "programId": TOKEN_PROGRAM_ID,
            "parsed": {"type": "initializeAccount3", "info": {"account": account, "mint": mint, "owner": owner}},
        }, inner_of)

    # ---- render ----

    def build(self) -> Dict[str, Any]:
        pre = [self._native.get(k["pubkey"], (0, 0))[0] for k in self._keys]
        post = [self._native.get(k["pubkey"], (0, 0))[1] for k in self._keys]
        return {
            "slot": 1,
            "blockTime": self.block_time,
            "transaction": {
                "signatures": ["sig"],
                "message": {
                    "accountKeys": [dict(k) for k in self._keys],
                    "instructions": list(self._outer),
                },
            },
            "meta": {
                "err": self.err,
                "fee": self.fee,
                "preBalances": pre,
                "postBalances": post,
                "preTokenBalances": list(self._pre_tok),
                "postTokenBalances": list(self._post_tok),
                "innerInstructions": [
                    {"index": i, "instructions": ixs} for i, ixs in sorted(self._inner.items())
                ],
            },
        }


def edge(seq: int, source: str, destination: str, amount, mint: str = MINT_A,
         authority: Optional[str] = None, depth: int = 1, checked: bool = False,
         synthetic: bool = False) -> Edge:
    return Edge(
        seq=seq,
        source=source,
        destination=destination,
        mint=mint,
        amount=Decimal(str(amount)),
        authority=authority,
        depth=depth,
        checked=checked,
        synthetic=synthetic,
    )


def sol_edge(seq: int, source: str, destination: str, lamports: int, authority: Optional[str] = None,
             depth: int = 1, checked: bool = False) -> Edge:
    return edge(seq, source, destination, Decimal(lamports).scaleb(-9), mint=NATIVE_MINT,
                authority=authority, depth=depth, checked=checked)
