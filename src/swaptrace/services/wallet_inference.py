from __future__ import annotations

import logging
from typing import Any, List, Set

from swaptrace.core.constants import ATA_PROGRAM_ID, NON_USER_ACCOUNTS
from swaptrace.parsing import tx_access as txa

logger = logging.getLogger(__name__)


def _balance_owners(tx: Any) -> Set[str]:
    return {b["owner"] for b in txa.token_balances(tx) if b.get("owner")}


def _instruction_authorities(tx: Any) -> Set[str]:
    out: Set[str] = set()
    for ix in txa.all_instructions(tx):
        _, info = txa.parsed(ix)
        a = info.get("authority")
        if a:
            out.add(a)
    return out


def _ata_wallets(tx: Any) -> Set[str]:
    out: Set[str] = set()
    for ix in txa.all_instructions(tx):
        if ix.get("program") != "spl-associated-token-account" and txa.program_id(ix) != ATA_PROGRAM_ID:
            continue
        kind, info = txa.parsed(ix)
        if kind in ("create", "createIdempotent") and info.get("wallet"):
            out.add(info["wallet"])
    return out


def infer_user_wallet(tx: Any) -> str:
    """
    Best guess at the single human wallet behind a transaction.

    Signers minus known program/sysvar accounts; a lone survivor wins,
    otherwise prefer a signer that owns a token balance, then one that
    authorizes an instruction, then the first signer.
    """
    signers = txa.signers(tx)
    human = [s for s in signers if s not in NON_USER_ACCOUNTS]

    if len(human) == 1:
        return human[0]

    owners = _balance_owners(tx)
    for s in human:
        if s in owners:
            logger.debug("user wallet matched by balance owner: %s", s)
            return s

    authorities = _instruction_authorities(tx)
    for s in human:
        if s in authorities:
            logger.debug("user wallet matched by instruction authority: %s", s)
            return s

    fallback = human[0] if human else (signers[0] if signers else "")
    if len(human) > 1:
        logger.debug("ambiguous signers %s, falling back to %s", human, fallback)
    return fallback


def infer_user_wallets(tx: Any) -> List[str]:
    """All plausible user wallets: signers, signer-owners, signer ATA wallets."""
    signers = [s for s in txa.signers(tx) if s not in NON_USER_ACCOUNTS]
    signer_set = set(signers)
    owners = _balance_owners(tx)
    ata_wallets = _ata_wallets(tx)

    out: List[str] = []
    seen: Set[str] = set()

    def add(addr: str) -> None:
        if addr and addr not in seen and addr not in NON_USER_ACCOUNTS:
            seen.add(addr)
            out.append(addr)

    for s in signers:
        add(s)
    for s in signers:
        if s in owners:
            add(s)
    for w in sorted(ata_wallets):
        if w in signer_set:
            add(w)
    return out
