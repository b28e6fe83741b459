from __future__ import annotations

import logging
from typing import Any, Set

from swaptrace.core.constants import ATA_PROGRAM_ID, TOKEN_PROGRAM_IDS
from swaptrace.core.models import AccountIndex
from swaptrace.parsing import tx_access as txa

logger = logging.getLogger(__name__)


def _decimals_of(balance: dict):
    ui = balance.get("uiTokenAmount")
    if isinstance(ui, dict) and isinstance(ui.get("decimals"), int):
        return ui["decimals"]
    return None


def build_account_index_skeleton(tx: Any) -> AccountIndex:
    """Seed the account index from pre/post token balance snapshots."""
    idx = AccountIndex()
    keys = txa.account_keys(tx)

    for b in txa.token_balances(tx):
        pos = b.get("accountIndex")
        if not isinstance(pos, int) or not 0 <= pos < len(keys):
            continue
        addr = keys[pos]
        if not addr:
            continue
        idx.note(addr, mint=b.get("mint"), decimals=_decimals_of(b), owner=b.get("owner"))

    logger.debug("account index skeleton: %d accounts from %d keys", len(idx), len(keys))
    return idx


def extract_user_token_accounts(tx: Any, user_wallet: str) -> Set[str]:
    """
    Token accounts the wallet owns according to this transaction:
    balance snapshots owned by it, accounts initialized for it, and
    associated accounts created for it.
    """
    keys = txa.account_keys(tx)
    out: Set[str] = set()

    for b in txa.token_balances(tx):
        if b.get("owner") != user_wallet:
            continue
        pos = b.get("accountIndex")
        if isinstance(pos, int) and 0 <= pos < len(keys) and keys[pos]:
            out.add(keys[pos])

    for ix in txa.all_instructions(tx):
        pid = txa.program_id(ix)
        prog = ix.get("program")
        kind, info = txa.parsed(ix)
        if not kind:
            continue

        if (pid in TOKEN_PROGRAM_IDS or prog == "spl-token") and kind.startswith("initializeAccount"):
            acc = info.get("account")
            if acc and info.get("owner") == user_wallet:
                out.add(acc)

        elif (pid == ATA_PROGRAM_ID or prog == "spl-associated-token-account") and kind in (
            "create",
            "createIdempotent",
        ):
            acc = info.get("account")
            if acc and info.get("wallet") == user_wallet:
                out.add(acc)

    logger.debug("user token accounts for %s: %d", user_wallet, len(out))
    return out
