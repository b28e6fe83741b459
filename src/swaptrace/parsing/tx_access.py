"""
Null-safe accessors over a jsonParsed Solana transaction.

Missing collections read as empty so a malformed payload degrades to
"nothing to see" rather than an exception.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple


def _dict(val: Any) -> Dict[str, Any]:
    return val if isinstance(val, dict) else {}


def _list(val: Any) -> List[Any]:
    return val if isinstance(val, list) else []


def key_to_str(k: Any) -> str:
    if not k:
        return ""
    if isinstance(k, str):
        return k
    if isinstance(k, dict):
        return key_to_str(k.get("pubkey"))
    return str(k)


def message(tx: Any) -> Dict[str, Any]:
    return _dict(_dict(_dict(tx).get("transaction")).get("message"))


def meta(tx: Any) -> Dict[str, Any]:
    return _dict(_dict(tx).get("meta"))


def account_keys(tx: Any) -> List[str]:
    return [key_to_str(k) for k in _list(message(tx).get("accountKeys"))]


def signers(tx: Any) -> List[str]:
    out: List[str] = []
    for k in _list(message(tx).get("accountKeys")):
        if isinstance(k, dict) and k.get("signer"):
            addr = key_to_str(k)
            if addr:
                out.append(addr)
    return out


def outer_instructions(tx: Any) -> List[Dict[str, Any]]:
    return [ix for ix in _list(message(tx).get("instructions")) if isinstance(ix, dict)]


def inner_groups(tx: Any) -> List[Tuple[Optional[int], List[Dict[str, Any]]]]:
    groups = []
    for g in _list(meta(tx).get("innerInstructions")):
        g = _dict(g)
        idx = g.get("index")
        ixs = [ix for ix in _list(g.get("instructions")) if isinstance(ix, dict)]
        groups.append((idx if isinstance(idx, int) else None, ixs))
    return groups


def all_instructions(tx: Any) -> Iterator[Dict[str, Any]]:
    yield from outer_instructions(tx)
    for _, ixs in inner_groups(tx):
        yield from ixs


def token_balances(tx: Any) -> List[Dict[str, Any]]:
    m = meta(tx)
    pre = [b for b in _list(m.get("preTokenBalances")) if isinstance(b, dict)]
    post = [b for b in _list(m.get("postTokenBalances")) if isinstance(b, dict)]
    return pre + post


def native_balance(tx: Any, index: int, which: str) -> int:
    vals = _list(meta(tx).get(which))
    if 0 <= index < len(vals):
        try:
            return int(vals[index])
        except (TypeError, ValueError):
            return 0
    return 0


def network_fee_lamports(tx: Any) -> int:
    try:
        return int(meta(tx).get("fee") or 0)
    except (TypeError, ValueError):
        return 0


def is_failed(tx: Any) -> bool:
    return meta(tx).get("err") is not None


def block_time(tx: Any) -> int:
    bt = _dict(tx).get("blockTime")
    return bt if isinstance(bt, int) else 0


def program_id(ix: Dict[str, Any]) -> str:
    return key_to_str(ix.get("programId"))


def parsed(ix: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    p = ix.get("parsed")
    if not isinstance(p, dict):
        return "", {}
    return str(p.get("type") or ""), _dict(p.get("info"))
