from __future__ import annotations

import json
from collections import Counter
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

from swaptrace.io.schemas import actions_to_list, leg_to_dict
from swaptrace.services.trade_service import TradeResult


def _out_path(out_dir: str, filename: str) -> Path:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)
    return p / filename


def write_actions_json(result: TradeResult, out_dir: str, filename: str = "actions.json") -> str:
    out_path = _out_path(out_dir, filename)
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(actions_to_list(result.actions), f, indent=2)
    return str(out_path)


def write_legs_json(result: TradeResult, out_dir: str, filename: str = "legs.json") -> str:
    out_path = _out_path(out_dir, filename)
    payload = [
        {
            "signature": p.signature,
            "wallets": p.wallets,
            "block_time": p.block_time,
            "legs": [leg_to_dict(l) for l in p.legs],
        }
        for p in result.parsed
    ]
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    return str(out_path)


def write_summary_md(
    result: TradeResult,
    out_dir: str,
    filename: str = "summary.md",
    subject: Optional[str] = None,
) -> str:
    """
    Short human summary: counts, USD volume per side, strategy mix, skips.
    """
    out_path = _out_path(out_dir, filename)

    by_type = Counter(a.transaction_type for a in result.actions)
    strategies = Counter(l.strategy or "?" for p in result.parsed for l in p.legs)

    usd: Dict[str, Decimal] = {}
    for a in result.actions:
        side = a.sold if a.transaction_type == "buy" else a.bought
        usd[a.transaction_type] = usd.get(a.transaction_type, Decimal("0")) + Decimal(side.amount_usd or "0")

    def short(addr: str) -> str:
        return addr if len(addr) <= 14 else f"{addr[:6]}...{addr[-4:]}"

    lines = []
    lines.append("# Trade Summary\n")
    if subject:
        lines.append(f"- Subject: **{subject}**\n")
    lines.append(f"- Transactions with legs: **{len(result.parsed)}**\n")
    lines.append(f"- Actions: **{len(result.actions)}**\n")
    lines.append(f"- Missing: {len(result.missing)} | Failed on-chain: {len(result.failed)} | Errors: {len(result.errors)}\n")
    lines.append("\n")

    lines.append("## Actions by type\n\n")
    if not by_type:
        lines.append("_No trades detected._\n\n")
    else:
        for t, n in sorted(by_type.items()):
            vol = usd.get(t)
            suffix = f" | **{vol:.2f} USD**" if vol else ""
            lines.append(f"- {t}: {n}{suffix}\n")
        lines.append("\n")

    lines.append("## Legs by strategy\n\n")
    if not strategies:
        lines.append("_No legs._\n\n")
    else:
        for s, n in strategies.most_common():
            lines.append(f"- {s}: {n}\n")
        lines.append("\n")

    if result.errors:
        lines.append("## Errors\n\n")
        for sig, err in result.errors.items():
            lines.append(f"- {short(sig)}: {err}\n")
        lines.append("\n")

    lines.append("## Actions\n\n")
    if not result.actions:
        lines.append("_None._\n")
    for a in result.actions:
        sold = f"{a.sold.amount} {a.sold.symbol or short(a.sold.address or '')}" if a.sold.amount is not None else "-"
        if a.transaction_type == "transfer":
            bought = f"-> {short(a.bought.target_wallet or '?')}"
        else:
            bought = f"{a.bought.amount} {a.bought.symbol or short(a.bought.address or '')}"
        lines.append(
            f"- {a.transaction_date:%Y-%m-%d %H:%M:%S} | {a.transaction_type} | {sold} | {bought} "
            f"| tx: {a.transaction_hash}\n"
        )

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)
    return str(out_path)
