from __future__ import annotations

import argparse
import dataclasses
import datetime as dt
import json
import sys
import time
from typing import List, Optional

from swaptrace.adapters.chain.solana_rpc_adapter import SolanaRpcAdapter
from swaptrace.adapters.chain.static_chain_adapter import StaticChainAdapter
from swaptrace.adapters.pricing.binance_klines_adapter import BinanceKlinesAdapter
from swaptrace.config import settings
from swaptrace.config.logging import configure_logging
from swaptrace.core.errors import SwapTraceError
from swaptrace.core.models import EngineConfig, MatchOptions
from swaptrace.io.output_writer import write_actions_json, write_legs_json, write_summary_md
from swaptrace.services.pool import LegWorkerPool
from swaptrace.services.trade_service import TradeResult, TradeService


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="swaptrace", description="Reconstruct Solana swaps and transfers from raw transactions")
    p.add_argument("--signature", action="append", default=[], help="Transaction signature (repeatable)")
    p.add_argument("--signatures-file", help="File with one signature per line")
    p.add_argument("--address", help="Wallet address; its recent history is analysed")
    p.add_argument("--limit", type=int, default=100, help="Max signatures to pull for --address")
    p.add_argument("--before", help="Start paging before this signature (--address)")
    p.add_argument("--until", help="Stop paging at this signature (--address)")
    p.add_argument("--tx-file", help="Offline JSON list of {signature, transaction} objects")
    p.add_argument("--rpc-url", default=None, help="Solana RPC endpoint (default: SOLANA_RPC_URL)")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--workers", type=int, default=0, help="Worker processes for leg building (0=in-process)")
    p.add_argument("--no-prices", action="store_true", help="Skip Binance SOL/USD pricing")
    p.add_argument("--window-total-from-out", type=int, default=None, help="Override the look-back window (seq units)")
    p.add_argument("--aggregate-outs", action="store_true", help="Sum candidate outflows instead of taking the largest")
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--log-file", default=None, help="Also log to this file")
    return p


def _make_progress_reporter():
    start_time = time.time()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def progress(event: str, data: dict) -> None:
        if event == "signatures":
            print(f"[{_ts()}] {data['count']} signature(s) for {data['address']}")
        elif event == "fetch":
            print(f"[{_ts()}] Fetching {data['offset'] + data['count']}/{data['total']} transactions...")
        elif event == "legs":
            print(f"[{_ts()}] Building legs for {data['count']} transaction(s)")
        elif event == "done":
            elapsed = time.time() - start_time
            print(f"[{_ts()}] Done in {elapsed:.1f}s • {data['transactions']} tx • {data['actions']} actions")

    return progress


def _read_signatures(args: argparse.Namespace) -> List[str]:
    sigs = [s.strip() for s in args.signature if s.strip()]
    if args.signatures_file:
        with open(args.signatures_file, "r", encoding="utf-8") as f:
            sigs.extend(line.strip() for line in f if line.strip() and not line.startswith("#"))
    # dedupe, keep order
    return list(dict.fromkeys(sigs))


def _load_tx_file(path: str) -> StaticChainAdapter:
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)
    txs = {r["signature"]: r["transaction"] for r in rows if r.get("signature")}
    return StaticChainAdapter(transactions=txs)


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    match = MatchOptions(aggregate_outs=args.aggregate_outs)
    if args.window_total_from_out is not None:
        match = dataclasses.replace(match, window_total_from_out=args.window_total_from_out)
    return EngineConfig(match=match)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    signatures = _read_signatures(args)
    if args.tx_file:
        chain = _load_tx_file(args.tx_file)
        if not signatures:
            signatures = chain.signatures()
        adapter_label = f"StaticChainAdapter ({args.tx_file})"
    else:
        chain = SolanaRpcAdapter(endpoint=args.rpc_url)
        adapter_label = "SolanaRpcAdapter"

    if not signatures and not args.address:
        print("Provide --signature, --signatures-file, --address or --tx-file", file=sys.stderr)
        return 2

    price = None if args.no_prices else BinanceKlinesAdapter()
    config = _engine_config(args)
    pool = LegWorkerPool(args.workers, config=config) if args.workers > 0 else None

    svc = TradeService(chain=chain, price=price, config=config, pool=pool)
    progress = _make_progress_reporter()
    print(f"Adapter: {adapter_label}")
    try:
        if signatures:
            result: TradeResult = svc.run(signatures, on_progress=progress)
        else:
            result = svc.run_address(args.address, args.limit, args.before, args.until, on_progress=progress)
    except SwapTraceError as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1
    finally:
        if pool is not None:
            pool.close()

    # Outputs
    print("Writing outputs...")
    actions_path = write_actions_json(result, args.out)
    legs_path = write_legs_json(result, args.out)
    summary_path = write_summary_md(result, args.out, subject=args.address)

    print(f"Wrote: {actions_path}")
    print(f"Wrote: {legs_path}")
    print(f"Wrote: {summary_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
