from __future__ import annotations

import argparse
import json

from swaptrace.adapters.chain.solana_rpc_adapter import SolanaRpcAdapter


def main() -> None:
    parser = argparse.ArgumentParser(description="Save jsonParsed transactions for offline runs (--tx-file)")
    parser.add_argument("--signature", action="append", required=True, help="Signature (repeatable)")
    parser.add_argument("--output", required=True, help="Output JSON file")
    parser.add_argument("--rpc-url", default=None)
    args = parser.parse_args()

    rpc = SolanaRpcAdapter(endpoint=args.rpc_url)
    txs = rpc.get_transactions(args.signature)
    rows = [{"signature": s, "transaction": tx} for s, tx in zip(args.signature, txs) if tx]

    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2)
    print(f"Wrote {len(rows)}/{len(args.signature)} transactions to {args.output}")


if __name__ == "__main__":
    main()
