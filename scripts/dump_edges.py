from __future__ import annotations

import argparse
import json

from swaptrace.io.schemas import edge_to_dict
from swaptrace.parsing.graph_builder import build_edges_and_index
from swaptrace.services.edge_tagger import tag_edges
from swaptrace.services.leg_engine import user_token_accounts_for
from swaptrace.services.wallet_inference import infer_user_wallets


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the tagged edge graph of one jsonParsed transaction")
    parser.add_argument("--input", required=True, help="JSON file holding a getTransaction result")
    parser.add_argument("--wallet", action="append", default=[], help="User wallet (repeatable; inferred if omitted)")
    args = parser.parse_args()

    with open(args.input, "r", encoding="utf-8") as f:
        tx = json.load(f)

    wallets = args.wallet or infer_user_wallets(tx)
    edges, index = build_edges_and_index(tx, wallets)
    accounts = user_token_accounts_for(tx, edges, index, wallets)
    tags = tag_edges(edges, wallets, user_token_accounts=accounts)

    print(json.dumps({
        "wallets": wallets,
        "edges": [dict(edge_to_dict(e), tag=tags[e.seq].value) for e in edges],
    }, indent=2))


if __name__ == "__main__":
    main()
