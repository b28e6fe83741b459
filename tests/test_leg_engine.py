import unittest
from decimal import Decimal
from typing import List, Mapping

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.errors import NoUserWalletError
from swaptrace.core.models import Edge, MatchOptions, SwapLeg
from swaptrace.parsing.graph_builder import build_edges_and_index
from swaptrace.services.edge_tagger import tag_edges
from swaptrace.services.leg_engine import run_pipeline, transaction_to_swap_legs, user_token_accounts_for
from swaptrace.strategies.base import LegStrategy, WalletScope

from txfactory import (
    MINT_A, MINT_B, POOL, POOL_WSOL, USER_ATA, USER_WSOL, WALLET, WALLET_B, TxBuilder, sol_edge,
)

TIP_ACC = "TipAcc111111111111111111111111111111111111"
FEE_ACC = "ProtocolFeeAcc11111111111111111111111111111"
POOL_B = "Poo1B111111111111111111111111111111111111111"
ATA_B = "AtaOfWalletB1111111111111111111111111111111"


def buy_tx():
    return (
        TxBuilder()
        .sol_transfer(WALLET, TIP_ACC, 1_000_000)
        .outer()
        .sol_transfer(WALLET, POOL, 1_000_000_000, inner_of=1)
        .token_transfer(POOL, USER_ATA, "1000", authority=POOL, inner_of=1)
        .sol_transfer(WALLET, FEE_ACC, 10_000_000, inner_of=1)
        .token_balance(USER_ATA, MINT_A, WALLET, pre="0", post="1000")
        .build()
    )


def sell_tx():
    return (
        TxBuilder()
        .outer()
        .token_transfer(USER_ATA, POOL, "1000", authority=WALLET, inner_of=0)
        .wsol_transfer(POOL_WSOL, USER_WSOL, 2_000_000_000, authority=POOL, inner_of=0)
        .token_balance(USER_ATA, MINT_A, WALLET, pre="1000", post="0")
        .token_balance(USER_WSOL, NATIVE_MINT, WALLET, decimals=9, pre="0", post="2")
        .build()
    )


class _FixedLegs(LegStrategy):
    """Emits the same legs on every call, whatever it is shown."""

    def __init__(self, name: str, paths: List[List[Edge]]) -> None:
        self.name = name
        self.paths = paths

    def match_wallet(self, edges, scope: WalletScope, opts: MatchOptions, tags) -> List[SwapLeg]:
        return [SwapLeg(MINT_A, Decimal(1), MINT_B, Decimal(1), path=list(p)) for p in self.paths]


class _OneAtATime(LegStrategy):
    name = "OneAtATime"

    def match_wallet(self, edges, scope, opts, tags) -> List[SwapLeg]:
        return [SwapLeg(MINT_A, Decimal(1), MINT_B, Decimal(1), path=[edges[0]])]


class _Recorder(LegStrategy):
    def __init__(self, name: str) -> None:
        self.name = name
        self.seen: List[int] = []

    def match_wallet(self, edges, scope, opts, tags: Mapping[int, EdgeTag]) -> List[SwapLeg]:
        self.seen.extend(e.seq for e in edges)
        return []


class RunPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.edges = [sol_edge(i, WALLET, POOL, 1_000_000_000, authority=WALLET) for i in range(10)]
        self.accounts = {WALLET: frozenset({WALLET})}

    def test_requires_a_wallet(self) -> None:
        with self.assertRaises(NoUserWalletError):
            run_pipeline(self.edges, {}, {}, [])
        with self.assertRaises(ValueError):
            transaction_to_swap_legs(buy_tx(), [])

    def test_no_edges_no_legs(self) -> None:
        self.assertEqual(run_pipeline([], {}, self.accounts, [WALLET]), [])

    def test_overlapping_leg_is_rejected(self) -> None:
        e = self.edges
        first = _FixedLegs("First", [[e[0], e[1]]])
        second = _FixedLegs("Second", [[e[1], e[2]], [e[3]]])

        legs = run_pipeline(e, {}, self.accounts, [WALLET], strategies=(first, second))

        self.assertEqual([l.seqs() for l in legs], [[0, 1], [3]])
        self.assertEqual([l.strategy for l in legs], ["First", "Second"])

    def test_pass_budget(self) -> None:
        legs = run_pipeline(self.edges, {}, self.accounts, [WALLET], strategies=(_OneAtATime(),), max_passes=3)
        self.assertEqual([l.seqs() for l in legs], [[0], [1], [2]])

    def test_stops_when_a_pass_accepts_nothing(self) -> None:
        legs = run_pipeline(self.edges[:2], {}, self.accounts, [WALLET], strategies=(_OneAtATime(),))
        self.assertEqual(len(legs), 2)

    def test_fee_and_tip_hidden_dust_hidden_only_from_fallback(self) -> None:
        tags = {0: EdgeTag.NORMAL, 1: EdgeTag.FEE, 2: EdgeTag.TIP, 3: EdgeTag.DUST}
        regular = _Recorder("Regular")
        fallback = _Recorder("AuthorityOnly")

        run_pipeline(self.edges[:4], tags, self.accounts, [WALLET], strategies=(regular, fallback))

        self.assertEqual(sorted(set(regular.seen)), [0, 3])
        self.assertEqual(sorted(set(fallback.seen)), [0])


class TransactionToSwapLegsTests(unittest.TestCase):
    def test_tags_of_buy(self) -> None:
        tx = buy_tx()
        edges, index = build_edges_and_index(tx, [WALLET])
        accounts = user_token_accounts_for(tx, edges, index, [WALLET])
        tags = tag_edges(edges, [WALLET], user_token_accounts=accounts)

        self.assertIn(USER_ATA, accounts[WALLET])
        self.assertIn(WALLET, accounts[WALLET])
        self.assertEqual(
            [tags[s] for s in range(4)],
            [EdgeTag.TIP, EdgeTag.NORMAL, EdgeTag.NORMAL, EdgeTag.FEE],
        )

    def test_buy_leg_with_fee_decomposition(self) -> None:
        (leg,) = transaction_to_swap_legs(buy_tx(), [WALLET])

        self.assertEqual(leg.strategy, "WsolToToken")
        self.assertEqual(leg.user_wallet, WALLET)
        self.assertEqual(leg.seqs(), [1, 2])
        self.assertEqual((leg.sold_mint, leg.sold_amount), (NATIVE_MINT, Decimal("1")))
        self.assertEqual((leg.bought_mint, leg.bought_amount), (MINT_A, Decimal("1000")))

        self.assertEqual(leg.sold_core, Decimal("1"))
        self.assertEqual(leg.router_fees, Decimal("0.01"))
        self.assertEqual(leg.tip, Decimal("0.001"))
        self.assertEqual(leg.transfers_only, Decimal("1.011"))
        self.assertEqual(leg.network_fee, Decimal("0.000005"))
        self.assertEqual(leg.sold_all_in, Decimal("1.011005"))
        self.assertEqual(leg.sold_all_in, leg.transfers_only + leg.network_fee)

    def test_sell_leg(self) -> None:
        (leg,) = transaction_to_swap_legs(sell_tx(), [WALLET])

        self.assertEqual(leg.strategy, "TokenToWsol")
        self.assertEqual((leg.sold_mint, leg.sold_amount), (MINT_A, Decimal("1000")))
        self.assertEqual((leg.bought_mint, leg.bought_amount), (NATIVE_MINT, Decimal("2")))
        self.assertIsNone(leg.sold_core)
        self.assertEqual(leg.transfers_only, Decimal(0))
        self.assertIsNone(leg.fee_breakdown)

    def test_no_movements(self) -> None:
        tx = TxBuilder().outer().build()
        self.assertEqual(transaction_to_swap_legs(tx, [WALLET]), [])

    def test_two_wallets_each_get_their_leg(self) -> None:
        tx = (
            TxBuilder(signers=(WALLET, WALLET_B))
            .outer()
            .sol_transfer(WALLET, POOL, 1_000_000_000, inner_of=0)
            .token_transfer(POOL, USER_ATA, "1000", authority=POOL, inner_of=0)
            .sol_transfer(WALLET_B, POOL_B, 2_000_000_000, inner_of=0)
            .token_transfer(POOL_B, ATA_B, "500", mint=MINT_B, authority=POOL_B, inner_of=0)
            .token_balance(USER_ATA, MINT_A, WALLET, post="1000")
            .token_balance(ATA_B, MINT_B, WALLET_B, post="500")
            .build()
        )

        legs = transaction_to_swap_legs(tx, [WALLET, WALLET_B])
        by_wallet = {l.user_wallet: l for l in legs}

        self.assertEqual(set(by_wallet), {WALLET, WALLET_B})
        self.assertEqual(by_wallet[WALLET].bought_mint, MINT_A)
        self.assertEqual(by_wallet[WALLET].sold_core, Decimal("1"))
        self.assertEqual(by_wallet[WALLET_B].bought_mint, MINT_B)
        self.assertEqual(by_wallet[WALLET_B].sold_core, Decimal("2"))
        self.assertEqual(sorted(s for l in legs for s in l.seqs()), [0, 1, 2, 3])


if __name__ == "__main__":
    unittest.main()
