import unittest

from swaptrace.core.constants import NATIVE_MINT
from swaptrace.core.enums import EdgeTag
from swaptrace.core.models import TaggerParams
from swaptrace.parsing.graph_builder import build_edges_and_index
from swaptrace.services.edge_tagger import tag_edges

from txfactory import FRIEND, HUB, POOL, POOL_WSOL, USER_ATA, USER_WSOL, WALLET, TxBuilder, edge, sol_edge

FEE_ACC = "ProtocolFeeAcc11111111111111111111111111111"
TIP_ACC = "TipAcc111111111111111111111111111111111111"


class DustLayerTests(unittest.TestCase):
    def test_relative_dust_per_mint(self) -> None:
        edges = [
            edge(0, POOL, FRIEND, "100"),
            edge(1, POOL, FRIEND, "100000"),
        ]
        tags = tag_edges(edges, [WALLET], TaggerParams())
        self.assertEqual(tags[0], EdgeTag.DUST)
        self.assertEqual(tags[1], EdgeTag.NORMAL)

    def test_absolute_native_floor(self) -> None:
        edges = [sol_edge(0, POOL, FRIEND, 50_000)]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[0], EdgeTag.DUST)


class FeeClusterTests(unittest.TestCase):
    def test_near_equal_outflows_are_fees(self) -> None:
        edges = [
            sol_edge(10, WALLET, FEE_ACC, 5000, authority=WALLET),
            sol_edge(15, WALLET, FEE_ACC, 5002, authority=WALLET),
            sol_edge(20, WALLET, FEE_ACC, 5001, authority=WALLET),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual([tags[s] for s in (10, 15, 20)], [EdgeTag.FEE] * 3)

    def test_outside_window_is_not_clustered(self) -> None:
        edges = [
            sol_edge(0, WALLET, FEE_ACC, 50_000_000, authority=WALLET, checked=True),
            sol_edge(31, WALLET, FEE_ACC, 50_000_000, authority=WALLET, checked=True),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[0], EdgeTag.NORMAL)
        self.assertEqual(tags[31], EdgeTag.NORMAL)


class UncheckedBandingTests(unittest.TestCase):
    def test_smaller_than_nearby_checked_outflow_is_fee(self) -> None:
        edges = [
            sol_edge(0, WALLET, HUB, 1_000_000, authority=WALLET),
            edge(1, USER_WSOL, POOL_WSOL, "0.5", mint=NATIVE_MINT, authority=WALLET, checked=True),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[0], EdgeTag.FEE)
        self.assertEqual(tags[1], EdgeTag.NORMAL)

    def test_bands_by_size(self) -> None:
        edges = [
            sol_edge(0, WALLET, TIP_ACC, 1_500_000, authority=WALLET),
            sol_edge(100, WALLET, FEE_ACC, 5_000_000, authority=WALLET),
            sol_edge(200, WALLET, POOL, 50_000_000, authority=WALLET),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[0], EdgeTag.TIP)
        self.assertEqual(tags[100], EdgeTag.FEE)
        self.assertEqual(tags[200], EdgeTag.NORMAL)


class InflowClusterTests(unittest.TestCase):
    def test_largest_outflow_is_core_rest_downgraded(self) -> None:
        edges = [
            sol_edge(1, USER_WSOL, POOL_WSOL, 1_000_000_000, authority=WALLET, checked=True),
            sol_edge(3, WALLET, FEE_ACC, 3_000_000, authority=WALLET),
            sol_edge(4, USER_WSOL, TIP_ACC, 1_500_000, authority=WALLET, checked=True),
            edge(5, POOL, USER_ATA, "100", authority=POOL),
        ]
        tags = tag_edges(edges, [WALLET], user_token_accounts={WALLET: {USER_ATA, USER_WSOL}})
        self.assertEqual(tags[1], EdgeTag.NORMAL)
        self.assertEqual(tags[3], EdgeTag.FEE)
        self.assertEqual(tags[4], EdgeTag.TIP)
        self.assertEqual(tags[5], EdgeTag.NORMAL)

    def test_clustered_fee_is_not_promoted_to_core(self) -> None:
        edges = [
            sol_edge(0, WALLET, POOL, 200_000_000, authority=WALLET, checked=True),
            sol_edge(5, WALLET, POOL, 200_000_000, authority=WALLET, checked=True),
            edge(8, POOL, USER_ATA, "100", authority=POOL),
        ]
        tags = tag_edges(edges, [WALLET], user_token_accounts={WALLET: {USER_ATA}})
        self.assertEqual(tags[0], EdgeTag.FEE)
        self.assertEqual(tags[5], EdgeTag.FEE)

    def test_inflow_to_foreign_account_is_ignored_when_accounts_known(self) -> None:
        edges = [
            sol_edge(0, USER_WSOL, POOL, 1_000_000_000, authority=WALLET, checked=True),
            sol_edge(2, USER_WSOL, POOL, 50_000_000, authority=WALLET, checked=True),
            edge(3, POOL, FRIEND, "100", authority=POOL),
        ]
        known = tag_edges(edges, [WALLET], user_token_accounts={WALLET: {USER_ATA, USER_WSOL}})
        unknown = tag_edges(edges, [WALLET])

        self.assertEqual(known[2], EdgeTag.NORMAL)
        self.assertEqual(unknown[0], EdgeTag.NORMAL)
        self.assertEqual(unknown[2], EdgeTag.FEE)


class SinkDetectionTests(unittest.TestCase):
    def test_tiny_dead_end_token_outflow_is_fee(self) -> None:
        edges = [
            edge(0, USER_ATA, POOL, "1000", authority=WALLET),
            edge(1, USER_ATA, FEE_ACC, "10", authority=WALLET),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[0], EdgeTag.NORMAL)
        self.assertEqual(tags[1], EdgeTag.FEE)

    def test_forwarding_account_is_not_a_sink(self) -> None:
        edges = [
            edge(0, USER_ATA, POOL, "1000", authority=WALLET),
            edge(1, USER_ATA, FEE_ACC, "10", authority=WALLET),
            edge(2, FEE_ACC, FRIEND, "10", authority=FEE_ACC),
        ]
        tags = tag_edges(edges, [WALLET])
        self.assertEqual(tags[1], EdgeTag.NORMAL)


class TagMapTests(unittest.TestCase):
    def _tx(self):
        return (
            TxBuilder()
            .sol_transfer(WALLET, TIP_ACC, 1_000_000)
            .outer()
            .sol_transfer(WALLET, POOL, 1_000_000_000, inner_of=1)
            .token_transfer(POOL, USER_ATA, "1000", authority=POOL, inner_of=1)
            .sol_transfer(WALLET, FEE_ACC, 10_000_000, inner_of=1)
            .build()
        )

    def test_total_and_idempotent(self) -> None:
        edges, _ = build_edges_and_index(self._tx(), [WALLET])
        first = tag_edges(edges, [WALLET])
        second = tag_edges(edges, [WALLET])

        self.assertEqual(set(first), {e.seq for e in edges})
        self.assertEqual(dict(first), dict(second))

    def test_tag_map_is_read_only(self) -> None:
        edges, _ = build_edges_and_index(self._tx(), [WALLET])
        tags = tag_edges(edges, [WALLET])
        with self.assertRaises(TypeError):
            tags[0] = EdgeTag.FEE  # type: ignore[index]


if __name__ == "__main__":
    unittest.main()
