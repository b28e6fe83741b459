from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from swaptrace.config import settings
from swaptrace.core.dto import Candle
from swaptrace.core.models import EngineConfig, SwapLeg, TradeAction
from swaptrace.parsing import tx_access as txa
from swaptrace.ports.chain_data_port import ChainDataPort
from swaptrace.ports.price_port import PricePort
from swaptrace.services.actions import legs_to_trade_actions
from swaptrace.services.leg_engine import transaction_to_swap_legs
from swaptrace.services.pool import LegWorkerPool
from swaptrace.services.wallet_inference import infer_user_wallets

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, Dict[str, Any]], None]

# seconds of candle margin around the block-time range
PRICE_MARGIN_SEC = 60


@dataclass
class ParsedTx:
    signature: str
    wallets: List[str]
    block_time: int
    legs: List[SwapLeg]


@dataclass
class TradeResult:
    parsed: List[ParsedTx] = field(default_factory=list)
    actions: List[TradeAction] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


def _noop(event: str, data: Dict[str, Any]) -> None:
    return None


class TradeService:
    """
    Turns transaction signatures (or an address history) into trade actions.

    - Fetch: chunked jsonParsed transactions through the chain port
    - Skips: missing transactions, failed transactions (meta.err)
    - Legs: per transaction, optionally on a worker pool
    - Pricing: one SOL/USD candle fetch over the whole block-time range
    """

    def __init__(
        self,
        chain: ChainDataPort,
        price: Optional[PricePort] = None,
        config: Optional[EngineConfig] = None,
        pool: Optional[LegWorkerPool] = None,
        chunk_size: int = settings.SOLANA_RPC_BATCH_SIZE,
    ) -> None:
        self.chain = chain
        self.price = price
        self.config = config or EngineConfig()
        self.pool = pool
        self.chunk_size = max(1, int(chunk_size))

    def actions_from_signatures(self, signatures: Sequence[str], on_progress: Optional[ProgressFn] = None) -> List[TradeAction]:
        return self.run(signatures, on_progress=on_progress).actions

    def actions_from_address(
        self,
        address: str,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        until: Optional[str] = None,
        on_progress: Optional[ProgressFn] = None,
    ) -> List[TradeAction]:
        return self.run_address(address, limit, before, until, on_progress=on_progress).actions

    def run_address(
        self,
        address: str,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        until: Optional[str] = None,
        on_progress: Optional[ProgressFn] = None,
    ) -> TradeResult:
        progress = on_progress or _noop
        sigs = [
            s.signature
            for s in self.chain.iter_signatures(address, limit=limit, before=before, until=until)
            if not s.failed
        ]
        progress("signatures", {"address": address, "count": len(sigs)})
        if not sigs:
            return TradeResult()
        return self.run(sigs, on_progress=on_progress)

    def run(self, signatures: Sequence[str], on_progress: Optional[ProgressFn] = None) -> TradeResult:
        if not signatures:
            raise ValueError("signatures are required")
        progress = on_progress or _noop
        result = TradeResult()

        # ---- fetch ----
        fetched: List[tuple] = []
        for i in range(0, len(signatures), self.chunk_size):
            chunk = list(signatures[i:i + self.chunk_size])
            progress("fetch", {"offset": i, "count": len(chunk), "total": len(signatures)})
            txs = self.chain.get_transactions(chunk)
            for sig, tx in zip(chunk, txs):
                if not tx:
                    logger.warning("missing tx: %s", sig)
                    result.missing.append(sig)
                    continue
                if txa.is_failed(tx):
                    logger.info("skip failed tx: %s", sig)
                    result.failed.append(sig)
                    continue
                wallets = infer_user_wallets(tx)
                if not wallets:
                    logger.warning("no user wallet for %s", sig)
                    result.errors[sig] = "no user wallet"
                    continue
                fetched.append((sig, tx, wallets))

        # ---- legs ----
        progress("legs", {"count": len(fetched)})
        for (sig, tx, wallets), legs, err in zip(fetched, *self._legs_for(fetched)):
            if err is not None:
                logger.error("error parsing legs for %s: %s", sig, err)
                result.errors[sig] = err
                continue
            if legs:
                result.parsed.append(ParsedTx(sig, wallets, txa.block_time(tx), legs))

        # ---- prices ----
        candles = self._candles_for(result.parsed)

        # ---- actions ----
        for p in result.parsed:
            result.actions.extend(
                legs_to_trade_actions(p.legs, p.signature, p.block_time, candles, wallet=p.wallets[0])
            )
        result.actions.sort(key=lambda a: a.transaction_date)

        progress("done", {"transactions": len(result.parsed), "actions": len(result.actions)})
        return result

    # -------------------------
    # Helpers
    # -------------------------

    def _legs_for(self, fetched: List[tuple]):
        if self.pool is not None:
            jobs = [(tx, wallets) for _, tx, wallets in fetched]
            results = self.pool.run(jobs)
            return [r.legs for r in results], [None if r.ok else r.error for r in results]

        all_legs: List[List[SwapLeg]] = []
        errors: List[Optional[str]] = []
        for sig, tx, wallets in fetched:
            try:
                all_legs.append(transaction_to_swap_legs(tx, wallets, self.config))
                errors.append(None)
            except Exception as e:
                all_legs.append([])
                errors.append(f"{type(e).__name__}: {e}")
        return all_legs, errors

    def _candles_for(self, parsed: List[ParsedTx]) -> List[Candle]:
        if self.price is None:
            return []
        times = [p.block_time for p in parsed if p.block_time > 0]
        if not times:
            if parsed:
                logger.warning("no valid blockTime for candles")
            return []
        start_ms = (min(times) - PRICE_MARGIN_SEC) * 1000
        end_ms = (max(times) + PRICE_MARGIN_SEC) * 1000
        return self.price.get_sol_candles(start_ms, end_ms)
