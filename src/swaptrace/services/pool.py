from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from swaptrace.config import settings
from swaptrace.core.models import EngineConfig, SwapLeg
from swaptrace.services.leg_engine import transaction_to_swap_legs

logger = logging.getLogger(__name__)

# (transaction, user_wallets)
Job = Tuple[Any, Sequence[str]]


@dataclass
class JobResult:
    ok: bool
    legs: List[SwapLeg] = field(default_factory=list)
    error: Optional[str] = None


def run_leg_job(tx: Any, user_wallets: Sequence[str], config: Optional[EngineConfig] = None) -> List[SwapLeg]:
    """Worker entry point; module level so it pickles."""
    return transaction_to_swap_legs(tx, list(user_wallets), config)


class LegWorkerPool:
    """
    Fixed-size process pool for per-transaction leg reconstruction.

    Jobs share nothing; a failing job is reported in its own JobResult
    and never affects the others.
    """

    def __init__(self, size: int = settings.WORKER_POOL_SIZE, config: Optional[EngineConfig] = None) -> None:
        self.size = max(1, int(size))
        self.config = config
        self._executor: Optional[concurrent.futures.ProcessPoolExecutor] = None

    def __enter__(self) -> "LegWorkerPool":
        self._ensure()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _ensure(self) -> concurrent.futures.ProcessPoolExecutor:
        if self._executor is None:
            self._executor = concurrent.futures.ProcessPoolExecutor(max_workers=self.size)
        return self._executor

    def submit(
        self,
        tx: Any,
        user_wallets: Sequence[str],
        config: Optional[EngineConfig] = None,
    ) -> "concurrent.futures.Future[List[SwapLeg]]":
        return self._ensure().submit(run_leg_job, tx, list(user_wallets), config or self.config)

    def run(self, jobs: Iterable[Job]) -> List[JobResult]:
        """Run all jobs; results come back in submission order."""
        futures = [self.submit(tx, wallets) for tx, wallets in jobs]
        results: List[JobResult] = []
        for i, fut in enumerate(futures):
            try:
                results.append(JobResult(ok=True, legs=fut.result()))
            except Exception as e:
                logger.warning("leg job %d failed: %s", i, e)
                results.append(JobResult(ok=False, error=f"{type(e).__name__}: {e}"))
        return results

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
