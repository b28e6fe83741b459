from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from swaptrace.adapters.chain.rate_limiter import SimpleRateLimiter, backoff_sleep, is_retryable_status
from swaptrace.config import settings
from swaptrace.core.dto import SignatureInfo
from swaptrace.core.errors import DataSourceError, RateLimitError
from swaptrace.ports.chain_data_port import ChainDataPort

logger = logging.getLogger(__name__)


class SolanaRpcAdapter(ChainDataPort):
    """
    Solana JSON-RPC over HTTP.

    - getTransaction (jsonParsed) in JSON-RPC batches, order preserved
    - getSignaturesForAddress, paged newest -> oldest
    - retries network errors, 429 and 5xx with jittered exponential backoff
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        requests_per_sec: Optional[float] = None,
        batch_size: Optional[int] = None,
        commitment: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._endpoint = endpoint or settings.SOLANA_RPC_URL
        self._timeout = timeout or settings.SOLANA_RPC_TIMEOUT_SEC
        self._max_retries = max_retries if max_retries is not None else settings.SOLANA_RPC_MAX_RETRIES
        self._batch_size = batch_size or settings.SOLANA_RPC_BATCH_SIZE
        self._page_size = settings.SOLANA_SIGNATURE_PAGE_SIZE
        self._commitment = commitment or settings.SOLANA_COMMITMENT

        self._rl = SimpleRateLimiter(requests_per_sec or settings.SOLANA_RPC_REQUESTS_PER_SEC)
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _post(self, body: Any) -> Any:
        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries + 1):
            try:
                self._rl.wait()
                resp = self._session.post(
                    self._endpoint,
                    json=body,
                    headers={"Content-Type": "application/json"},
                    timeout=self._timeout,
                )
                if is_retryable_status(resp.status_code):
                    last_err = (
                        RateLimitError(f"HTTP 429 from {self._endpoint}")
                        if resp.status_code == 429
                        else DataSourceError(f"HTTP {resp.status_code} from {self._endpoint}")
                    )
                elif not resp.ok:
                    raise DataSourceError(f"HTTP {resp.status_code}: {resp.text[:200]}")
                else:
                    return resp.json()

            except DataSourceError:
                raise
            except (requests.RequestException, ValueError) as e:
                last_err = e

            if attempt < self._max_retries:
                logger.debug("rpc retry %d/%d: %s", attempt + 1, self._max_retries, last_err)
                backoff_sleep(attempt)

        raise DataSourceError(f"Solana RPC failed after retries: {last_err}")

    @staticmethod
    def _unwrap_batch(data: Any) -> List[Dict[str, Any]]:
        # some providers wrap batch replies in {"data": [...]}
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            data = data["data"]
        if not isinstance(data, list):
            data = [data]
        return [r for r in data if isinstance(r, dict)]

    # ---------- port methods ----------

    def get_transactions(self, signatures: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        out: List[Optional[Dict[str, Any]]] = []
        for i in range(0, len(signatures), self._batch_size):
            chunk = list(signatures[i:i + self._batch_size])
            batch = [
                {
                    "jsonrpc": "2.0",
                    "id": idx,
                    "method": "getTransaction",
                    "params": [
                        sig,
                        {
                            "encoding": "jsonParsed",
                            "maxSupportedTransactionVersion": 0,
                            "commitment": self._commitment,
                        },
                    ],
                }
                for idx, sig in enumerate(chunk)
            ]
            by_id: Dict[int, Optional[Dict[str, Any]]] = {}
            for r in self._unwrap_batch(self._post(batch)):
                if isinstance(r.get("id"), int):
                    if r.get("error"):
                        logger.warning("getTransaction %s: %s", chunk[r["id"]] if r["id"] < len(chunk) else r["id"], r["error"])
                    by_id[r["id"]] = r.get("result")
            out.extend(by_id.get(idx) for idx in range(len(chunk)))
        return out

    def iter_signatures(
        self,
        address: str,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        until: Optional[str] = None,
    ) -> Iterable[SignatureInfo]:
        remaining = limit
        cursor = before

        while remaining is None or remaining > 0:
            page = self._page_size if remaining is None else min(self._page_size, remaining)
            opts: Dict[str, Any] = {"limit": page, "commitment": self._commitment}
            if cursor:
                opts["before"] = cursor
            if until:
                opts["until"] = until

            data = self._post({
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getSignaturesForAddress",
                "params": [address, opts],
            })
            if isinstance(data, dict) and data.get("error"):
                raise DataSourceError(f"getSignaturesForAddress: {data['error']}")

            rows = data.get("result") if isinstance(data, dict) else None
            if not isinstance(rows, list) or not rows:
                break

            for r in rows:
                yield SignatureInfo(
                    signature=r.get("signature", ""),
                    slot=int(r.get("slot") or 0),
                    block_time=r.get("blockTime"),
                    failed=r.get("err") is not None,
                )

            if remaining is not None:
                remaining -= len(rows)
            if len(rows) < page:
                break
            cursor = rows[-1].get("signature")
