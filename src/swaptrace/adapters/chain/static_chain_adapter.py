from typing import Any, Dict, Iterable, List, Optional, Sequence

from swaptrace.core.dto import SignatureInfo
from swaptrace.ports.chain_data_port import ChainDataPort


class StaticChainAdapter(ChainDataPort):
    """In-memory transactions keyed by signature; history is newest first."""

    def __init__(self,
                 transactions: Optional[Dict[str, Dict[str, Any]]] = None,
                 history: Optional[Dict[str, List[str]]] = None,
                 ):
        self._txs = dict(transactions or {})
        self._history = {k: list(v) for k, v in (history or {}).items()}
        self.calls: List[List[str]] = []

    def get_transactions(self, signatures: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        self.calls.append(list(signatures))
        return [self._txs.get(s) for s in signatures]

    def iter_signatures(self, address, limit=None, before=None, until=None) -> Iterable[SignatureInfo]:
        sigs = self._history.get(address, [])
        if before in sigs:
            sigs = sigs[sigs.index(before) + 1:]
        if until in sigs:
            sigs = sigs[:sigs.index(until)]
        if limit is not None:
            sigs = sigs[:limit]
        for s in sigs:
            tx = self._txs.get(s) or {}
            meta = tx.get("meta") or {}
            yield SignatureInfo(
                signature=s,
                slot=int(tx.get("slot") or 0),
                block_time=tx.get("blockTime"),
                failed=meta.get("err") is not None,
            )

    def signatures(self) -> List[str]:
        return list(self._txs)
