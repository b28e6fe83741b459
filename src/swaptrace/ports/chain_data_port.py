from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence

from swaptrace.core.dto import SignatureInfo


class ChainDataPort(ABC):
    """
    Abstract Class for fetching raw Solana transactions.
    """

    # --- jsonParsed transactions, input order preserved, None when missing ---

    @abstractmethod
    def get_transactions(self, signatures: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        raise NotImplementedError

    # --- address history, newest first ---

    @abstractmethod
    def iter_signatures(
        self,
        address: str,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        until: Optional[str] = None,
    ) -> Iterable[SignatureInfo]:
        raise NotImplementedError
