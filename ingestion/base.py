"""
Abstract boundaries of the import pipeline: the remote POI source and the
idempotent document sink
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from schemas.poi import PoiDoc, RawPoi, UpsertResult


@dataclass(frozen=True)
class FetchPageParams:
    """Cursor of one page request"""
    offset: int
    limit: int
    modified_since: Optional[str] = None
    dataset: Optional[str] = None


class PoiSource(ABC):
    """
    Remote catalog returning pages of raw POI records.

    Implementations own their transport, retry and timeout behaviour. A
    response that is not a list of records must raise, never return.
    """

    @abstractmethod
    async def fetch_page(self, params: FetchPageParams) -> List[RawPoi]:
        """
        Fetch one page of raw records.

        Args:
            params: offset/limit cursor plus optional filters

        Returns:
            Raw records in upstream order; empty when past the end
        """
        pass

    async def aclose(self):
        """Release transport resources"""
        return None


class PoiRepository(ABC):
    """
    Idempotent bulk-upsert sink keyed by ``external_id``.

    Contract:
    - duplicate external ids within a batch are collapsed, last one wins
    - on insert the surrogate id is persisted; it is never replaced afterwards
    - ``last_updated`` and ``raw`` are overwritten on every write
    - an empty batch is a no-op that needs no connection
    """

    @abstractmethod
    async def upsert_many(self, docs: Sequence[PoiDoc]) -> UpsertResult:
        pass

    @abstractmethod
    async def close(self):
        """Release the connection/session; safe to call more than once"""
        pass


def dedupe_by_external_id(docs: Sequence[PoiDoc]) -> List[PoiDoc]:
    """
    Collapse documents sharing an external id, keeping the last submitted.

    Idempotent: applying it to its own output returns the same list.
    """
    latest: Dict[int, PoiDoc] = {}
    for doc in docs:
        latest[doc.external_id] = doc
    return list(latest.values())
