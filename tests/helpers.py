"""
Shared test doubles and record factories
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from ingestion.base import FetchPageParams, PoiRepository, PoiSource, dedupe_by_external_id
from schemas.poi import PoiDoc, RawPoi, UpsertResult


class InMemoryPoiRepository(PoiRepository):
    """
    Dict-backed repository honouring the upsert contract.

    Keeps the surrogate id of the first insert, overwrites last_updated and
    raw on every write, and records each batch it receives.
    """

    def __init__(self, fail_on_call: Optional[int] = None):
        self.docs: Dict[int, PoiDoc] = {}
        self.batches: List[List[PoiDoc]] = []
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.closed = False
        self.close_calls = 0

    async def upsert_many(self, docs: Sequence[PoiDoc]) -> UpsertResult:
        if not docs:
            return UpsertResult()

        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise RuntimeError("write failed")

        self.batches.append(list(docs))
        upserted = 0
        modified = 0
        for doc in dedupe_by_external_id(docs):
            existing = self.docs.get(doc.external_id)
            if existing is None:
                self.docs[doc.external_id] = doc
                upserted += 1
                continue
            if existing.raw != doc.raw or existing.last_updated != doc.last_updated:
                modified += 1
            self.docs[doc.external_id] = doc.model_copy(update={"id": existing.id})
        return UpsertResult(upserted=upserted, modified=modified)

    async def close(self):
        self.closed = True
        self.close_calls += 1


class ListPoiSource(PoiSource):
    """Serves pages out of an in-memory dataset and records every request"""

    def __init__(self, records: Sequence[RawPoi], infinite: bool = False):
        self.records = list(records)
        self.infinite = infinite
        self.requests: List[FetchPageParams] = []
        self.closed = False

    async def fetch_page(self, params: FetchPageParams) -> List[RawPoi]:
        self.requests.append(params)
        if self.infinite:
            return [make_record(params.offset + i + 1) for i in range(params.limit)]
        return self.records[params.offset:params.offset + params.limit]

    async def aclose(self):
        self.closed = True

    @property
    def offsets(self) -> List[int]:
        return [p.offset for p in self.requests]


def make_record(external_id: Any, **fields: Any) -> Dict[str, Any]:
    """Raw OCM-shaped record"""
    record: Dict[str, Any] = {"ID": external_id, "AddressInfo": {"Title": f"Charger {external_id}"}}
    record.update(fields)
    return record


def make_records(count: int, start: int = 1) -> List[Dict[str, Any]]:
    return [make_record(i) for i in range(start, start + count)]


def make_doc(external_id: int, **fields: Any) -> PoiDoc:
    return PoiDoc(
        id=fields.get("id", str(uuid.uuid4())),
        external_id=external_id,
        last_updated=fields.get("last_updated"),
        raw=fields.get("raw", make_record(external_id)),
    )
