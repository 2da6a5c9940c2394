"""
Shared fixtures: an in-memory search backend
"""

from typing import Any, Callable, Dict, List, Optional

import pytest

from querysmith.core.dataset import SearchBackend


class FakeBackend(SearchBackend):
    """Records requests and replays canned responses."""

    def __init__(self, response: Optional[Dict[str, Any]] = None):
        self.response = response or {"hits": {"total": 0, "hits": []}}
        self.mapping: Dict[str, Any] = {}
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.searches: List[Dict[str, Any]] = []
        self.on_search: Optional[Callable[[], None]] = None
        self.error: Optional[Exception] = None

    def search(self, index_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.searches.append({"index": index_name, "body": body})
        if self.on_search is not None:
            self.on_search()
        if self.error is not None:
            raise self.error
        return self.response

    def get_mapping(self, index_name: str) -> Dict[str, Any]:
        return self.mapping

    def get_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        return {"_id": doc_id, "_source": dict(self.documents[doc_id])}

    def index_document(
        self, index_name: str, doc: Dict[str, Any], doc_id: Optional[str] = None
    ) -> Dict[str, Any]:
        doc_id = doc_id or f"auto-{len(self.documents) + 1}"
        self.documents[doc_id] = dict(doc)
        return {"_id": doc_id, "result": "created"}

    def update_document(
        self, index_name: str, doc_id: str, doc: Dict[str, Any]
    ) -> Dict[str, Any]:
        self.documents[doc_id].update(doc)
        return {"_id": doc_id, "result": "updated"}

    def delete_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        del self.documents[doc_id]
        return {"_id": doc_id, "result": "deleted"}


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
