"""
QuerySmith - Dataset
One searchable index with its query state: compile, search, map
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from .errors import OpenSearchError
from .logging import get_logger
from .models import FacetResult, FieldInfo, QueryState, SearchResult
from .result_mapper import map_search_response
from .search_builders import build_search_body

logger = get_logger(__name__)

# State events that trigger a new query when auto_query is on
AUTO_QUERY_EVENTS = ("filters", "facets", "boost_fields")


class SearchBackend(ABC):
    """Transport used by a Dataset. Implementations do the I/O."""

    @abstractmethod
    def search(self, index_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one search request.

        Raises:
            QueryFailedError: If the engine reports a failure
        """
        pass

    @abstractmethod
    def get_mapping(self, index_name: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def index_document(
        self, index_name: str, doc: Dict[str, Any], doc_id: Optional[str] = None
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def update_document(
        self, index_name: str, doc_id: str, doc: Dict[str, Any]
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def delete_document(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        pass


class Dataset:
    """
    A searchable index bound to a long-lived QueryState.

    Each query compiles and maps against one snapshot of the state, so a
    state change made while a request is in flight never leaks into the
    mapping of that request.
    """

    def __init__(
        self,
        index_name: str,
        client: SearchBackend,
        state: Optional[QueryState] = None,
        auto_query: bool = False,
    ):
        self.index_name = index_name
        self.client = client
        self.state = state if state is not None else QueryState()
        self.record_count: Optional[int] = None
        self.last_result: Optional[SearchResult] = None
        self._generation = 0

        if auto_query:
            self.state.subscribe(self._on_state_change)

    def _on_state_change(self, event: str, state: QueryState) -> None:
        if event in AUTO_QUERY_EVENTS:
            self.query()

    def close(self) -> None:
        """Stop re-querying on state changes."""
        self.state.unsubscribe(self._on_state_change)

    def _apply_updates(self, updates: Mapping[str, Any]) -> None:
        # Applied without notifying subscribers; field names and wire names both accepted
        data = self.state.model_dump(by_alias=True)
        for key, value in updates.items():
            field = QueryState.model_fields.get(key)
            if field is not None and field.alias:
                key = field.alias
            data[key] = value
        merged = QueryState.model_validate(data)
        for name in QueryState.model_fields:
            setattr(self.state, name, getattr(merged, name))

    def query(self, updates: Optional[Mapping[str, Any]] = None) -> SearchResult:
        """
        Run the current query.

        Args:
            updates: Optional partial query state (wire names, e.g. "from", "bool")
                applied to the state before querying

        Returns:
            SearchResult

        Raises:
            QueryFailedError: If the search fails
        """
        if updates:
            self._apply_updates(updates)

        self._generation += 1
        generation = self._generation

        snapshot = self.state.snapshot()
        body = build_search_body(snapshot)
        response = self.client.search(self.index_name, body)
        result = map_search_response(response, snapshot)

        logger.info(
            f"Query on {self.index_name}: total={result.total}, hits={len(result.hits)}"
        )

        # a newer query started meanwhile (e.g. from a state listener)
        if generation == self._generation:
            self.record_count = result.total
            self.last_result = result
        return result

    def fetch_fields(self) -> List[FieldInfo]:
        """
        List the mapped fields of the index.

        Raises:
            OpenSearchError: If the engine returns no mapping
        """
        mapping = self.client.get_mapping(self.index_name)
        if not mapping:
            raise OpenSearchError("OpenSearch did not return a mapping")

        # only one top level key: the index (or the legacy type)
        schema = next(iter(mapping.values()))
        if "mappings" in schema:
            schema = schema["mappings"]
        if "properties" not in schema and len(schema) == 1:
            inner = next(iter(schema.values()))
            if isinstance(inner, Mapping) and "properties" in inner:
                schema = inner

        fields = []
        for name, spec in schema.get("properties", {}).items():
            attrs = {k: v for k, v in spec.items() if k != "id"}
            fields.append(FieldInfo(id=name, **attrs))
        return fields

    def get_fields_summary(self, field_ids: List[str]) -> Dict[str, FacetResult]:
        """Terms facet per field, without hits."""
        state = QueryState(size=0)
        for field_id in field_ids:
            state.add_facet(field_id, silent=True)

        response = self.client.search(self.index_name, build_search_body(state))
        return map_search_response(response, state).facets

    def get(self, doc_id: str) -> Dict[str, Any]:
        raw = self.client.get_document(self.index_name, doc_id)
        doc = dict(raw.get("_source") or {})
        if "id" not in doc:
            doc["id"] = raw.get("_id", doc_id)
        return doc

    def upsert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Create or replace a record; its "id" (if any) becomes the engine id."""
        doc_id = doc.get("id")
        return self.client.index_document(
            self.index_name, doc, doc_id=str(doc_id) if doc_id is not None else None
        )

    def update(self, doc: Dict[str, Any], doc_id: str) -> Dict[str, Any]:
        return self.client.update_document(self.index_name, doc_id, doc)

    def remove(self, doc_id: str) -> Dict[str, Any]:
        return self.client.delete_document(self.index_name, doc_id)
