"""
QuerySmith - Result Mapping
Turn an engine search response into a SearchResult
"""

import copy
from typing import Any, Dict, List, Mapping

from .aggregations import TOP_DOCS_KEY
from .errors import QueryFailedError
from .models import (
    AggregationBucket,
    AggregationResult,
    FacetResult,
    QueryState,
    SearchResult,
    TermFilter,
)


def _extract_total(hits: Mapping[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, Mapping):
        # {"value": n, "relation": "eq"} on newer engines
        return int(total.get("value", 0))
    return int(total or 0)


def _extract_documents(raw_hits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Extract source documents from raw hits.

    Documents lacking an id get the engine-assigned _id; highlight
    fragments are attached under "highlight".
    """
    docs = []
    for hit in raw_hits:
        doc = copy.deepcopy(hit.get("_source") or {})
        if "id" not in doc and hit.get("_id"):
            doc["id"] = hit["_id"]
        if hit.get("highlight"):
            doc["highlight"] = copy.deepcopy(hit["highlight"])
        docs.append(doc)
    return docs


def _infer_kind(buckets: List[Dict[str, Any]]) -> str:
    """Guess an aggregation kind from the shape of its first bucket."""
    if not buckets:
        return "terms"
    keys = buckets[0].keys()
    if "from_as_string" in keys or "to_as_string" in keys:
        return "date_range"
    if "from" in keys or "to" in keys:
        return "range"
    return "terms"


def _select_buckets(
    buckets: List[Dict[str, Any]], field: str, state: QueryState
) -> List[AggregationBucket]:
    """Mark buckets whose key equals an active term filter on field."""
    terms = [
        f.term
        for f in state.filters
        if isinstance(f, TermFilter) and f.field == field
    ]
    out = []
    for bucket in buckets:
        mapped = AggregationBucket.model_validate(copy.deepcopy(bucket))
        mapped.selected = any(mapped.key == term for term in terms)
        out.append(mapped)
    return out


def _map_aggregation(key: str, raw: Dict[str, Any], state: QueryState) -> AggregationResult:
    spec = state.aggs.get(key)
    buckets = raw.get("buckets") or []

    if spec is not None:
        field, kind = spec.field, spec.kind
    elif key == TOP_DOCS_KEY:
        field, kind = "_type", "top_hits"
    else:
        field, kind = key.replace("_", "."), _infer_kind(buckets)

    extra = {
        k: copy.deepcopy(v)
        for k, v in raw.items()
        if k not in AggregationResult.model_fields
    }
    return AggregationResult(
        **extra,
        id=field,
        key=key,
        kind=kind,
        buckets=_select_buckets(buckets, field, state),
        selected=state.get_selected_aggregation(field),
    )


def map_search_response(response: Mapping[str, Any], state: QueryState) -> SearchResult:
    """
    Map an engine search response.

    Args:
        response: Raw engine response body
        state: The query state snapshot the request was compiled from

    Returns:
        SearchResult

    Raises:
        QueryFailedError: If the response is an engine error body
    """
    if "error" in response:
        raise QueryFailedError(status=response.get("status", 500), body=copy.deepcopy(dict(response)))

    hits = response.get("hits") or {}
    result = SearchResult(
        total=_extract_total(hits),
        hits=_extract_documents(hits.get("hits") or []),
    )

    for facet_id, raw in (response.get("facets") or {}).items():
        result.facets[facet_id] = FacetResult.model_validate({**copy.deepcopy(raw), "id": facet_id})

    for key, raw in (response.get("aggregations") or {}).items():
        result.aggregations[key] = _map_aggregation(key, raw, state)

    return result
