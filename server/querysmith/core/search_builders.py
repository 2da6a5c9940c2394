"""
QuerySmith - Search Query Builders
Compile a QueryState into an engine search body
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .aggregations import build_aggregations, build_facets
from .config import settings
from .errors import MissingDateFormatError
from .filters import build_filter_clause
from .logging import get_logger
from .models import (
    BoolClauses,
    BoostField,
    DateRangeAggregationSpec,
    DateRangeFilter,
    FilterBase,
    QueryState,
    SortSpec,
    aggregation_key,
)

logger = get_logger(__name__)


def build_sort(sort: Sequence[SortSpec]) -> List[Dict[str, Any]]:
    """
    Build the engine sort array.

    [{"field": "price", "order": "desc"}] -> [{"price": {"order": "desc"}}]
    """
    out = []
    for entry in sort:
        options = entry.model_dump(exclude={"field"})
        out.append({entry.field: options})
    return out


def build_highlight(q: str, fields: Sequence[str]) -> Optional[Dict[str, Any]]:
    """
    Build the highlight block.

    Only active with a free-text search and at least one field. Whole
    fields are returned (no fragments), marked with <b>, and always
    highlighted from the stored source.
    """
    if not q or not fields:
        return None

    return {
        "number_of_fragments": 0,
        "pre_tags": ["<b>"],
        "post_tags": ["</b>"],
        "fields": {field: {"force_source": True} for field in fields},
    }


def _format_boost(boost: float) -> str:
    if float(boost).is_integer():
        return str(int(boost))
    return repr(float(boost))


def build_free_text_query(q: str, boost_fields: Sequence[BoostField]) -> Dict[str, Any]:
    """
    Build the fuzzy, lenient query_string clause.

    Args:
        q: Free-text query
        boost_fields: Fields to search, each optionally weighted ("title^3")

    Returns:
        query_string clause
    """
    query_string: Dict[str, Any] = {"query": q}

    if boost_fields:
        fields = []
        for boost_field in boost_fields:
            name = boost_field.field
            if boost_field.boost and boost_field.boost > 0:
                name = f"{name}^{_format_boost(boost_field.boost)}"
            fields.append(name)
        query_string["fields"] = fields

    query_string["lenient"] = True
    query_string["use_dis_max"] = True
    query_string["fuzziness"] = settings.QUERYSMITH_QUERY_FUZZINESS
    query_string["analyzer"] = settings.QUERYSMITH_QUERY_ANALYZER

    return {"query_string": query_string}


def _apply_bool_clauses(query: Dict[str, Any], clauses: BoolClauses) -> None:
    if not clauses.has_clauses():
        return

    bool_query = query["bool"]
    for occur in ("must", "should", "must_not"):
        for clause in getattr(clauses, occur):
            bool_query[occur].append({"term": {clause.field: clause.value}})
    bool_query["minimum_should_match"] = 1


def build_core_query(state: QueryState) -> Tuple[Dict[str, Any], bool]:
    """
    Build the scoring part of the query.

    First match wins: id lookup, free text, match all.

    Returns:
        (query clause, whether the clause is a bare match_all)
    """
    if state.ids is not None:
        logger.debug(f"Id lookup for {len(state.ids)} ids")
        return {"ids": {"values": list(state.ids)}}, False

    if state.q:
        logger.debug(f"Free-text query: {state.q!r}")
        must = [build_free_text_query(state.q, state.boost_fields)]
    else:
        must = [{"match_all": {}}]

    query = {
        "bool": {
            "must": must,
            "must_not": [],
            "should": [],
        }
    }
    _apply_bool_clauses(query, state.bool_clauses)

    is_match_all = not state.q and not state.bool_clauses.has_clauses()
    return query, is_match_all


def _resolve_date_format(filter: FilterBase, aggs: Mapping[str, Any]) -> Optional[str]:
    if not isinstance(filter, DateRangeFilter):
        return None

    key = aggregation_key(filter.field)
    spec = aggs.get(key)
    if not isinstance(spec, DateRangeAggregationSpec):
        raise MissingDateFormatError(filter.field, key)
    return spec.format


def build_query(state: QueryState) -> Dict[str, Any]:
    """
    Build the query block.

    With filters the query becomes a filtered query ANDing every filter
    clause; its inner query is left out for a bare match_all.

    Raises:
        UnsupportedFilterKindError: If a filter kind is not known
        MissingDateFormatError: If a date_range filter has no date_range aggregation
    """
    query, is_match_all = build_core_query(state)

    if not state.filters:
        return query

    filter_clauses = [
        build_filter_clause(f, date_format=_resolve_date_format(f, state.aggs))
        for f in state.filters
    ]
    out: Dict[str, Any] = {
        "filtered": {
            "filter": {"and": filter_clauses},
        }
    }
    if not is_match_all:
        out["filtered"]["query"] = query
    return out


def build_search_body(state: QueryState) -> Dict[str, Any]:
    """
    Compile a query state into an engine search body.

    The state is only read. The body carries engine keys only: query,
    sort, highlight, aggs, facets, size and from.

    Args:
        state: Query state (or a snapshot of it)

    Returns:
        Search body

    Raises:
        UnsupportedFilterKindError: If a filter kind is not known
        MissingDateFormatError: If a date_range filter has no date_range aggregation
        AggregationKeyCollisionError: If a user aggregation takes the top_docs key
    """
    body: Dict[str, Any] = {"query": build_query(state)}

    if state.sort:
        body["sort"] = build_sort(state.sort)

    highlight = build_highlight(state.q, state.highlights)
    if highlight is not None:
        body["highlight"] = highlight

    body["aggs"] = build_aggregations(state.aggs, state.mode)

    if state.facets:
        body["facets"] = build_facets(state.facets)

    body["size"] = len(state.ids) if state.ids is not None else state.size
    body["from"] = state.from_

    return body
