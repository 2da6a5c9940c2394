"""
QuerySmith - Aggregation Builders
Build the engine's aggs and facets blocks from aggregation/facet specs
"""

import copy
from typing import Any, Dict, Mapping

from .errors import AggregationKeyCollisionError
from .models import (
    DateHistogramFacetSpec,
    DateRangeAggregationSpec,
    RangeAggregationSpec,
    TermsAggregationSpec,
    TermsFacetSpec,
)

# Synthetic aggregation returning the best hits per document type
TOP_DOCS_KEY = "top_docs"
TOP_DOCS_HITS_SIZE = 10


def build_aggregation(spec: Any) -> Dict[str, Any]:
    """
    Build the engine body of one aggregation.

    Only engine-facing parameters are emitted; client bookkeeping such as
    the kind or the selection lives elsewhere.
    """
    if isinstance(spec, TermsAggregationSpec):
        body: Dict[str, Any] = {"field": spec.field}
        if spec.size is not None:
            body["size"] = spec.size
        return {"terms": body}
    if isinstance(spec, RangeAggregationSpec):
        return {"range": {"field": spec.field, "ranges": copy.deepcopy(spec.ranges)}}
    if isinstance(spec, DateRangeAggregationSpec):
        return {
            "date_range": {
                "field": spec.field,
                "format": spec.format,
                "ranges": copy.deepcopy(spec.ranges),
            }
        }
    raise TypeError(f"Unknown aggregation spec: {type(spec).__name__}")


def build_top_docs_aggregation() -> Dict[str, Any]:
    """Terms on the document type, ordered by best score, with top hits per bucket."""
    return {
        "terms": {
            "field": "_type",
            "order": {"top_hit": "desc"},
        },
        "aggs": {
            "top_tags_hits": {
                "top_hits": {"size": TOP_DOCS_HITS_SIZE},
            },
            "top_hit": {
                "max": {"script": "_score", "lang": "groovy"},
            },
        },
    }


def build_aggregations(specs: Mapping[str, Any], mode: str = "default") -> Dict[str, Any]:
    """
    Build the aggs block.

    Args:
        specs: Aggregation specs keyed by aggregation id
        mode: Query mode; "all_types" adds the top_docs aggregation

    Returns:
        Engine aggs object (empty when there are no specs)

    Raises:
        AggregationKeyCollisionError: If a user aggregation uses the top_docs key in all_types mode
    """
    aggs = {key: build_aggregation(spec) for key, spec in specs.items()}

    if mode == "all_types":
        if TOP_DOCS_KEY in aggs:
            raise AggregationKeyCollisionError(TOP_DOCS_KEY)
        aggs[TOP_DOCS_KEY] = build_top_docs_aggregation()

    return aggs


def build_facets(specs: Mapping[str, Any]) -> Dict[str, Any]:
    """Build the legacy facets block, keyed by field id."""
    facets: Dict[str, Any] = {}
    for key, spec in specs.items():
        if isinstance(spec, TermsFacetSpec):
            terms: Dict[str, Any] = {"field": spec.field}
            if spec.size is not None:
                terms["size"] = spec.size
            facets[key] = {"terms": terms}
        elif isinstance(spec, DateHistogramFacetSpec):
            facets[key] = {
                "date_histogram": {"field": spec.field, "interval": spec.interval}
            }
        else:
            raise TypeError(f"Unknown facet spec: {type(spec).__name__}")
    return facets
