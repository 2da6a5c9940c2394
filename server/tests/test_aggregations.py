"""
Tests for aggregation and facet building
"""

import pytest

from querysmith.core.aggregations import TOP_DOCS_KEY, build_aggregations, build_facets
from querysmith.core.errors import AggregationKeyCollisionError
from querysmith.core.models import (
    DateHistogramFacetSpec,
    QueryState,
    TermsAggregationSpec,
    TermsFacetSpec,
)


def _state_with_aggs() -> QueryState:
    state = QueryState()
    state.add_terms_aggregation("color", size=5, silent=True)
    state.add_range_aggregation("price", [{"to": 10}, {"from": 10}], silent=True)
    state.add_date_range_aggregation(
        "meta.created", "yyyy", [{"from": "2014", "to": "2015"}], silent=True
    )
    state.select_aggregation("color", {"field": "color", "term": "red"})
    return state


class TestBuildAggregations:
    """Tests for build_aggregations."""

    def test_empty(self):
        assert build_aggregations({}) == {}

    def test_each_kind(self):
        aggs = build_aggregations(_state_with_aggs().aggs)
        assert aggs == {
            "color": {"terms": {"field": "color", "size": 5}},
            "price": {"range": {"field": "price", "ranges": [{"to": 10}, {"from": 10}]}},
            "meta_created": {
                "date_range": {
                    "field": "meta.created",
                    "format": "yyyy",
                    "ranges": [{"from": "2014", "to": "2015"}],
                }
            },
        }

    def test_no_client_bookkeeping(self):
        """Neither selection nor kind markers are sent."""
        aggs = build_aggregations(_state_with_aggs().aggs)
        for entry in aggs.values():
            assert "selected" not in entry
            assert "kind" not in entry
            assert "_type" not in entry

    def test_bookkeeping_keys_in_input_are_dropped(self):
        """Specs parsed from client payloads keep only engine parameters."""
        state = QueryState.model_validate(
            {"aggs": {"color": {"kind": "terms", "field": "color", "selected": True, "_type": "term"}}}
        )
        assert build_aggregations(state.aggs) == {"color": {"terms": {"field": "color"}}}

    def test_all_types_adds_top_docs(self):
        """all_types mode adds exactly one aggregation with top hits of size 10."""
        specs = _state_with_aggs().aggs
        aggs = build_aggregations(specs, mode="all_types")

        assert set(aggs) - set(specs) == {TOP_DOCS_KEY}
        top_docs = aggs[TOP_DOCS_KEY]
        assert top_docs["terms"] == {"field": "_type", "order": {"top_hit": "desc"}}
        assert top_docs["aggs"]["top_tags_hits"] == {"top_hits": {"size": 10}}
        assert "max" in top_docs["aggs"]["top_hit"]

    def test_all_types_key_collision(self):
        specs = {TOP_DOCS_KEY: TermsAggregationSpec(field="top.docs")}
        with pytest.raises(AggregationKeyCollisionError):
            build_aggregations(specs, mode="all_types")

    def test_top_docs_key_allowed_in_default_mode(self):
        specs = {TOP_DOCS_KEY: TermsAggregationSpec(field="top.docs")}
        assert build_aggregations(specs) == {TOP_DOCS_KEY: {"terms": {"field": "top.docs"}}}

    def test_specs_are_not_shared(self):
        """Mutating the output leaves the specs untouched."""
        state = _state_with_aggs()
        aggs = build_aggregations(state.aggs)
        aggs["price"]["range"]["ranges"].append({"from": 99})
        assert state.aggs["price"].ranges == [{"to": 10}, {"from": 10}]


class TestBuildFacets:
    """Tests for build_facets."""

    def test_terms_and_histogram(self):
        facets = build_facets(
            {
                "tags": TermsFacetSpec(field="tags", size=20),
                "created": DateHistogramFacetSpec(field="created", interval="month"),
            }
        )
        assert facets == {
            "tags": {"terms": {"field": "tags", "size": 20}},
            "created": {"date_histogram": {"field": "created", "interval": "month"}},
        }
