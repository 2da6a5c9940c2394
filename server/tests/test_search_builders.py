"""
Tests for search body compilation
"""

import pytest

from querysmith.core.errors import MissingDateFormatError
from querysmith.core.models import BoostField, QueryState, SortSpec
from querysmith.core.search_builders import (
    build_free_text_query,
    build_highlight,
    build_search_body,
    build_sort,
)


class TestBuildSort:
    """Tests for build_sort."""

    def test_field_becomes_key(self):
        result = build_sort([SortSpec(field="price", order="desc")])
        assert result == [{"price": {"order": "desc"}}]

    def test_order_preserved_without_dedup(self):
        sort = [
            SortSpec(field="price", order="desc"),
            SortSpec(field="name", order="asc", missing="_last"),
            SortSpec(field="price", order="asc"),
        ]
        result = build_sort(sort)
        assert result == [
            {"price": {"order": "desc"}},
            {"name": {"order": "asc", "missing": "_last"}},
            {"price": {"order": "asc"}},
        ]


class TestBuildHighlight:
    """Tests for build_highlight."""

    def test_inactive_without_free_text(self):
        assert build_highlight("", ["title"]) is None

    def test_inactive_without_fields(self):
        assert build_highlight("water", []) is None

    def test_active(self):
        result = build_highlight("water", ["title", "body"])
        assert result == {
            "number_of_fragments": 0,
            "pre_tags": ["<b>"],
            "post_tags": ["</b>"],
            "fields": {
                "title": {"force_source": True},
                "body": {"force_source": True},
            },
        }


class TestBuildFreeTextQuery:
    """Tests for build_free_text_query."""

    def test_boost_fields(self):
        """Positive boosts are appended with ^, others are plain."""
        result = build_free_text_query(
            "water",
            [BoostField(field="title", boost=3), BoostField(field="body"), BoostField(field="tags", boost=0)],
        )
        query_string = result["query_string"]
        assert query_string["query"] == "water"
        assert query_string["fields"] == ["title^3", "body", "tags"]
        assert query_string["lenient"] is True
        assert query_string["use_dis_max"] is True
        assert query_string["fuzziness"] == 2
        assert query_string["analyzer"] == "custom_analyzer_combo"

    def test_boost_keeps_full_precision(self):
        result = build_free_text_query(
            "water",
            [BoostField(field="title", boost=1234567), BoostField(field="body", boost=1.25)],
        )
        assert result["query_string"]["fields"] == ["title^1234567", "body^1.25"]

    def test_without_boost_fields(self):
        result = build_free_text_query("water", [])
        assert "fields" not in result["query_string"]


class TestBuildSearchBody:
    """Tests for build_search_body."""

    def test_match_all(self):
        """Empty state gives a match_all bool query and empty aggs."""
        body = build_search_body(QueryState(size=10))
        assert body == {
            "query": {"bool": {"must": [{"match_all": {}}], "must_not": [], "should": []}},
            "aggs": {},
            "size": 10,
            "from": 0,
        }

    def test_free_text(self):
        state = QueryState(q="water", boost_fields=[{"field": "title", "boost": 2}])
        body = build_search_body(state)
        must = body["query"]["bool"]["must"]
        assert len(must) == 1
        assert must[0]["query_string"]["fields"] == ["title^2"]
        assert "minimum_should_match" not in body["query"]["bool"]

    def test_bool_clauses(self):
        """Boolean clauses become term clauses with minimum_should_match."""
        state = QueryState.model_validate(
            {
                "q": "water",
                "bool": {
                    "must": [{"field": "lang", "value": "en"}],
                    "should": [{"field": "tags", "value": "river"}],
                    "must_not": [{"field": "status", "value": "draft"}],
                },
            }
        )
        bool_query = build_search_body(state)["query"]["bool"]
        assert bool_query["must"][1] == {"term": {"lang": "en"}}
        assert bool_query["should"] == [{"term": {"tags": "river"}}]
        assert bool_query["must_not"] == [{"term": {"status": "draft"}}]
        assert bool_query["minimum_should_match"] == 1

    def test_bool_clauses_without_free_text(self):
        state = QueryState()
        state.add_bool_clause("must", "lang", "en")
        bool_query = build_search_body(state)["query"]["bool"]
        assert bool_query["must"] == [{"match_all": {}}, {"term": {"lang": "en"}}]

    def test_ids_override_size(self):
        """Id lookup wins over free text and sets size to the id count."""
        state = QueryState(ids=["a", "b", "c"], q="ignored", size=50)
        body = build_search_body(state)
        assert body["query"] == {"ids": {"values": ["a", "b", "c"]}}
        assert body["size"] == 3

    def test_filters_without_query(self):
        """Filters alone drive retrieval when there is nothing to score."""
        state = QueryState(filters=[{"type": "term", "field": "color", "term": "red"}])
        body = build_search_body(state)
        assert body["query"] == {
            "filtered": {"filter": {"and": [{"term": {"color": "red"}}]}}
        }

    def test_filters_with_free_text(self):
        state = QueryState(
            q="water",
            filters=[
                {"type": "term", "field": "color", "term": "red"},
                {"type": "exists", "field": "email", "not": True},
            ],
        )
        filtered = build_search_body(state)["query"]["filtered"]
        assert filtered["filter"]["and"] == [
            {"term": {"color": "red"}},
            {"not": {"exists": {"field": "email"}}},
        ]
        assert filtered["query"]["bool"]["must"][0]["query_string"]["query"] == "water"

    def test_filters_with_ids(self):
        state = QueryState(ids=["7"], filters=[{"type": "term", "field": "color", "term": "red"}])
        filtered = build_search_body(state)["query"]["filtered"]
        assert filtered["query"] == {"ids": {"values": ["7"]}}

    def test_date_range_format_from_aggregation(self):
        state = QueryState()
        state.add_date_range_aggregation(
            "meta.created", "yyyy", [{"from": "2014", "to": "2015"}], silent=True
        )
        state.add_filter(
            {"type": "date_range", "field": "meta.created", "from": 1388534400000}, silent=True
        )
        clause = build_search_body(state)["query"]["filtered"]["filter"]["and"][0]
        assert clause == {"range": {"meta.created": {"from": 1388534400000, "format": "yyyy"}}}

    def test_date_range_without_aggregation(self):
        """A date_range filter needs a date_range aggregation on its field."""
        state = QueryState(filters=[{"type": "date_range", "field": "created", "from": 1}])
        with pytest.raises(MissingDateFormatError):
            build_search_body(state)

    def test_date_range_with_terms_aggregation(self):
        state = QueryState(filters=[{"type": "date_range", "field": "created", "from": 1}])
        state.add_terms_aggregation("created", silent=True)
        with pytest.raises(MissingDateFormatError):
            build_search_body(state)

    def test_sort_highlight_and_paging(self):
        state = QueryState(
            q="water",
            sort=[{"field": "price", "order": "desc"}],
            highlights=["title"],
            size=20,
            **{"from": 40},
        )
        body = build_search_body(state)
        assert body["sort"] == [{"price": {"order": "desc"}}]
        assert body["highlight"]["fields"] == {"title": {"force_source": True}}
        assert body["size"] == 20
        assert body["from"] == 40

    def test_highlight_needs_free_text(self):
        body = build_search_body(QueryState(highlights=["title"]))
        assert "highlight" not in body

    def test_only_engine_keys(self):
        """Client-side state never reaches the search body."""
        state = QueryState(
            q="water",
            ids=None,
            boost_fields=[{"field": "title"}],
            filters=[{"type": "term", "field": "color", "term": "red"}],
            highlights=["title"],
            sort=[{"field": "price"}],
            mode="all_types",
        )
        state.add_terms_aggregation("color", silent=True)
        state.select_aggregation("color", {"field": "color", "term": "red"})
        state.add_facet("tags", silent=True)

        body = build_search_body(state)
        assert set(body) == {"query", "sort", "highlight", "aggs", "facets", "size", "from"}
        assert body["facets"] == {"tags": {"terms": {"field": "tags"}}}

    def test_state_is_not_mutated(self):
        state = QueryState(
            ids=["1"],
            filters=[{"type": "terms", "field": "color", "terms": ["red"], "not": True}],
        )
        before = state.model_dump()
        body = build_search_body(state)
        body["query"]["filtered"]["filter"]["and"][0]["not"]["terms"]["color"].append("x")
        assert state.model_dump() == before
