"""
QuerySmith - Pydantic Models
Query state, filter/aggregation specs, result model and API DTOs
"""

import copy
from typing import Annotated, Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .config import settings
from .errors import UnsupportedFilterKindError


def aggregation_key(field: str) -> str:
    """Wire-safe aggregation id for a field id ("a.b" -> "a_b")."""
    return field.replace(".", "_")


# ==================== Filters ====================


class FilterBase(BaseModel):
    """Fields shared by every filter kind."""

    model_config = ConfigDict(populate_by_name=True)

    field: str = Field("", description="Field the filter constrains")
    negate: bool = Field(False, alias="not", description="Wrap the clause in a not")


class TermFilter(FilterBase):
    type: Literal["term"] = "term"
    term: Any = Field("", description="Exact value to match")


class TermsFilter(FilterBase):
    type: Literal["terms"] = "terms"
    terms: List[Any] = Field(default_factory=list)
    execution: Optional[str] = Field(None, description="Engine execution mode (e.g. and, or)")


class _RangeBounds(FilterBase):
    from_: Any = Field(None, alias="from")
    to: Any = None
    include_lower: Optional[bool] = None
    include_upper: Optional[bool] = None


class RangeFilter(_RangeBounds):
    type: Literal["range"] = "range"


class DateRangeFilter(_RangeBounds):
    """Range over epoch milliseconds; format comes from the field's date_range aggregation."""

    type: Literal["date_range"] = "date_range"


class GeoDistanceFilter(FilterBase):
    type: Literal["geo_distance"] = "geo_distance"
    point: Any = Field(default_factory=lambda: {"lon": 0, "lat": 0})
    distance: float = 10
    unit: str = "km"


class TypeFilter(FilterBase):
    type: Literal["type"] = "type"
    value: str = ""


class ExistsFilter(FilterBase):
    type: Literal["exists"] = "exists"


class MissingFilter(FilterBase):
    type: Literal["missing"] = "missing"


Filter = Annotated[
    Union[
        TermFilter,
        TermsFilter,
        RangeFilter,
        DateRangeFilter,
        GeoDistanceFilter,
        TypeFilter,
        ExistsFilter,
        MissingFilter,
    ],
    Field(discriminator="type"),
]

FILTER_TYPES = {
    "term": TermFilter,
    "terms": TermsFilter,
    "range": RangeFilter,
    "date_range": DateRangeFilter,
    "geo_distance": GeoDistanceFilter,
    "type": TypeFilter,
    "exists": ExistsFilter,
    "missing": MissingFilter,
}


def parse_filter(data: Any) -> FilterBase:
    """
    Build a Filter model from a model or a plain mapping.

    Unspecified kind-specific fields take the kind's defaults. The result
    never shares state with the input.

    Raises:
        UnsupportedFilterKindError: If the filter type is not known
    """
    if isinstance(data, FilterBase):
        if type(data) not in FILTER_TYPES.values():
            raise UnsupportedFilterKindError(type(data).__name__)
        return data.model_copy(deep=True)
    if not isinstance(data, Mapping):
        raise UnsupportedFilterKindError(type(data).__name__)

    model = FILTER_TYPES.get(data.get("type"))
    if model is None:
        raise UnsupportedFilterKindError(data.get("type"))
    return model.model_validate(copy.deepcopy(dict(data)))


# ==================== Aggregation / Facet specs ====================


class TermsAggregationSpec(BaseModel):
    kind: Literal["terms"] = "terms"
    field: str
    size: Optional[int] = None


class RangeAggregationSpec(BaseModel):
    kind: Literal["range"] = "range"
    field: str
    ranges: List[Dict[str, Any]] = Field(default_factory=list)


class DateRangeAggregationSpec(BaseModel):
    kind: Literal["date_range"] = "date_range"
    field: str
    format: str
    ranges: List[Dict[str, Any]] = Field(default_factory=list)


AggregationSpec = Annotated[
    Union[TermsAggregationSpec, RangeAggregationSpec, DateRangeAggregationSpec],
    Field(discriminator="kind"),
]


class TermsFacetSpec(BaseModel):
    kind: Literal["terms"] = "terms"
    field: str
    size: Optional[int] = None


class DateHistogramFacetSpec(BaseModel):
    kind: Literal["date_histogram"] = "date_histogram"
    field: str
    interval: str


FacetSpec = Annotated[
    Union[TermsFacetSpec, DateHistogramFacetSpec],
    Field(discriminator="kind"),
]


# ==================== Query State ====================


class BoostField(BaseModel):
    field: str
    boost: Optional[float] = None


class BoolClause(BaseModel):
    field: str
    value: Any


class BoolClauses(BaseModel):
    """Extra term clauses layered onto the core query."""

    must: List[BoolClause] = Field(default_factory=list)
    should: List[BoolClause] = Field(default_factory=list)
    must_not: List[BoolClause] = Field(default_factory=list)

    def has_clauses(self) -> bool:
        return bool(self.must or self.should or self.must_not)


class SortSpec(BaseModel):
    """One sort entry; every property besides field is passed to the engine."""

    model_config = ConfigDict(extra="allow")

    field: str


QueryMode = Literal["default", "all_types"]

StateListener = Callable[[str, "QueryState"], None]


class QueryState(BaseModel):
    """
    Abstract, backend-agnostic query.

    Long-lived and mutated through the helper methods below, each of which
    notifies subscribers with an event name ("filters", "facets", "aggs",
    "boost_fields", "bool"). The compiler and the result mapper only ever
    read a snapshot.
    """

    model_config = ConfigDict(populate_by_name=True)

    q: str = Field("", description="Free-text search; empty disables the text clause")
    ids: Optional[List[Union[str, int]]] = Field(None, description="Id lookup")
    boost_fields: List[BoostField] = Field(default_factory=list)
    bool_clauses: BoolClauses = Field(default_factory=BoolClauses, alias="bool")
    filters: List[Filter] = Field(default_factory=list)
    aggs: Dict[str, AggregationSpec] = Field(default_factory=dict)
    selected_aggregations: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Client-side selection keyed by aggregation id"
    )
    facets: Dict[str, FacetSpec] = Field(default_factory=dict)
    sort: List[SortSpec] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)
    size: int = Field(default_factory=lambda: settings.QUERYSMITH_DEFAULT_SIZE, ge=0)
    from_: int = Field(0, alias="from", ge=0)
    mode: QueryMode = "default"

    _listeners: List[StateListener] = PrivateAttr(default_factory=list)

    @field_validator("filters", mode="before")
    @classmethod
    def check_filter_kinds(cls, value: Any) -> Any:
        for item in value or []:
            if isinstance(item, Mapping) and item.get("type") not in FILTER_TYPES:
                raise UnsupportedFilterKindError(item.get("type"))
        return value

    # ---------- subscription ----------

    def subscribe(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    def snapshot(self) -> "QueryState":
        """Deep copy without subscribers."""
        data = {name: copy.deepcopy(getattr(self, name)) for name in type(self).model_fields}
        return type(self).model_validate(data)

    # ---------- filters ----------

    def add_filter(self, filter: Any, silent: bool = False) -> FilterBase:
        """Append a filter (a deep copy of the input)."""
        ourfilter = parse_filter(filter)
        self.filters.append(ourfilter)
        if not silent:
            self._notify("filters")
        return ourfilter

    def replace_filter(self, filter: Any) -> FilterBase:
        """Drop every filter on the same field, then add this one."""
        ourfilter = parse_filter(filter)
        self.filters = [f for f in self.filters if f.field != ourfilter.field]
        self.filters.append(ourfilter)
        self._notify("filters")
        return ourfilter

    def remove_filter(self, field: str) -> None:
        self.filters = [f for f in self.filters if f.field != field]
        self._notify("filters")

    def clear_filters(self) -> None:
        self.filters = []
        self._notify("filters")

    # ---------- boost fields ----------

    def add_boost_field(self, field: str, boost: Optional[float] = None, silent: bool = False) -> None:
        if any(b.field == field for b in self.boost_fields):
            return
        self.boost_fields.append(BoostField(field=field, boost=boost))
        if not silent:
            self._notify("boost_fields")

    def clear_boost_fields(self) -> None:
        self.boost_fields = []
        self._notify("boost_fields")

    # ---------- boolean clauses ----------

    def add_bool_clause(
        self, occur: Literal["must", "should", "must_not"], field: str, value: Any
    ) -> None:
        getattr(self.bool_clauses, occur).append(BoolClause(field=field, value=value))
        self._notify("bool")

    # ---------- facets ----------

    def add_facet(self, field: str, size: Optional[int] = None, silent: bool = False) -> None:
        # TODO: key facets by their own id so one field can carry a terms and a histogram facet
        if field in self.facets:
            return
        self.facets[field] = TermsFacetSpec(field=field, size=size)
        if not silent:
            self._notify("facets")

    def add_histogram_facet(self, field: str, interval: str) -> None:
        self.facets[field] = DateHistogramFacetSpec(field=field, interval=interval)
        self._notify("facets")

    def remove_facet(self, field: str) -> None:
        if self.facets.pop(field, None) is not None:
            self._notify("facets")

    def clear_facets(self) -> None:
        self.facets = {}
        self._notify("facets")

    def refresh_facets(self) -> None:
        """Emit one facets event after several silent add_facet calls."""
        self._notify("facets")

    # ---------- aggregations ----------

    def _add_aggregation(self, spec: BaseModel, silent: bool) -> None:
        key = aggregation_key(spec.field)
        if key in self.aggs:
            return
        self.aggs[key] = spec
        if not silent:
            self._notify("aggs")

    def add_terms_aggregation(self, field: str, size: Optional[int] = None, silent: bool = False) -> None:
        self._add_aggregation(TermsAggregationSpec(field=field, size=size), silent)

    def add_range_aggregation(
        self, field: str, ranges: List[Dict[str, Any]], silent: bool = False
    ) -> None:
        self._add_aggregation(RangeAggregationSpec(field=field, ranges=ranges), silent)

    def add_date_range_aggregation(
        self, field: str, format: str, ranges: List[Dict[str, Any]], silent: bool = False
    ) -> None:
        self._add_aggregation(
            DateRangeAggregationSpec(field=field, format=format, ranges=ranges), silent
        )

    def select_aggregation(self, field: str, selection: Dict[str, Any]) -> None:
        key = aggregation_key(field)
        if key not in self.aggs:
            return
        self.selected_aggregations[key] = copy.deepcopy(selection)

    def unselect_aggregation(self, field: str) -> None:
        self.selected_aggregations.pop(aggregation_key(field), None)

    def get_selected_aggregation(self, field: str) -> Optional[FilterBase]:
        """The active filter on field (the last one wins), if any."""
        selected = None
        for f in self.filters:
            if f.field == field:
                selected = f
        return selected

    def remove_aggregation(self, field: str) -> None:
        key = aggregation_key(field)
        self.aggs.pop(key, None)
        self.selected_aggregations.pop(key, None)
        self._notify("aggs")

    def clear_aggregations(self) -> None:
        self.aggs = {}
        self.selected_aggregations = {}
        self._notify("aggs")

    def refresh_aggregations(self) -> None:
        self._notify("aggs")


# ==================== Result Model ====================


class FacetResult(BaseModel):
    """Engine facet result, passed through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    kind: str = Field("terms", alias="_type")
    total: int = 0
    other: int = 0
    missing: int = 0
    terms: List[Dict[str, Any]] = Field(default_factory=list)


class AggregationBucket(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: Any = None
    doc_count: int = 0
    selected: bool = False


class AggregationResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Field id the aggregation runs over")
    key: str = Field(..., description="Aggregation id")
    kind: str = "terms"
    buckets: List[AggregationBucket] = Field(default_factory=list)
    selected: Optional[Filter] = None


class SearchResult(BaseModel):
    """Result of one compile/search/map cycle."""

    total: int = 0
    hits: List[Dict[str, Any]] = Field(default_factory=list)
    facets: Dict[str, FacetResult] = Field(default_factory=dict)
    aggregations: Dict[str, AggregationResult] = Field(default_factory=dict)


class FieldInfo(BaseModel):
    """One mapped field of a dataset."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: Optional[str] = None


# ==================== Request / Response DTOs ====================


class FieldListResponse(BaseModel):
    fields: List[FieldInfo]


class FieldsSummaryRequest(BaseModel):
    fields: List[str] = Field(..., min_length=1, description="Field ids to summarize")


class FieldsSummaryResponse(BaseModel):
    facets: Dict[str, FacetResult]


class RecordResponse(BaseModel):
    id: str
    record: Dict[str, Any]


class RecordWriteResponse(BaseModel):
    id: str
    result: str = Field(..., description="Engine result, e.g. created, updated, deleted")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    env: str = ""
