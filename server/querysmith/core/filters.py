"""
QuerySmith - Filter Clauses
Convert abstract filters into engine filter clauses
"""

import copy
import numbers
from typing import Any, Dict, Optional

from .errors import UnsupportedFilterKindError
from .models import (
    DateRangeFilter,
    ExistsFilter,
    FilterBase,
    GeoDistanceFilter,
    MissingFilter,
    RangeFilter,
    TermFilter,
    TermsFilter,
    TypeFilter,
)


def _is_bound(value: Any) -> bool:
    """
    Whether a range bound is sent to the engine.

    A bound must be present, numeric (numbers or numeric strings) and
    truthy. Zero is therefore dropped, which existing callers rely on.
    """
    if value is None or isinstance(value, bool) or not value:
        return False
    if isinstance(value, numbers.Number):
        return value == value  # NaN
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def _build_range_body(filter: FilterBase) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if _is_bound(filter.from_):
        body["from"] = filter.from_
    if _is_bound(filter.to):
        body["to"] = filter.to
    if filter.include_lower is not None:
        body["include_lower"] = filter.include_lower
    if filter.include_upper is not None:
        body["include_upper"] = filter.include_upper
    return body


def build_filter_clause(
    filter: FilterBase,
    date_format: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build one engine filter clause.

    Args:
        filter: Filter model
        date_format: Format of the field's date_range aggregation (date_range only)

    Returns:
        Filter clause, wrapped in {"not": ...} when the filter is negated

    Raises:
        UnsupportedFilterKindError: If the filter kind is not known
    """
    if isinstance(filter, TermFilter):
        out = {"term": {filter.field: filter.term}}
    elif isinstance(filter, TermsFilter):
        out = {"terms": {filter.field: list(filter.terms)}}
        if filter.execution is not None:
            out["terms"]["execution"] = filter.execution
    elif isinstance(filter, RangeFilter):
        out = {"range": {filter.field: _build_range_body(filter)}}
    elif isinstance(filter, DateRangeFilter):
        # no date_range filter on the engine side: a range over epoch millis
        body = _build_range_body(filter)
        if date_format:
            body["format"] = date_format
        out = {"range": {filter.field: body}}
    elif isinstance(filter, GeoDistanceFilter):
        out = {
            "geo_distance": {
                filter.field: copy.deepcopy(filter.point),
                "distance": filter.distance,
                "unit": filter.unit,
            }
        }
    elif isinstance(filter, TypeFilter):
        out = {"type": {"value": filter.value}}
    elif isinstance(filter, ExistsFilter):
        out = {"exists": {"field": filter.field}}
    elif isinstance(filter, MissingFilter):
        out = {"missing": {"field": filter.field}}
    else:
        raise UnsupportedFilterKindError(getattr(filter, "type", type(filter).__name__))

    if filter.negate:
        out = {"not": copy.deepcopy(out)}
    return out
