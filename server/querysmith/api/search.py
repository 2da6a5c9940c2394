"""
QuerySmith - Search API
Run and compile abstract queries against a dataset
"""

import time
from typing import Any, Dict

from fastapi import APIRouter

from ..core.dataset import Dataset
from ..core.logging import get_logger
from ..core.models import QueryState, SearchResult
from ..core.search_builders import build_search_body
from ..integrations.opensearch_client import get_opensearch_client

logger = get_logger(__name__)

router = APIRouter(prefix="/api/datasets", tags=["search"])


@router.post("/{index_name}/query", response_model=SearchResult)
async def query_dataset(index_name: str, state: QueryState) -> SearchResult:
    """
    Search a dataset.

    The body is a full query state: free text, ids, boost fields, boolean
    clauses, filters, aggregations, facets, sort, highlights and paging.
    Aggregation buckets matching an active term filter come back with
    selected=true.
    """
    start_time = time.time()

    dataset = Dataset(index_name, get_opensearch_client(), state=state)
    result = dataset.query()

    took_ms = int((time.time() - start_time) * 1000)
    logger.debug(f"Query on {index_name} took {took_ms} ms")

    return result


@router.post("/{index_name}/compile")
async def compile_query(index_name: str, state: QueryState) -> Dict[str, Any]:
    """Return the search body a query state compiles to, without running it."""
    return build_search_body(state)
