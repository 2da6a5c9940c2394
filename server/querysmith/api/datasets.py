"""
QuerySmith - Datasets API
Fields and records of a dataset
"""

from typing import Any, Dict

from fastapi import APIRouter

from ..core.dataset import Dataset
from ..core.models import (
    FieldListResponse,
    FieldsSummaryRequest,
    FieldsSummaryResponse,
    RecordResponse,
    RecordWriteResponse,
)
from ..integrations.opensearch_client import get_opensearch_client

router = APIRouter(prefix="/api/datasets", tags=["datasets"])


def _dataset(index_name: str) -> Dataset:
    return Dataset(index_name, get_opensearch_client())


@router.get("/{index_name}/fields", response_model=FieldListResponse)
async def list_fields(index_name: str) -> FieldListResponse:
    """List the mapped fields of a dataset."""
    return FieldListResponse(fields=_dataset(index_name).fetch_fields())


@router.post("/{index_name}/fields/summary", response_model=FieldsSummaryResponse)
async def summarize_fields(
    index_name: str, request: FieldsSummaryRequest
) -> FieldsSummaryResponse:
    """Top terms of each requested field."""
    facets = _dataset(index_name).get_fields_summary(request.fields)
    return FieldsSummaryResponse(facets=facets)


@router.get("/{index_name}/records/{record_id}", response_model=RecordResponse)
async def get_record(index_name: str, record_id: str) -> RecordResponse:
    record = _dataset(index_name).get(record_id)
    return RecordResponse(id=str(record["id"]), record=record)


@router.post("/{index_name}/records", response_model=RecordWriteResponse)
async def upsert_record(index_name: str, record: Dict[str, Any]) -> RecordWriteResponse:
    """Create a record, or replace it when it carries an id."""
    raw = _dataset(index_name).upsert(record)
    return RecordWriteResponse(id=str(raw.get("_id", "")), result=raw.get("result", ""))


@router.patch("/{index_name}/records/{record_id}", response_model=RecordWriteResponse)
async def update_record(
    index_name: str, record_id: str, changes: Dict[str, Any]
) -> RecordWriteResponse:
    """Partially update a record."""
    raw = _dataset(index_name).update(changes, record_id)
    return RecordWriteResponse(id=record_id, result=raw.get("result", ""))


@router.delete("/{index_name}/records/{record_id}", response_model=RecordWriteResponse)
async def delete_record(index_name: str, record_id: str) -> RecordWriteResponse:
    raw = _dataset(index_name).remove(record_id)
    return RecordWriteResponse(id=record_id, result=raw.get("result", ""))
