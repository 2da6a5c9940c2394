"""
QuerySmith - Error Handling
Unified error format and exception handlers
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class QuerySmithError(Exception):
    """Base exception for QuerySmith errors."""

    def __init__(
        self,
        code: str,
        message: str,
        detail: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
    ):
        self.code = code
        self.message = message
        self.detail = detail or {}
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to standard error response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "detail": self.detail,
            }
        }


# Error codes and their default status codes
class ErrorCodes:
    UNSUPPORTED_FILTER_KIND = "UNSUPPORTED_FILTER_KIND"
    MISSING_DATE_FORMAT = "MISSING_DATE_FORMAT"
    AGGREGATION_KEY_COLLISION = "AGGREGATION_KEY_COLLISION"
    QUERY_FAILED = "QUERY_FAILED"
    OPENSEARCH_ERROR = "OPENSEARCH_ERROR"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"


# Pre-defined exceptions
class UnsupportedFilterKindError(QuerySmithError):
    def __init__(self, kind: Any):
        super().__init__(
            code=ErrorCodes.UNSUPPORTED_FILTER_KIND,
            message=f"Unsupported filter kind: {kind}",
            detail={"kind": str(kind)},
            status_code=400,
        )
        self.kind = kind


class MissingDateFormatError(QuerySmithError):
    def __init__(self, field: str, aggregation_key: str):
        super().__init__(
            code=ErrorCodes.MISSING_DATE_FORMAT,
            message=(
                f"No date_range aggregation '{aggregation_key}' declares a format "
                f"for date_range filter on '{field}'"
            ),
            detail={"field": field, "aggregation_key": aggregation_key},
            status_code=400,
        )
        self.field = field


class AggregationKeyCollisionError(QuerySmithError):
    def __init__(self, key: str):
        super().__init__(
            code=ErrorCodes.AGGREGATION_KEY_COLLISION,
            message=f"Aggregation key '{key}' is reserved for the all-types aggregation",
            detail={"key": key},
            status_code=400,
        )
        self.key = key


class QueryFailedError(QuerySmithError):
    """The engine rejected or failed a search request."""

    def __init__(self, status: Any, body: Any):
        super().__init__(
            code=ErrorCodes.QUERY_FAILED,
            message=f"Failed: {status} code",
            detail={"status": status, "body": body},
            status_code=502,
        )
        self.status = status
        self.body = body


class OpenSearchError(QuerySmithError):
    def __init__(self, reason: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCodes.OPENSEARCH_ERROR,
            message=f"OpenSearch error: {reason}",
            detail=detail or {"reason": reason},
            status_code=500,
        )


class RecordNotFoundError(QuerySmithError):
    def __init__(self, index_name: str, record_id: str):
        super().__init__(
            code=ErrorCodes.RECORD_NOT_FOUND,
            message=f"Record not found: {record_id} in {index_name}",
            detail={"index_name": index_name, "record_id": record_id},
            status_code=404,
        )


# Exception handlers for FastAPI
async def querysmith_error_handler(
    request: Request, exc: QuerySmithError
) -> JSONResponse:
    """Handle QuerySmithError exceptions."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException and convert to standard format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "detail": {},
            }
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "detail": {"type": type(exc).__name__, "message": str(exc)},
            }
        },
    )
