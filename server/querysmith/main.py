"""
QuerySmith - FastAPI Application
Main application entry point
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .api import datasets, search
from .core.config import settings
from .core.errors import (
    QuerySmithError,
    generic_exception_handler,
    http_exception_handler,
    querysmith_error_handler,
)
from .core.models import HealthResponse

# Create FastAPI app
app = FastAPI(
    title="QuerySmith",
    description="Compile abstract search queries for OpenSearch and map the results back",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.QUERYSMITH_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(QuerySmithError, querysmith_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register routers
app.include_router(search.router)
app.include_router(datasets.router)


@app.get("/healthz", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", env=settings.QUERYSMITH_ENV)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "QuerySmith",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/healthz",
    }
