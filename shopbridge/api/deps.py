"""Request dependencies and error translation for the API routes."""

from fastapi import HTTPException, Request

from ..orchestrator import MigrationOrchestrator
from ..errors import (
    DataflowInUse,
    DataflowNotFound,
    FieldMappingNotFound,
    InvalidStatusTransition,
    MigrationLogNotFound,
    ShopbridgeError,
)


def get_orchestrator(request: Request) -> MigrationOrchestrator:
    return request.app.state.orchestrator


def http_error(error: ShopbridgeError) -> HTTPException:
    """Map a shopbridge error onto an HTTP error response."""
    if isinstance(error, (MigrationLogNotFound, DataflowNotFound, FieldMappingNotFound)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (InvalidStatusTransition, DataflowInUse)):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))
