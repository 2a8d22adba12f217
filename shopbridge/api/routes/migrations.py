"""Migration log and workflow callback endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends

from ..models import (
    HandoffRequest,
    MappingResultResponse,
    MigrationLogListResponse,
    MigrationLogResponse,
    StatusCallbackRequest,
)
from ..deps import get_orchestrator, http_error
from ...orchestrator import MigrationOrchestrator
from ...models.migration import MigrationHandoff, MigrationStatus, StatusCallback
from ...errors import ShopbridgeError

router = APIRouter()


@router.post("/status", response_model=MigrationLogResponse)
async def update_migration_status(
    data: StatusCallbackRequest,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Final status reported by the workflow engine."""
    callback = StatusCallback(
        migration_id=data.migration_id,
        status=data.status,
        dest_identifier=data.dest_identifier or None,
        error_message=data.error_message or None,
        transformed_data=data.transformed_data,
    )
    try:
        log = orchestrator.handle_status_callback(callback)
    except ShopbridgeError as e:
        raise http_error(e)
    return MigrationLogResponse.from_log(log)


@router.post("/transform", response_model=MappingResultResponse)
async def transform_migration(
    data: HandoffRequest,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Transform step called by the workflow engine for a hand-off."""
    handoff = MigrationHandoff(
        dataflow_id=data.dataflow_id,
        migration_id=data.migration_id,
        source_data=data.source_data,
    )
    try:
        result = orchestrator.run_transform_step(handoff)
    except ShopbridgeError as e:
        raise http_error(e)
    return MappingResultResponse.from_result(result)


@router.get("", response_model=MigrationLogListResponse)
async def list_migrations(
    dataflow_id: Optional[int] = None,
    status: Optional[MigrationStatus] = None,
    limit: int = 50,
    offset: int = 0,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """List migration logs, newest first."""
    logs = orchestrator.store.logs.list(
        dataflow_id=dataflow_id, status=status, limit=limit, offset=offset
    )
    return MigrationLogListResponse(
        migrations=[MigrationLogResponse.from_log(log) for log in logs],
        total=len(logs),
    )


@router.get("/{migration_id}", response_model=MigrationLogResponse)
async def get_migration(
    migration_id: int,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Get a specific migration log."""
    try:
        log = orchestrator.store.logs.get(migration_id)
    except ShopbridgeError as e:
        raise http_error(e)
    return MigrationLogResponse.from_log(log)
