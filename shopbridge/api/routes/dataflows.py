"""Dataflow listing and transformation preview endpoints."""

from typing import List, Optional
from fastapi import APIRouter, Depends

from ..models import (
    DataflowListResponse,
    DataflowResponse,
    FieldMappingResponse,
    MappingResultResponse,
    PreviewRequest,
)
from ..deps import get_orchestrator, http_error
from ...orchestrator import MigrationOrchestrator
from ...models.schema import DataflowStatus, DataflowType, default_product_mappings
from ...errors import ShopbridgeError

router = APIRouter()


@router.get("", response_model=DataflowListResponse)
async def list_dataflows(
    type: Optional[DataflowType] = None,
    status: Optional[DataflowStatus] = None,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """List dataflows, optionally filtered by type and status."""
    dataflows = orchestrator.store.list(dataflow_type=type, status=status)
    return DataflowListResponse(
        dataflows=[DataflowResponse(**d.to_dict()) for d in dataflows],
        total=len(dataflows),
    )


@router.get("/defaults/product", response_model=List[FieldMappingResponse])
async def get_default_product_mappings():
    """Built-in Shopware to Shopify product rules."""
    return [FieldMappingResponse(**m.to_dict()) for m in default_product_mappings()]


@router.get("/{dataflow_id}", response_model=DataflowResponse)
async def get_dataflow(
    dataflow_id: int,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Get a specific dataflow with its rules."""
    try:
        dataflow = orchestrator.store.get(dataflow_id)
    except ShopbridgeError as e:
        raise http_error(e)
    return DataflowResponse(**dataflow.to_dict())


@router.post("/{dataflow_id}/preview", response_model=MappingResultResponse)
async def preview_dataflow(
    dataflow_id: int,
    data: PreviewRequest,
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator)
):
    """Run a dataflow's rules against a sample document without logging."""
    try:
        result = orchestrator.preview_transformation(dataflow_id, data.source_data)
    except ShopbridgeError as e:
        raise http_error(e)
    return MappingResultResponse.from_result(result)
