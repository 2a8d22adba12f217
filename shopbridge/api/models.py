"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..models.schema import DataflowStatus, DataflowType
from ..models.migration import MigrationLog, MigrationStatus
from ..models.record import MappingResult


# Request Models
class StatusCallbackRequest(BaseModel):
    migration_id: int
    status: MigrationStatus
    dest_identifier: Optional[str] = None
    error_message: Optional[str] = None
    transformed_data: Optional[Dict[str, Any]] = None


class HandoffRequest(BaseModel):
    dataflow_id: int
    migration_id: int
    source_data: Dict[str, Any] = Field(default_factory=dict)


class PreviewRequest(BaseModel):
    source_data: Dict[str, Any]


# Response Models
class MappingResultResponse(BaseModel):
    success: bool
    data: Dict[str, Any]
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_result(cls, result: MappingResult) -> "MappingResultResponse":
        return cls(**result.to_dict())


class MigrationLogResponse(BaseModel):
    id: int
    dataflow_id: int
    status: MigrationStatus
    source_identifier: str
    dest_identifier: Optional[str] = None
    execution_handle: Optional[str] = None
    source_payload: Dict[str, Any] = Field(default_factory=dict)
    transformed_payload: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_log(cls, log: MigrationLog) -> "MigrationLogResponse":
        return cls(
            id=log.id,
            dataflow_id=log.dataflow_id,
            status=log.status,
            source_identifier=log.source_identifier,
            dest_identifier=log.dest_identifier,
            execution_handle=log.execution_handle,
            source_payload=log.source_payload,
            transformed_payload=log.transformed_payload,
            error_message=log.error_message,
            created_at=log.created_at,
            updated_at=log.updated_at,
            completed_at=log.completed_at,
        )


class MigrationLogListResponse(BaseModel):
    migrations: List[MigrationLogResponse]
    total: int


class FieldMappingResponse(BaseModel):
    id: Optional[int] = None
    dataflow_id: Optional[int] = None
    source_field: str
    dest_field: str
    is_required: bool
    default_value: str
    transform_type: str
    transform_config: str


class ConnectorResponse(BaseModel):
    id: Optional[int] = None
    name: str
    type: str
    url: str
    username: str = ""
    is_active: bool = True


class DataflowResponse(BaseModel):
    id: int
    name: str
    description: str
    type: DataflowType
    status: DataflowStatus
    source_connector: ConnectorResponse
    dest_connector: ConnectorResponse
    field_mappings: List[FieldMappingResponse]
    created_at: datetime
    updated_at: datetime


class DataflowListResponse(BaseModel):
    dataflows: List[DataflowResponse]
    total: int
