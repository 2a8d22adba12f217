"""Data models for shopbridge."""

from .schema import (
    Connector,
    ConnectorType,
    Dataflow,
    DataflowStatus,
    DataflowType,
    FieldMapping,
    TransformType,
    default_product_mappings,
)
from .migration import (
    MigrationHandoff,
    MigrationLog,
    MigrationStatus,
    StatusCallback,
)
from .record import (
    MappingResult,
    WebhookEvent,
)

__all__ = [
    "Connector",
    "ConnectorType",
    "Dataflow",
    "DataflowStatus",
    "DataflowType",
    "FieldMapping",
    "TransformType",
    "default_product_mappings",
    "MigrationHandoff",
    "MigrationLog",
    "MigrationStatus",
    "StatusCallback",
    "MappingResult",
    "WebhookEvent",
]
