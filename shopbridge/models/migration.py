"""Migration log models for the per-record lifecycle."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional
from enum import Enum
from datetime import datetime, timezone

from ..errors import InvalidStatusTransition


class MigrationStatus(str, Enum):
    """Status of a single record migration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MigrationStatus.SUCCESS, MigrationStatus.FAILED)


ALLOWED_TRANSITIONS: Dict[MigrationStatus, FrozenSet[MigrationStatus]] = {
    MigrationStatus.PENDING: frozenset({MigrationStatus.IN_PROGRESS, MigrationStatus.FAILED}),
    MigrationStatus.IN_PROGRESS: frozenset({MigrationStatus.SUCCESS, MigrationStatus.FAILED}),
    MigrationStatus.SUCCESS: frozenset(),
    MigrationStatus.FAILED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MigrationLog:
    """One attempt to migrate one source record through one dataflow."""
    dataflow_id: int
    source_identifier: str
    source_payload: Dict[str, Any] = field(default_factory=dict)
    status: MigrationStatus = MigrationStatus.PENDING
    id: Optional[int] = None
    transformed_payload: Optional[Dict[str, Any]] = None
    dest_identifier: Optional[str] = None
    error_message: Optional[str] = None
    execution_handle: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    def transition_to(self, status: MigrationStatus) -> None:
        """
        Move to ``status``, stamping ``completed_at`` on terminal states.

        Raises:
            InvalidStatusTransition: the move is not allowed from the current state
        """
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"migration {self.id} cannot move from {self.status.value} to {status.value}"
            )

        now = _utcnow()
        self.status = status
        self.updated_at = now
        if status.is_terminal:
            self.completed_at = now

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "dataflow_id": self.dataflow_id,
            "status": self.status.value,
            "source_identifier": self.source_identifier,
            "dest_identifier": self.dest_identifier,
            "execution_handle": self.execution_handle,
            "source_payload": self.source_payload,
            "transformed_payload": self.transformed_payload,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class MigrationHandoff:
    """Input handed to the workflow engine for one migration log."""
    dataflow_id: int
    migration_id: int
    source_data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataflow_id": self.dataflow_id,
            "migration_id": self.migration_id,
            "source_data": self.source_data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationHandoff":
        return cls(
            dataflow_id=int(data["dataflow_id"]),
            migration_id=int(data["migration_id"]),
            source_data=data.get("source_data") or {},
        )


@dataclass
class StatusCallback:
    """Final status reported by the workflow engine for one migration log."""
    migration_id: int
    status: MigrationStatus
    dest_identifier: Optional[str] = None
    error_message: Optional[str] = None
    transformed_data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusCallback":
        """Create from dictionary representation."""
        return cls(
            migration_id=int(data["migration_id"]),
            status=MigrationStatus(data["status"]),
            dest_identifier=data.get("dest_identifier") or None,
            error_message=data.get("error_message") or None,
            transformed_data=data.get("transformed_data"),
        )
