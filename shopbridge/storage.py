"""In-memory stores for dataflows, field mappings and migration logs.

Each store guards its registry with a single lock. Migration logs also carry
one lock per row so that read-modify-write updates to a log are serialized
without blocking unrelated logs.
"""

import copy
import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional

from .models.schema import (
    Connector,
    ConnectorType,
    Dataflow,
    DataflowStatus,
    DataflowType,
    FieldMapping,
)
from .models.migration import MigrationLog, MigrationStatus, _utcnow
from .errors import (
    DataflowInUse,
    DataflowNotFound,
    FieldMappingNotFound,
    InvalidConnector,
    InvalidDataflow,
    InvalidFieldMapping,
    MigrationLogNotFound,
)

logger = logging.getLogger(__name__)

# Dataflow attributes that stay editable once migration logs reference it
_MUTABLE_WHEN_IN_USE = frozenset({"name", "description", "status"})
_UPDATABLE = _MUTABLE_WHEN_IN_USE | {"type", "source_connector", "dest_connector"}


def validate_connector(connector: Connector) -> None:
    if not connector.name:
        raise InvalidConnector("connector name is required")
    if not connector.url:
        raise InvalidConnector("connector URL is required")


def validate_field_mapping(mapping: FieldMapping) -> None:
    if not mapping.source_field:
        raise InvalidFieldMapping("source field is required")
    if not mapping.dest_field:
        raise InvalidFieldMapping("destination field is required")


def validate_dataflow(dataflow: Dataflow) -> None:
    """
    Check the dataflow invariants.

    Raises:
        InvalidDataflow: missing name, identical connectors or wrong platform roles
        InvalidConnector: a connector is missing its name or URL
    """
    if not dataflow.name:
        raise InvalidDataflow("dataflow name is required")

    source, dest = dataflow.source_connector, dataflow.dest_connector
    validate_connector(source)
    validate_connector(dest)

    same_id = source.id is not None and source.id == dest.id
    if source is dest or same_id:
        raise InvalidDataflow("source and destination connectors must be different")
    if source.type != ConnectorType.SHOPWARE:
        raise InvalidDataflow("source connector must be a Shopware connector")
    if dest.type != ConnectorType.SHOPIFY:
        raise InvalidDataflow("destination connector must be a Shopify connector")


class MigrationLogStore:
    """Migration logs keyed by id, newest first when listed."""

    def __init__(self):
        self._lock = threading.Lock()
        self._logs: Dict[int, MigrationLog] = {}
        self._row_locks: Dict[int, threading.Lock] = {}
        self._ids = itertools.count(1)

    def create(self, log: MigrationLog) -> MigrationLog:
        """Store a new log and assign its id."""
        with self._lock:
            log.id = next(self._ids)
            self._logs[log.id] = log
            self._row_locks[log.id] = threading.Lock()
        logger.debug(f"Created migration log {log.id} for dataflow {log.dataflow_id}")
        return log

    def get(self, log_id: int) -> MigrationLog:
        """Return a snapshot of a log."""
        with self._lock:
            log = self._logs.get(log_id)
            row_lock = self._row_locks.get(log_id)
        if log is None:
            raise MigrationLogNotFound(f"migration log {log_id} not found")
        with row_lock:
            return copy.deepcopy(log)

    @contextmanager
    def locked(self, log_id: int) -> Iterator[MigrationLog]:
        """
        Hold the row lock of a log while the caller mutates it.

        Raises:
            MigrationLogNotFound: no log with this id
        """
        with self._lock:
            log = self._logs.get(log_id)
            row_lock = self._row_locks.get(log_id)
        if log is None:
            raise MigrationLogNotFound(f"migration log {log_id} not found")

        with row_lock:
            yield log

    def list(
        self,
        dataflow_id: Optional[int] = None,
        status: Optional[MigrationStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[MigrationLog]:
        with self._lock:
            logs = list(self._logs.values())

        if dataflow_id is not None:
            logs = [log for log in logs if log.dataflow_id == dataflow_id]
        if status is not None:
            logs = [log for log in logs if log.status == status]

        logs.sort(key=lambda log: (log.created_at, log.id), reverse=True)
        return logs[offset:offset + limit]

    def count_for_dataflow(self, dataflow_id: int) -> int:
        with self._lock:
            return sum(1 for log in self._logs.values() if log.dataflow_id == dataflow_id)


class DataflowStore:
    """Dataflows and their ordered field mappings."""

    def __init__(self, logs: Optional[MigrationLogStore] = None):
        self.logs = logs or MigrationLogStore()
        self._lock = threading.Lock()
        self._dataflows: Dict[int, Dataflow] = {}
        self._dataflow_ids = itertools.count(1)
        self._mapping_ids = itertools.count(1)

    # Dataflows

    def create(self, dataflow: Dataflow) -> Dataflow:
        """
        Validate and store a dataflow along with any mappings it carries.

        Raises:
            InvalidDataflow, InvalidConnector, InvalidFieldMapping
        """
        validate_dataflow(dataflow)
        for mapping in dataflow.field_mappings:
            validate_field_mapping(mapping)

        with self._lock:
            dataflow.id = next(self._dataflow_ids)
            for mapping in dataflow.field_mappings:
                mapping.id = next(self._mapping_ids)
                mapping.dataflow_id = dataflow.id
            self._dataflows[dataflow.id] = dataflow

        logger.info(f"Created dataflow {dataflow.id} ({dataflow.name})")
        return dataflow

    def get(self, dataflow_id: int) -> Dataflow:
        with self._lock:
            dataflow = self._dataflows.get(dataflow_id)
        if dataflow is None:
            raise DataflowNotFound(f"dataflow {dataflow_id} not found")
        return dataflow

    def list(
        self,
        dataflow_type: Optional[DataflowType] = None,
        status: Optional[DataflowStatus] = None
    ) -> List[Dataflow]:
        with self._lock:
            dataflows = sorted(self._dataflows.values(), key=lambda d: d.id)

        if dataflow_type is not None:
            dataflows = [d for d in dataflows if d.type == dataflow_type]
        if status is not None:
            dataflows = [d for d in dataflows if d.status == status]
        return dataflows

    def list_active(self, dataflow_type: DataflowType) -> List[Dataflow]:
        return self.list(dataflow_type=dataflow_type, status=DataflowStatus.ACTIVE)

    def update(self, dataflow_id: int, **changes: Any) -> Dataflow:
        """
        Change attributes of a dataflow.

        Once migration logs reference the dataflow, only its name,
        description and status may change.

        Raises:
            DataflowNotFound: no dataflow with this id
            DataflowInUse: a locked attribute was changed on a referenced dataflow
            InvalidDataflow: unknown attribute or the result breaks an invariant
        """
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise InvalidDataflow(f"cannot update dataflow fields: {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._dataflows.get(dataflow_id)
            if current is None:
                raise DataflowNotFound(f"dataflow {dataflow_id} not found")

            locked_changes = set(changes) - _MUTABLE_WHEN_IN_USE
            if locked_changes and self.logs.count_for_dataflow(dataflow_id) > 0:
                raise DataflowInUse(
                    f"dataflow {dataflow_id} has migration logs; "
                    f"cannot change {', '.join(sorted(locked_changes))}"
                )

            if "status" in changes:
                changes["status"] = DataflowStatus(changes["status"])
            if "type" in changes:
                changes["type"] = DataflowType(changes["type"])

            updated = replace(current, updated_at=_utcnow(), **changes)
            validate_dataflow(updated)
            self._dataflows[dataflow_id] = updated

        logger.info(f"Updated dataflow {dataflow_id}: {', '.join(sorted(changes))}")
        return updated

    def delete(self, dataflow_id: int) -> None:
        """
        Delete a dataflow and its field mappings.

        Raises:
            DataflowNotFound: no dataflow with this id
            DataflowInUse: migration logs reference the dataflow
        """
        with self._lock:
            if dataflow_id not in self._dataflows:
                raise DataflowNotFound(f"dataflow {dataflow_id} not found")
            if self.logs.count_for_dataflow(dataflow_id) > 0:
                raise DataflowInUse("dataflow has migration logs and cannot be deleted")
            del self._dataflows[dataflow_id]

        logger.info(f"Deleted dataflow {dataflow_id}")

    def create_log(self, log: MigrationLog) -> MigrationLog:
        """
        Store a migration log for a dataflow that still exists.

        Holding the dataflow lock keeps ``delete`` from removing the dataflow
        between the existence check and the insert.

        Raises:
            DataflowNotFound: the dataflow was deleted
        """
        with self._lock:
            if log.dataflow_id not in self._dataflows:
                raise DataflowNotFound(f"dataflow {log.dataflow_id} not found")
            return self.logs.create(log)

    # Field mappings

    def add_field_mapping(self, dataflow_id: int, mapping: FieldMapping) -> FieldMapping:
        """Append a rule to the end of a dataflow's ruleset."""
        validate_field_mapping(mapping)
        with self._lock:
            dataflow = self._dataflows.get(dataflow_id)
            if dataflow is None:
                raise DataflowNotFound(f"dataflow {dataflow_id} not found")
            self._check_rules_editable(dataflow_id)
            mapping.id = next(self._mapping_ids)
            mapping.dataflow_id = dataflow_id
            dataflow.field_mappings.append(mapping)
        return mapping

    def list_field_mappings(self, dataflow_id: int) -> List[FieldMapping]:
        """Return a dataflow's rules in ruleset order."""
        with self._lock:
            dataflow = self._dataflows.get(dataflow_id)
            if dataflow is None:
                raise DataflowNotFound(f"dataflow {dataflow_id} not found")
            return list(dataflow.field_mappings)

    def update_field_mapping(self, mapping_id: int, mapping: FieldMapping) -> FieldMapping:
        """Replace a rule in place, keeping its position and owner."""
        validate_field_mapping(mapping)
        with self._lock:
            dataflow, index = self._find_mapping(mapping_id)
            self._check_rules_editable(dataflow.id)
            mapping.id = mapping_id
            mapping.dataflow_id = dataflow.id
            dataflow.field_mappings[index] = mapping
        return mapping

    def delete_field_mapping(self, mapping_id: int) -> None:
        with self._lock:
            dataflow, index = self._find_mapping(mapping_id)
            self._check_rules_editable(dataflow.id)
            del dataflow.field_mappings[index]

    def _check_rules_editable(self, dataflow_id: int) -> None:
        if self.logs.count_for_dataflow(dataflow_id) > 0:
            raise DataflowInUse(
                f"dataflow {dataflow_id} has migration logs; its field mappings cannot change"
            )

    def _find_mapping(self, mapping_id: int):
        for dataflow in self._dataflows.values():
            for index, mapping in enumerate(dataflow.field_mappings):
                if mapping.id == mapping_id:
                    return dataflow, index
        raise FieldMappingNotFound(f"field mapping {mapping_id} not found")
