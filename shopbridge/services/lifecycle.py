"""Migration lifecycle - per-record status machine across the workflow hand-off."""

import copy
import logging
from typing import Any, Callable, Dict, Optional

from ..models.migration import MigrationLog, MigrationStatus, StatusCallback
from ..errors import InvalidStatusTransition
from ..storage import DataflowStore, MigrationLogStore

logger = logging.getLogger(__name__)


class MigrationLifecycle:
    """
    Creates migration logs and moves them through their states.

    ``pending -> in_progress -> success | failed``, plus ``pending -> failed``
    when the hand-off itself fails. Every update holds the log's row lock.
    """

    def __init__(self, logs: MigrationLogStore, dataflows: Optional[DataflowStore] = None):
        """
        Args:
            logs: Store holding the migration logs
            dataflows: When given, new logs are only created for dataflows
                that still exist
        """
        self.logs = logs
        self.dataflows = dataflows

    def create(
        self,
        dataflow_id: int,
        source_identifier: str,
        source_payload: Dict[str, Any]
    ) -> MigrationLog:
        log = MigrationLog(
            dataflow_id=dataflow_id,
            source_identifier=source_identifier,
            source_payload=copy.deepcopy(source_payload),
        )
        if self.dataflows is not None:
            log = self.dataflows.create_log(log)
        else:
            log = self.logs.create(log)
        logger.info(f"Migration {log.id} pending for {source_identifier} on dataflow {dataflow_id}")
        return log

    def hand_off(self, log_id: int, submit: Callable[[], str]) -> MigrationLog:
        """
        Submit a pending log to the workflow engine and record the outcome.

        The row lock is held across ``submit``, so a status callback for this
        log waits until the log is ``in_progress``. Any exception raised by
        ``submit`` marks the log failed.

        Raises:
            MigrationLogNotFound: unknown migration id
            InvalidStatusTransition: the log has already been handed off
        """
        with self.logs.locked(log_id) as log:
            if log.status != MigrationStatus.PENDING:
                raise InvalidStatusTransition(
                    f"migration {log.id} is {log.status.value}, not pending"
                )

            try:
                handle = submit()
            except Exception as e:
                log.transition_to(MigrationStatus.FAILED)
                log.error_message = str(e)
                logger.error(f"Hand-off for migration {log.id} failed: {e}")
            else:
                log.transition_to(MigrationStatus.IN_PROGRESS)
                log.execution_handle = handle
                logger.info(f"Migration {log.id} in progress ({handle})")
            return log

    def apply_callback(self, callback: StatusCallback) -> MigrationLog:
        """
        Apply the final status reported by the workflow engine.

        Raises:
            MigrationLogNotFound: unknown migration id
            InvalidStatusTransition: the log is not in progress, or the
                reported status is not terminal
        """
        if not callback.status.is_terminal:
            raise InvalidStatusTransition(
                f"status callback must report success or failed, got {callback.status.value}"
            )

        with self.logs.locked(callback.migration_id) as log:
            if log.status != MigrationStatus.IN_PROGRESS:
                raise InvalidStatusTransition(
                    f"migration {log.id} is {log.status.value}, not in_progress"
                )

            log.transition_to(callback.status)
            if callback.dest_identifier:
                log.dest_identifier = callback.dest_identifier
            if callback.error_message:
                log.error_message = callback.error_message
            if callback.transformed_data is not None:
                log.transformed_payload = callback.transformed_data

            if log.status == MigrationStatus.SUCCESS:
                logger.info(f"Migration {log.id} succeeded ({log.dest_identifier})")
            else:
                logger.error(f"Migration {log.id} failed: {log.error_message}")
            return log
