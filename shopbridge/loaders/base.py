"""Base interface for submitting migration hand-offs to the workflow engine."""

from abc import ABC, abstractmethod
from typing import Dict, List
import itertools
import logging

from ..models.migration import MigrationHandoff

logger = logging.getLogger(__name__)


class BaseWorkflowClient(ABC):
    """
    Base class for workflow clients.

    A workflow client starts one external run per hand-off. The run performs
    the transform step, pushes the result to the destination store and
    reports back through the status callback.
    """

    def __init__(self, dry_run: bool = False):
        """
        Args:
            dry_run: If True, record hand-offs without starting runs
        """
        self.dry_run = dry_run

    @abstractmethod
    def submit(self, handoff: MigrationHandoff) -> str:
        """
        Start a workflow run for a hand-off.

        Args:
            handoff: Dataflow id, migration id and source document

        Returns:
            Opaque execution handle of the started run

        Raises:
            WorkflowSubmissionError: the workflow engine did not accept the run
        """
        pass

    def validate_connection(self) -> bool:
        """Validate the connection to the workflow engine."""
        return True


class DryRunWorkflowClient(BaseWorkflowClient):
    """Workflow client that only records what it was asked to submit."""

    def __init__(self, prefix: str = "dry-run"):
        super().__init__(dry_run=True)
        self.prefix = prefix
        self.submitted: List[MigrationHandoff] = []
        self._counter = itertools.count(1)

    def submit(self, handoff: MigrationHandoff) -> str:
        self.submitted.append(handoff)
        handle = f"{self.prefix}-{handoff.migration_id}-{next(self._counter)}"
        logger.info(f"[dry run] would start workflow for migration {handoff.migration_id}")
        return handle

    @property
    def handoffs_by_migration(self) -> Dict[int, MigrationHandoff]:
        return {h.migration_id: h for h in self.submitted}
