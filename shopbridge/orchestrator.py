"""Migration orchestrator - coordinates events, dataflows, logs and hand-offs."""

import copy
import logging
from typing import Any, Dict, List, Optional

from .config import Settings
from .models.schema import DataflowType
from .models.migration import MigrationHandoff, MigrationLog, StatusCallback
from .models.record import MappingResult, WebhookEvent
from .services.lifecycle import MigrationLifecycle
from .services.lookup import EntityLookup
from .services.pipeline import MappingPipeline
from .services.transformer import TransformEngine
from .loaders.base import BaseWorkflowClient
from .storage import DataflowStore
from .errors import DataflowNotFound, InvalidSourceDocument

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Orchestrates record migrations.

    Handles:
    - Selecting the active dataflows for an inbound change
    - Creating one migration log per dataflow
    - Handing each migration off to the workflow engine
    - Running the transform step on behalf of the workflow engine
    - Applying the final status reported back by the workflow engine
    - Previewing a dataflow's rules against a sample document
    """

    def __init__(
        self,
        store: Optional[DataflowStore] = None,
        workflow: Optional[BaseWorkflowClient] = None,
        entity_lookup: Optional[EntityLookup] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Dataflow store; its log store backs the lifecycle
            workflow: Client used to start workflow runs
            entity_lookup: Side-table lookup for ``entity_lookup`` rules
            settings: Runtime settings
        """
        self.settings = settings or Settings()
        self.store = store or DataflowStore()
        self.workflow = workflow or self.settings.create_workflow_client()
        self.lifecycle = MigrationLifecycle(self.store.logs, self.store)
        self.pipeline = MappingPipeline(TransformEngine(
            entity_lookup=entity_lookup,
            gid_namespace=self.settings.gid_namespace,
        ))

    def ingest(
        self,
        category: DataflowType,
        source_identifier: str,
        source_document: Dict[str, Any]
    ) -> List[MigrationLog]:
        """
        Start a migration of one source record through every active dataflow
        of its category.

        Each dataflow is handled independently: a failed hand-off marks that
        dataflow's log failed and the remaining dataflows still run.

        Returns:
            The migration logs created, one per active dataflow
        """
        category = DataflowType(category)
        dataflows = self.store.list_active(category)
        if not dataflows:
            logger.info(f"No active {category.value} dataflows for {source_identifier}")
            return []

        logs = []
        for dataflow in dataflows:
            try:
                log = self.lifecycle.create(dataflow.id, source_identifier, source_document)
            except DataflowNotFound:
                logger.warning(f"Dataflow {dataflow.id} was deleted, skipping {source_identifier}")
                continue

            handoff = MigrationHandoff(
                dataflow_id=dataflow.id,
                migration_id=log.id,
                source_data=copy.deepcopy(source_document),
            )
            log = self.lifecycle.hand_off(log.id, lambda: self.workflow.submit(handoff))

            logs.append(self.store.logs.get(log.id))

        return logs

    def ingest_webhook(
        self,
        event: WebhookEvent,
        source_document: Optional[Dict[str, Any]] = None
    ) -> List[MigrationLog]:
        """
        Start migrations for a webhook event.

        Args:
            event: Parsed webhook envelope
            source_document: Full source record, when it has been fetched;
                the envelope itself is used otherwise
        """
        category = event.category
        if category is None:
            logger.warning(f"Ignoring unsupported webhook event {event.data.event!r}")
            return []

        source_id = event.source_id
        if source_id is None:
            raise InvalidSourceDocument(
                f"webhook {event.data.event} carries no {event.entity_name} primary key"
            )

        document = source_document if source_document is not None else event.to_dict()
        logger.info(f"Webhook {event.data.event} for {event.entity_name} {source_id}")
        return self.ingest(category, source_id, document)

    def run_transform_step(self, handoff: MigrationHandoff) -> MappingResult:
        """Transform step of a workflow run: apply the dataflow's rules."""
        mappings = self.store.list_field_mappings(handoff.dataflow_id)
        logger.info(
            f"Transforming migration {handoff.migration_id} with "
            f"{len(mappings)} rules of dataflow {handoff.dataflow_id}"
        )
        return self.pipeline.transform(handoff.source_data, mappings)

    def handle_status_callback(self, callback: StatusCallback) -> MigrationLog:
        """Apply the final status of a workflow run to its migration log."""
        log = self.lifecycle.apply_callback(callback)
        return self.store.logs.get(log.id)

    def preview_transformation(self, dataflow_id: int, source: Dict[str, Any]) -> MappingResult:
        """Run a dataflow's rules against a document without creating logs."""
        mappings = self.store.list_field_mappings(dataflow_id)
        return self.pipeline.transform(source, mappings)
