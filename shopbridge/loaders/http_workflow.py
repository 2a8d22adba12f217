"""Workflow client that starts runs over an HTTP API."""

import logging
import time
import requests
from typing import Optional

from .base import BaseWorkflowClient
from ..models.migration import MigrationHandoff
from ..errors import WorkflowSubmissionError

logger = logging.getLogger(__name__)


class HTTPWorkflowClient(BaseWorkflowClient):
    """
    Starts workflow runs by POSTing the hand-off to ``{base_url}/executions``.

    The response must carry the run handle as ``execution_id``,
    ``executionArn`` or ``id``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the workflow client.

        Args:
            base_url: Base URL of the workflow engine API
            api_key: Bearer token for the workflow engine
            timeout: Request timeout in seconds
            session: Preconfigured session (mainly for tests)
        """
        super().__init__(dry_run=False)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with authentication."""
        session = requests.Session()
        if self.api_key:
            session.headers["Authorization"] = f"Bearer {self.api_key}"
        session.headers["Content-Type"] = "application/json"
        return session

    def submit(self, handoff: MigrationHandoff) -> str:
        url = f"{self.base_url}/executions"
        body = {
            "name": f"migration-{handoff.migration_id}-{int(time.time())}",
            "input": handoff.to_dict(),
        }

        try:
            response = self._session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
            data = response.json() if response.text else {}
        except requests.exceptions.HTTPError as e:
            raise WorkflowSubmissionError(
                f"error starting workflow execution: {_describe_http_error(e)}"
            ) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise WorkflowSubmissionError(f"error starting workflow execution: {e}") from e

        handle = data.get("execution_id") or data.get("executionArn") or data.get("id")
        if not handle:
            raise WorkflowSubmissionError("workflow engine returned no execution handle")

        logger.info(f"Started workflow {handle} for migration {handoff.migration_id}")
        return str(handle)

    def validate_connection(self) -> bool:
        """Validate connection to the workflow engine."""
        try:
            response = self._session.get(self.base_url, timeout=self.timeout)
            return response.status_code < 500
        except requests.exceptions.RequestException as e:
            logger.error(f"Workflow engine connection validation failed: {e}")
            return False


def _describe_http_error(error: requests.exceptions.HTTPError) -> str:
    """Prefer the error message from the response body when there is one."""
    response = error.response
    if response is None:
        return str(error)
    try:
        data = response.json()
    except ValueError:
        return f"{response.status_code} {response.text or response.reason}"
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return f"{response.status_code} {message}"
    return f"{response.status_code} {data}"
