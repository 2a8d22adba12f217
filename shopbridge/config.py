"""Runtime settings for shopbridge."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .loaders.base import BaseWorkflowClient, DryRunWorkflowClient
from .loaders.http_workflow import HTTPWorkflowClient

ENV_PREFIX = "SHOPBRIDGE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Settings read from the environment or a plain dictionary."""
    workflow_url: Optional[str] = None
    workflow_api_key: Optional[str] = None
    workflow_timeout: float = 10.0
    gid_namespace: str = "shopify"
    dry_run: bool = False
    log_level: str = "INFO"

    @property
    def use_dry_run(self) -> bool:
        return self.dry_run or not self.workflow_url

    def create_workflow_client(self) -> BaseWorkflowClient:
        """Dry-run client when no workflow URL is set or dry run is requested."""
        if self.use_dry_run:
            return DryRunWorkflowClient()
        return HTTPWorkflowClient(
            base_url=self.workflow_url,
            api_key=self.workflow_api_key,
            timeout=self.workflow_timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (API key omitted)."""
        return {
            "workflow_url": self.workflow_url,
            "workflow_timeout": self.workflow_timeout,
            "gid_namespace": self.gid_namespace,
            "dry_run": self.dry_run,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from dictionary representation."""
        return cls(
            workflow_url=data.get("workflow_url") or None,
            workflow_api_key=data.get("workflow_api_key") or None,
            workflow_timeout=float(data.get("workflow_timeout", 10.0)),
            gid_namespace=data.get("gid_namespace") or "shopify",
            dry_run=_as_bool(data.get("dry_run", False)),
            log_level=str(data.get("log_level") or "INFO").upper(),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Create from ``SHOPBRIDGE_*`` environment variables."""
        environ = os.environ if environ is None else environ
        data = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX)
        }
        return cls.from_dict(data)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES
