"""Workflow clients that hand migrations off to the workflow engine."""

from .base import BaseWorkflowClient, DryRunWorkflowClient
from .http_workflow import HTTPWorkflowClient

__all__ = [
    "BaseWorkflowClient",
    "DryRunWorkflowClient",
    "HTTPWorkflowClient",
]
