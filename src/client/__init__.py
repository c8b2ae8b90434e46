from src.client.api import ApiClientError, SmartComptaApiClient
from src.client.workflow import (
    InvalidTransitionError,
    InvoiceDictationWorkflow,
    InvoiceDraft,
    WorkflowEvent,
    WorkflowStep,
)

__all__ = [
    "ApiClientError",
    "SmartComptaApiClient",
    "InvalidTransitionError",
    "InvoiceDictationWorkflow",
    "InvoiceDraft",
    "WorkflowEvent",
    "WorkflowStep",
]
