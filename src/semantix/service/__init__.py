"""Service layer - Business logic orchestration.

This module contains the orchestrator an outer surface (CLI, HTTP
handler) calls into:
- RetrievalOrchestrator: ingestion, search and maintenance operations
"""

from semantix.service.orchestrator import InvalidRequestError, RetrievalOrchestrator

__all__ = [
    "InvalidRequestError",
    "RetrievalOrchestrator",
]
