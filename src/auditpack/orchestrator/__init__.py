"""High-level orchestration: entry ingestion and list synchronization."""

from .ingest import EntryIngestionOrchestrator
from .sync import ListSync

__all__ = [
    "EntryIngestionOrchestrator",
    "ListSync",
]
