"""
AuditPack – packaging inspection ingestion.

Turns package photos into structured entries on inspection lists: vision
extraction, CNPJ-root prospect classification and whole-list persistence.
"""

__all__ = [
    "config",
    "errors",
    "logging",
    "paths",
    "state",
]
