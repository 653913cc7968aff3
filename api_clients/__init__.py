"""API clients and helpers for external services."""

from .scan_client import (
    ScanClient,
    accept_scan_entries,
    scan_candidates,
)

__all__ = [
    "ScanClient",
    "accept_scan_entries",
    "scan_candidates",
]
