"""Audit trail store with retention lifecycle and structural diffs."""

__version__ = "0.1.0"
