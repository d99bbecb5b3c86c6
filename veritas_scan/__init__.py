"""Veritas Scan: client-side orchestration for synthetic media forensics."""

__version__ = "1.0.0"
