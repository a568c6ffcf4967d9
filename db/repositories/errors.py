"""
Repository-layer exceptions.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class ImportBatchStateError(RepositoryError):
    """Raised when a finalized import batch would be modified again."""
