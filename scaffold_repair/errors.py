"""Exceptions raised to callers of the repair pipeline.

Per-issue failures never surface as exceptions; they become unresolved
issues on the ``PipelineResult``. These classes cover the few conditions a
caller has to handle.
"""

from __future__ import annotations


class RepairError(Exception):
    """Base class for caller-visible repair failures."""


class EmptyProjectError(RepairError):
    """The file set is empty and none of the core files can be synthesised."""


class DetectorDefectError(RepairError):
    """An auto-fixable issue has no strategy (raised in development mode)."""

    def __init__(self, category: str, message: str = "") -> None:
        self.category = category
        super().__init__(message or f"No strategy registered for issue category '{category}'")


class StrategyRegistryError(RepairError):
    """The strategy registry leaves one or more categories uncovered."""

    def __init__(self, categories: list[str]) -> None:
        self.categories = categories
        super().__init__(
            "No primary or emergency strategy for: " + ", ".join(categories)
        )


class RollbackError(RepairError):
    """The requested batch is unknown to the ledger."""
