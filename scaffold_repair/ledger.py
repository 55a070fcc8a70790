"""Rollback ledger: snapshots, the fix audit trail, and batch undo.

A ``RollbackBatch`` holds a complete copy of the file set taken before a
repair run, plus the ids of every fix applied afterwards. Rolling back
restores that copy exactly and drops the batch's fixes from the history.
The batch is the only undo unit; individual fixes are never reverted on
their own.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from scaffold_repair.errors import RollbackError
from scaffold_repair.models import AppliedFix, FileSet, RollbackBatch, SourceFile


class RollbackLedger:
    """Append-only fix history grouped into rollback batches."""

    def __init__(self) -> None:
        self._batches: dict[str, RollbackBatch] = {}
        self._history: list[AppliedFix] = []

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def snapshot(self, files: FileSet | Iterable[SourceFile]) -> RollbackBatch:
        """Open a new batch holding a deep copy of *files*."""
        source_files = files.snapshot() if isinstance(files, FileSet) else [
            f.model_copy(deep=True) for f in files
        ]
        batch = RollbackBatch(original_files=source_files)
        self._batches[batch.id] = batch
        return batch

    def record(self, batch: RollbackBatch, fix: AppliedFix) -> None:
        """Append *fix* to the history and to *batch*."""
        if batch.id not in self._batches:
            raise RollbackError(f"Unknown rollback batch: {batch.id}")
        self._history.append(fix)
        batch.fix_ids.append(fix.id)

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    def rollback(self, batch: RollbackBatch | str) -> list[SourceFile]:
        """Restore the pre-batch file set and forget the batch's fixes.

        Raises:
            RollbackError: If the batch was never snapshotted by this
                ledger or has already been rolled back.
        """
        batch_id = batch if isinstance(batch, str) else batch.id
        stored = self._batches.pop(batch_id, None)
        if stored is None:
            raise RollbackError(f"Unknown rollback batch: {batch_id}")
        dropped = set(stored.fix_ids)
        self._history = [fix for fix in self._history if fix.id not in dropped]
        return [source.model_copy(deep=True) for source in stored.original_files]

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[AppliedFix]:
        return list(self._history)

    @property
    def batches(self) -> list[RollbackBatch]:
        return list(self._batches.values())

    def get_batch(self, batch_id: str) -> RollbackBatch | None:
        return self._batches.get(batch_id)

    def statistics(self) -> dict[str, Any]:
        """Totals by category and method plus the mean confidence."""
        by_category: dict[str, int] = {}
        by_method: dict[str, int] = {}
        for fix in self._history:
            by_category[fix.category.value] = by_category.get(fix.category.value, 0) + 1
            by_method[fix.method.value] = by_method.get(fix.method.value, 0) + 1
        total = len(self._history)
        average = sum(f.confidence for f in self._history) / total if total else 0.0
        return {
            "total": total,
            "batches": len(self._batches),
            "by_category": by_category,
            "by_method": by_method,
            "average_confidence": round(average, 3),
        }

    def clear(self) -> None:
        self._batches.clear()
        self._history.clear()
