"""Strategy interface shared by every repair strategy.

A strategy declares which issue categories it handles, a priority (higher
runs first) and the ``FixMethod`` recorded for its fixes. ``attempt_fix``
either changes the file set and reports success, or leaves the file set
untouched and declines. Strategies verify their own work against the
detector before committing, so a reported success always means the issue
no longer shows up in a fresh scan.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from scaffold_repair.catalog import DependencyCatalog, FrameworkProfile
from scaffold_repair.detector import IssueDetector
from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory, ProjectConfig, SourceFile
from scaffold_repair.patterns import PatternLibrary
from scaffold_repair.synthesis import TemplateRegistry


@dataclass
class StrategyOutcome:
    """What a single ``attempt_fix`` call achieved."""

    success: bool
    description: str = ""
    confidence: float = 0.0
    file: Optional[str] = None

    @classmethod
    def declined(cls, reason: str = "") -> "StrategyOutcome":
        return cls(success=False, description=reason)

    @classmethod
    def fixed(
        cls, description: str, confidence: float, file: Optional[str] = None
    ) -> "StrategyOutcome":
        return cls(success=True, description=description, confidence=confidence, file=file)


@dataclass
class RepairContext:
    """Read-only collaborators handed to every strategy for one run."""

    config: ProjectConfig
    profile: FrameworkProfile
    catalog: DependencyCatalog
    patterns: PatternLibrary
    templates: TemplateRegistry
    detector: IssueDetector

    def resolves(self, issue: Issue, files: FileSet) -> bool:
        """True when a fresh scan of *files* no longer reports *issue*."""
        return not self.detector.is_present(issue, files, self.config)

    def commit_if_resolved(
        self, files: FileSet, issue: Issue, changes: list[SourceFile]
    ) -> bool:
        """Apply *changes* to *files* only if together they resolve *issue*."""
        trial = files.copy()
        for source in changes:
            trial.put(source)
        if not self.resolves(issue, trial):
            return False
        for source in changes:
            files.put(source)
        return True


class RepairStrategy(ABC):
    """Base class for all strategies.

    Subclasses set the class attributes and implement ``attempt_fix``.
    ``applies_to`` may be narrowed to specific detector rules.
    """

    name: str = "strategy"
    categories: tuple[IssueCategory, ...] = ()
    priority: int = 50
    method: FixMethod = FixMethod.DETERMINISTIC

    def applies_to(self, issue: Issue) -> bool:
        return issue.category in self.categories

    @abstractmethod
    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        """Try to resolve *issue* in *files*, mutating *files* only on success."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"
