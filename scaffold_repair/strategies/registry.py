"""Strategy registry keyed by ``IssueCategory``.

The registry holds the primary strategies (sorted by descending priority,
registration order breaking ties) and one ordered emergency chain per
category. At construction it checks that every category has at least one
strategy of either kind; ``strict`` registries refuse to build with a gap.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from rich.console import Console
from rich.table import Table

from scaffold_repair.assist_client import AssistClient
from scaffold_repair.errors import StrategyRegistryError
from scaffold_repair.models import Issue, IssueCategory

from .assisted import AssistedRepairStrategy
from .base import RepairStrategy
from .emergency import default_emergency_chains
from .manifest import DependencyInstallStrategy, ManifestFieldStrategy, ManifestRegenerateStrategy
from .references import MissingFileSynthesisStrategy, ReferenceRetargetStrategy, ReferenceSynthesisStrategy
from .runtime import ErrorBoundaryStrategy
from .structural import DefaultExportStrategy, EmptyFileSynthesisStrategy
from .syntax import BraceBalanceStrategy, JsxImportMarkerStrategy, PatternRepairStrategy

console = Console()


def default_strategies() -> list[RepairStrategy]:
    """The deterministic and synthesis strategies shipped with the pipeline."""
    return [
        JsxImportMarkerStrategy(),
        PatternRepairStrategy(IssueCategory.SYNTAX),
        BraceBalanceStrategy(),
        DependencyInstallStrategy(),
        ManifestFieldStrategy(),
        PatternRepairStrategy(IssueCategory.MANIFEST_INVALID),
        ManifestRegenerateStrategy(),
        ReferenceRetargetStrategy(),
        ReferenceSynthesisStrategy(),
        MissingFileSynthesisStrategy(),
        DefaultExportStrategy(),
        EmptyFileSynthesisStrategy(),
        ErrorBoundaryStrategy(),
    ]


class StrategyRegistry:
    """Dispatch table from issue category to an ordered strategy chain."""

    def __init__(
        self,
        strategies: Iterable[RepairStrategy],
        emergency: Mapping[IssueCategory, Sequence[RepairStrategy]] | None = None,
        strict: bool = False,
    ) -> None:
        self._strategies: tuple[RepairStrategy, ...] = tuple(
            sorted(strategies, key=lambda s: -s.priority)
        )
        chains = default_emergency_chains() if emergency is None else emergency
        self._emergency: Mapping[IssueCategory, tuple[RepairStrategy, ...]] = MappingProxyType(
            {category: tuple(chain) for category, chain in chains.items()}
        )
        self.gaps: list[IssueCategory] = self.uncovered()
        if self.gaps and strict:
            raise StrategyRegistryError([c.value for c in self.gaps])

    @classmethod
    def default(
        cls,
        assist_client: AssistClient | None = None,
        strict: bool = False,
    ) -> "StrategyRegistry":
        """Default strategies, plus the assisted one when a client is given."""
        strategies = default_strategies()
        if assist_client is not None:
            strategies.append(AssistedRepairStrategy(assist_client))
        return cls(strategies, strict=strict)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def strategies(self) -> tuple[RepairStrategy, ...]:
        return self._strategies

    def strategies_for(self, issue: Issue) -> list[RepairStrategy]:
        """Primary strategies that accept *issue*, highest priority first."""
        return [s for s in self._strategies if s.applies_to(issue)]

    def emergency_for(self, issue: Issue) -> list[RepairStrategy]:
        return [s for s in self._emergency.get(issue.category, ()) if s.applies_to(issue)]

    def chain_for(self, issue: Issue) -> list[RepairStrategy]:
        """Full ordered chain: primary strategies, then the emergency fallbacks."""
        return self.strategies_for(issue) + self.emergency_for(issue)

    def handles(self, category: IssueCategory) -> bool:
        if any(category in s.categories for s in self._strategies):
            return True
        return bool(self._emergency.get(category))

    def uncovered(self) -> list[IssueCategory]:
        """Categories with neither a primary strategy nor an emergency chain."""
        return [category for category in IssueCategory if not self.handles(category)]

    def print_table(self) -> None:
        """Print the dispatch table to the console."""
        table = Table(title="Repair Strategies", show_header=True, header_style="bold cyan")
        table.add_column("Category", style="bold")
        table.add_column("Strategies (priority)")
        table.add_column("Emergency")
        for category in IssueCategory:
            primary = ", ".join(
                f"{s.name} ({s.priority})" for s in self._strategies if category in s.categories
            )
            emergency = ", ".join(s.name for s in self._emergency.get(category, ()))
            table.add_row(category.value, primary or "[red]-[/red]", emergency or "-")
        console.print(table)
