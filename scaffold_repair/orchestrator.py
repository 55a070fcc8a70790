"""Repair orchestrator.

Implements the 4-phase repair pipeline over an in-memory file set:

Phase 1: PREVENT -- Add core files, feature files and required dependencies.
Phase 2: DETECT  -- Scan for issues (build-breaking only, unless configured).
Phase 3: FIX     -- Walk issues in priority order through the strategy chains.
Phase 4: VERIFY  -- Simulate the build and decide the final status.

Each phase is isolated: an unexpected error inside a phase becomes a
pipeline warning and the next phase still runs, so the caller always gets a
``PipelineResult``. The only exceptions that escape are ``EmptyProjectError``
and, in development mode, ``DetectorDefectError`` and
``StrategyRegistryError``.

Usage::

    orchestrator = RepairOrchestrator(RepairSettings(verbose=False))
    result = await orchestrator.repair_project(files, config)
    if not result.ready:
        print(result.summary_text())
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scaffold_repair.assist_client import AssistClient
from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.config import RepairSettings
from scaffold_repair.detector import IssueDetector, is_critical_issue
from scaffold_repair.errors import DetectorDefectError, EmptyProjectError
from scaffold_repair.ledger import RollbackLedger
from scaffold_repair.models import (
    AppliedFix,
    BuildReport,
    FileSet,
    FinalStatus,
    Issue,
    IssueCategory,
    PipelineResult,
    ProjectConfig,
    RollbackBatch,
    Severity,
    SourceFile,
)
from scaffold_repair.patterns import PatternLibrary
from scaffold_repair.prevention import PreventionPass
from scaffold_repair.simulator import BuildSimulator
from scaffold_repair.strategies import RepairContext, RepairStrategy, StrategyRegistry
from scaffold_repair.synthesis import TemplateRegistry
from scaffold_repair.utils import (
    PHASE_NAMES,
    format_duration,
    print_phase_header,
    print_summary_table,
    print_warning,
)

console = Console()

# Lower tiers are fixed first: dependency, syntax, references, files, runtime, structure.
FIX_TIERS: dict[IssueCategory, int] = {
    IssueCategory.MISSING_DEPENDENCY: 0,
    IssueCategory.MANIFEST_INVALID: 0,
    IssueCategory.SYNTAX: 1,
    IssueCategory.MISSING_REFERENCE: 2,
    IssueCategory.MISSING_FILE: 3,
    IssueCategory.RUNTIME_SAFETY: 4,
    IssueCategory.STRUCTURAL: 5,
}


def fix_order(issues: Iterable[Issue]) -> list[Issue]:
    """Sort by tier, then errors before warnings, then detection order."""
    indexed = list(enumerate(issues))
    indexed.sort(
        key=lambda pair: (
            FIX_TIERS[pair[1].category],
            0 if pair[1].severity == Severity.ERROR else 1,
            pair[0],
        )
    )
    return [issue for _, issue in indexed]


class RepairOrchestrator:
    """Single configurable pipeline: prevent, detect, fix, verify.

    Every table and collaborator is injected. Defaults are built once here
    and shared by all runs of this instance; none of them is mutated while
    repairing, so concurrent runs on separate instances cannot interfere.

    Attributes:
        settings: Operator settings (mode, phases, verbosity, AI endpoint).
        registry: Category-keyed strategy dispatch table.
        detector: Issue detector shared by strategies and the simulator.
    """

    def __init__(
        self,
        settings: RepairSettings | None = None,
        *,
        catalog: DependencyCatalog | None = None,
        patterns: PatternLibrary | None = None,
        templates: TemplateRegistry | None = None,
        detector: IssueDetector | None = None,
        registry: StrategyRegistry | None = None,
        simulator: BuildSimulator | None = None,
        assist_client: AssistClient | None = None,
    ) -> None:
        self.settings = settings or RepairSettings()
        self.catalog = catalog or DependencyCatalog()
        self.patterns = patterns or PatternLibrary.default()
        self.templates = templates or TemplateRegistry(self.catalog)
        self.detector = detector or IssueDetector(self.catalog)
        if assist_client is None and self.settings.assist.enabled:
            assist_client = AssistClient.from_config(self.settings.assist)
        self.assist_client = assist_client
        self.registry = registry or StrategyRegistry.default(
            assist_client=assist_client, strict=self.settings.strict
        )
        self.simulator = simulator or BuildSimulator(self.detector, self.catalog)
        self.prevention = PreventionPass(self.templates, self.catalog)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def repair_project(
        self,
        files: Iterable[SourceFile],
        config: ProjectConfig,
        ledger: RollbackLedger | None = None,
    ) -> PipelineResult:
        """Run all four phases, detecting issues in phase 2."""
        return await self._run(files, config, None, ledger)

    async def repair(
        self,
        files: Iterable[SourceFile],
        issues: Iterable[Issue],
        config: ProjectConfig,
        ledger: RollbackLedger | None = None,
    ) -> PipelineResult:
        """Repair a caller-supplied issue list.

        Prevention and verification still run; detection is replaced by
        *issues*. Issues an earlier step already resolved are skipped.
        """
        return await self._run(files, config, list(issues), ledger)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(
        self,
        files: Iterable[SourceFile],
        config: ProjectConfig,
        issues: list[Issue] | None,
        ledger: RollbackLedger | None,
    ) -> PipelineResult:
        start = time.monotonic()
        file_set = FileSet(files)
        ledger = ledger if ledger is not None else RollbackLedger()
        warnings: list[str] = []

        if not file_set:
            if not any(self.templates.can_synthesize(p, config) for p in self.templates.core_files(config)):
                raise EmptyProjectError("File set is empty and no core file can be synthesized")
            warnings.append("Input file set is empty; the project is built from templates")
        if not self.catalog.has_profile(config.framework):
            warnings.append(
                f"Unknown framework '{config.framework}'; using the "
                f"'{self.catalog.default_framework}' profile"
            )
        for category in self.registry.gaps:
            warnings.append(f"No strategy registered for '{category.value}' issues")

        if self.settings.verbose:
            console.print(
                Panel(
                    f"[bold]Scaffold Repair[/bold]\n"
                    f"Project  : {config.display_name}\n"
                    f"Framework: {self.catalog.profile_for(config).name}"
                    f"{' (typed)' if config.strict_typing else ''}\n"
                    f"Files    : {len(file_set)}\n"
                    f"Mode     : {self.settings.mode}",
                    title="Repair Start",
                    border_style="bright_cyan",
                )
            )

        batch = ledger.snapshot(file_set)
        applied: list[AppliedFix] = []
        unresolved: list[Issue] = []
        context = RepairContext(
            config=config,
            profile=self.catalog.profile_for(config),
            catalog=self.catalog,
            patterns=self.patterns,
            templates=self.templates,
            detector=self.detector,
        )

        # Phase 1: PREVENT
        if self.settings.prevent:
            self._phase_header(1)
            try:
                for fix in self.prevention.run(file_set, config):
                    ledger.record(batch, fix)
                    applied.append(fix)
                    self._log(f"  [green]+[/green] {fix.description}")
            except Exception as exc:  # noqa: BLE001
                self._phase_failed(1, exc, warnings)

        # Phase 2: DETECT
        if issues is None:
            self._phase_header(2)
            try:
                issues = self.detector.detect(file_set, config)
                if self.settings.critical_only:
                    issues = [issue for issue in issues if is_critical_issue(issue)]
                self._log(f"  Found {len(issues)} issue(s) to fix")
            except Exception as exc:  # noqa: BLE001
                self._phase_failed(2, exc, warnings)
                issues = []

        # Phase 3: FIX
        self._phase_header(3)
        try:
            await self._fix_issues(
                fix_order(issues), file_set, context, ledger, batch, applied, unresolved, warnings
            )
        except DetectorDefectError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._phase_failed(3, exc, warnings)

        # Phase 4: VERIFY
        self._phase_header(4)
        try:
            build = self.simulator.simulate(file_set, config)
        except Exception as exc:  # noqa: BLE001
            self._phase_failed(4, exc, warnings)
            build = BuildReport(success=False, errors=[f"Build simulation failed: {exc}"])

        blocking = [issue for issue in unresolved if issue.is_error]
        status = (
            FinalStatus.READY_TO_USE
            if build.success and not blocking
            else FinalStatus.NEEDS_ATTENTION
        )
        result = PipelineResult(
            files=file_set.files(),
            applied_fixes=applied,
            unresolved=unresolved,
            build=build,
            final_status=status,
            warnings=warnings,
            rollback_batch=batch,
            duration_seconds=time.monotonic() - start,
        )
        if self.settings.verbose:
            self.print_report(result)
        return result

    async def _fix_issues(
        self,
        issues: list[Issue],
        file_set: FileSet,
        context: RepairContext,
        ledger: RollbackLedger,
        batch: RollbackBatch,
        applied: list[AppliedFix],
        unresolved: list[Issue],
        warnings: list[str],
    ) -> None:
        """Walk *issues* in order; one ``AppliedFix`` per resolved issue."""
        for issue in issues:
            try:
                present = self.detector.is_present(issue, file_set, context.config)
            except Exception as exc:  # noqa: BLE001
                unresolved.append(issue)
                warnings.append(f"Re-scan failed for {issue.describe()}: {exc}")
                self._log(f"  [red]x[/red] re-scan failed: {issue.describe()}")
                continue
            if not present:
                self._log(f"  [dim]- already resolved: {issue.describe()}[/dim]")
                continue
            if not issue.auto_fixable:
                unresolved.append(issue)
                self._log(f"  [yellow]![/yellow] needs manual attention: {issue.describe()}")
                continue

            chain = self.registry.chain_for(issue)
            if not chain:
                if self.settings.strict:
                    raise DetectorDefectError(issue.category.value)
                warnings.append(
                    f"No strategy for auto-fixable {issue.category.value} issue: {issue.describe()}"
                )
                unresolved.append(issue)
                continue

            fix = await self._apply_chain(chain, issue, file_set, context)
            if fix is None:
                unresolved.append(issue)
                self._log(f"  [red]x[/red] unresolved: {issue.describe()}")
                continue
            ledger.record(batch, fix)
            applied.append(fix)
            self._log(
                f"  [green]+[/green] {issue.describe()} -> {fix.strategy_name} "
                f"[dim]({fix.method.value}, {fix.confidence:.2f})[/dim]"
            )

    async def _apply_chain(
        self,
        chain: list[RepairStrategy],
        issue: Issue,
        file_set: FileSet,
        context: RepairContext,
    ) -> AppliedFix | None:
        """Try each strategy in order and stop at the first real change."""
        for strategy in chain:
            checkpoint = file_set.snapshot()
            before = file_set.contents()
            try:
                outcome = await strategy.attempt_fix(file_set, issue, context)
            except Exception as exc:  # noqa: BLE001
                file_set.reset(checkpoint)
                self._log(f"  [red]{strategy.name} raised: {exc}[/red]")
                continue
            if not outcome.success:
                continue

            changed = file_set.changed_paths(before)
            if not changed:
                # Claimed success without changing anything.
                continue
            path = outcome.file if outcome.file in changed else changed[0]
            after = file_set.get(path)
            return AppliedFix(
                category=issue.category,
                file=path,
                description=outcome.description or f"{strategy.name} fixed {issue.rule or issue.category.value}",
                before=before.get(path),
                after=after.content if after is not None else None,
                strategy_name=strategy.name,
                confidence=min(max(outcome.confidence, 0.0), 1.0),
                method=strategy.method,
            )
        return None

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _log(self, message: str) -> None:
        if self.settings.verbose:
            console.print(message)

    def _phase_header(self, phase: int) -> None:
        if self.settings.verbose:
            print_phase_header(phase)

    def _phase_failed(self, phase: int, exc: Exception, warnings: list[str]) -> None:
        message = f"Phase {phase} ({PHASE_NAMES.get(phase, '?')}) failed: {exc}"
        warnings.append(message)
        if self.settings.verbose:
            print_warning(message)

    @staticmethod
    def print_report(result: PipelineResult) -> None:
        """Print a Rich summary of *result*: fix table, counts and leftovers."""
        if result.applied_fixes:
            table = Table(title="Applied Fixes", show_lines=False)
            table.add_column("Phase", style="dim")
            table.add_column("Category", style="cyan")
            table.add_column("File")
            table.add_column("Strategy")
            table.add_column("Method")
            table.add_column("Conf.", justify="right")
            for fix in result.applied_fixes:
                table.add_row(
                    fix.phase.value,
                    fix.category.value,
                    fix.file,
                    fix.strategy_name,
                    fix.method.value,
                    f"{fix.confidence:.2f}",
                )
            console.print(table)

        print_summary_table(
            {
                "Status": result.final_status.value,
                "Prevented": str(result.prevented_count),
                "Fixed": str(result.fixed_count),
                "Unresolved": str(len(result.unresolved)),
                "Build errors": str(len(result.build.errors)),
                "Build warnings": str(len(result.build.warnings)),
                "Avg. confidence": f"{result.average_confidence:.2f}",
                "Duration": format_duration(result.duration_seconds),
            },
            title="Repair Summary",
        )
        for item in result.remaining_errors:
            console.print(f"  [red]![/red] {item}")
        for warning in result.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")

        style = "green" if result.ready else "red"
        console.print(
            Panel(
                f"[bold {style}]{result.final_status.value}[/bold {style}]",
                border_style=style,
            )
        )


async def repair_project(
    files: Iterable[SourceFile],
    config: ProjectConfig,
    settings: RepairSettings | None = None,
) -> PipelineResult:
    """Repair *files* with a default orchestrator."""
    return await RepairOrchestrator(settings).repair_project(files, config)
