"""Emergency fallbacks, run only after every primary strategy declined.

Each category has an ordered chain of low-confidence strategies; the
orchestrator stops at the first success. They trade fidelity for a
buildable project: loose patterns first, then a minimal body in place of
the broken file, or a stub for a missing one. All fixes are recorded with
``FixMethod.EMERGENCY``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from scaffold_repair.detector import IssueDetector, read_manifest
from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory, SourceFile
from scaffold_repair.synthesis import dump_manifest

from .base import RepairContext, RepairStrategy, StrategyOutcome
from .manifest import add_dependency

EMERGENCY_CONFIDENCE = 0.3
REGENERATION_CONFIDENCE = 0.2


class EmergencyStrategy(RepairStrategy):
    method = FixMethod.EMERGENCY
    priority = 0


class LoosePatternStrategy(EmergencyStrategy):
    """Run the category's patterns including the loose ones."""

    name = "emergency-loose-patterns"
    categories = (IssueCategory.SYNTAX, IssueCategory.MANIFEST_INVALID)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined()
        application = context.patterns.apply(
            IssueDetector.effective_category(source),
            source.path,
            source.content,
            include_loose=True,
        )
        if not application.changed:
            return StrategyOutcome.declined()
        if not context.commit_if_resolved(files, issue, [source.with_content(application.content)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(
            f"Applied loose patterns: {', '.join(application.applied)}",
            min(application.confidence, EMERGENCY_CONFIDENCE),
            file=source.path,
        )


class MinimalRegenerationStrategy(EmergencyStrategy):
    """Replace a broken file with the minimal body for its kind."""

    name = "emergency-regenerate"
    categories = (IssueCategory.SYNTAX, IssueCategory.STRUCTURAL)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined()
        minimal = context.templates.synthesize(source.path, context.config, minimal=True)
        if minimal is None or minimal.content == source.content:
            return StrategyOutcome.declined()
        if not context.commit_if_resolved(files, issue, [source.with_content(minimal.content)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(
            f"Replaced {source.path} with a minimal body", REGENERATION_CONFIDENCE, file=source.path
        )


class StubFileStrategy(EmergencyStrategy):
    """Create a minimal stub for a missing file or reference target."""

    name = "emergency-stub"
    categories = (IssueCategory.MISSING_REFERENCE, IssueCategory.MISSING_FILE)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        target = issue.target or issue.file
        if issue.category == IssueCategory.MISSING_REFERENCE:
            target = context.templates.script_path_for(target, context.config, importer=issue.file)
        if target in files:
            return StrategyOutcome.declined()
        stub = context.templates.synthesize(target, context.config, minimal=True)
        if stub is None:
            return StrategyOutcome.declined(f"cannot stub {target}")
        if not context.commit_if_resolved(files, issue, [stub]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Created stub {target}", EMERGENCY_CONFIDENCE, file=target)


class LatestDependencyStrategy(EmergencyStrategy):
    """Declare the package at the fallback range, regenerating the manifest if needed."""

    name = "emergency-dependency"
    categories = (IssueCategory.MISSING_DEPENDENCY,)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        if not issue.target:
            return StrategyOutcome.declined()
        path = context.profile.manifest_path
        state = read_manifest(files.get(path))
        data = state.data
        if data is None:
            data = context.templates.build_manifest(context.config, minimal=True)
        declared = data.get("dependencies") if isinstance(data.get("dependencies"), dict) else {}
        version = declared.get(issue.target) or context.catalog.fallback_version
        manifest = SourceFile(path=path, content=dump_manifest(add_dependency(data, issue.target, version)))
        if not context.commit_if_resolved(files, issue, [manifest]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(
            f"Declared {issue.target}@{version}", EMERGENCY_CONFIDENCE, file=path
        )


class MinimalManifestStrategy(EmergencyStrategy):
    """Write the minimal manifest for the project config."""

    name = "emergency-manifest"
    categories = (IssueCategory.MANIFEST_INVALID,)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        path = context.profile.manifest_path
        content = context.templates.render_manifest(context.config, minimal=True)
        current = files.get(path)
        if current is not None and current.content == content:
            return StrategyOutcome.declined()
        if not context.commit_if_resolved(files, issue, [SourceFile(path=path, content=content)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed("Wrote minimal package.json", EMERGENCY_CONFIDENCE, file=path)


def default_emergency_chains() -> Mapping[IssueCategory, tuple[RepairStrategy, ...]]:
    """Ordered emergency chain per category. Runtime safety has none."""
    loose = LoosePatternStrategy()
    regenerate = MinimalRegenerationStrategy()
    return MappingProxyType(
        {
            IssueCategory.SYNTAX: (loose, regenerate),
            IssueCategory.MISSING_DEPENDENCY: (LatestDependencyStrategy(),),
            IssueCategory.MISSING_REFERENCE: (StubFileStrategy(),),
            IssueCategory.MISSING_FILE: (StubFileStrategy(),),
            IssueCategory.MANIFEST_INVALID: (loose, MinimalManifestStrategy()),
            IssueCategory.STRUCTURAL: (regenerate,),
        }
    )
