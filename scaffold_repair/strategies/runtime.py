"""Runtime-safety repair: wrap the root render in an error boundary."""

from __future__ import annotations

import re

from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory
from scaffold_repair.paths import find_script_variant, relative_specifier

from .base import RepairContext, RepairStrategy, StrategyOutcome

_APP_ELEMENT_RE = re.compile(r"<App\s*/>")
_IMPORT_LINE_RE = re.compile(r"^import\s[^\n]*\n", re.MULTILINE)

BOUNDARY_BASE = "src/components/ErrorBoundary"


class ErrorBoundaryStrategy(RepairStrategy):
    """Synthesise ``ErrorBoundary`` and wrap ``<App />`` in the entry point."""

    name = "error-boundary"
    categories = (IssueCategory.RUNTIME_SAFETY,)
    priority = 100
    method = FixMethod.SYNTHESIZED

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "missing-error-boundary"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        entry = files.get(issue.file)
        if entry is None or not _APP_ELEMENT_RE.search(entry.content):
            return StrategyOutcome.declined("no <App /> element in the entry point")

        changes = []
        boundary_path = find_script_variant(BOUNDARY_BASE + ".js", files)
        if boundary_path is None:
            boundary_path = BOUNDARY_BASE + context.profile.new_script_extension
            boundary = context.templates.synthesize(boundary_path, context.config)
            if boundary is None:
                return StrategyOutcome.declined()
            changes.append(boundary)

        content = _APP_ELEMENT_RE.sub("<ErrorBoundary><App /></ErrorBoundary>", entry.content, count=1)
        import_line = f"import ErrorBoundary from '{relative_specifier(entry.path, boundary_path)}';\n"
        imports = list(_IMPORT_LINE_RE.finditer(content))
        split = imports[-1].end() if imports else 0
        content = content[:split] + import_line + content[split:]
        changes.append(entry.with_content(content))

        if not context.commit_if_resolved(files, issue, changes):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(
            f"Wrapped <App /> in ErrorBoundary ({boundary_path})", 0.8, file=entry.path
        )
