"""Structural repairs: empty files and components without an export."""

from __future__ import annotations

import re

from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory
from scaffold_repair.paths import stem
from scaffold_repair.utils import pascal_case

from .base import RepairContext, RepairStrategy, StrategyOutcome

_DEFINITION_RE = re.compile(
    r"^(?:const|let|var|function|class)\s+([A-Z][\w$]*)", re.MULTILINE
)


class DefaultExportStrategy(RepairStrategy):
    """Append ``export default <Component>;`` to a component file."""

    name = "default-export"
    categories = (IssueCategory.STRUCTURAL,)
    priority = 100

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "missing-export"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined()

        defined = _DEFINITION_RE.findall(source.content)
        if not defined:
            return StrategyOutcome.declined("no component definition found")
        expected = pascal_case(stem(source.path))
        name = expected if expected in defined else defined[-1]

        updated = source.content.rstrip("\n") + f"\n\nexport default {name};\n"
        if not context.commit_if_resolved(files, issue, [source.with_content(updated)]):
            return StrategyOutcome.declined()
        confidence = 0.85 if name == expected else 0.6
        return StrategyOutcome.fixed(f"Exported {name} as default", confidence, file=source.path)


class EmptyFileSynthesisStrategy(RepairStrategy):
    """Fill an empty file with the template for its path."""

    name = "fill-empty-file"
    categories = (IssueCategory.STRUCTURAL,)
    priority = 90
    method = FixMethod.SYNTHESIZED

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "empty-file"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None or source.content.strip():
            return StrategyOutcome.declined()
        synthesized = context.templates.synthesize(source.path, context.config)
        if synthesized is None:
            return StrategyOutcome.declined(f"no template for {source.path}")
        if not context.commit_if_resolved(files, issue, [source.with_content(synthesized.content)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Filled empty {source.path}", 0.8, file=source.path)
