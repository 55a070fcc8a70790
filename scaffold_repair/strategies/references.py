"""Missing-reference and missing-file repairs.

A dangling import is first retargeted when exactly one file in the set has
the same base name (the generator often gets the directory wrong but the
name right). Otherwise the referenced file is synthesised from a template.
"""

from __future__ import annotations

import posixpath
import re

from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory
from scaffold_repair.paths import (
    SCRIPT_EXTENSIONS,
    STYLE_EXTENSIONS,
    extension,
    relative_specifier,
    stem,
)

from .base import RepairContext, RepairStrategy, StrategyOutcome

_RETARGETABLE = SCRIPT_EXTENSIONS + STYLE_EXTENSIONS + (".json",)


def replace_specifier(content: str, old: str, new: str) -> str:
    """Rewrite every quoted occurrence of *old* as *new*."""
    pattern = re.compile(r"(['\"])" + re.escape(old) + r"\1")
    return pattern.sub(lambda m: f"{m.group(1)}{new}{m.group(1)}", content)


class ReferenceRetargetStrategy(RepairStrategy):
    """Point a dangling import at the single existing file with its name."""

    name = "retarget-reference"
    categories = (IssueCategory.MISSING_REFERENCE,)
    priority = 100

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        importer = files.get(issue.file)
        specifier = issue.context.get("specifier", "")
        if importer is None or not specifier or not issue.target:
            return StrategyOutcome.declined()

        wanted_ext = extension(posixpath.basename(issue.target))
        wanted = stem(issue.target) if wanted_ext in _RETARGETABLE else posixpath.basename(issue.target)
        candidates = [
            path
            for path in files.paths()
            if path != importer.path
            and extension(path) in _RETARGETABLE
            and stem(path) == wanted
            and (not wanted_ext or extension(path) == wanted_ext)
        ]
        if len(candidates) != 1:
            return StrategyOutcome.declined(f"{len(candidates)} candidate files named {wanted}")

        target = candidates[0]
        new_specifier = relative_specifier(importer.path, target, keep_extension=bool(wanted_ext))
        updated = replace_specifier(importer.content, specifier, new_specifier)
        if updated == importer.content:
            return StrategyOutcome.declined()
        if not context.commit_if_resolved(files, issue, [importer.with_content(updated)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(
            f"Retargeted import '{specifier}' to '{new_specifier}'", 0.85, file=importer.path
        )


class ReferenceSynthesisStrategy(RepairStrategy):
    """Create the file a dangling import refers to."""

    name = "synthesize-reference"
    categories = (IssueCategory.MISSING_REFERENCE,)
    priority = 90
    method = FixMethod.SYNTHESIZED

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        if not issue.target:
            return StrategyOutcome.declined()
        path = context.templates.script_path_for(issue.target, context.config, importer=issue.file)
        if path in files:
            return StrategyOutcome.declined(f"{path} already exists")

        source = context.templates.synthesize(path, context.config)
        if source is None:
            return StrategyOutcome.declined(f"no template for {path}")
        if not context.commit_if_resolved(files, issue, [source]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Synthesized {path}", 0.9, file=path)


class MissingFileSynthesisStrategy(RepairStrategy):
    """Create a missing mandatory file from its template."""

    name = "synthesize-file"
    categories = (IssueCategory.MISSING_FILE,)
    priority = 100
    method = FixMethod.SYNTHESIZED

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        path = issue.target or issue.file
        if path in files:
            return StrategyOutcome.declined(f"{path} already exists")
        source = context.templates.synthesize(path, context.config)
        if source is None:
            return StrategyOutcome.declined(f"no template for {path}")
        if not context.commit_if_resolved(files, issue, [source]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Synthesized {path}", 0.95, file=path)
