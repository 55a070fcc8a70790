"""Deterministic text-level repairs.

``PatternRepairStrategy`` runs the pattern library for the file's category
in a single pass. The other two strategies handle the syntax rules a
regular expression cannot fix on its own: the missing JSX runtime import
and unbalanced stylesheet braces.
"""

from __future__ import annotations

import re

from scaffold_repair.detector import IssueDetector, blank_comments, brace_balance
from scaffold_repair.models import FileSet, Issue, IssueCategory

from .base import RepairContext, RepairStrategy, StrategyOutcome


class PatternRepairStrategy(RepairStrategy):
    """Apply every pattern registered for the file's category, once."""

    def __init__(self, category: IssueCategory, priority: int = 90, include_loose: bool = False) -> None:
        self.categories = (category,)
        self.priority = priority
        self.include_loose = include_loose
        self.name = f"{category.value}-patterns"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined("file not in set")

        category = IssueDetector.effective_category(source)
        application = context.patterns.apply(
            category, source.path, source.content, include_loose=self.include_loose
        )
        if not application.changed:
            return StrategyOutcome.declined("no pattern matched")
        if not context.commit_if_resolved(files, issue, [source.with_content(application.content)]):
            return StrategyOutcome.declined("patterns did not resolve the issue")
        return StrategyOutcome.fixed(
            f"Applied {', '.join(application.applied)}",
            application.confidence,
            file=source.path,
        )


class JsxImportMarkerStrategy(RepairStrategy):
    """Insert ``import React from 'react';`` at the top of a JSX file."""

    name = "jsx-import-marker"
    categories = (IssueCategory.SYNTAX,)
    priority = 100

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "jsx-import-marker"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        marker = issue.target or context.profile.jsx_import_marker
        if source is None or not marker:
            return StrategyOutcome.declined()

        line = f"import {marker} from '{marker.lower()}';\n"
        content = source.content
        # Keep directives such as 'use client' above the import.
        directive = re.match(r"\A(?:\s*(['\"])use \w+\1;?[ \t]*\n)+", content)
        split = directive.end() if directive else 0
        updated = content[:split] + line + content[split:]

        if not context.commit_if_resolved(files, issue, [source.with_content(updated)]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Added {marker} import", 0.95, file=source.path)


class BraceBalanceStrategy(RepairStrategy):
    """Drop stray ``}`` and close unclosed blocks at the end of a stylesheet."""

    name = "brace-balance"
    categories = (IssueCategory.SYNTAX,)
    priority = 80

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "unbalanced-braces"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined()

        content = source.content
        removed = 0
        depth, offset = brace_balance(blank_comments(content, "style"))
        while depth < 0 and offset is not None:
            content = content[:offset] + content[offset + 1:]
            removed += 1
            depth, offset = brace_balance(blank_comments(content, "style"))
        if depth > 0:
            content = content.rstrip("\n") + "\n" + "}\n" * depth

        if content == source.content:
            return StrategyOutcome.declined()
        if not context.commit_if_resolved(files, issue, [source.with_content(content)]):
            return StrategyOutcome.declined()
        parts = []
        if removed:
            parts.append(f"removed {removed} stray '}}'")
        if depth > 0:
            parts.append(f"closed {depth} block(s)")
        return StrategyOutcome.fixed("Balanced braces: " + ", ".join(parts), 0.6, file=source.path)
