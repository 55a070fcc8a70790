"""Project structure and runtime-safety rules.

Structure rules look at the file set as a whole (mandatory files of the
framework profile) and at file shape (empty files, components that export
nothing). Runtime-safety rules flag code that builds but is likely to
crash in the browser; they are warnings and never block a build.
"""

from __future__ import annotations

import re

from scaffold_repair.models import Issue, IssueCategory, Severity, SourceFile
from scaffold_repair.paths import (
    HTML_EXTENSIONS,
    SCRIPT_EXTENSIONS,
    STYLE_EXTENSIONS,
    extension,
    find_script_variant,
)

from .context import ScanContext, line_of

COMPONENT_DIRECTORIES: frozenset[str] = frozenset({"components", "pages", "views", "screens"})

_EXPORT_RE = re.compile(r"^\s*export\b|\bmodule\.exports\b|\bexports\.\w+\s*=", re.MULTILINE)
_RENDER_RE = re.compile(r"\.render\s*\(|\brender\s*\(\s*<")
_ERROR_BOUNDARY_RE = re.compile(r"ErrorBoundary|componentDidCatch|getDerivedStateFromError")
_STORAGE_PARSE_RE = re.compile(
    r"JSON\.parse\(\s*(?:window\.)?(?:localStorage|sessionStorage)\.getItem\("
)
_TRY_RE = re.compile(r"\btry\s*\{")


def is_component_file(path: str, ctx: ScanContext) -> bool:
    if extension(path) not in SCRIPT_EXTENSIONS:
        return False
    if find_script_variant(ctx.profile.root_component_path, {path}) == path:
        return True
    return any(segment in COMPONENT_DIRECTORIES for segment in path.split("/")[:-1])


def scan_missing_core_files(ctx: ScanContext) -> list[Issue]:
    """Every mandatory file of the profile must exist, in any script variant."""
    issues: list[Issue] = []
    for path in ctx.profile.mandatory_files:
        if find_script_variant(path, ctx.files) is None:
            issues.append(
                Issue(
                    category=IssueCategory.MISSING_FILE,
                    file=path,
                    rule="missing-core-file",
                    message=f"Missing required file: {path}",
                    target=path,
                )
            )
    return issues


def scan_file_shape(source: SourceFile, text: str, ctx: ScanContext, jsx: bool) -> list[Issue]:
    """Empty files and components without an export."""
    ext = extension(source.path)
    if not source.content.strip():
        if ext in SCRIPT_EXTENSIONS or ext in HTML_EXTENSIONS:
            severity = Severity.ERROR
        elif ext in STYLE_EXTENSIONS:
            severity = Severity.WARNING
        else:
            return []
        return [
            Issue(
                category=IssueCategory.STRUCTURAL,
                file=source.path,
                rule="empty-file",
                message=f"{source.path} is empty",
                severity=severity,
            )
        ]

    if jsx and is_component_file(source.path, ctx) and not _EXPORT_RE.search(text):
        return [
            Issue(
                category=IssueCategory.STRUCTURAL,
                file=source.path,
                rule="missing-export",
                message="Component file does not export anything",
            )
        ]
    return []


def scan_runtime_safety(ctx: ScanContext, texts: dict[str, str]) -> list[Issue]:
    """Runtime-safety warnings.

    Args:
        ctx: Shared scan context.
        texts: Comment-blanked content of every script file, by path.
    """
    issues: list[Issue] = []

    entry = find_script_variant(ctx.profile.entry_path, ctx.files)
    if entry is not None and entry in texts:
        text = texts[entry]
        if _RENDER_RE.search(text) and not _ERROR_BOUNDARY_RE.search(text):
            issues.append(
                Issue(
                    category=IssueCategory.RUNTIME_SAFETY,
                    file=entry,
                    rule="missing-error-boundary",
                    message="Root render is not wrapped in an error boundary",
                    severity=Severity.WARNING,
                )
            )

    for path, text in texts.items():
        m = _STORAGE_PARSE_RE.search(text)
        if m is None or _TRY_RE.search(text, 0, m.start()):
            continue
        issues.append(
            Issue(
                category=IssueCategory.RUNTIME_SAFETY,
                file=path,
                rule="unguarded-storage-parse",
                message="JSON.parse of browser storage without try/catch",
                severity=Severity.WARNING,
                auto_fixable=False,
                line=line_of(text, m.start()),
            )
        )
    return issues
