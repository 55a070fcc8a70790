"""Issue detector for generated projects.

Runs every rule family (structure, manifest, markup, style, references,
runtime safety) over an in-memory file set and returns a flat list of
categorised ``Issue`` objects. Detection is a pure read: nothing in the
file set is modified.

Rule families live in their own modules:

    structure   - mandatory files, empty files, missing exports, runtime safety
    manifest    - package.json parse, fields, required dependencies; JSON documents
    markup      - HTML and JSX tags and attributes
    style       - stylesheet declarations and braces
    references  - relative imports and undeclared packages
"""

from __future__ import annotations

from collections.abc import Iterable

from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.models import (
    FileCategory,
    FileSet,
    Issue,
    IssueCategory,
    ProjectConfig,
    Severity,
    SourceFile,
)
from scaffold_repair.paths import HTML_EXTENSIONS, SCRIPT_EXTENSIONS, STYLE_EXTENSIONS, extension

from .context import ManifestState, ScanContext, blank_comments, contains_jsx, read_manifest
from .manifest import scan_json_document, scan_manifest
from .markup import check_duplicate_imports, scan_markup
from .references import iter_references, scan_references
from .structure import scan_file_shape, scan_missing_core_files, scan_runtime_safety
from .style import brace_balance, scan_style

__all__ = [
    "IssueDetector",
    "ScanContext",
    "ManifestState",
    "is_critical_issue",
    "read_manifest",
    "contains_jsx",
    "blank_comments",
    "iter_references",
    "brace_balance",
]


# Categories whose errors abort a real build.
BUILD_BREAKING: frozenset[IssueCategory] = frozenset(
    {
        IssueCategory.SYNTAX,
        IssueCategory.MISSING_DEPENDENCY,
        IssueCategory.MISSING_REFERENCE,
        IssueCategory.MISSING_FILE,
        IssueCategory.MANIFEST_INVALID,
        IssueCategory.STRUCTURAL,
    }
)


def is_critical_issue(issue: Issue) -> bool:
    """Keep only error-severity issues in categories that abort a build."""
    return issue.severity == Severity.ERROR and issue.category in BUILD_BREAKING


def as_file_set(files: FileSet | Iterable[SourceFile]) -> FileSet:
    return files if isinstance(files, FileSet) else FileSet(files)


class IssueDetector:
    """Scans a file set and reports categorised issues.

    Usage::

        detector = IssueDetector()
        issues = detector.detect(files, config)
        blockers = [i for i in issues if is_critical_issue(i)]
    """

    def __init__(self, catalog: DependencyCatalog | None = None) -> None:
        self.catalog = catalog or DependencyCatalog()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, files: FileSet | Iterable[SourceFile], config: ProjectConfig) -> list[Issue]:
        """Run every rule and return all issues, structure and manifest first."""
        ctx = ScanContext.build(as_file_set(files), config, self.catalog)
        issues: list[Issue] = []
        issues.extend(scan_missing_core_files(ctx))
        issues.extend(scan_manifest(ctx))

        script_texts: dict[str, str] = {}
        for source in ctx.files:
            issues.extend(self._scan_source(source, ctx, script_texts, probe=False))

        issues.extend(scan_runtime_safety(ctx, script_texts))
        return issues

    def detect_critical(
        self, files: FileSet | Iterable[SourceFile], config: ProjectConfig
    ) -> list[Issue]:
        return [issue for issue in self.detect(files, config) if is_critical_issue(issue)]

    def scan_file(
        self, source: SourceFile, files: FileSet | Iterable[SourceFile], config: ProjectConfig
    ) -> list[Issue]:
        """Issues reported against a single file."""
        return [issue for issue in self.detect(files, config) if issue.file == source.path]

    def probe(self, files: FileSet | Iterable[SourceFile], config: ProjectConfig) -> list[Issue]:
        """Reduced per-file rule set used by the build simulator.

        Covers syntax (markup, style, JSON documents, duplicate imports) and
        unresolved relative references. Manifest content, package
        declarations and runtime safety are left to the caller.
        """
        ctx = ScanContext.build(as_file_set(files), config, self.catalog)
        issues: list[Issue] = []
        for source in ctx.files:
            issues.extend(self._scan_source(source, ctx, {}, probe=True))
        return issues

    def is_present(
        self, issue: Issue, files: FileSet | Iterable[SourceFile], config: ProjectConfig
    ) -> bool:
        """Whether a fresh scan still reports *issue* (matched by ``Issue.key``)."""
        return any(found.key == issue.key for found in self.detect(files, config))

    @staticmethod
    def effective_category(source: SourceFile) -> FileCategory:
        """Category used to pick patterns: scripts holding JSX count as markup."""
        if source.category == FileCategory.MODULE and contains_jsx(blank_comments(source.content)):
            return FileCategory.MARKUP
        return source.category

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _scan_source(
        self,
        source: SourceFile,
        ctx: ScanContext,
        script_texts: dict[str, str],
        probe: bool,
    ) -> list[Issue]:
        path = source.path
        ext = extension(path)
        issues: list[Issue] = []

        if source.category == FileCategory.MANIFEST:
            return issues
        if ext == ".json":
            return scan_json_document(source)

        if ext in HTML_EXTENSIONS:
            text = blank_comments(source.content, "html")
            issues.extend(scan_markup(path, text, ctx, jsx=False))
        elif ext in STYLE_EXTENSIONS:
            text = blank_comments(source.content, "style")
            issues.extend(scan_style(path, text))
            issues.extend(scan_references(path, text, ctx, packages=False))
        elif ext in SCRIPT_EXTENSIONS:
            text = blank_comments(source.content)
            script_texts[path] = text
            jsx = contains_jsx(text)
            issues.extend(scan_markup(path, text, ctx, jsx=jsx))
            issues.extend(check_duplicate_imports(path, text))
            issues.extend(scan_references(path, text, ctx, packages=not probe))
            if not probe:
                issues.extend(scan_file_shape(source, text, ctx, jsx))
            return issues
        else:
            return issues

        if not probe:
            issues.extend(scan_file_shape(source, text, ctx, jsx=False))
        return issues
