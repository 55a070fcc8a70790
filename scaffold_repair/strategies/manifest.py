"""Manifest repairs: dependencies, required fields, full regeneration.

All strategies here rewrite ``package.json`` through ``dump_manifest`` so
the output is always two-space indented with a trailing newline.
Dependency maps are kept sorted by package name, the way npm writes them.
"""

from __future__ import annotations

from typing import Any

from scaffold_repair.detector import read_manifest
from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory, SourceFile
from scaffold_repair.synthesis import dump_manifest

from .base import RepairContext, RepairStrategy, StrategyOutcome


def _sorted(entries: dict[str, Any]) -> dict[str, Any]:
    return dict(sorted(entries.items()))


def add_dependency(manifest: dict[str, Any], package: str, version: str) -> dict[str, Any]:
    """Return a copy of *manifest* with *package* in ``dependencies``."""
    updated = dict(manifest)
    deps = updated.get("dependencies")
    deps = dict(deps) if isinstance(deps, dict) else {}
    deps[package] = version
    updated["dependencies"] = _sorted(deps)
    return updated


class DependencyInstallStrategy(RepairStrategy):
    """Declare a missing package at its pinned version.

    Packages the catalog does not know are added with the catalog's
    fallback range. A missing manifest is synthesised first; a manifest that
    does not parse is left to the manifest-invalid strategies.
    """

    name = "install-dependency"
    categories = (IssueCategory.MISSING_DEPENDENCY,)
    priority = 100

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        package = issue.target
        if not package:
            return StrategyOutcome.declined()

        path = context.profile.manifest_path
        current = files.get(path)
        if current is None:
            current = SourceFile(path=path, content=context.templates.render_manifest(context.config))
        state = read_manifest(current)
        if state.data is None:
            return StrategyOutcome.declined("manifest does not parse")

        version = context.catalog.version_for(package)
        updated = dump_manifest(add_dependency(state.data, package, version))
        if not context.commit_if_resolved(files, issue, [current.with_content(updated)]):
            return StrategyOutcome.declined()
        pinned = package in context.catalog.versions
        return StrategyOutcome.fixed(
            f"Added dependency {package}@{version}", 0.95 if pinned else 0.8, file=path
        )


class ManifestFieldStrategy(RepairStrategy):
    """Fill a missing manifest field from the generated manifest."""

    name = "manifest-field"
    categories = (IssueCategory.MANIFEST_INVALID,)
    priority = 100

    def applies_to(self, issue: Issue) -> bool:
        return super().applies_to(issue) and issue.rule == "missing-field"

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        field_name = issue.target or ""
        if source is None or not field_name:
            return StrategyOutcome.declined()
        state = read_manifest(source)
        if state.data is None:
            return StrategyOutcome.declined("manifest does not parse")

        reference = context.templates.build_manifest(context.config)
        data = dict(state.data)
        if field_name.startswith("scripts."):
            script = field_name.split(".", 1)[1]
            command = reference.get("scripts", {}).get(script)
            if not command:
                return StrategyOutcome.declined(f"profile has no '{script}' script")
            scripts = data.get("scripts")
            scripts = dict(scripts) if isinstance(scripts, dict) else {}
            scripts[script] = command
            data["scripts"] = scripts
        elif field_name in reference:
            data[field_name] = reference[field_name]
        else:
            return StrategyOutcome.declined(f"no default for '{field_name}'")

        if not context.commit_if_resolved(files, issue, [source.with_content(dump_manifest(data))]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed(f"Set package.json '{field_name}'", 0.9, file=source.path)


class ManifestRegenerateStrategy(RepairStrategy):
    """Replace an unusable manifest with one generated from the project config."""

    name = "regenerate-manifest"
    categories = (IssueCategory.MANIFEST_INVALID,)
    priority = 80
    method = FixMethod.SYNTHESIZED

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        path = context.profile.manifest_path
        content = context.templates.render_manifest(context.config)
        current = files.get(path)
        if current is not None and current.content == content:
            return StrategyOutcome.declined()
        source = SourceFile(path=path, content=content)
        if not context.commit_if_resolved(files, issue, [source]):
            return StrategyOutcome.declined()
        return StrategyOutcome.fixed("Regenerated package.json from project config", 0.7, file=path)
