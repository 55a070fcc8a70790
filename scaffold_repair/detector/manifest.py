"""Manifest and JSON document rules.

The manifest is checked in three layers: it must parse, its root must be an
object, and it must carry the fields and dependencies the framework profile
and the selected features require. Each missing field and each missing
package is its own issue so strategies can fix them one at a time.
"""

from __future__ import annotations

import json

from scaffold_repair.models import Issue, IssueCategory, Severity, SourceFile

from .context import ScanContext


def scan_manifest(ctx: ScanContext) -> list[Issue]:
    path = ctx.profile.manifest_path
    state = ctx.manifest
    if not state.present:
        # Absence is reported by the structure rules as a missing core file.
        return []
    if state.data is None:
        rule = "not-an-object" if state.line is None else "invalid-json"
        return [
            Issue(
                category=IssueCategory.MANIFEST_INVALID,
                file=path,
                rule=rule,
                message=f"package.json could not be parsed: {state.error}",
                line=state.line,
            )
        ]

    data = state.data
    issues: list[Issue] = []

    if not isinstance(data.get("name"), str) or not data["name"].strip():
        issues.append(_missing_field(path, "name"))
    if not isinstance(data.get("dependencies"), dict):
        issues.append(_missing_field(path, "dependencies"))

    scripts = data.get("scripts") if isinstance(data.get("scripts"), dict) else {}
    for script in ctx.profile.required_scripts:
        if not scripts.get(script):
            issues.append(_missing_field(path, f"scripts.{script}"))
    for script in ctx.profile.recommended_scripts:
        if not scripts.get(script):
            issues.append(_missing_field(path, f"scripts.{script}", severity=Severity.WARNING))

    declared = state.declared_packages()
    for package in ctx.catalog.required_dependencies(ctx.config):
        if package not in declared:
            issues.append(
                Issue(
                    category=IssueCategory.MISSING_DEPENDENCY,
                    file=path,
                    rule="required-dependency",
                    message=f"Missing required dependency: {package}",
                    target=package,
                )
            )
    return issues


def _missing_field(path: str, field_name: str, severity: Severity = Severity.ERROR) -> Issue:
    return Issue(
        category=IssueCategory.MANIFEST_INVALID,
        file=path,
        rule="missing-field",
        message=f"package.json is missing '{field_name}'",
        severity=severity,
        target=field_name,
    )


def scan_json_document(source: SourceFile) -> list[Issue]:
    """A non-manifest ``.json`` file must parse."""
    try:
        json.loads(source.content)
    except json.JSONDecodeError as exc:
        return [
            Issue(
                category=IssueCategory.SYNTAX,
                file=source.path,
                rule="invalid-json",
                message=f"Invalid JSON: {exc.msg}",
                line=exc.lineno,
            )
        ]
    return []
