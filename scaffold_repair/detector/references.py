"""Module reference rules.

Collects every specifier a script or stylesheet refers to and checks it:

* relative specifiers must resolve to a file in the set (literal path, then
  the extension and ``index.*`` candidates in ``paths.RESOLUTION_SUFFIXES``);
* bare package specifiers must be declared in the manifest.

Static assets (images, fonts, media) are not checked.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from scaffold_repair.models import Issue, IssueCategory
from scaffold_repair.paths import (
    ASSET_EXTENSIONS,
    STYLE_EXTENSIONS,
    extension,
    is_relative_specifier,
    package_root,
    resolve_reference,
    resolve_specifier,
)

from .context import ScanContext, line_of


# ---------------------------------------------------------------------------
# Specifier extraction
# ---------------------------------------------------------------------------

_SCRIPT_REFERENCE_RES: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "import",
        re.compile(
            r"""\b(?:import|export)\s+(?:type\s+)?[\w*{}\s,$]+?\s+from\s+(['"])([^'"\n]+)\1"""
        ),
    ),
    ("side-effect", re.compile(r"""^[ \t]*import\s+(['"])([^'"\n]+)\1""", re.MULTILINE)),
    ("require", re.compile(r"""\brequire\(\s*(['"])([^'"\n]+)\1\s*\)""")),
    ("dynamic", re.compile(r"""\bimport\(\s*(['"])([^'"\n]+)\1\s*\)""")),
)

_STYLE_IMPORT_RE = re.compile(r"""@import\s+(?:url\(\s*)?(['"])([^'"\n]+)\1""")

NODE_BUILTINS: frozenset[str] = frozenset(
    {
        "assert", "buffer", "child_process", "crypto", "events", "fs", "http",
        "https", "os", "path", "process", "querystring", "stream", "url",
        "util", "zlib",
    }
)


@dataclass(frozen=True)
class Reference:
    specifier: str
    offset: int
    kind: str


def iter_references(path: str, text: str) -> Iterator[Reference]:
    """Yield each distinct specifier in *text* once, in source order."""
    found: list[Reference] = []
    if extension(path) in STYLE_EXTENSIONS:
        for m in _STYLE_IMPORT_RE.finditer(text):
            found.append(Reference(_style_specifier(m.group(2)), m.start(), "css-import"))
    else:
        for kind, regex in _SCRIPT_REFERENCE_RES:
            for m in regex.finditer(text):
                found.append(Reference(m.group(2).strip(), m.start(), kind))

    seen: set[str] = set()
    for ref in sorted(found, key=lambda r: r.offset):
        if ref.specifier and ref.specifier not in seen:
            seen.add(ref.specifier)
            yield ref


def _style_specifier(raw: str) -> str:
    """CSS ``@import "base.css"`` is relative even without ``./``."""
    raw = raw.strip()
    if ":" in raw or raw.startswith(("/", "~", ".")):
        return raw
    return "./" + raw


def is_checkable_package(specifier: str) -> bool:
    """Bare specifiers that name an installable package."""
    if not specifier or is_relative_specifier(specifier):
        return False
    if specifier.startswith(("@/", "~", "/", "#")) or ":" in specifier:
        return False
    return package_root(specifier) not in NODE_BUILTINS


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def scan_references(path: str, text: str, ctx: ScanContext, packages: bool = True) -> list[Issue]:
    """Unresolved relative references and, when *packages*, undeclared packages.

    Package checks need a parseable manifest; without one they are skipped
    and the manifest rules report the underlying problem instead.
    """
    issues: list[Issue] = []
    check_packages = packages and ctx.manifest.valid and extension(path) not in STYLE_EXTENSIONS
    declared = ctx.manifest.declared_packages() if check_packages else set()
    reported_packages: set[str] = set()

    for ref in iter_references(path, text):
        spec = ref.specifier
        if is_relative_specifier(spec):
            if extension(spec) in ASSET_EXTENSIONS:
                continue
            if resolve_reference(path, spec, ctx.files) is not None:
                continue
            issues.append(
                Issue(
                    category=IssueCategory.MISSING_REFERENCE,
                    file=path,
                    rule="unresolved-import",
                    message=f"Missing imported file: {spec}",
                    target=resolve_specifier(path, spec),
                    line=line_of(text, ref.offset),
                    context={"specifier": spec, "kind": ref.kind},
                )
            )
        elif check_packages and is_checkable_package(spec):
            root = package_root(spec)
            if root in declared or root in reported_packages:
                continue
            reported_packages.add(root)
            issues.append(
                Issue(
                    category=IssueCategory.MISSING_DEPENDENCY,
                    file=path,
                    rule="undeclared-package",
                    message=f"Imported package '{root}' is not declared in package.json",
                    target=root,
                    line=line_of(text, ref.offset),
                    context={"specifier": spec},
                )
            )
    return issues
