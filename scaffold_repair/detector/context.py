"""Shared scan state and text helpers for the detector rules.

A ``ScanContext`` is built once per detection pass. It carries the file set,
the project configuration, the resolved framework profile and the parsed
manifest so individual rules never re-parse ``package.json``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from scaffold_repair.catalog import DependencyCatalog, FrameworkProfile
from scaffold_repair.models import FileSet, ProjectConfig, SourceFile


# ---------------------------------------------------------------------------
# Manifest parsing
# ---------------------------------------------------------------------------

DEPENDENCY_SECTIONS: tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


@dataclass
class ManifestState:
    """Outcome of parsing the project manifest."""

    present: bool = False
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    line: Optional[int] = None

    @property
    def valid(self) -> bool:
        return self.data is not None

    def declared_packages(self) -> set[str]:
        """Every package named in any dependency section."""
        if self.data is None:
            return set()
        declared: set[str] = set()
        for section in DEPENDENCY_SECTIONS:
            entries = self.data.get(section)
            if isinstance(entries, dict):
                declared.update(entries)
        return declared


def read_manifest(source: SourceFile | None) -> ManifestState:
    """Parse *source* as a manifest without raising."""
    if source is None:
        return ManifestState()
    try:
        data = json.loads(source.content)
    except json.JSONDecodeError as exc:
        return ManifestState(present=True, error=exc.msg, line=exc.lineno)
    if not isinstance(data, dict):
        return ManifestState(present=True, error="top-level value is not an object")
    return ManifestState(present=True, data=data)


# ---------------------------------------------------------------------------
# Scan context
# ---------------------------------------------------------------------------

@dataclass
class ScanContext:
    """Read-only inputs shared by every rule in one detection pass."""

    files: FileSet
    config: ProjectConfig
    profile: FrameworkProfile
    catalog: DependencyCatalog
    manifest: ManifestState = field(default_factory=ManifestState)

    @classmethod
    def build(
        cls, files: FileSet, config: ProjectConfig, catalog: DependencyCatalog
    ) -> "ScanContext":
        profile = catalog.profile_for(config)
        return cls(
            files=files,
            config=config,
            profile=profile,
            catalog=catalog,
            manifest=read_manifest(files.get(profile.manifest_path)),
        )


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_SCRIPT_COMMENT_RE = re.compile(
    r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`"
    r"|(?P<comment>//[^\n]*|/\*[\s\S]*?\*/)"
)
_BLOCK_COMMENT_RE = re.compile(r"(?P<comment>/\*[\s\S]*?\*/)")
_HTML_COMMENT_RE = re.compile(r"(?P<comment><!--[\s\S]*?-->)")


def _blank(m: re.Match[str]) -> str:
    if m.group("comment") is None:
        return m.group(0)
    return re.sub(r"[^\n]", " ", m.group("comment"))


def blank_comments(text: str, syntax: str = "script") -> str:
    """Replace comments with spaces, keeping offsets and line numbers intact.

    ``syntax`` is ``"script"`` (``//`` and ``/* */``, string-aware),
    ``"style"`` (``/* */`` only) or ``"html"`` (``<!-- -->``).
    """
    if syntax == "style":
        return _BLOCK_COMMENT_RE.sub(_blank, text)
    if syntax == "html":
        return _HTML_COMMENT_RE.sub(_blank, text)
    return _SCRIPT_COMMENT_RE.sub(_blank, text)


def line_of(text: str, offset: int) -> int:
    """1-based line number of *offset* in *text*."""
    return text.count("\n", 0, offset) + 1


_JSX_HINT_RE = re.compile(r"</[A-Za-z][\w.:-]*\s*>|<>|</>|(?<![\w$)\].])<[A-Za-z][\w.:-]*[^<>]*?/>")


def contains_jsx(text: str) -> bool:
    """True when *text* holds at least one closing or self-closing JSX tag."""
    return _JSX_HINT_RE.search(text) is not None
