"""Pydantic v2 models for the scaffold repair pipeline.

Defines the in-memory project file set, the immutable project configuration
supplied by the content generator, the detector's issue taxonomy, the
append-only fix audit records, rollback batches, and the aggregated result
returned from a repair run.
"""

from __future__ import annotations

import posixpath
import uuid
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from scaffold_repair.paths import (
    HTML_EXTENSIONS,
    SCRIPT_EXTENSIONS,
    STYLE_EXTENSIONS,
    extension,
    normalize_path,
)
from scaffold_repair.utils import sanitize_name


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FileCategory(str, Enum):
    """Broad kind of a source file, used to pick detector rules and patterns."""
    MARKUP = "markup"
    STYLE = "style"
    MANIFEST = "manifest"
    MODULE = "module"
    DOCUMENT = "document"

    @classmethod
    def from_path(cls, path: str) -> "FileCategory":
        """Classify *path* by file name and extension."""
        if posixpath.basename(path).lower() == "package.json":
            return cls.MANIFEST
        ext = extension(path)
        if ext in HTML_EXTENSIONS or ext in (".jsx", ".tsx"):
            return cls.MARKUP
        if ext in STYLE_EXTENSIONS:
            return cls.STYLE
        if ext in SCRIPT_EXTENSIONS:
            return cls.MODULE
        return cls.DOCUMENT


class IssueCategory(str, Enum):
    """Fixed defect taxonomy. Strategies are registered per category."""
    SYNTAX = "syntax"
    MISSING_DEPENDENCY = "missing-dependency"
    MISSING_REFERENCE = "missing-reference"
    MISSING_FILE = "missing-file"
    MANIFEST_INVALID = "manifest-invalid"
    STRUCTURAL = "structural"
    RUNTIME_SAFETY = "runtime-safety"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class FixMethod(str, Enum):
    """How an applied fix was produced."""
    DETERMINISTIC = "deterministic"
    SYNTHESIZED = "synthesized"
    AI_ASSISTED = "ai-assisted"
    EMERGENCY = "emergency"


class RepairPhase(str, Enum):
    """Phase in which a fix was applied. Used to split prevented vs fixed counts."""
    PREVENT = "prevent"
    FIX = "fix"


class FinalStatus(str, Enum):
    READY_TO_USE = "READY_TO_USE"
    NEEDS_ATTENTION = "NEEDS_ATTENTION"


# ---------------------------------------------------------------------------
# Source files
# ---------------------------------------------------------------------------

class SourceFile(BaseModel):
    """A single generated file held in memory."""

    path: str = Field(..., description="Normalised project-relative POSIX path")
    content: str = Field(default="", description="Full text content")
    category: FileCategory = Field(..., description="Inferred from the path when omitted")

    @model_validator(mode="before")
    @classmethod
    def _infer_category(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("category") and data.get("path"):
            data = {**data, "category": FileCategory.from_path(str(data["path"]))}
        return data

    @field_validator("path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        normalised = normalize_path(value)
        if not normalised:
            raise ValueError("SourceFile.path must not be empty")
        return normalised

    def with_content(self, content: str) -> "SourceFile":
        """Return a copy of this file carrying *content*."""
        return self.model_copy(update={"content": content})


class FileSet:
    """Ordered, mutable path -> ``SourceFile`` mapping for one repair run.

    The set copies every file on the way in so that strategies can mutate it
    freely without touching the caller's objects. Duplicate paths keep the
    last occurrence.
    """

    def __init__(self, files: Iterable[SourceFile] = ()) -> None:
        self._files: dict[str, SourceFile] = {}
        for source in files:
            self._files[source.path] = source.model_copy(deep=True)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(list(self._files.values()))

    def get(self, path: str) -> SourceFile | None:
        return self._files.get(normalize_path(path))

    def put(self, source: SourceFile) -> None:
        """Insert or replace a file."""
        self._files[source.path] = source

    def remove(self, path: str) -> SourceFile | None:
        return self._files.pop(normalize_path(path), None)

    def paths(self) -> list[str]:
        return list(self._files)

    def files(self) -> list[SourceFile]:
        return list(self._files.values())

    def snapshot(self) -> list[SourceFile]:
        """Deep copies of every file, in insertion order."""
        return [source.model_copy(deep=True) for source in self._files.values()]

    def copy(self) -> "FileSet":
        return FileSet(self._files.values())

    def reset(self, files: Iterable[SourceFile]) -> None:
        """Replace the whole content of the set with copies of *files*."""
        self._files = {source.path: source.model_copy(deep=True) for source in files}

    def contents(self) -> dict[str, str]:
        return {path: source.content for path, source in self._files.items()}

    def changed_paths(self, before: dict[str, str]) -> list[str]:
        """Paths whose content differs from *before*, plus added and removed paths."""
        current = self.contents()
        changed = [p for p, text in current.items() if before.get(p) != text]
        changed.extend(p for p in before if p not in current)
        return changed


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------

class ProjectConfig(BaseModel):
    """Immutable description of the project being repaired.

    Produced upstream by the business-analysis layer; the pipeline only
    reads it (names for templates, features for the dependency table, the
    framework profile, and the typing flag).
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(default="my-app")
    business_name: str = Field(default="")
    business_goal: str = Field(default="")
    features: tuple[str, ...] = Field(default=(), description="Selected feature slugs")
    framework: str = Field(default="react", description="Framework profile identifier")
    strict_typing: bool = Field(default=False, description="Emit TypeScript sources")

    @field_validator("features", mode="before")
    @classmethod
    def _normalise_features(cls, value: Any) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [value]
        seen: list[str] = []
        for item in value or ():
            slug = sanitize_name(str(item))
            if slug and slug not in seen:
                seen.append(slug)
        return tuple(seen)

    @property
    def slug(self) -> str:
        """Package-name form of the project name."""
        return sanitize_name(self.project_name) or "app"

    @property
    def display_name(self) -> str:
        return self.business_name or self.project_name


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------

class Issue(BaseModel):
    """A detected, categorised defect in a file set."""

    category: IssueCategory
    file: str = Field(..., description="Project-relative path the issue belongs to")
    message: str
    severity: Severity = Field(default=Severity.ERROR)
    auto_fixable: bool = Field(default=True)
    rule: str = Field(default="", description="Detector rule that produced the issue")
    target: Optional[str] = Field(
        default=None, description="Missing path, package, or manifest field the issue is about"
    )
    line: Optional[int] = Field(default=None)
    context: dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str, str]:
        """Identity used to decide whether a re-scan still reports this issue."""
        return (self.category.value, self.file, self.rule, self.target or "")

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def describe(self) -> str:
        location = f"{self.file}:{self.line}" if self.line else self.file
        return f"{location}: {self.message}"


# ---------------------------------------------------------------------------
# Audit and rollback
# ---------------------------------------------------------------------------

def new_fix_id() -> str:
    return f"fix_{uuid.uuid4().hex}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AppliedFix(BaseModel):
    """Append-only audit record for one successful strategy application."""

    id: str = Field(default_factory=new_fix_id)
    category: IssueCategory
    file: str
    description: str
    before: Optional[str] = Field(default=None, description="File content before the fix")
    after: Optional[str] = Field(default=None, description="File content after the fix")
    strategy_name: str
    confidence: float = Field(..., ge=0.0, le=1.0, description="Descriptive only")
    method: FixMethod
    phase: RepairPhase = Field(default=RepairPhase.FIX)
    timestamp: str = Field(default_factory=_now)


class RollbackBatch(BaseModel):
    """Atomic undo unit: a full pre-batch snapshot plus the fixes made after it."""

    id: str = Field(default_factory=lambda: f"batch_{uuid.uuid4().hex[:12]}")
    original_files: list[SourceFile] = Field(default_factory=list)
    fix_ids: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=_now)


# ---------------------------------------------------------------------------
# Build simulation and pipeline result
# ---------------------------------------------------------------------------

class BuildReport(BaseModel):
    """Outcome of a static build simulation."""

    success: bool = Field(default=True)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Everything a repair run hands back to its caller."""

    files: list[SourceFile] = Field(default_factory=list)
    applied_fixes: list[AppliedFix] = Field(default_factory=list)
    unresolved: list[Issue] = Field(default_factory=list)
    build: BuildReport = Field(default_factory=BuildReport)
    final_status: FinalStatus = Field(default=FinalStatus.NEEDS_ATTENTION)
    warnings: list[str] = Field(default_factory=list, description="Pipeline-level notices")
    rollback_batch: Optional[RollbackBatch] = Field(default=None)
    duration_seconds: float = Field(default=0.0, ge=0.0)
    timestamp: str = Field(default_factory=_now)

    @computed_field  # type: ignore[misc]
    @property
    def prevented_count(self) -> int:
        return sum(1 for fix in self.applied_fixes if fix.phase == RepairPhase.PREVENT)

    @computed_field  # type: ignore[misc]
    @property
    def fixed_count(self) -> int:
        return sum(1 for fix in self.applied_fixes if fix.phase == RepairPhase.FIX)

    @computed_field  # type: ignore[misc]
    @property
    def ready(self) -> bool:
        return self.final_status == FinalStatus.READY_TO_USE

    @computed_field  # type: ignore[misc]
    @property
    def average_confidence(self) -> float:
        """Mean confidence over all fixes (1.0 when nothing was changed)."""
        if not self.applied_fixes:
            return 1.0
        return round(sum(f.confidence for f in self.applied_fixes) / len(self.applied_fixes), 3)

    @computed_field  # type: ignore[misc]
    @property
    def remaining_errors(self) -> list[str]:
        """Manual-attention items: unresolved errors plus simulated build errors."""
        items = [issue.describe() for issue in self.unresolved if issue.is_error]
        items.extend(err for err in self.build.errors if err not in items)
        return items

    # -- Accessors -----------------------------------------------------------

    def get_file(self, path: str) -> SourceFile | None:
        wanted = normalize_path(path)
        return next((f for f in self.files if f.path == wanted), None)

    def file_map(self) -> dict[str, str]:
        return {f.path: f.content for f in self.files}

    # -- Serialisation helpers -----------------------------------------------

    def save(self, path: Path) -> None:
        """Persist the result to JSON, creating parent directories as needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "PipelineResult":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    # -- Summary helpers -----------------------------------------------------

    def summary_dict(self) -> dict[str, Any]:
        """Return a condensed summary suitable for logs and reports."""
        by_method: dict[str, int] = {}
        for fix in self.applied_fixes:
            by_method[fix.method.value] = by_method.get(fix.method.value, 0) + 1
        return {
            "final_status": self.final_status.value,
            "files": len(self.files),
            "prevented": self.prevented_count,
            "fixed": self.fixed_count,
            "fixes_by_method": by_method,
            "unresolved": len(self.unresolved),
            "build_errors": len(self.build.errors),
            "build_warnings": len(self.build.warnings),
            "average_confidence": self.average_confidence,
        }

    def summary_text(self) -> str:
        """Human-readable multi-line summary."""
        lines: list[str] = []
        lines.append(f"Repair Result  [{self.final_status.value}]  {self.timestamp}")
        lines.append("-" * 60)
        lines.append(
            f"  {'Fixes':12s}  {self.prevented_count} prevented, {self.fixed_count} fixed  "
            f"(avg confidence {self.average_confidence:.2f})"
        )
        build_mark = "ok" if self.build.success else "FAIL"
        lines.append(
            f"  {'Build':12s}  {len(self.build.errors)} errors, "
            f"{len(self.build.warnings)} warnings  [{build_mark}]"
        )
        for item in self.remaining_errors:
            lines.append(f"  ! {item}")
        lines.append("-" * 60)
        return "\n".join(lines)
