"""Prevention pass: add what every project needs before anything is detected.

Core files of the framework profile, the files of each selected feature,
and the manifest entries the baseline and the features require are added
up front. Each addition is recorded as an ``AppliedFix`` in the
``prevent`` phase so reports can tell prevented problems from fixed ones.
Existing files are never overwritten.
"""

from __future__ import annotations

from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.detector import read_manifest
from scaffold_repair.models import (
    AppliedFix,
    FileSet,
    FixMethod,
    IssueCategory,
    ProjectConfig,
    RepairPhase,
)
from scaffold_repair.paths import find_script_variant
from scaffold_repair.strategies.manifest import add_dependency
from scaffold_repair.synthesis import TemplateRegistry, dump_manifest


class PreventionPass:
    """Guarantees core files, feature files and required dependencies."""

    def __init__(self, templates: TemplateRegistry, catalog: DependencyCatalog) -> None:
        self.templates = templates
        self.catalog = catalog

    def run(self, files: FileSet, config: ProjectConfig) -> list[AppliedFix]:
        """Mutate *files* in place and return one fix per addition."""
        fixes: list[AppliedFix] = []
        fixes.extend(self._ensure_files(files, config, self.templates.core_files(config), "core"))
        fixes.extend(self._ensure_files(files, config, self.templates.feature_files(config), "feature"))
        fixes.extend(self._ensure_dependencies(files, config))
        return fixes

    def _ensure_files(
        self, files: FileSet, config: ProjectConfig, paths: list[str], label: str
    ) -> list[AppliedFix]:
        fixes: list[AppliedFix] = []
        for path in paths:
            if find_script_variant(path, files) is not None:
                continue
            source = self.templates.synthesize(path, config)
            if source is None:
                continue
            files.put(source)
            fixes.append(
                AppliedFix(
                    category=IssueCategory.MISSING_FILE,
                    file=path,
                    description=f"Added {label} file {path}",
                    before=None,
                    after=source.content,
                    strategy_name=f"prevent-{label}-file",
                    confidence=0.95,
                    method=FixMethod.SYNTHESIZED,
                    phase=RepairPhase.PREVENT,
                )
            )
        return fixes

    def _ensure_dependencies(self, files: FileSet, config: ProjectConfig) -> list[AppliedFix]:
        """Add each missing required package; an unparseable manifest is left alone."""
        path = self.catalog.profile_for(config).manifest_path
        fixes: list[AppliedFix] = []
        for package, version in self.catalog.required_dependencies(config).items():
            source = files.get(path)
            state = read_manifest(source)
            if source is None or state.data is None or package in state.declared_packages():
                continue
            updated = source.with_content(dump_manifest(add_dependency(state.data, package, version)))
            files.put(updated)
            fixes.append(
                AppliedFix(
                    category=IssueCategory.MISSING_DEPENDENCY,
                    file=path,
                    description=f"Added required dependency {package}@{version}",
                    before=source.content,
                    after=updated.content,
                    strategy_name="prevent-dependency",
                    confidence=0.95,
                    method=FixMethod.DETERMINISTIC,
                    phase=RepairPhase.PREVENT,
                )
            )
        return fixes
