"""Static build simulation.

A quick, deterministic stand-in for ``npm run build``: mandatory files must
exist, the manifest must parse and declare the framework and a build
script, and every file must pass the detector's reduced probe (syntax,
JSON, relative references). No process is started.
"""

from __future__ import annotations

from collections.abc import Iterable

from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.detector import IssueDetector, read_manifest
from scaffold_repair.models import BuildReport, FileSet, ProjectConfig, SourceFile
from scaffold_repair.paths import find_script_variant


class BuildSimulator:
    """Runs the static build checks against a file set."""

    def __init__(
        self,
        detector: IssueDetector | None = None,
        catalog: DependencyCatalog | None = None,
    ) -> None:
        self.catalog = catalog or (detector.catalog if detector else DependencyCatalog())
        self.detector = detector or IssueDetector(self.catalog)

    def simulate(self, files: FileSet | Iterable[SourceFile], config: ProjectConfig) -> BuildReport:
        """Check *files* the way a build would.

        Returns:
            A ``BuildReport``; ``success`` is ``True`` only when ``errors`` is
            empty.
        """
        file_set = files if isinstance(files, FileSet) else FileSet(files)
        profile = self.catalog.profile_for(config)
        errors: list[str] = []
        warnings: list[str] = []

        for path in profile.mandatory_files:
            if find_script_variant(path, file_set) is None:
                errors.append(f"Missing required file: {path}")

        manifest = read_manifest(file_set.get(profile.manifest_path))
        if manifest.present and manifest.data is None:
            errors.append(f"{profile.manifest_path}: could not be parsed ({manifest.error})")
        elif manifest.data is not None:
            data = manifest.data
            declared = manifest.declared_packages()
            for package in profile.baseline_dependencies:
                if package not in declared:
                    errors.append(f"{profile.manifest_path}: missing dependency '{package}'")
            scripts = data.get("scripts") if isinstance(data.get("scripts"), dict) else {}
            for script in profile.required_scripts:
                if not scripts.get(script):
                    errors.append(f"{profile.manifest_path}: missing '{script}' script")

        for issue in self.detector.probe(file_set, config):
            (errors if issue.is_error else warnings).append(issue.describe())

        return BuildReport(success=not errors, errors=errors, warnings=warnings)
