"""Shared pytest fixtures for the scaffold repair test suite.

Provides reusable fixtures for:
- Project configurations (plain, typed, with features)
- The default catalog, detector, template registry and pattern library
- A healthy generated project built from the templates
- A small factory for in-memory file sets
- A quiet orchestrator (no console output)
"""

from __future__ import annotations

import json
import textwrap
from typing import Any, Callable

import pytest

from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.config import RepairSettings
from scaffold_repair.detector import IssueDetector
from scaffold_repair.models import ProjectConfig, SourceFile
from scaffold_repair.orchestrator import RepairOrchestrator
from scaffold_repair.patterns import PatternLibrary
from scaffold_repair.strategies import RepairContext
from scaffold_repair.synthesis import TemplateRegistry


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> ProjectConfig:
    """A plain React project with no optional features."""
    return ProjectConfig(
        project_name="bella-bakery",
        business_name="Bella Bakery",
        business_goal="Fresh bread every morning",
    )


@pytest.fixture
def feature_config() -> ProjectConfig:
    """React project with the auth and contact-form features selected."""
    return ProjectConfig(
        project_name="bella-bakery",
        business_name="Bella Bakery",
        features=["auth", "contact-form"],
    )


@pytest.fixture
def typed_config() -> ProjectConfig:
    return ProjectConfig(project_name="typed-shop", business_name="Typed Shop", strict_typing=True)


@pytest.fixture
def quiet_settings() -> RepairSettings:
    return RepairSettings(verbose=False)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog() -> DependencyCatalog:
    return DependencyCatalog()


@pytest.fixture
def detector(catalog: DependencyCatalog) -> IssueDetector:
    return IssueDetector(catalog)


@pytest.fixture
def templates(catalog: DependencyCatalog) -> TemplateRegistry:
    return TemplateRegistry(catalog)


@pytest.fixture
def patterns() -> PatternLibrary:
    return PatternLibrary.default()


@pytest.fixture
def repair_context(
    config: ProjectConfig,
    catalog: DependencyCatalog,
    patterns: PatternLibrary,
    templates: TemplateRegistry,
    detector: IssueDetector,
) -> RepairContext:
    return RepairContext(
        config=config,
        profile=catalog.profile_for(config),
        catalog=catalog,
        patterns=patterns,
        templates=templates,
        detector=detector,
    )


@pytest.fixture
def orchestrator(quiet_settings: RepairSettings) -> RepairOrchestrator:
    return RepairOrchestrator(quiet_settings)


# ---------------------------------------------------------------------------
# File sets
# ---------------------------------------------------------------------------

@pytest.fixture
def make_files() -> Callable[..., list[SourceFile]]:
    """Build ``SourceFile`` objects from ``path -> content`` pairs.

    Content is dedented so tests can write JavaScript inline.
    """

    def _make(mapping: dict[str, str]) -> list[SourceFile]:
        return [
            SourceFile(path=path, content=textwrap.dedent(content).lstrip("\n"))
            for path, content in mapping.items()
        ]

    return _make


@pytest.fixture
def manifest_text() -> Callable[..., str]:
    """Render a package.json; keyword arguments override top-level fields."""

    def _render(**overrides: Any) -> str:
        data: dict[str, Any] = {
            "name": "bella-bakery",
            "version": "1.0.0",
            "private": True,
            "dependencies": {
                "react": "^18.2.0",
                "react-dom": "^18.2.0",
                "react-router-dom": "^6.8.0",
            },
            "devDependencies": {"react-scripts": "^5.0.1"},
            "scripts": {"start": "react-scripts start", "build": "react-scripts build"},
        }
        data.update(overrides)
        return json.dumps(data, indent=2) + "\n"

    return _render


@pytest.fixture
def healthy_files(templates: TemplateRegistry, config: ProjectConfig) -> list[SourceFile]:
    """Every core file of the React profile, rendered from the templates."""
    files = [templates.synthesize(path, config) for path in templates.core_files(config)]
    assert all(f is not None for f in files)
    return files
