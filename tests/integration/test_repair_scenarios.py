"""End-to-end repair scenarios.

These tests run the full orchestrator (prevent, detect, fix, verify) with
the real catalog, templates, detector and strategies against small broken
projects, and check the properties every run must hold: idempotence,
manifest completeness, reference closure, rollback correctness and a
consistent audit trail.
"""

from __future__ import annotations

import json
from collections import Counter

import pytest

from scaffold_repair.catalog import DependencyCatalog
from scaffold_repair.ledger import RollbackLedger
from scaffold_repair.models import (
    FileSet,
    FinalStatus,
    FixMethod,
    IssueCategory,
    ProjectConfig,
    RepairPhase,
)
from scaffold_repair.orchestrator import RepairOrchestrator
from scaffold_repair.paths import resolve_reference
from scaffold_repair.strategies import StrategyRegistry, default_strategies


BROKEN_APP = """
    import React from 'react';

    function App() {
      return <div id=foo>Hi</div>;
    }

    export default App;
"""

HOME_WITH_MISSING = """
    import React from 'react';
    import Missing from './Missing';

    const Home = () => (
      <div>
        <Missing />
      </div>
    );

    export default Home;
"""

ALL_FEATURES = sorted(DependencyCatalog().feature_dependencies)


@pytest.fixture
def broken_project(make_files, manifest_text):
    """Manifest without react-router-dom, a dangling page import, an unquoted attribute."""
    return make_files(
        {
            "package.json": manifest_text(dependencies={"react": "^18.2.0", "react-dom": "^18.2.0"}),
            "src/App.js": BROKEN_APP,
            "src/pages/Home.js": HOME_WITH_MISSING,
        }
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestScenarios:
    @pytest.mark.asyncio
    async def test_three_defects_repaired(self, orchestrator: RepairOrchestrator, broken_project, config):
        result = await orchestrator.repair_project(broken_project, config)

        assert result.final_status == FinalStatus.READY_TO_USE
        manifest = json.loads(result.get_file("package.json").content)
        assert manifest["dependencies"]["react-router-dom"] == "^6.8.0"
        assert result.get_file("src/pages/Missing.js") is not None
        app = result.get_file("src/App.js").content
        assert 'id="foo"' in app
        assert "id=foo" not in app

        by_strategy = {f.strategy_name: f for f in result.applied_fixes}
        assert by_strategy["prevent-dependency"].phase == RepairPhase.PREVENT
        assert by_strategy["syntax-patterns"].phase == RepairPhase.FIX
        assert by_strategy["synthesize-reference"].method == FixMethod.SYNTHESIZED

    @pytest.mark.asyncio
    async def test_unparseable_manifest_regenerated(
        self, orchestrator: RepairOrchestrator, healthy_files, feature_config, make_files
    ):
        files = FileSet(healthy_files)
        files.put(make_files({"package.json": "{ this is not json"})[0])

        result = await orchestrator.repair_project(files, feature_config)

        assert result.ready
        manifest = json.loads(result.get_file("package.json").content)
        assert manifest["name"] == "bella-bakery"
        assert manifest["dependencies"]["react-router-dom"] == "^6.8.0"
        assert manifest["dependencies"]["axios"] == "^1.3.0"
        fixes = [f for f in result.applied_fixes if f.category == IssueCategory.MANIFEST_INVALID]
        assert [f.strategy_name for f in fixes] == ["regenerate-manifest"]
        assert fixes[0].before == "{ this is not json"

    @pytest.mark.asyncio
    async def test_uncovered_category_falls_back_to_stub(self, quiet_settings, healthy_files, config, make_files):
        primaries = [s for s in default_strategies() if IssueCategory.MISSING_REFERENCE not in s.categories]
        orchestrator = RepairOrchestrator(quiet_settings, registry=StrategyRegistry(primaries))
        files = [*healthy_files, *make_files({"src/pages/Home.js": HOME_WITH_MISSING})]

        result = await orchestrator.repair_project(files, config)

        assert result.ready
        fix = next(f for f in result.applied_fixes if f.category == IssueCategory.MISSING_REFERENCE)
        assert fix.method == FixMethod.EMERGENCY
        assert fix.strategy_name == "emergency-stub"
        assert fix.confidence <= 0.3
        assert fix.file == "src/pages/Missing.js"
        assert result.unresolved == []


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestProperties:
    @pytest.mark.asyncio
    async def test_idempotence(self, orchestrator: RepairOrchestrator, broken_project, config):
        first = await orchestrator.repair_project(broken_project, config)
        second = await orchestrator.repair_project(first.files, config)

        assert second.applied_fixes == []
        assert second.file_map() == first.file_map()
        assert second.final_status == first.final_status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("feature", ALL_FEATURES)
    async def test_manifest_completeness(self, orchestrator: RepairOrchestrator, catalog, feature):
        config = ProjectConfig(project_name="complete", features=[feature])

        result = await orchestrator.repair_project([], config)

        declared = json.loads(result.get_file("package.json").content)["dependencies"]
        for package in catalog.feature_dependencies[feature]:
            assert package in declared

    @pytest.mark.asyncio
    async def test_reference_closure(self, orchestrator: RepairOrchestrator, detector, broken_project, config):
        before = [
            issue
            for issue in detector.detect(broken_project, config)
            if issue.category == IssueCategory.MISSING_REFERENCE
        ]
        assert before

        result = await orchestrator.repair_project(broken_project, config)

        existing = set(result.file_map())
        for issue in before:
            assert resolve_reference(issue.file, issue.context["specifier"], existing) is not None

    @pytest.mark.asyncio
    async def test_rollback_correctness(self, orchestrator: RepairOrchestrator, broken_project, config):
        ledger = RollbackLedger()
        original = FileSet(broken_project).contents()

        result = await orchestrator.repair_project(broken_project, config, ledger=ledger)
        assert result.file_map() != original

        restored = ledger.rollback(result.rollback_batch)
        assert {f.path: f.content for f in restored} == original

    @pytest.mark.asyncio
    async def test_monotonic_audit(self, orchestrator: RepairOrchestrator, broken_project, feature_config):
        ledger = RollbackLedger()

        result = await orchestrator.repair_project(broken_project, feature_config, ledger=ledger)

        assert len(result.applied_fixes) == result.prevented_count + result.fixed_count
        fix_ids = Counter(f.id for f in result.applied_fixes)
        assert all(count == 1 for count in fix_ids.values())
        assert Counter(result.rollback_batch.fix_ids) == fix_ids
        assert [f.id for f in ledger.history] == [f.id for f in result.applied_fixes]
