"""Unit tests for repair strategies and the StrategyRegistry.

Tests cover:
- Each primary strategy: success path, confidence, declines
- Emergency fallbacks and the default chains
- Registry ordering, chain_for, coverage gaps, strict mode
- AssistedRepairStrategy with a mocked client (success, failure, timeout)
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from scaffold_repair.assist_client import AssistResponse
from scaffold_repair.errors import StrategyRegistryError
from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory
from scaffold_repair.strategies import (
    AssistedRepairStrategy,
    BraceBalanceStrategy,
    DefaultExportStrategy,
    DependencyInstallStrategy,
    EmptyFileSynthesisStrategy,
    ErrorBoundaryStrategy,
    JsxImportMarkerStrategy,
    LatestDependencyStrategy,
    LoosePatternStrategy,
    ManifestFieldStrategy,
    ManifestRegenerateStrategy,
    MinimalManifestStrategy,
    MinimalRegenerationStrategy,
    MissingFileSynthesisStrategy,
    PatternRepairStrategy,
    ReferenceRetargetStrategy,
    ReferenceSynthesisStrategy,
    StrategyRegistry,
    StubFileStrategy,
    default_emergency_chains,
    default_strategies,
)
from scaffold_repair.strategies.assisted import REPAIR_SYSTEM_PROMPT, strip_code_fences


def _project(healthy_files, extra) -> FileSet:
    return FileSet([*healthy_files, *extra])


def _find(repair_context, files: FileSet, rule: str, path: str | None = None) -> Issue:
    """First issue with *rule* (optionally in *path*) from a fresh scan."""
    for issue in repair_context.detector.detect(files, repair_context.config):
        if issue.rule == rule and (path is None or issue.file == path):
            return issue
    raise AssertionError(f"no {rule} issue found")


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

    const Home = () => <div><Missing /></div>;

    export default Home;
"""


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------


class TestPatternRepairStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fixes_unquoted_attribute(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/App.js": BROKEN_APP}))
        issue = _find(repair_context, files, "unquoted-attribute")

        outcome = await PatternRepairStrategy(IssueCategory.SYNTAX).attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.9
        assert outcome.file == "src/App.js"
        assert outcome.description == "Applied quote-attribute-values"
        assert '<div id="foo">Hi</div>' in files.get("src/App.js").content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_without_touching_files(self, repair_context, healthy_files, make_files):
        content = "import React from 'react';\n\nconst X = () => <div><span>Hi</div>;\n\nexport default X;\n"
        files = _project(healthy_files, make_files({"src/components/X.js": content}))
        issue = _find(repair_context, files, "unbalanced-tags")
        before = files.contents()

        outcome = await PatternRepairStrategy(IssueCategory.SYNTAX).attempt_fix(files, issue, repair_context)

        assert not outcome.success
        assert files.contents() == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_for_unknown_file(self, repair_context):
        issue = Issue(category=IssueCategory.SYNTAX, file="src/gone.js", message="bad")
        outcome = await PatternRepairStrategy(IssueCategory.SYNTAX).attempt_fix(FileSet(), issue, repair_context)
        assert outcome.description == "file not in set"

    @pytest.mark.unit
    def test_name_follows_category(self):
        assert PatternRepairStrategy(IssueCategory.MANIFEST_INVALID).name == "manifest-invalid-patterns"


class TestJsxImportMarkerStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inserts_import(self, repair_context, healthy_files, make_files):
        files = _project(
            healthy_files,
            make_files({"src/components/Nav.js": "const Nav = () => <nav>Menu</nav>;\n\nexport default Nav;\n"}),
        )
        issue = _find(repair_context, files, "jsx-import-marker")

        outcome = await JsxImportMarkerStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.95
        assert files.get("src/components/Nav.js").content.startswith("import React from 'react';\nconst Nav")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keeps_directive_first(self, repair_context, healthy_files, make_files):
        content = "'use client';\nconst Nav = () => <nav>Menu</nav>;\n\nexport default Nav;\n"
        files = _project(healthy_files, make_files({"src/components/Nav.js": content}))
        issue = _find(repair_context, files, "jsx-import-marker")

        await JsxImportMarkerStrategy().attempt_fix(files, issue, repair_context)

        assert files.get("src/components/Nav.js").content.startswith(
            "'use client';\nimport React from 'react';\n"
        )

    @pytest.mark.unit
    def test_only_applies_to_its_rule(self):
        strategy = JsxImportMarkerStrategy()
        other = Issue(category=IssueCategory.SYNTAX, file="a.js", message="m", rule="unbalanced-tags")
        assert not strategy.applies_to(other)


class TestBraceBalanceStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_closes_open_block(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/index.css": ".a {\n  color: red;\n"}))
        issue = _find(repair_context, files, "unbalanced-braces")

        outcome = await BraceBalanceStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.6
        assert outcome.description == "Balanced braces: closed 1 block(s)"
        assert files.get("src/index.css").content == ".a {\n  color: red;\n}\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_drops_stray_brace(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/index.css": ".a { color: red; }\n}\n"}))
        issue = _find(repair_context, files, "unbalanced-braces")

        outcome = await BraceBalanceStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.description == "Balanced braces: removed 1 stray '}'"
        assert files.get("src/index.css").content == ".a { color: red; }\n\n"


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class TestDependencyInstallStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_adds_pinned_version(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/api.js": "import axios from 'axios';\n\nexport default axios;\n"}))
        issue = _find(repair_context, files, "undeclared-package")

        outcome = await DependencyInstallStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.95
        assert outcome.file == "package.json"
        deps = json.loads(files.get("package.json").content)["dependencies"]
        assert deps["axios"] == "^1.3.0"
        assert list(deps) == sorted(deps)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_package_uses_fallback(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/pad.js": "import pad from 'left-pad';\n\nexport default pad;\n"}))
        issue = _find(repair_context, files, "undeclared-package")

        outcome = await DependencyInstallStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.8
        assert outcome.description == "Added dependency left-pad@latest"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_on_unparseable_manifest(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"package.json": "{bad"}))
        issue = Issue(
            category=IssueCategory.MISSING_DEPENDENCY,
            file="package.json",
            rule="required-dependency",
            message="Missing required dependency: axios",
            target="axios",
        )
        outcome = await DependencyInstallStrategy().attempt_fix(files, issue, repair_context)
        assert not outcome.success
        assert files.get("package.json").content == "{bad"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_missing_manifest(self, repair_context, healthy_files):
        files = FileSet(f for f in healthy_files if f.path != "package.json")
        issue = Issue(
            category=IssueCategory.MISSING_DEPENDENCY,
            file="package.json",
            rule="required-dependency",
            message="Missing required dependency: axios",
            target="axios",
        )
        outcome = await DependencyInstallStrategy().attempt_fix(files, issue, repair_context)
        assert outcome.success
        assert "axios" in json.loads(files.get("package.json").content)["dependencies"]


class TestManifestFieldStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restores_build_script(self, repair_context, healthy_files, make_files, manifest_text):
        text = manifest_text(scripts={"start": "react-scripts start"})
        files = _project(healthy_files, make_files({"package.json": text}))
        issue = _find(repair_context, files, "missing-field")

        outcome = await ManifestFieldStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.9
        scripts = json.loads(files.get("package.json").content)["scripts"]
        assert scripts == {"start": "react-scripts start", "build": "react-scripts build"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restores_name(self, repair_context, healthy_files, make_files, manifest_text):
        files = _project(healthy_files, make_files({"package.json": manifest_text(name=None)}))
        issue = _find(repair_context, files, "missing-field")

        await ManifestFieldStrategy().attempt_fix(files, issue, repair_context)

        assert json.loads(files.get("package.json").content)["name"] == "bella-bakery"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_unknown_field(self, repair_context, healthy_files):
        files = FileSet(healthy_files)
        issue = Issue(
            category=IssueCategory.MANIFEST_INVALID,
            file="package.json",
            rule="missing-field",
            message="package.json is missing 'homepage'",
            target="homepage",
        )
        outcome = await ManifestFieldStrategy().attempt_fix(files, issue, repair_context)
        assert outcome.description == "no default for 'homepage'"


class TestManifestRegenerateStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_regenerates(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"package.json": "{ this is not json"}))
        issue = _find(repair_context, files, "invalid-json")

        strategy = ManifestRegenerateStrategy()
        outcome = await strategy.attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.7
        assert strategy.method == FixMethod.SYNTHESIZED
        manifest = json.loads(files.get("package.json").content)
        assert manifest["dependencies"]["react-router-dom"] == "^6.8.0"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_when_already_generated(self, repair_context, healthy_files):
        files = FileSet(healthy_files)
        issue = Issue(category=IssueCategory.MANIFEST_INVALID, file="package.json", message="m", rule="invalid-json")
        outcome = await ManifestRegenerateStrategy().attempt_fix(files, issue, repair_context)
        assert not outcome.success


# ---------------------------------------------------------------------------
# References and files
# ---------------------------------------------------------------------------


class TestReferenceRetargetStrategy:
    APP = """
        import React from 'react';
        import Header from './Header';

        function App() {
          return <Header />;
        }

        export default App;
    """
    HEADER = "import React from 'react';\n\nconst Header = () => <header>Hi</header>;\n\nexport default Header;\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retargets_unique_match(self, repair_context, healthy_files, make_files):
        files = _project(
            healthy_files,
            make_files({"src/App.js": self.APP, "src/components/Header.js": self.HEADER}),
        )
        issue = _find(repair_context, files, "unresolved-import")

        outcome = await ReferenceRetargetStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.85
        assert "import Header from './components/Header';" in files.get("src/App.js").content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_on_ambiguous_match(self, repair_context, healthy_files, make_files):
        files = _project(
            healthy_files,
            make_files(
                {
                    "src/App.js": self.APP,
                    "src/components/Header.js": self.HEADER,
                    "src/layout/Header.js": self.HEADER,
                }
            ),
        )
        issue = _find(repair_context, files, "unresolved-import")

        outcome = await ReferenceRetargetStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.description == "2 candidate files named Header"


class TestReferenceSynthesisStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_target(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/pages/Home.js": HOME_WITH_MISSING}))
        issue = _find(repair_context, files, "unresolved-import")

        outcome = await ReferenceSynthesisStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.file == "src/pages/Missing.js"
        assert outcome.confidence == 0.9
        assert "export default Missing;" in files.get("src/pages/Missing.js").content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_when_target_exists(self, repair_context, healthy_files):
        issue = Issue(
            category=IssueCategory.MISSING_REFERENCE,
            file="src/index.js",
            message="Missing imported file: ./App",
            rule="unresolved-import",
            target="src/App",
            context={"specifier": "./App", "kind": "import"},
        )
        outcome = await ReferenceSynthesisStrategy().attempt_fix(FileSet(healthy_files), issue, repair_context)
        assert outcome.description == "src/App.js already exists"


class TestMissingFileSynthesisStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_synthesizes_core_file(self, repair_context, healthy_files):
        files = FileSet(f for f in healthy_files if f.path != "src/App.js")
        issue = _find(repair_context, files, "missing-core-file")

        outcome = await MissingFileSynthesisStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.95
        assert "src/App.js" in files


# ---------------------------------------------------------------------------
# Structural and runtime safety
# ---------------------------------------------------------------------------


class TestDefaultExportStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exports_matching_component(self, repair_context, healthy_files, make_files):
        content = "import React from 'react';\n\nconst Card = () => <div>Card</div>;\n"
        files = _project(healthy_files, make_files({"src/components/Card.js": content}))
        issue = _find(repair_context, files, "missing-export")

        outcome = await DefaultExportStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.85
        assert files.get("src/components/Card.js").content.endswith("\n\nexport default Card;\n")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_to_last_definition(self, repair_context, healthy_files, make_files):
        content = "import React from 'react';\n\nconst List = () => <ul>x</ul>;\n"
        files = _project(healthy_files, make_files({"src/components/card-list.js": content}))
        issue = _find(repair_context, files, "missing-export")

        outcome = await DefaultExportStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.6
        assert outcome.description == "Exported List as default"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_without_definition(self, repair_context, healthy_files, make_files):
        content = "import React from 'react';\n\nwindow.view = () => <div>x</div>;\n"
        files = _project(healthy_files, make_files({"src/components/Anon.js": content}))
        issue = _find(repair_context, files, "missing-export")

        outcome = await DefaultExportStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.description == "no component definition found"


class TestEmptyFileSynthesisStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fills_component(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/components/Empty.js": ""}))
        issue = _find(repair_context, files, "empty-file")

        strategy = EmptyFileSynthesisStrategy()
        outcome = await strategy.attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.8
        assert strategy.method == FixMethod.SYNTHESIZED
        assert "export default Empty;" in files.get("src/components/Empty.js").content


class TestErrorBoundaryStrategy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_wraps_root(self, repair_context, healthy_files):
        files = FileSet(healthy_files)
        issue = _find(repair_context, files, "missing-error-boundary")

        outcome = await ErrorBoundaryStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.8
        assert "src/components/ErrorBoundary.js" in files
        entry = files.get("src/index.js").content
        assert "<ErrorBoundary><App /></ErrorBoundary>" in entry
        assert "import ErrorBoundary from './components/ErrorBoundary';" in entry
        assert repair_context.detector.detect_critical(files, repair_context.config) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_declines_without_app_element(self, repair_context, healthy_files, make_files):
        entry = "import React from 'react';\nimport { render } from 'react-dom';\n\nrender(<main />, document.body);\n"
        files = _project(healthy_files, make_files({"src/index.js": entry}))
        issue = _find(repair_context, files, "missing-error-boundary")

        outcome = await ErrorBoundaryStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.description == "no <App /> element in the entry point"


# ---------------------------------------------------------------------------
# Emergency fallbacks
# ---------------------------------------------------------------------------


class TestEmergencyStrategies:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_loose_patterns(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"package.json": "{name: 'app'}"}))
        issue = _find(repair_context, files, "invalid-json")

        strategy = LoosePatternStrategy()
        outcome = await strategy.attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.3
        assert strategy.method == FixMethod.EMERGENCY
        assert json.loads(files.get("package.json").content) == {"name": "app"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_minimal_regeneration(self, repair_context, healthy_files, make_files):
        content = "import React from 'react';\n\nconst X = () => <div><span>Hi</div>;\n\nexport default X;\n"
        files = _project(healthy_files, make_files({"src/components/X.js": content}))
        issue = _find(repair_context, files, "unbalanced-tags")

        outcome = await MinimalRegenerationStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.2
        assert files.get("src/components/X.js").content == (
            "import React from 'react';\n\n"
            'const X = () => <div className="x">X</div>;\n\n'
            "export default X;\n"
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stub_file(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/pages/Home.js": HOME_WITH_MISSING}))
        issue = _find(repair_context, files, "unresolved-import")

        outcome = await StubFileStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.3
        assert outcome.file == "src/pages/Missing.js"
        assert files.get("src/pages/Missing.js").content.endswith("export default Missing;\n")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_latest_dependency(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/api.js": "import axios from 'axios';\n\nexport default axios;\n"}))
        issue = _find(repair_context, files, "undeclared-package")

        outcome = await LatestDependencyStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.description == "Declared axios@latest"
        assert json.loads(files.get("package.json").content)["dependencies"]["axios"] == "latest"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_minimal_manifest(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"package.json": "{bad"}))
        issue = _find(repair_context, files, "invalid-json")

        outcome = await MinimalManifestStrategy().attempt_fix(files, issue, repair_context)

        assert outcome.confidence == 0.3
        manifest = json.loads(files.get("package.json").content)
        assert "description" not in manifest
        assert manifest["name"] == "bella-bakery"

    @pytest.mark.unit
    def test_default_chains(self):
        chains = default_emergency_chains()
        names = {category: [s.name for s in chain] for category, chain in chains.items()}
        assert names[IssueCategory.SYNTAX] == ["emergency-loose-patterns", "emergency-regenerate"]
        assert names[IssueCategory.MANIFEST_INVALID] == ["emergency-loose-patterns", "emergency-manifest"]
        assert names[IssueCategory.MISSING_REFERENCE] == ["emergency-stub"]
        assert IssueCategory.RUNTIME_SAFETY not in chains


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestStrategyRegistry:
    @pytest.mark.unit
    def test_default_covers_every_category(self):
        registry = StrategyRegistry(default_strategies(), strict=True)
        assert registry.gaps == []
        assert len(registry.strategies) == 13

    @pytest.mark.unit
    def test_priority_order_is_stable(self):
        registry = StrategyRegistry(default_strategies())
        priorities = [s.priority for s in registry.strategies]
        assert priorities == sorted(priorities, reverse=True)
        assert [s.name for s in registry.strategies[:2]] == ["jsx-import-marker", "install-dependency"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "category, rule, expected",
        [
            (
                IssueCategory.SYNTAX,
                "unquoted-attribute",
                ["syntax-patterns", "emergency-loose-patterns", "emergency-regenerate"],
            ),
            (
                IssueCategory.SYNTAX,
                "unbalanced-braces",
                ["syntax-patterns", "brace-balance", "emergency-loose-patterns", "emergency-regenerate"],
            ),
            (
                IssueCategory.MANIFEST_INVALID,
                "invalid-json",
                [
                    "manifest-invalid-patterns",
                    "regenerate-manifest",
                    "emergency-loose-patterns",
                    "emergency-manifest",
                ],
            ),
            (
                IssueCategory.MISSING_REFERENCE,
                "unresolved-import",
                ["retarget-reference", "synthesize-reference", "emergency-stub"],
            ),
        ],
    )
    def test_chain_for(self, category: IssueCategory, rule: str, expected: list[str]):
        registry = StrategyRegistry(default_strategies())
        issue = Issue(category=category, file="src/App.js", message="m", rule=rule)
        assert [s.name for s in registry.chain_for(issue)] == expected

    @pytest.mark.unit
    def test_gaps_reported(self):
        registry = StrategyRegistry([JsxImportMarkerStrategy()], emergency={})
        assert IssueCategory.SYNTAX not in registry.gaps
        assert IssueCategory.MISSING_FILE in registry.gaps

    @pytest.mark.unit
    def test_strict_refuses_gaps(self):
        with pytest.raises(StrategyRegistryError) as exc_info:
            StrategyRegistry([], emergency={}, strict=True)
        assert exc_info.value.categories == [c.value for c in IssueCategory]

    @pytest.mark.unit
    def test_default_with_assist_client(self):
        client = MagicMock()
        client.timeout = 5
        registry = StrategyRegistry.default(assist_client=client)
        issue = Issue(category=IssueCategory.SYNTAX, file="a.js", message="m", rule="unquoted-attribute")
        assert [s.name for s in registry.strategies_for(issue)] == ["syntax-patterns", "ai-assisted"]

    @pytest.mark.unit
    def test_print_table(self):
        with patch("scaffold_repair.strategies.registry.console") as mock_console:
            StrategyRegistry(default_strategies()).print_table()
        mock_console.print.assert_called_once()


# ---------------------------------------------------------------------------
# AI-assisted strategy
# ---------------------------------------------------------------------------


def _mock_client(response: AssistResponse | None = None) -> MagicMock:
    client = MagicMock()
    client.timeout = 5
    client.generate = AsyncMock(return_value=response)
    return client


class TestAssistedRepairStrategy:
    FIXED_APP = (
        "import React from 'react';\n\n"
        "function App() {\n"
        '  return <div id="foo">Hi</div>;\n'
        "}\n\n"
        "export default App;\n"
    )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_applies_reply(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/App.js": BROKEN_APP}))
        issue = _find(repair_context, files, "unquoted-attribute")
        client = _mock_client(AssistResponse(text=f"```jsx\n{self.FIXED_APP}```", model="coder"))

        strategy = AssistedRepairStrategy(client)
        outcome = await strategy.attempt_fix(files, issue, repair_context)

        assert outcome.success
        assert outcome.confidence == 0.7
        assert outcome.description == "Rewrote src/App.js with coder"
        assert strategy.method == FixMethod.AI_ASSISTED
        assert files.get("src/App.js").content == self.FIXED_APP
        assert client.generate.call_args.kwargs["system"] == REPAIR_SYSTEM_PROMPT

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_call_declines(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/App.js": BROKEN_APP}))
        issue = _find(repair_context, files, "unquoted-attribute")
        client = _mock_client(AssistResponse(success=False, error="Cannot connect"))

        outcome = await AssistedRepairStrategy(client).attempt_fix(files, issue, repair_context)

        assert not outcome.success
        assert outcome.description == "Cannot connect"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_that_does_not_fix_declines(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/App.js": BROKEN_APP}))
        issue = _find(repair_context, files, "unquoted-attribute")
        before = files.get("src/App.js").content
        client = _mock_client(AssistResponse(text="function App() { return <div id=bar>x</div>; }\n"))

        outcome = await AssistedRepairStrategy(client).attempt_fix(files, issue, repair_context)

        assert outcome.description == "assist reply did not resolve the issue"
        assert files.get("src/App.js").content == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_declines(self, repair_context, healthy_files, make_files):
        files = _project(healthy_files, make_files({"src/App.js": BROKEN_APP}))
        issue = _find(repair_context, files, "unquoted-attribute")

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        client = MagicMock()
        client.timeout = 5
        client.generate = slow

        outcome = await AssistedRepairStrategy(client, timeout=0.01).attempt_fix(files, issue, repair_context)

        assert not outcome.success
        assert outcome.description.startswith("assist call exceeded")

    @pytest.mark.unit
    def test_timeout_defaults_to_client(self):
        assert AssistedRepairStrategy(_mock_client()).timeout == 5.0

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("```js\nconst a = 1;\n```", "const a = 1;\n"),
            ("const a = 1;", "const a = 1;\n"),
            ("\n\nconst a = 1;\n\n", "const a = 1;\n"),
            ("   ", ""),
        ],
    )
    def test_strip_code_fences(self, raw: str, expected: str):
        assert strip_code_fences(raw) == expected
