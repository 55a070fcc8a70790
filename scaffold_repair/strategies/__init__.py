"""Repair strategies and the category-keyed strategy registry.

Key classes:
    RepairStrategy       - Base class: categories, priority, async attempt_fix
    StrategyRegistry     - Category -> ordered primary strategies + emergency chain
    RepairContext        - Collaborators shared by strategies during one run
    StrategyOutcome      - Success/decline result of a single attempt
"""

from .assisted import AssistedRepairStrategy
from .base import RepairContext, RepairStrategy, StrategyOutcome
from .emergency import (
    LatestDependencyStrategy,
    LoosePatternStrategy,
    MinimalManifestStrategy,
    MinimalRegenerationStrategy,
    StubFileStrategy,
    default_emergency_chains,
)
from .manifest import DependencyInstallStrategy, ManifestFieldStrategy, ManifestRegenerateStrategy
from .references import (
    MissingFileSynthesisStrategy,
    ReferenceRetargetStrategy,
    ReferenceSynthesisStrategy,
)
from .registry import StrategyRegistry, default_strategies
from .runtime import ErrorBoundaryStrategy
from .structural import DefaultExportStrategy, EmptyFileSynthesisStrategy
from .syntax import BraceBalanceStrategy, JsxImportMarkerStrategy, PatternRepairStrategy

__all__ = [
    # Interface
    "RepairStrategy",
    "RepairContext",
    "StrategyOutcome",
    # Registry
    "StrategyRegistry",
    "default_strategies",
    "default_emergency_chains",
    # Primary strategies
    "JsxImportMarkerStrategy",
    "PatternRepairStrategy",
    "BraceBalanceStrategy",
    "DependencyInstallStrategy",
    "ManifestFieldStrategy",
    "ManifestRegenerateStrategy",
    "ReferenceRetargetStrategy",
    "ReferenceSynthesisStrategy",
    "MissingFileSynthesisStrategy",
    "DefaultExportStrategy",
    "EmptyFileSynthesisStrategy",
    "ErrorBoundaryStrategy",
    "AssistedRepairStrategy",
    # Emergency fallbacks
    "LoosePatternStrategy",
    "MinimalRegenerationStrategy",
    "StubFileStrategy",
    "LatestDependencyStrategy",
    "MinimalManifestStrategy",
]
