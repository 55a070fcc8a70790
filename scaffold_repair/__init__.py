"""Scaffold Repair.

Takes the in-memory file set of a freshly generated web application
scaffold, finds what would break its build or first run, and repairs it.
The result carries the repaired files, an audit trail of every fix, a
rollback batch and a simulated build verdict.

Key entry points:

- ``RepairOrchestrator`` -- the single 4-phase pipeline (prevent, detect,
  fix, verify) with every table injected.
- ``repair_project`` -- convenience coroutine using default tables.
- ``IssueDetector`` / ``BuildSimulator`` -- usable on their own.
- ``RollbackLedger`` -- fix history and batch undo.
"""

from scaffold_repair.catalog import DependencyCatalog, FrameworkProfile
from scaffold_repair.config import AssistConfig, RepairSettings
from scaffold_repair.detector import IssueDetector
from scaffold_repair.errors import (
    DetectorDefectError,
    EmptyProjectError,
    RepairError,
    RollbackError,
    StrategyRegistryError,
)
from scaffold_repair.ledger import RollbackLedger
from scaffold_repair.models import (
    AppliedFix,
    BuildReport,
    FileCategory,
    FileSet,
    FinalStatus,
    FixMethod,
    Issue,
    IssueCategory,
    PipelineResult,
    ProjectConfig,
    RepairPhase,
    RollbackBatch,
    Severity,
    SourceFile,
)
from scaffold_repair.orchestrator import RepairOrchestrator, repair_project
from scaffold_repair.patterns import PatternLibrary
from scaffold_repair.simulator import BuildSimulator
from scaffold_repair.strategies import StrategyRegistry
from scaffold_repair.synthesis import TemplateRegistry

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "RepairOrchestrator",
    "repair_project",
    # Components
    "IssueDetector",
    "BuildSimulator",
    "RollbackLedger",
    "StrategyRegistry",
    "TemplateRegistry",
    "PatternLibrary",
    "DependencyCatalog",
    "FrameworkProfile",
    # Settings
    "RepairSettings",
    "AssistConfig",
    # Models
    "SourceFile",
    "FileSet",
    "FileCategory",
    "ProjectConfig",
    "Issue",
    "IssueCategory",
    "Severity",
    "AppliedFix",
    "FixMethod",
    "RepairPhase",
    "RollbackBatch",
    "BuildReport",
    "PipelineResult",
    "FinalStatus",
    # Errors
    "RepairError",
    "EmptyProjectError",
    "DetectorDefectError",
    "StrategyRegistryError",
    "RollbackError",
]
