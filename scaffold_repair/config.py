"""Scaffold repair settings.

Centralised, typed configuration for the repair pipeline. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.

These are the operator's knobs (run mode, which phases run, the optional AI
collaborator). The per-project input lives in ``models.ProjectConfig``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class AssistConfig(BaseModel):
    """Connection settings for the optional generative-AI collaborator.

    The endpoint speaks the Ollama ``/api/generate`` protocol. Without an API
    key the assisted strategy is never registered.
    """

    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="qwen2.5-coder:14b")
    api_key: str = Field(default="", repr=False)
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())


class RepairSettings(BaseModel):
    """Global repair pipeline configuration.

    ``mode`` decides how detector defects are handled: ``development`` raises
    so the gap is noticed, ``production`` degrades the issue to unresolved and
    keeps going.
    """

    mode: Literal["development", "production"] = Field(default="production")
    prevent: bool = Field(default=True, description="Run the prevention phase")
    critical_only: bool = Field(
        default=True, description="Only fix build-breaking issues in the detect phase"
    )
    verbose: bool = Field(default=True, description="Print phase progress to the console")
    assist: AssistConfig = Field(default_factory=AssistConfig)

    @property
    def strict(self) -> bool:
        return self.mode == "development"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file.

        The API key is written too; keep the file out of version control.

        Returns:
            The path the file was written to.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "RepairSettings":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "RepairSettings":
        """Build ``RepairSettings`` from environment variables.

        Recognised variables (all optional):
            SR_MODE, SR_PREVENT, SR_CRITICAL_ONLY, SR_VERBOSE,
            SR_ASSIST_URL, SR_ASSIST_MODEL, SR_ASSIST_API_KEY, SR_ASSIST_TIMEOUT.
        """
        assist_kwargs: dict[str, Any] = {}
        if os.environ.get("SR_ASSIST_URL"):
            assist_kwargs["url"] = os.environ["SR_ASSIST_URL"]
        if os.environ.get("SR_ASSIST_MODEL"):
            assist_kwargs["model"] = os.environ["SR_ASSIST_MODEL"]
        if os.environ.get("SR_ASSIST_API_KEY"):
            assist_kwargs["api_key"] = os.environ["SR_ASSIST_API_KEY"]
        if os.environ.get("SR_ASSIST_TIMEOUT"):
            assist_kwargs["timeout"] = int(os.environ["SR_ASSIST_TIMEOUT"])

        kwargs: dict[str, Any] = {}
        if os.environ.get("SR_MODE"):
            kwargs["mode"] = os.environ["SR_MODE"]
        for name in ("prevent", "critical_only", "verbose"):
            raw = os.environ.get(f"SR_{name.upper()}")
            if raw:
                kwargs[name] = _parse_flag(raw)

        return cls(assist=AssistConfig(**assist_kwargs), **kwargs)


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")
