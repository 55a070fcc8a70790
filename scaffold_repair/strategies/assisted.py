"""AI-assisted repair through the optional generation endpoint.

Only registered when an API key is configured. The call is bounded by
``asyncio.wait_for``; a timeout, a transport error or a reply that does not
resolve the issue all count as "declined", so the emergency chain still
runs afterwards.
"""

from __future__ import annotations

import asyncio
import re

from scaffold_repair.assist_client import AssistClient
from scaffold_repair.models import FileSet, FixMethod, Issue, IssueCategory

from .base import RepairContext, RepairStrategy, StrategyOutcome

REPAIR_SYSTEM_PROMPT = (
    "You repair single source files of generated React projects. "
    "Reply with the complete corrected file content only, no explanation "
    "and no markdown fences. Change as little as possible."
)

_FENCE_RE = re.compile(r"\A\s*```[\w+-]*[ \t]*\n(?P<body>[\s\S]*?)\n?```\s*\Z")


def strip_code_fences(text: str) -> str:
    """Remove a single surrounding markdown code fence, if present."""
    m = _FENCE_RE.match(text)
    body = m.group("body") if m else text
    return body.strip("\n") + "\n" if body.strip() else ""


def build_prompt(issue: Issue, path: str, content: str) -> str:
    return (
        f"File: {path}\n"
        f"Problem ({issue.category.value}, rule {issue.rule or 'n/a'}): {issue.describe()}\n\n"
        f"Current content:\n{content}\n"
    )


class AssistedRepairStrategy(RepairStrategy):
    """Ask the generation endpoint for a corrected file body."""

    name = "ai-assisted"
    categories = (IssueCategory.SYNTAX, IssueCategory.STRUCTURAL, IssueCategory.RUNTIME_SAFETY)
    priority = 10
    method = FixMethod.AI_ASSISTED

    def __init__(self, client: AssistClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = float(timeout if timeout is not None else client.timeout)

    async def attempt_fix(
        self, files: FileSet, issue: Issue, context: RepairContext
    ) -> StrategyOutcome:
        source = files.get(issue.file)
        if source is None:
            return StrategyOutcome.declined()

        prompt = build_prompt(issue, source.path, source.content)
        try:
            response = await asyncio.wait_for(
                self.client.generate(prompt, system=REPAIR_SYSTEM_PROMPT),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return StrategyOutcome.declined(f"assist call exceeded {self.timeout:.0f}s")
        if not response.success:
            return StrategyOutcome.declined(response.error or "assist call failed")

        content = strip_code_fences(response.text)
        if not content or content == source.content:
            return StrategyOutcome.declined("assist reply was empty or unchanged")
        if not context.commit_if_resolved(files, issue, [source.with_content(content)]):
            return StrategyOutcome.declined("assist reply did not resolve the issue")
        return StrategyOutcome.fixed(f"Rewrote {source.path} with {response.model or 'assist model'}", 0.7, file=source.path)
