"""Stylesheet rules: unterminated declarations and unbalanced braces."""

from __future__ import annotations

import re

from scaffold_repair.models import Issue, IssueCategory
from scaffold_repair.patterns import UNTERMINATED_DECLARATION_RE

from .context import line_of

_STRING_RE = re.compile(r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'")


def brace_balance(text: str) -> tuple[int, int | None]:
    """Return ``(depth, offset)`` for the braces in *text*.

    ``depth`` is the number of unclosed ``{`` at the end of the text, or
    ``-1`` when a ``}`` appears with nothing open; ``offset`` points at the
    first problem.
    """
    text = _STRING_RE.sub(lambda m: " " * len(m.group(0)), text)
    depth = 0
    opened: list[int] = []
    for i, ch in enumerate(text):
        if ch == "{":
            opened.append(i)
            depth += 1
        elif ch == "}":
            if not opened:
                return -1, i
            opened.pop()
            depth -= 1
    if opened:
        return depth, opened[0]
    return 0, None


def scan_style(path: str, text: str) -> list[Issue]:
    """Rules for one stylesheet; *text* has its comments blanked."""
    issues: list[Issue] = []

    m = UNTERMINATED_DECLARATION_RE.search(text)
    if m is not None:
        issues.append(
            Issue(
                category=IssueCategory.SYNTAX,
                file=path,
                rule="unterminated-declaration",
                message=f"Declaration missing ';': {m.group(1).strip()}",
                line=line_of(text, m.start()),
            )
        )

    depth, offset = brace_balance(text)
    if depth:
        message = (
            "Unexpected '}' with no open block"
            if depth < 0
            else f"{depth} unclosed '{{' block(s)"
        )
        issues.append(
            Issue(
                category=IssueCategory.SYNTAX,
                file=path,
                rule="unbalanced-braces",
                message=message,
                line=line_of(text, offset or 0),
            )
        )
    return issues
