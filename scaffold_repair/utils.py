"""Shared utility functions for the scaffold repair pipeline.

Provides name/identifier helpers used by templates and detectors, duration
formatting, and the Rich-based console output every component reports
through.
"""

from __future__ import annotations

import re

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary name to a lowercase hyphenated slug.

    * Lowercases the input.
    * Replaces spaces and non-alphanumeric characters (except hyphens and
      underscores) with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("Contact Form") -> "contact-form"
        sanitize_name("  Bella's Bakery  ") -> "bella-s-bakery"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def pascal_case(value: str) -> str:
    """Convert ``some-thing``, ``some_thing`` or ``someThing`` to ``SomeThing``.

    Leading digits are dropped so the result is a valid identifier.
    """
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", value)
    parts = re.split(r"[^A-Za-z0-9]+", spaced)
    joined = "".join(word[:1].upper() + word[1:] for word in parts if word)
    return joined.lstrip("0123456789") or "Component"


def camel_case(value: str) -> str:
    """Convert ``some-thing`` or ``SomeThing`` to ``someThing``."""
    pascal = pascal_case(value)
    return pascal[0].lower() + pascal[1:]


def kebab_case(value: str) -> str:
    """Convert ``SomeThing`` to ``some-thing`` (used for CSS class names)."""
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value)
    return sanitize_name(spaced)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.042) -> "42ms"
        format_duration(3.7)   -> "3.7s"
        format_duration(65.2)  -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {int(seconds % 60)}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


PHASE_NAMES: dict[int, str] = {
    1: "PREVENT",
    2: "DETECT",
    3: "FIX",
    4: "VERIFY",
}

PHASE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_yellow",
    3: "bright_magenta",
    4: "bright_green",
}


def print_phase_header(phase: int, name: str | None = None) -> None:
    """Print a full-width rule announcing a pipeline phase.

    Args:
        phase: Phase number (1-4).
        name: Display name; defaults to the entry in ``PHASE_NAMES``.
    """
    color = PHASE_COLORS.get(phase, "white")
    label = (name or PHASE_NAMES.get(phase, "")).upper()
    console.print(
        Rule(
            f"[bold {color}] Phase {phase}: {label} [/bold {color}]",
            style=color,
        )
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
