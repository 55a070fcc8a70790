"""Context-free text repair patterns, grouped by file category.

Each ``Pattern`` is a compiled match plus a replacement (a template string or
a callable, exactly what ``re.sub`` accepts) tagged with a confidence score.
A ``PatternLibrary`` applies every pattern registered for a category once,
in registration order. There is no looping to a fixed point, so a repair
pass is bounded and deterministic.

Confidence is descriptive: it is copied into the audit record and never
used to decide whether a pattern runs.

The markup patterns work tag by tag. ``TAG_RE`` finds an opening tag and
the attribute rewriters skip quoted strings and ``{...}`` expressions so
that JavaScript inside JSX attributes is never touched.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from scaffold_repair.models import FileCategory
from scaffold_repair.paths import extension


# ---------------------------------------------------------------------------
# Shared expressions (also used by the detector)
# ---------------------------------------------------------------------------

VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "img", "br", "hr", "input", "meta", "link", "area", "base", "col",
        "embed", "keygen", "param", "source", "track", "wbr",
    }
)

JSX_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx", ".mjs")

_BRACED = r"\{(?:[^{}]|\{[^{}]*\})*\}"

# Opening (or self-closing) tag: 1 = name, 2 = attribute text, 3 = "/" if self-closed.
TAG_RE = re.compile(
    r"(?<![\w$)\].])<([A-Za-z][\w.:-]*)"
    r"(\s(?:[^<>\"'{}]|\"[^\"]*\"|'[^']*'|" + _BRACED + r")*?)?"
    r"(/?)>"
)

CLOSING_TAG_RE = re.compile(r"</([A-Za-z][\w.:-]*)\s*>")

# Tokens inside an attribute string. Quoted strings and braces are matched
# first so the named groups only ever see bare attribute text.
_ATTR_TOKEN_RE = re.compile(
    r"\"[^\"]*\"|'[^']*'|" + _BRACED + r"|(?<=\s)(?P<name>[A-Za-z_:][\w:.-]*)=(?P<value>[^\s\"'{}<>=`]+)"
)

_ATTR_SPACING_RE = re.compile(
    r"(?P<value>=(?:\"[^\"]*\"|'[^']*'|" + _BRACED + r"))(?=[A-Za-z_])"
    r"|\"[^\"]*\"|'[^']*'|" + _BRACED
)

_HTML_NAME_RE = re.compile(
    r"\"[^\"]*\"|'[^']*'|" + _BRACED + r"|(?<=\s)(?P<name>class|for)(?==)"
)

VOID_CLOSING_RE = re.compile(
    r"</(?:" + "|".join(sorted(VOID_ELEMENTS)) + r")\s*>"
)

# A declaration line with no terminator that is followed by another declaration.
UNTERMINATED_DECLARATION_RE = re.compile(
    r"^([ \t]*[-\w]+[ \t]*:(?![^\n]*[;{}])[^\n]*?[^\s;{},])[ \t]*$"
    r"(?=\n(?:[ \t]*\n)*[ \t]*[-\w]+[ \t]*:)",
    re.MULTILINE,
)

DUPLICATE_IMPORT_RE = re.compile(r"^(import\s[^\n]+)\n(?=[\s\S]*?^\1[ \t]*$)", re.MULTILINE)


def unquoted_attributes(attrs: str) -> list[tuple[str, str]]:
    """``(name, value)`` pairs whose value is not quoted or braced."""
    return [
        (m.group("name"), m.group("value"))
        for m in _ATTR_TOKEN_RE.finditer(attrs)
        if m.group("name")
    ]


def missing_attribute_spacing(attrs: str) -> bool:
    return any(m.group("value") for m in _ATTR_SPACING_RE.finditer(attrs))


def html_attribute_names(attrs: str) -> list[str]:
    return [m.group("name") for m in _HTML_NAME_RE.finditer(attrs) if m.group("name")]


# ---------------------------------------------------------------------------
# Pattern model
# ---------------------------------------------------------------------------

Replacement = str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class Pattern:
    """A single text-repair rule."""

    name: str
    match: re.Pattern[str]
    replace: Replacement
    confidence: float
    description: str = ""
    extensions: tuple[str, ...] = ()
    loose: bool = False

    def applies_to(self, path: str) -> bool:
        return not self.extensions or extension(path) in self.extensions

    def apply(self, content: str) -> str:
        return self.match.sub(self.replace, content)


@dataclass
class PatternApplication:
    """Result of running a category's pattern set over one file."""

    content: str
    applied: list[str] = field(default_factory=list)
    confidence: float = 1.0

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class PatternLibrary:
    """Immutable table of patterns keyed by ``FileCategory``.

    Build one with ``PatternLibrary.default()`` or pass a custom table; the
    library copies the table into read-only tuples so instances never share
    mutable state.
    """

    def __init__(self, table: Mapping[FileCategory, Sequence[Pattern]]) -> None:
        self._table: Mapping[FileCategory, tuple[Pattern, ...]] = MappingProxyType(
            {category: tuple(patterns) for category, patterns in table.items()}
        )

    @classmethod
    def default(cls) -> "PatternLibrary":
        return cls(DEFAULT_PATTERNS)

    def categories(self) -> list[FileCategory]:
        return list(self._table)

    def patterns_for(
        self,
        category: FileCategory,
        path: str | None = None,
        include_loose: bool = False,
    ) -> tuple[Pattern, ...]:
        patterns = self._table.get(category, ())
        return tuple(
            p
            for p in patterns
            if (include_loose or not p.loose) and (path is None or p.applies_to(path))
        )

    def apply(
        self,
        category: FileCategory,
        path: str,
        content: str,
        include_loose: bool = False,
    ) -> PatternApplication:
        """Apply each pattern for *category* once, in registration order.

        The reported confidence is the lowest confidence among the patterns
        that actually changed the text.
        """
        result = PatternApplication(content=content)
        for pattern in self.patterns_for(category, path, include_loose):
            updated = pattern.apply(result.content)
            if updated != result.content:
                result.content = updated
                result.applied.append(pattern.name)
                result.confidence = min(result.confidence, pattern.confidence)
        return result


# ---------------------------------------------------------------------------
# Markup rewriters
# ---------------------------------------------------------------------------

def _rewrite_tag(transform: Callable[[str, str, str], str]) -> Callable[[re.Match[str]], str]:
    """Adapt a ``(name, attrs, slash) -> tag`` function to ``re.sub``."""

    def _replace(m: re.Match[str]) -> str:
        return transform(m.group(1), m.group(2) or "", m.group(3))

    return _replace


def _quote_values(name: str, attrs: str, slash: str) -> str:
    def _quote(m: re.Match[str]) -> str:
        if m.group("name"):
            return f'{m.group("name")}="{m.group("value")}"'
        return m.group(0)

    return f"<{name}{_ATTR_TOKEN_RE.sub(_quote, attrs)}{slash}>"


def _space_attributes(name: str, attrs: str, slash: str) -> str:
    def _space(m: re.Match[str]) -> str:
        if m.group("value"):
            return m.group("value") + " "
        return m.group(0)

    return f"<{name}{_ATTR_SPACING_RE.sub(_space, attrs)}{slash}>"


def _self_close(name: str, attrs: str, slash: str) -> str:
    if name in VOID_ELEMENTS and not slash:
        return f"<{name}{attrs.rstrip()} />"
    return f"<{name}{attrs}{slash}>"


def _jsx_attribute_names(name: str, attrs: str, slash: str) -> str:
    renames = {"class": "className", "for": "htmlFor"}

    def _rename(m: re.Match[str]) -> str:
        if m.group("name"):
            return renames[m.group("name")]
        return m.group(0)

    return f"<{name}{_HTML_NAME_RE.sub(_rename, attrs)}{slash}>"


# ---------------------------------------------------------------------------
# Stylesheet rewriters
# ---------------------------------------------------------------------------

_PROPERTY_TYPOS: dict[str, str] = {
    "colour": "color",
    "backround": "background",
    "heigth": "height",
    "widht": "width",
    "maring": "margin",
}

_PROPERTY_TYPO_RE = re.compile(
    r"(?<![-\w])(" + "|".join(_PROPERTY_TYPOS) + r")(?=[ \t]*:)"
)


# ---------------------------------------------------------------------------
# Default table
# ---------------------------------------------------------------------------

_DEDUPE_IMPORTS = Pattern(
    name="drop-duplicate-imports",
    match=DUPLICATE_IMPORT_RE,
    replace="",
    confidence=0.9,
    description="Remove repeated identical import lines, keeping the last",
)

_JSON_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        name="strip-line-comments",
        match=re.compile(r"^[ \t]*//[^\n]*\n?", re.MULTILINE),
        replace="",
        confidence=0.8,
        description="JSON has no comments",
    ),
    Pattern(
        name="strip-block-comments",
        match=re.compile(r"/\*[\s\S]*?\*/"),
        replace="",
        confidence=0.8,
    ),
    Pattern(
        name="strip-trailing-commas",
        match=re.compile(r",(\s*[}\]])"),
        replace=r"\1",
        confidence=0.85,
    ),
    Pattern(
        name="quote-bare-keys",
        match=re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)"),
        replace=r'\1"\2"\3',
        confidence=0.6,
        loose=True,
    ),
    Pattern(
        name="single-to-double-quotes",
        match=re.compile(r"'([^'\\\n]*)'"),
        replace=r'"\1"',
        confidence=0.5,
        loose=True,
    ),
)

DEFAULT_PATTERNS: Mapping[FileCategory, tuple[Pattern, ...]] = MappingProxyType(
    {
        FileCategory.MARKUP: (
            Pattern(
                name="quote-attribute-values",
                match=TAG_RE,
                replace=_rewrite_tag(_quote_values),
                confidence=0.9,
                description='Wrap bare attribute values in double quotes (id=foo -> id="foo")',
            ),
            Pattern(
                name="space-between-attributes",
                match=TAG_RE,
                replace=_rewrite_tag(_space_attributes),
                confidence=0.9,
            ),
            Pattern(
                name="self-close-void-elements",
                match=TAG_RE,
                replace=_rewrite_tag(_self_close),
                confidence=0.85,
                extensions=JSX_EXTENSIONS,
            ),
            Pattern(
                name="drop-void-closing-tags",
                match=VOID_CLOSING_RE,
                replace="",
                confidence=0.85,
                extensions=JSX_EXTENSIONS,
            ),
            Pattern(
                name="jsx-attribute-names",
                match=TAG_RE,
                replace=_rewrite_tag(_jsx_attribute_names),
                confidence=0.95,
                description="class -> className, for -> htmlFor",
                extensions=JSX_EXTENSIONS,
            ),
            _DEDUPE_IMPORTS,
        ),
        FileCategory.STYLE: (
            Pattern(
                name="terminate-declarations",
                match=UNTERMINATED_DECLARATION_RE,
                replace=r"\1;",
                confidence=0.8,
            ),
            Pattern(
                name="collapse-double-semicolons",
                match=re.compile(r";[ \t]*;+"),
                replace=";",
                confidence=0.9,
            ),
            Pattern(
                name="fix-property-typos",
                match=_PROPERTY_TYPO_RE,
                replace=lambda m: _PROPERTY_TYPOS[m.group(1)],
                confidence=0.7,
                loose=True,
            ),
        ),
        FileCategory.MODULE: (_DEDUPE_IMPORTS,),
        FileCategory.MANIFEST: _JSON_PATTERNS,
        FileCategory.DOCUMENT: tuple(
            Pattern(
                name=p.name,
                match=p.match,
                replace=p.replace,
                confidence=p.confidence,
                description=p.description,
                extensions=(".json",),
                loose=p.loose,
            )
            for p in _JSON_PATTERNS
        ),
    }
)
