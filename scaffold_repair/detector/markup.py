"""Markup rules: HTML shells and JSX in script files.

Attribute checks work on the tags ``TAG_RE`` recognises. Tag balance uses
its own scanner so that attributes holding deeply nested ``{...}``
expressions cannot hide a tag from the stack.
"""

from __future__ import annotations

import re

from scaffold_repair.models import Issue, IssueCategory, Severity
from scaffold_repair.paths import HTML_EXTENSIONS, extension
from scaffold_repair.patterns import (
    CLOSING_TAG_RE,
    DUPLICATE_IMPORT_RE,
    TAG_RE,
    VOID_ELEMENTS,
    html_attribute_names,
    missing_attribute_spacing,
    unquoted_attributes,
)

from .context import ScanContext, line_of


# HTML elements whose end tag may legally be omitted.
OPTIONAL_END_TAGS: frozenset[str] = frozenset(
    {
        "html", "head", "body", "p", "li", "dt", "dd", "option", "optgroup",
        "tr", "td", "th", "thead", "tbody", "tfoot", "colgroup", "caption",
        "rb", "rt", "rtc", "rp",
    }
)

# In scripts an opening ``<`` straight after an identifier or a closing
# bracket is a type argument (``useState<number>``), not JSX.
_SCRIPT_OPEN_TAG_RE = re.compile(r"(?<![\w$)\].])<([A-Za-z][\w.:-]*)(?=[\s/>])")
_HTML_OPEN_TAG_RE = re.compile(r"<([A-Za-z][\w.:-]*)(?=[\s/>])")
_CLOSE_TAG_START_RE = re.compile(r"</([A-Za-z][\w.:-]*)(?=[\s>])")
_RAW_TEXT_RE = re.compile(r"(<(script|style)\b[^>]*>)([\s\S]*?)(</\2\s*>)", re.IGNORECASE)


def is_html(path: str) -> bool:
    return extension(path) in HTML_EXTENSIONS


def _issue(path: str, rule: str, message: str, text: str, offset: int, **kwargs) -> Issue:
    return Issue(
        category=IssueCategory.SYNTAX,
        file=path,
        rule=rule,
        message=message,
        line=line_of(text, offset),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Attribute rules
# ---------------------------------------------------------------------------

def check_attributes(path: str, text: str) -> list[Issue]:
    """Unquoted values, missing spacing, void elements and HTML attribute names."""
    jsx = not is_html(path)
    found: dict[str, Issue] = {}

    for m in TAG_RE.finditer(text):
        name, attrs, slash = m.group(1), m.group(2) or "", m.group(3)
        if "unquoted-attribute" not in found:
            bare = unquoted_attributes(attrs)
            if bare:
                attr, value = bare[0]
                found["unquoted-attribute"] = _issue(
                    path, "unquoted-attribute",
                    f"Unquoted attribute value {attr}={value} in <{name}>",
                    text, m.start(),
                )
        if "attribute-spacing" not in found and missing_attribute_spacing(attrs):
            found["attribute-spacing"] = _issue(
                path, "attribute-spacing",
                f"Missing whitespace between attributes in <{name}>",
                text, m.start(),
            )
        if not jsx:
            continue
        if "void-element" not in found and name in VOID_ELEMENTS and not slash:
            found["void-element"] = _issue(
                path, "void-element",
                f"Void element <{name}> must be self-closed in JSX",
                text, m.start(),
            )
        if "html-attribute-name" not in found:
            names = html_attribute_names(attrs)
            if names:
                found["html-attribute-name"] = _issue(
                    path, "html-attribute-name",
                    f"HTML attribute '{names[0]}' used in JSX <{name}>",
                    text, m.start(),
                    severity=Severity.WARNING,
                )
    return list(found.values())


# ---------------------------------------------------------------------------
# Tag balance
# ---------------------------------------------------------------------------

def _tag_end(text: str, start: int) -> tuple[int, bool]:
    """Scan from *start* (a ``<``) to the closing ``>`` of the tag.

    Returns the offset just past ``>`` and whether the tag self-closes.
    Quotes and brace expressions are skipped. Returns ``(-1, False)`` if
    the tag never ends.
    """
    depth = 0
    quote = ""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        elif ch == ">" and depth == 0:
            return i + 1, text[i - 1] == "/"
        i += 1
    return -1, False


def _mask_raw_text(text: str) -> str:
    """Blank the bodies of ``<script>`` and ``<style>`` elements in HTML."""

    def _mask(m: re.Match[str]) -> str:
        body = re.sub(r"[^\n]", " ", m.group(3))
        return m.group(1) + body + m.group(4)

    return _RAW_TEXT_RE.sub(_mask, text)


def _next_tag(text: str, pos: int, html: bool) -> tuple[int, bool, str] | None:
    """The next opening or closing tag at or after *pos* as ``(start, closing, name)``."""
    opening = (_HTML_OPEN_TAG_RE if html else _SCRIPT_OPEN_TAG_RE).search(text, pos)
    closing = _CLOSE_TAG_START_RE.search(text, pos)
    if closing is not None and (opening is None or closing.start() < opening.start()):
        return closing.start(), True, closing.group(1)
    if opening is not None:
        return opening.start(), False, opening.group(1)
    return None


def check_tag_balance(path: str, text: str) -> list[Issue]:
    """Report the first unmatched opening or closing tag."""
    html = is_html(path)
    stack: list[tuple[str, int]] = []
    pos = 0
    fragments = re.compile(r"<>|</>")

    while True:
        tag = _next_tag(text, pos, html)
        frag = fragments.search(text, pos) if not html else None
        if frag is not None and (tag is None or frag.start() < tag[0]):
            if frag.group(0) == "<>":
                stack.append(("", frag.start()))
            elif stack and stack[-1][0] == "":
                stack.pop()
            else:
                return [_issue(path, "unbalanced-tags", "Unexpected closing fragment </>", text, frag.start())]
            pos = frag.end()
            continue
        if tag is None:
            break

        start, closing, name = tag
        key = name.lower() if html else name
        if closing:
            end = CLOSING_TAG_RE.match(text, start)
            pos = end.end() if end else start + len(name) + 2
            if key in VOID_ELEMENTS:
                continue
            if stack and stack[-1][0] == key:
                stack.pop()
                continue
            if html and key in OPTIONAL_END_TAGS:
                continue
            if any(open_name == key for open_name, _ in stack):
                open_name, offset = stack[-1]
                return [_issue(path, "unbalanced-tags", f"Unclosed <{open_name}> tag", text, offset)]
            return [_issue(path, "unbalanced-tags", f"Unexpected closing tag </{name}>", text, start)]

        end, self_closing = _tag_end(text, start)
        if end < 0:
            return [_issue(path, "unbalanced-tags", f"Unterminated <{name}> tag", text, start)]
        pos = end
        if self_closing or key in VOID_ELEMENTS:
            continue
        if html and key in OPTIONAL_END_TAGS:
            continue
        stack.append((key, start))

    if stack:
        open_name, offset = stack[-1]
        label = f"<{open_name}>" if open_name else "fragment <>"
        return [_issue(path, "unbalanced-tags", f"Unclosed {label} tag", text, offset)]
    return []


# ---------------------------------------------------------------------------
# Script-level markup rules
# ---------------------------------------------------------------------------

def check_jsx_marker(path: str, text: str, ctx: ScanContext) -> list[Issue]:
    """The profile's JSX runtime identifier must be imported where JSX is used."""
    marker = ctx.profile.jsx_import_marker
    if not marker or is_html(path):
        return []
    pattern = re.compile(
        r"^\s*import\s+(?:\*\s+as\s+)?" + re.escape(marker) + r"\b"
        r"|\b(?:const|let|var)\s+" + re.escape(marker) + r"\s*=\s*require\(",
        re.MULTILINE,
    )
    if pattern.search(text):
        return []
    return [
        Issue(
            category=IssueCategory.SYNTAX,
            file=path,
            rule="jsx-import-marker",
            message=f"JSX used without importing {marker}",
            target=marker,
            line=1,
        )
    ]


def check_duplicate_imports(path: str, text: str) -> list[Issue]:
    m = DUPLICATE_IMPORT_RE.search(text)
    if m is None:
        return []
    return [
        _issue(
            path, "duplicate-import",
            f"Duplicate import: {m.group(1).strip()}",
            text, m.start(),
        )
    ]


def scan_markup(path: str, text: str, ctx: ScanContext, jsx: bool) -> list[Issue]:
    """All markup rules for one file.

    Args:
        path: Project-relative path.
        text: File content with comments blanked.
        ctx: Shared scan context.
        jsx: Whether the script file actually contains JSX.
    """
    issues: list[Issue] = []
    if is_html(path):
        text = _mask_raw_text(text)
    if is_html(path) or jsx:
        issues.extend(check_attributes(path, text))
        issues.extend(check_tag_balance(path, text))
    if jsx:
        issues.extend(check_jsx_marker(path, text, ctx))
    return issues
