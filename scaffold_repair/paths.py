"""Path helpers for in-memory project file sets.

Every path inside a ``FileSet`` is a normalised POSIX path relative to the
project root (``src/App.js``, never ``./src/App.js`` or ``src\\App.js``).
Module references are resolved against that key space with a fixed table of
extension candidates, the way a bundler resolves an import specifier.
"""

from __future__ import annotations

import posixpath
from collections.abc import Container


SCRIPT_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")
STYLE_EXTENSIONS: tuple[str, ...] = (".css", ".scss", ".sass", ".less")
HTML_EXTENSIONS: tuple[str, ...] = (".html", ".htm")

# Suffixes tried, in order, when resolving a relative reference.
RESOLUTION_SUFFIXES: tuple[str, ...] = (
    "",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".json",
    ".css",
    "/index.js",
    "/index.jsx",
    "/index.ts",
    "/index.tsx",
)

# Static assets. References to these are not checked; they cannot be synthesised.
ASSET_EXTENSIONS: tuple[str, ...] = (
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp",
    ".woff", ".woff2", ".ttf", ".otf", ".eot", ".mp4", ".webm", ".mp3", ".wav",
)


def normalize_path(path: str) -> str:
    """Return the canonical key for *path*.

    Examples::

        normalize_path("./src/App.js")     -> "src/App.js"
        normalize_path("src\\pages\\Home.js") -> "src/pages/Home.js"
        normalize_path("/public/index.html") -> "public/index.html"
    """
    cleaned = path.strip().replace("\\", "/")
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    cleaned = cleaned.lstrip("/")
    if not cleaned:
        return ""
    normalised = posixpath.normpath(cleaned)
    return "" if normalised == "." else normalised


def extension(path: str) -> str:
    """Lower-cased extension of *path* including the dot, or ``""``."""
    return posixpath.splitext(path)[1].lower()


def strip_extension(path: str) -> str:
    return posixpath.splitext(path)[0]


def stem(path: str) -> str:
    """File name without directory and extension (``src/App.js`` -> ``App``)."""
    return posixpath.splitext(posixpath.basename(path))[0]


def is_relative_specifier(specifier: str) -> bool:
    """True for ``./x`` and ``../x`` style specifiers."""
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


def resolve_specifier(importer: str, specifier: str) -> str:
    """Join a relative *specifier* onto the directory of *importer*."""
    base_dir = posixpath.dirname(importer)
    return normalize_path(posixpath.join(base_dir, specifier))


def resolve_reference(importer: str, specifier: str, existing: Container[str]) -> str | None:
    """Resolve *specifier* (relative to *importer*) against *existing* paths.

    Tries the literal path, then each entry of ``RESOLUTION_SUFFIXES``.

    Returns:
        The matching path, or ``None`` when nothing in the set satisfies the
        reference.
    """
    base = resolve_specifier(importer, specifier)
    if not base:
        return None
    for suffix in RESOLUTION_SUFFIXES:
        candidate = base + suffix
        if candidate in existing:
            return candidate
    return None


def relative_specifier(importer: str, target: str, keep_extension: bool = False) -> str:
    """Build the specifier *importer* should use to reach *target*.

    Examples::

        relative_specifier("src/App.js", "src/pages/Home.js")     -> "./pages/Home"
        relative_specifier("src/pages/Home.js", "src/Nav.js")     -> "../Nav"
    """
    destination = target if keep_extension else strip_extension(target)
    rel = posixpath.relpath(destination, posixpath.dirname(importer) or ".")
    if not rel.startswith("."):
        rel = "./" + rel
    return rel


def package_root(specifier: str) -> str:
    """Return the installable package name for a bare import specifier.

    Examples::

        package_root("react-dom/client")      -> "react-dom"
        package_root("@stripe/react-stripe-js/dist") -> "@stripe/react-stripe-js"
    """
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) > 1:
        return "/".join(parts[:2])
    return parts[0]


def find_script_variant(path: str, existing: Container[str]) -> str | None:
    """Return *path* or a sibling that differs only in script extension.

    ``src/App.js`` is satisfied by ``src/App.jsx`` or ``src/App.tsx``.
    """
    if path in existing:
        return path
    if extension(path) not in SCRIPT_EXTENSIONS:
        return None
    base = strip_extension(path)
    for ext in SCRIPT_EXTENSIONS:
        if base + ext in existing:
            return base + ext
    return None
