"""Template registry: synthesise a complete file for a missing path.

Given a project-relative path, the registry classifies it by directory
convention and extension (manifest, HTML shell, entry point, root component,
component, page, stylesheet, plain module, JSON data, document), builds a
template context from the derived identifier and the project's business
name, and renders the matching Jinja2 template.

Every kind also has a minimal hard-coded body. It is used for emergency
stubs and whenever a template is missing or fails to render, so the
well-known files (manifest, entry point, root component, stylesheets) can
always be produced.
"""

from __future__ import annotations

import json
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from jinja2 import TemplateError

from scaffold_repair.catalog import DependencyCatalog, FrameworkProfile
from scaffold_repair.models import ProjectConfig, SourceFile
from scaffold_repair.paths import (
    HTML_EXTENSIONS,
    SCRIPT_EXTENSIONS,
    STYLE_EXTENSIONS,
    extension,
    normalize_path,
    relative_specifier,
    stem,
    strip_extension,
)
from scaffold_repair.utils import camel_case, kebab_case, pascal_case

from .templates import TemplateRenderer


class FileKind(str, Enum):
    """What a path is expected to contain."""
    MANIFEST = "manifest"
    HTML = "html"
    ENTRY = "entry"
    ROOT_COMPONENT = "root-component"
    COMPONENT = "component"
    PAGE = "page"
    STYLESHEET = "stylesheet"
    MODULE = "module"
    DATA = "data"
    DOCUMENT = "document"


@dataclass(frozen=True)
class TemplateSpec:
    """A template plus fixed context overrides for one well-known path."""

    template: str
    context: Mapping[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

KIND_TEMPLATES: Mapping[FileKind, str] = MappingProxyType(
    {
        FileKind.HTML: "index.html.j2",
        FileKind.ENTRY: "entry.j2",
        FileKind.ROOT_COMPONENT: "app.j2",
        FileKind.COMPONENT: "component.j2",
        FileKind.PAGE: "page.j2",
        FileKind.STYLESHEET: "stylesheet.j2",
        FileKind.MODULE: "module.j2",
        FileKind.DOCUMENT: "document.md.j2",
    }
)

# Global stylesheets of the framework profile, keyed by file stem.
CORE_STYLESHEET_TEMPLATES: Mapping[str, str] = MappingProxyType(
    {"index": "index.css.j2", "App": "app.css.j2"}
)

# Script files keyed by the last two path segments without extension.
DEFAULT_TEMPLATE_TABLE: Mapping[str, TemplateSpec] = MappingProxyType(
    {
        "components/AuthForm": TemplateSpec("features/auth_form.j2"),
        "components/ContactForm": TemplateSpec("features/contact_form.j2"),
        "components/Gallery": TemplateSpec("features/gallery.j2"),
        "components/ErrorBoundary": TemplateSpec("error_boundary.j2"),
        "pages/Login": TemplateSpec(
            "page.j2",
            {"component": "AuthForm", "component_props": 'type="login"', "title": "Login"},
        ),
        "pages/Register": TemplateSpec(
            "page.j2",
            {
                "component": "AuthForm",
                "component_props": 'type="register"',
                "title": "Create an Account",
            },
        ),
        "pages/Contact": TemplateSpec("page.j2", {"component": "ContactForm", "title": "Contact Us"}),
        "pages/Gallery": TemplateSpec(
            "page.j2", {"component": "Gallery", "identifier": "GalleryPage", "title": "Gallery"}
        ),
    }
)

_MINIMAL_COMPONENT = """import React from 'react';

const {identifier} = () => <div className="{class_name}">{identifier}</div>;

export default {identifier};
"""

_MINIMAL_ENTRY = """import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';

ReactDOM.createRoot(document.getElementById('root')).render(<App />);
"""

_MINIMAL_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
</head>
<body>
  <div id="root"></div>
{script}</body>
</html>
"""


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------

class TemplateRegistry:
    """Synthesises source files from templates.

    The template table and catalog are injected and never modified, so two
    registries built from different tables cannot affect each other.
    """

    def __init__(
        self,
        catalog: DependencyCatalog | None = None,
        renderer: TemplateRenderer | None = None,
        table: Mapping[str, TemplateSpec] | None = None,
    ) -> None:
        self.catalog = catalog or DependencyCatalog()
        self.renderer = renderer or TemplateRenderer()
        self._table: Mapping[str, TemplateSpec] = MappingProxyType(
            dict(DEFAULT_TEMPLATE_TABLE if table is None else table)
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, path: str, profile: FrameworkProfile) -> FileKind | None:
        """Decide what *path* should contain, or ``None`` if it cannot be synthesised."""
        path = normalize_path(path)
        ext = extension(path)
        if posixpath.basename(path).lower() == "package.json":
            return FileKind.MANIFEST
        if path == profile.html_path or ext in HTML_EXTENSIONS:
            return FileKind.HTML
        if path == profile.entry_path:
            return FileKind.ENTRY
        if path == profile.root_component_path:
            return FileKind.ROOT_COMPONENT
        if ext in STYLE_EXTENSIONS:
            return FileKind.STYLESHEET
        if ext == ".json":
            return FileKind.DATA
        if ext in (".md", ".markdown", ".txt"):
            return FileKind.DOCUMENT
        if ext in SCRIPT_EXTENSIONS:
            segments = path.split("/")[:-1]
            if any(s in ("pages", "views", "screens") for s in segments):
                return FileKind.PAGE
            if "components" in segments or stem(path)[:1].isupper():
                return FileKind.COMPONENT
            return FileKind.MODULE
        return None

    def can_synthesize(self, path: str, config: ProjectConfig) -> bool:
        return self.classify(path, self.catalog.profile_for(config)) is not None

    # ------------------------------------------------------------------
    # Synthesis
    # ------------------------------------------------------------------

    def synthesize(
        self, path: str, config: ProjectConfig, minimal: bool = False
    ) -> SourceFile | None:
        """Produce a complete file for *path*.

        Args:
            path: Project-relative target path, including extension.
            config: Project configuration supplying names and features.
            minimal: Skip the rich templates and emit the hard-coded body.

        Returns:
            The synthesised ``SourceFile``, or ``None`` when the path cannot
            be classified.
        """
        path = normalize_path(path)
        profile = self.catalog.profile_for(config)
        kind = self.classify(path, profile)
        if kind is None:
            return None
        if kind == FileKind.MANIFEST:
            return SourceFile(path=path, content=self.render_manifest(config, minimal=minimal))
        if kind == FileKind.DATA:
            return SourceFile(path=path, content="{}\n")

        context = self._context(path, kind, config, profile)
        content: str | None = None
        if not minimal:
            template = self._template_for(path, kind, profile)
            if template is not None:
                try:
                    content = self.renderer.render(template, context)
                except TemplateError:
                    content = None
        if content is None:
            content = self._minimal_body(kind, context)
        return SourceFile(path=path, content=content)

    def script_path_for(self, base: str, config: ProjectConfig, importer: str | None = None) -> str:
        """Give an extension-less reference target a concrete script extension.

        Prefers the importing file's extension when it is a script, otherwise
        the profile's extension for new files.
        """
        if extension(base) in SCRIPT_EXTENSIONS + STYLE_EXTENSIONS + (".json",):
            return base
        importer_ext = extension(importer) if importer else ""
        if importer_ext in SCRIPT_EXTENSIONS:
            return base + importer_ext
        return base + self.catalog.profile_for(config).new_script_extension

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def build_manifest(self, config: ProjectConfig, minimal: bool = False) -> dict[str, Any]:
        """Manifest object for *config*: baseline plus feature dependencies."""
        profile = self.catalog.profile_for(config)
        manifest: dict[str, Any] = {
            "name": config.slug,
            "version": "1.0.0",
            "private": True,
        }
        if not minimal and config.display_name:
            description = config.display_name
            if config.business_goal:
                description = f"{description} - {config.business_goal}"
            manifest["description"] = description
        manifest["dependencies"] = self.catalog.required_dependencies(config)
        manifest["devDependencies"] = dict(profile.dev_dependencies)
        manifest["scripts"] = dict(profile.scripts)
        if not minimal:
            for key, value in profile.manifest_extras.items():
                manifest.setdefault(key, json.loads(json.dumps(value)))
        return manifest

    def render_manifest(self, config: ProjectConfig, minimal: bool = False) -> str:
        return dump_manifest(self.build_manifest(config, minimal=minimal))

    # ------------------------------------------------------------------
    # Required file lists
    # ------------------------------------------------------------------

    def core_files(self, config: ProjectConfig) -> list[str]:
        return list(self.catalog.profile_for(config).core_files)

    def feature_files(self, config: ProjectConfig) -> list[str]:
        return self.catalog.feature_file_paths(config)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _spec_for(self, path: str, kind: FileKind) -> TemplateSpec | None:
        if kind not in (FileKind.COMPONENT, FileKind.PAGE):
            return None
        key = "/".join(strip_extension(path).split("/")[-2:])
        return self._table.get(key)

    def _template_for(self, path: str, kind: FileKind, profile: FrameworkProfile) -> str | None:
        spec = self._spec_for(path, kind)
        if spec is not None:
            return spec.template
        if kind == FileKind.STYLESHEET and path in profile.stylesheet_paths:
            return CORE_STYLESHEET_TEMPLATES.get(stem(path), KIND_TEMPLATES[kind])
        return KIND_TEMPLATES.get(kind)

    def _context(
        self,
        path: str,
        kind: FileKind,
        config: ProjectConfig,
        profile: FrameworkProfile,
    ) -> dict[str, Any]:
        name = stem(path)
        context: dict[str, Any] = {
            "identifier": pascal_case(name),
            "identifier_camel": name if name.startswith("use") else camel_case(name),
            "class_name": kebab_case(name),
            "business_name": config.display_name,
            "business_goal": config.business_goal,
            "project_name": config.project_name,
            "features": list(config.features),
            "typed": profile.typed,
            "entry_script": profile.entry_path if profile.html_loads_entry else "",
            "pages": self._page_entries(config, profile) if kind == FileKind.ROOT_COMPONENT else [],
        }
        spec = self._spec_for(path, kind)
        if spec is not None:
            context.update(spec.context)
        return context

    def _page_entries(self, config: ProjectConfig, profile: FrameworkProfile) -> list[dict[str, str]]:
        """Routes the root component renders: one per feature page."""
        entries: list[dict[str, str]] = []
        for path in self.catalog.feature_file_paths(config):
            if "/pages/" not in f"/{path}":
                continue
            spec = self._spec_for(path, FileKind.PAGE)
            identifier = pascal_case(stem(path))
            if spec is not None:
                identifier = spec.context.get("identifier", identifier)
            entries.append(
                {
                    "identifier": identifier,
                    "specifier": relative_specifier(profile.root_component_path, path),
                    "route": kebab_case(stem(path)),
                }
            )
        return entries

    def _minimal_body(self, kind: FileKind, context: dict[str, Any]) -> str:
        if kind in (FileKind.COMPONENT, FileKind.PAGE, FileKind.ROOT_COMPONENT):
            return _MINIMAL_COMPONENT.format(
                identifier=context["identifier"], class_name=context["class_name"]
            )
        if kind == FileKind.ENTRY:
            return _MINIMAL_ENTRY
        if kind == FileKind.HTML:
            script = ""
            if context["entry_script"]:
                script = f'  <script type="module" src="/{context["entry_script"]}"></script>\n'
            title = str(context["business_name"] or context["project_name"])
            title = title.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
            return _MINIMAL_HTML.format(title=title, script=script)
        if kind == FileKind.STYLESHEET:
            return f".{context['class_name'] or 'root'} {{\n}}\n"
        if kind == FileKind.MODULE:
            return "export default {};\n"
        if kind == FileKind.DOCUMENT:
            return f"# {context['identifier']}\n"
        return ""


def dump_manifest(manifest: Mapping[str, Any]) -> str:
    """Serialise a manifest the way npm writes it: two-space indent, trailing newline."""
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"
