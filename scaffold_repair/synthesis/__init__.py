"""File synthesis for the scaffold repair pipeline.

Renders complete source files (components, pages, stylesheets, the manifest,
entry point and HTML shell) for paths that are referenced or required but
absent from the file set.
"""

from .registry import FileKind, TemplateRegistry, TemplateSpec, dump_manifest
from .templates import TemplateRenderer

__all__ = [
    "FileKind",
    "TemplateRegistry",
    "TemplateRenderer",
    "TemplateSpec",
    "dump_manifest",
]
