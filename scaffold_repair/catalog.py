"""Dependency catalog and framework profiles.

The catalog is the immutable table the prevention pass, the detector and the
manifest strategies all consult: which packages a framework needs as a
baseline, which packages each selected feature pulls in, the version range
pinned for every known package, and where a framework expects its mandatory
files to live.

A single ``DependencyCatalog`` instance is built once and injected into the
orchestrator. Nothing here is mutated at runtime; callers receive copies of
the mapping fields.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from scaffold_repair.models import ProjectConfig
from scaffold_repair.paths import strip_extension


# ---------------------------------------------------------------------------
# Framework profiles
# ---------------------------------------------------------------------------

class FrameworkProfile(BaseModel):
    """Where a framework keeps its mandatory files and what it depends on."""

    model_config = ConfigDict(frozen=True)

    name: str
    manifest_path: str = Field(default="package.json")
    html_path: str
    entry_path: str
    root_component_path: str
    stylesheet_paths: tuple[str, ...] = Field(default=("src/index.css", "src/App.css"))
    script_extension: str = Field(default=".js", description="Extension for new script files")
    typed_extension: str = Field(default=".tsx")
    baseline_dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)
    typed_dev_dependencies: dict[str, str] = Field(default_factory=dict)
    scripts: dict[str, str] = Field(default_factory=dict)
    required_scripts: tuple[str, ...] = Field(default=("build",))
    recommended_scripts: tuple[str, ...] = Field(default=())
    manifest_extras: dict[str, Any] = Field(default_factory=dict)
    html_loads_entry: bool = Field(
        default=False, description="HTML shell loads the entry script itself"
    )
    jsx_import_marker: Optional[str] = Field(
        default=None, description="Identifier every JSX file must import, if any"
    )
    typed: bool = Field(default=False)

    @property
    def mandatory_files(self) -> tuple[str, ...]:
        """Files without which the simulated build cannot start."""
        return (self.manifest_path, self.html_path, self.entry_path, self.root_component_path)

    @property
    def core_files(self) -> tuple[str, ...]:
        return self.mandatory_files + self.stylesheet_paths

    @property
    def new_script_extension(self) -> str:
        return self.typed_extension if self.typed else self.script_extension

    def for_typing(self, strict: bool) -> "FrameworkProfile":
        """Return the TypeScript variant of this profile when *strict* is set."""
        if not strict or self.typed:
            return self
        return self.model_copy(
            update={
                "entry_path": strip_extension(self.entry_path) + self.typed_extension,
                "root_component_path": strip_extension(self.root_component_path)
                + self.typed_extension,
                "dev_dependencies": {**self.dev_dependencies, **self.typed_dev_dependencies},
                "typed": True,
            }
        )


# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

_REACT_BASELINE: dict[str, str] = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "react-router-dom": "^6.8.0",
}

_PINNED_VERSIONS: dict[str, str] = {
    **_REACT_BASELINE,
    "axios": "^1.3.0",
    "stripe": "^12.0.0",
    "@stripe/react-stripe-js": "^2.1.0",
    "react-google-analytics": "^1.0.0",
    "react-social-icons": "^5.15.0",
    "react-toastify": "^9.1.0",
    "socket.io-client": "^4.6.0",
    "react-scripts": "^5.0.1",
}

_FEATURE_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "auth": ("react-router-dom", "axios"),
    "payments": ("stripe", "@stripe/react-stripe-js"),
    "analytics": ("react-google-analytics",),
    "social": ("react-social-icons",),
    "notifications": ("react-toastify",),
    "chat": ("socket.io-client",),
    "contact-form": (),
    "gallery": (),
}

# Extension-less; the profile decides the script extension.
_FEATURE_FILES: dict[str, tuple[str, ...]] = {
    "auth": ("src/components/AuthForm", "src/pages/Login", "src/pages/Register"),
    "contact-form": ("src/components/ContactForm", "src/pages/Contact"),
    "gallery": ("src/components/Gallery", "src/pages/Gallery"),
}

_REACT_PROFILE = FrameworkProfile(
    name="react",
    html_path="public/index.html",
    entry_path="src/index.js",
    root_component_path="src/App.js",
    script_extension=".js",
    baseline_dependencies=_REACT_BASELINE,
    dev_dependencies={"react-scripts": "^5.0.1"},
    typed_dev_dependencies={
        "typescript": "^4.9.5",
        "@types/react": "^18.0.28",
        "@types/react-dom": "^18.0.11",
    },
    scripts={
        "start": "react-scripts start",
        "build": "react-scripts build",
        "test": "react-scripts test",
        "eject": "react-scripts eject",
    },
    required_scripts=("build",),
    recommended_scripts=("start",),
    manifest_extras={
        "browserslist": {
            "production": [">0.2%", "not dead", "not op_mini all"],
            "development": [
                "last 1 chrome version",
                "last 1 firefox version",
                "last 1 safari version",
            ],
        }
    },
    jsx_import_marker="React",
)

_VITE_PROFILE = FrameworkProfile(
    name="vite",
    html_path="index.html",
    entry_path="src/main.jsx",
    root_component_path="src/App.jsx",
    script_extension=".jsx",
    baseline_dependencies=_REACT_BASELINE,
    dev_dependencies={"vite": "^4.4.0", "@vitejs/plugin-react": "^4.0.0"},
    typed_dev_dependencies={
        "typescript": "^5.0.2",
        "@types/react": "^18.2.15",
        "@types/react-dom": "^18.2.7",
    },
    scripts={"dev": "vite", "build": "vite build", "preview": "vite preview"},
    required_scripts=("build",),
    recommended_scripts=("dev",),
    manifest_extras={"type": "module"},
    html_loads_entry=True,
    jsx_import_marker=None,
)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class DependencyCatalog(BaseModel):
    """Immutable feature -> dependency table plus framework profiles."""

    model_config = ConfigDict(frozen=True)

    versions: dict[str, str] = Field(default_factory=lambda: dict(_PINNED_VERSIONS))
    feature_dependencies: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(_FEATURE_DEPENDENCIES)
    )
    feature_files: dict[str, tuple[str, ...]] = Field(default_factory=lambda: dict(_FEATURE_FILES))
    profiles: dict[str, FrameworkProfile] = Field(
        default_factory=lambda: {"react": _REACT_PROFILE, "vite": _VITE_PROFILE}
    )
    default_framework: str = Field(default="react")
    fallback_version: str = Field(
        default="latest", description="Range used for packages with no pinned version"
    )

    def has_profile(self, framework: str) -> bool:
        return framework.lower() in self.profiles

    def profile_for(self, config: ProjectConfig) -> FrameworkProfile:
        """Resolve the framework profile for *config*, falling back to the default."""
        profile = self.profiles.get(config.framework.lower()) or self.profiles[self.default_framework]
        return profile.for_typing(config.strict_typing)

    def version_for(self, package: str) -> str:
        return self.versions.get(package, self.fallback_version)

    def feature_packages(self, config: ProjectConfig) -> list[str]:
        """Packages declared by the selected features, in feature order, deduplicated."""
        packages: list[str] = []
        for feature in config.features:
            for package in self.feature_dependencies.get(feature, ()):
                if package not in packages:
                    packages.append(package)
        return packages

    def required_dependencies(self, config: ProjectConfig) -> dict[str, str]:
        """Baseline plus feature dependencies with their pinned ranges."""
        required = dict(self.profile_for(config).baseline_dependencies)
        for package in self.feature_packages(config):
            required.setdefault(package, self.version_for(package))
        return required

    def feature_file_paths(self, config: ProjectConfig) -> list[str]:
        """Concrete paths of the files every selected feature needs."""
        ext = self.profile_for(config).new_script_extension
        paths: list[str] = []
        for feature in config.features:
            for stem in self.feature_files.get(feature, ()):
                path = stem + ext
                if path not in paths:
                    paths.append(path)
        return paths
