"""
Configuration Module - Load and validate engine settings.
=========================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults. Nested sections can be
overridden with a double underscore, e.g. ``LAYOUT__ITERATIONS=500``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early
load_dotenv()

# Find project root (where pyproject.toml is located)
def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    # Fallback to current working directory
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class ExtractionSettings(BaseModel):
    """Requirement-text extraction settings."""

    min_subject_length: int = 2
    max_subject_length: int = 10
    allow_hyphenated_keywords: bool = True


class ForceSettings(BaseModel):
    """Force simulation parameters not exposed per request."""

    collision_radius: float = 30.0
    collision_strength: float = 1.0
    alpha_decay: float = 0.02
    alpha_min: float = 0.001
    velocity_decay: float = 0.3
    progress_checkpoints: int = 10
    initial_radius: float = 10.0
    seed_jitter: float = 8.0
    block_size: int = 512


class ConcentricSettings(BaseModel):
    """Concentric (ring-per-category) layout settings."""

    min_radius: float = 120.0
    min_arc_length: float = 60.0
    ring_spacing: float = 90.0
    priority: list[str] = Field(
        default_factory=lambda: [
            "CS",
            "MATH",
            "STAT",
            "ECE",
            "PHYS",
            "CHEM",
            "BIOL",
            "ECON",
            "PSYC",
            "ENG",
        ]
    )


class LayoutSettings(BaseModel):
    """Layout engine defaults."""

    default_kind: str = "force"
    width: float = 1200.0
    height: float = 800.0
    strength: float = 300.0
    distance: float = 100.0
    iterations: int = 300
    link_strength: float = 0.5
    grid_spacing: float = 100.0
    level_spacing: float = 120.0
    level_node_spacing: float = 80.0
    level_top_offset: float = 200.0
    level_width_fraction: float = 0.8
    warm_start: bool = True
    force: ForceSettings = Field(default_factory=ForceSettings)
    concentric: ConcentricSettings = Field(default_factory=ConcentricSettings)


class InteractionSettings(BaseModel):
    """Interactive view settings."""

    min_zoom: float = 0.1
    max_zoom: float = 5.0
    zoom_step: float = 1.2
    wheel_zoom_in: float = 1.1
    wheel_zoom_out: float = 0.9
    drag_threshold: float = 3.0
    cull_buffer: float = 100.0
    dim_opacity: float = 0.2
    code_label_zoom: float = 0.7
    code_label_fade: float = 0.3
    title_label_zoom: float = 1.5
    title_label_fade: float = 0.5
    max_nodes_for_edges: int = 1000


class PathsConfig(BaseModel):
    """Data paths configuration."""

    data_dir: str = "data"
    courses_file: str = "data/courses.json"
    relations_file: str = "data/relations.json"
    output_dir: str = "data/output"

    def resolve(self, base_path: Path) -> "ResolvedPaths":
        """Resolve paths relative to a base path."""
        return ResolvedPaths(
            data_dir=base_path / self.data_dir,
            courses_file=base_path / self.courses_file,
            relations_file=base_path / self.relations_file,
            output_dir=base_path / self.output_dir,
        )


class ResolvedPaths(BaseModel):
    """Resolved absolute paths."""

    data_dir: Path
    courses_file: Path
    relations_file: Path
    output_dir: Path

    model_config = {"arbitrary_types_allowed": True}


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Top-level environment overrides
    layout_kind: Optional[str] = Field(default=None, validation_alias="LAYOUT_KIND")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    interaction: InteractionSettings = Field(default_factory=InteractionSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Computed properties
    _project_root: Path = PROJECT_ROOT
    _resolved_paths: Optional[ResolvedPaths] = None

    @field_validator("layout_kind", mode="before")
    @classmethod
    def normalize_layout_kind(cls, v: Any) -> Optional[str]:
        """Treat an empty override as unset."""
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip().lower()

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._project_root

    @property
    def resolved_paths(self) -> ResolvedPaths:
        """Get resolved absolute paths."""
        if self._resolved_paths is None:
            self._resolved_paths = self.paths.resolve(self._project_root)
        return self._resolved_paths

    def get_effective_layout_kind(self) -> str:
        """Get the effective default layout kind (env override or config)."""
        if self.layout_kind:
            return self.layout_kind
        return self.layout.default_kind.lower()

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    # Load YAML defaults
    yaml_config = _load_yaml_config(config_path)

    # Create settings with YAML as defaults, env vars will override
    return Settings(**yaml_config)


def load_settings(config_path: Path) -> Settings:
    """
    Build a settings instance from an explicit YAML file.

    Unlike get_settings(), the result is not cached.

    Args:
        config_path: Path to a settings YAML file

    Returns:
        Settings instance
    """
    return _create_settings(config_path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.layout.iterations)
        300
    """
    return _create_settings()


def reload_settings() -> Settings:
    """
    Force reload of settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
