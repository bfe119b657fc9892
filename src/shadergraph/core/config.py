# src/shadergraph/core/config.py
"""
Configuration schema and loading for the shader graph editor core.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class GraphSettings(BaseModel):
    """Structural rules of the canonical graph.

    Example YAML:
        graph:
          variadic_node_types: [binary]
          handle_alphabet: abcdefghijklmnopqrstuvwxyz
    """

    model_config = {"frozen": True}

    variadic_node_types: frozenset[str] = Field(
        default=frozenset({"binary"}),
        description="Node types whose inputs are renumbered a, b, c... by inbound edge order",
    )
    handle_alphabet: str = Field(
        default="abcdefghijklmnopqrstuvwxyz",
        min_length=1,
        description="Ordered input handle names for variadic nodes",
    )
    output_node_types: frozenset[str] = Field(
        default=frozenset({"output"}),
        description="Node types that are structural anchors: never replaced, stripped from imports",
    )

    @field_validator("handle_alphabet")
    @classmethod
    def validate_unique_handles(cls, v: str) -> str:
        if len(set(v)) != len(v):
            raise ValueError("handle_alphabet must not repeat characters")
        return v


class UniformLayoutSettings(BaseModel):
    """Placement of data nodes synthesized from uniform declarations.

    The n-th uniform of a node at (x, y) lands at
    (x + offset_x, y + offset_y + n * stagger_y).
    """

    model_config = {"frozen": True}

    offset_x: float = -250
    offset_y: float = -200
    stagger_y: float = 100


class NodePlacementSettings(BaseModel):
    """Offset between multiple nodes created by one "add node" action."""

    model_config = {"frozen": True}

    stagger_x: float = 20
    stagger_y: float = 40


class CompileSettings(BaseModel):
    """Compile scheduling.

    Value edits on source nodes and baked-input toggles request a compile
    only after ``debounce_ms`` of quiet; 0 marks dirty immediately.
    """

    model_config = {"frozen": True}

    debounce_ms: int = Field(default=500, ge=0)


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        normalized = v.upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return normalized


class EditorSettings(BaseModel):
    """Root settings for the editor core."""

    model_config = {"frozen": True}

    graph: GraphSettings = Field(default_factory=GraphSettings)
    uniforms: UniformLayoutSettings = Field(default_factory=UniformLayoutSettings)
    placement: NodePlacementSettings = Field(default_factory=NodePlacementSettings)
    compile: CompileSettings = Field(default_factory=CompileSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


DEFAULT_SETTINGS = EditorSettings()


def load_settings(config_path: Path) -> EditorSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SHADERGRAPH_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: SHADERGRAPH_GRAPH__HANDLE_ALPHABET for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SHADERGRAPH",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config: dict[str, Any] = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return EditorSettings(**_lower_keys(raw_config))


def _lower_keys(config: dict[str, Any]) -> dict[str, Any]:
    """Lowercase nested keys (Dynaconf uppercases env-provided sections)."""
    result: dict[str, Any] = {}
    for key, value in config.items():
        result[key.lower()] = _lower_keys(value) if isinstance(value, dict) else value
    return result
