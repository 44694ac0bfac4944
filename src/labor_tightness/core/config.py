"""
Configuration Loading and Validation

Provides structured config loading with:
- JSON support
- Schema validation
- Environment variable interpolation (${FRED_API_KEY})
- The PipelineConfig consumed by every stage
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def get_project_root() -> Path:
    """Get the project root directory."""
    # Walk up from this file to find pyproject.toml
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path.cwd()


def get_config_dir() -> Path:
    """Get the config directory."""
    return get_project_root() / "config"


def _is_iso_date(value: Any) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


@dataclass
class ConfigSchema:
    """
    Schema definition for config validation.

    Usage:
        schema = ConfigSchema(
            required=["sample_start"],
            optional={"lag": 4},
            types={"lag": int},
        )
        errors = schema.validate(config_dict)
    """

    required: list[str] = field(default_factory=list)
    optional: dict[str, Any] = field(default_factory=dict)
    types: dict[str, type | tuple[type, ...]] = field(default_factory=dict)
    validators: dict[str, Callable[[Any], bool]] = field(default_factory=dict)

    def validate(self, config: dict[str, Any]) -> list[str]:
        """
        Validate a config against this schema.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for field_name in self.required:
            if field_name not in config:
                errors.append(f"Missing required field: {field_name}")

        known = set(self.required) | set(self.optional)
        for field_name in config:
            if known and field_name not in known:
                errors.append(f"Unknown field: {field_name}")

        mistyped = set()
        for field_name, expected_type in self.types.items():
            value = config.get(field_name)
            if value is not None and not isinstance(value, expected_type):
                mistyped.add(field_name)
                expected = (
                    expected_type.__name__
                    if isinstance(expected_type, type)
                    else "/".join(t.__name__ for t in expected_type)
                )
                errors.append(
                    f"Field '{field_name}' expected {expected}, "
                    f"got {type(value).__name__}"
                )

        # Validators assume the declared type
        for field_name, validator in self.validators.items():
            if field_name in mistyped:
                continue
            if config.get(field_name) is not None and not validator(config[field_name]):
                errors.append(f"Validation failed for field: {field_name}")

        return errors

    def apply_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Apply default values for missing optional fields."""
        result = config.copy()
        for field_name, default_value in self.optional.items():
            if field_name not in result:
                result[field_name] = default_value
        return result


class ConfigLoader:
    """
    Load and validate JSON configuration files.

    Supports:
    - Environment variable interpolation (${VAR_NAME})
    - Schema validation
    - Caching
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize config loader.

        Args:
            base_dir: Base directory for config files (defaults to project config/)
        """
        self.base_dir = base_dir or get_config_dir()
        self._cache: dict[str, dict] = {}

    def load(
        self,
        path: str | Path,
        schema: Optional[ConfigSchema] = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """
        Load a config file.

        Args:
            path: Path to config file (absolute or relative to base_dir)
            schema: Optional schema for validation
            use_cache: Whether to use cached config

        Returns:
            Loaded and validated config dict

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If validation fails
        """
        path = Path(path)
        if not path.is_absolute():
            path = self.base_dir / path

        cache_key = str(path)
        if use_cache and cache_key in self._cache:
            return self._cache[cache_key]

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            config = json.load(f)

        config = self._interpolate_env_vars(config)

        if schema:
            config = validate_config(config, schema, source=str(path))

        if use_cache:
            self._cache[cache_key] = config

        return config

    def _interpolate_env_vars(self, obj: Any) -> Any:
        """Recursively interpolate ${VAR} patterns with environment variables."""
        if isinstance(obj, str):
            match = ENV_PATTERN.fullmatch(obj)
            if match:
                # A lone unset ${VAR} becomes None rather than the literal text
                return os.environ.get(match.group(1))
            return ENV_PATTERN.sub(
                lambda m: os.environ.get(m.group(1), m.group(0)), obj
            )

        elif isinstance(obj, dict):
            return {k: self._interpolate_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [self._interpolate_env_vars(item) for item in obj]

        return obj

    def clear_cache(self):
        """Clear the config cache."""
        self._cache.clear()


def validate_config(
    config: dict[str, Any],
    schema: ConfigSchema,
    source: str = "config",
) -> dict[str, Any]:
    """
    Validate and apply defaults to a config dict.

    Convenience function for inline validation.
    """
    errors = schema.validate(config)
    if errors:
        raise ValueError(
            f"Config validation failed for {source}:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )
    return schema.apply_defaults(config)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings for one replication run.

    Dates bound the analysis sample, the baseline used for z-scores and the
    pre-pandemic estimation cutoff. The API key is read once here and handed
    to the fetcher explicitly.
    """

    sample_start: date = date(2001, 1, 1)
    sample_end: date = date(2021, 7, 31)
    baseline_end: date = date(2018, 12, 31)
    estimation_end: date = date(2019, 12, 31)
    lag: int = 4
    frequency: str = "q"
    aggregation_method: str = "avg"
    api_key: Optional[str] = field(
        default_factory=lambda: os.environ.get("FRED_API_KEY"), repr=False
    )
    use_cache: bool = True
    cache_dir: Optional[str] = None
    cache_max_age_hours: int = 24

    def __post_init__(self):
        if self.lag < 1:
            raise ValueError(f"lag must be >= 1, got {self.lag}")
        if not (
            self.sample_start < self.baseline_end
            <= self.estimation_end <= self.sample_end
        ):
            raise ValueError(
                "Expected sample_start < baseline_end <= estimation_end <= sample_end, "
                f"got {self.sample_start}, {self.baseline_end}, "
                f"{self.estimation_end}, {self.sample_end}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineConfig":
        """Build a config from a (validated) dict, parsing ISO date strings."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")

        kwargs = {}
        for key, value in data.items():
            if key in DATE_FIELDS and isinstance(value, str):
                value = date.fromisoformat(value)
            if key == "api_key" and not value:
                # Fall through to the environment default
                continue
            kwargs[key] = value
        return cls(**kwargs)


DATE_FIELDS = ("sample_start", "sample_end", "baseline_end", "estimation_end")

PIPELINE_CONFIG_SCHEMA = ConfigSchema(
    optional={
        "sample_start": "2001-01-01",
        "sample_end": "2021-07-31",
        "baseline_end": "2018-12-31",
        "estimation_end": "2019-12-31",
        "lag": 4,
        "frequency": "q",
        "aggregation_method": "avg",
        "api_key": None,
        "use_cache": True,
        "cache_dir": None,
        "cache_max_age_hours": 24,
    },
    types={
        "sample_start": str,
        "sample_end": str,
        "baseline_end": str,
        "estimation_end": str,
        "lag": int,
        "frequency": str,
        "aggregation_method": str,
        "api_key": str,
        "use_cache": bool,
        "cache_dir": str,
        "cache_max_age_hours": int,
    },
    validators={
        "sample_start": _is_iso_date,
        "sample_end": _is_iso_date,
        "baseline_end": _is_iso_date,
        "estimation_end": _is_iso_date,
        "lag": lambda v: v >= 1,
        "frequency": lambda v: v in ("q", "m", "a"),
        "aggregation_method": lambda v: v in ("avg", "sum", "eop"),
    },
)


def load_pipeline_config(
    path: Optional[str | Path] = None,
    loader: Optional[ConfigLoader] = None,
) -> PipelineConfig:
    """
    Load the pipeline configuration.

    Args:
        path: Config file path. Defaults to config/pipeline.json; when that
              default file is absent the built-in defaults are used.
        loader: Optional ConfigLoader (for a custom base directory)

    Returns:
        PipelineConfig
    """
    loader = loader or ConfigLoader()

    if path is None:
        default_path = loader.base_dir / "pipeline.json"
        if not default_path.exists():
            return PipelineConfig()
        path = default_path

    raw = loader.load(path, schema=PIPELINE_CONFIG_SCHEMA, use_cache=False)
    return PipelineConfig.from_dict(raw)
