"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      committed static defaults
  2. ``config/local.toml``        optional local overrides (gitignored)
  3. ``.env``                     local secrets and env overrides (gitignored)
  4. Environment variables        ``CITYSPARK_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The engines never read configuration themselves: the CLI and the service
facade pass the relevant sub-config (weights, forecast settings, lever
coefficients) into every call.  That keeps the model auditable: every
constant that shapes a result is visible in one TOML file.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from cityspark.taxonomy.lever_taxonomy import Lever

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for input datasets and exported reports."""

    model_config = ConfigDict(frozen=True)

    districts_file: str = "config/data/districts.csv"
    migration_file: str = "config/data/migration_series.csv"
    output_dir: str = "data/outputs"
    national_series_id: str = "national"


class ScoringConfig(BaseModel):
    """Composite imbalance score settings.

    ``weights`` must sum to 1.0 within ``weight_tolerance``; the scoring
    engine enforces this and raises ``ConfigurationError`` otherwise.

    ``inverted_indicators`` lists categories where a higher raw value means
    *less* imbalance; they are scored as ``1 - normalized``.
    """

    model_config = ConfigDict(frozen=True)

    weights: dict[str, float] = {
        "economic":       0.40,
        "infrastructure": 0.35,
        "social":         0.25,
    }
    weight_tolerance: float = 1e-6
    high_threshold: float = 0.80
    medium_threshold: float = 0.65
    inverted_indicators: list[str] = []

    @field_validator("weights")
    @classmethod
    def validate_weights_non_negative(cls, v: dict[str, float]) -> dict[str, float]:
        if not v:
            raise ValueError("scoring.weights must not be empty.")
        for name, w in v.items():
            if w < 0:
                raise ValueError(f"Weight for '{name}' must be non-negative, got {w}.")
        return v

    @model_validator(mode="after")
    def validate_thresholds(self) -> "ScoringConfig":
        if not 0.0 < self.medium_threshold <= self.high_threshold <= 1.0:
            raise ValueError(
                "Risk thresholds must satisfy 0 < medium_threshold <= high_threshold <= 1, "
                f"got medium={self.medium_threshold}, high={self.high_threshold}."
            )
        unknown = set(self.inverted_indicators) - set(self.weights)
        if unknown:
            raise ValueError(
                f"inverted_indicators {sorted(unknown)} are not weighted categories."
            )
        return self


class ForecastConfig(BaseModel):
    """Baseline ARIMA forecast settings."""

    model_config = ConfigDict(frozen=True)

    confidence_pct: float = 0.95
    default_horizon: int = 6
    min_history: int = 4
    min_train_points: int = 4
    max_diff_order: int = 2
    ar_orders: list[int] = [0, 1, 2, 3]
    ma_orders: list[int] = [0, 1, 2, 3]
    adf_alpha: float = 0.05

    @field_validator("confidence_pct")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"confidence_pct must be in (0.0, 1.0), got {v}.")
        return v

    @field_validator("ar_orders", "ma_orders")
    @classmethod
    def validate_orders(cls, v: list[int]) -> list[int]:
        if not v or any(o < 0 for o in v):
            raise ValueError(f"AR/MA order grids must be non-empty and non-negative, got {v}.")
        return sorted(set(v))

    @field_validator("min_history", "min_train_points")
    @classmethod
    def validate_min_points(cls, v: int) -> int:
        if v < 4:
            raise ValueError(f"At least 4 points are required to fit a model, got {v}.")
        return v


class SimulationConfig(BaseModel):
    """Policy-lever impact model constants.

    ``max_impact`` is the fractional reduction achievable if 100% of a notional
    full budget went to that lever alone.  The total reduction is clamped to
    ``[envelope_min, envelope_max]`` percent.  ``sensitivity_delta`` is the
    historical spread of comparable interventions (percentage points) and
    ``confidence`` is a fixed model-trust score (percent).
    """

    model_config = ConfigDict(frozen=True)

    max_impact: dict[str, float] = {
        "jobs":           0.25,
        "healthcare":     0.15,
        "education":      0.12,
        "infrastructure": 0.10,
    }
    envelope_min: float = 1.5
    envelope_max: float = 22.0
    sensitivity_delta: float = 4.5
    confidence: float = 86.0
    allocation_tolerance: float = 0.1

    @field_validator("max_impact")
    @classmethod
    def validate_levers(cls, v: dict[str, float]) -> dict[str, float]:
        expected = {lever.value for lever in Lever}
        if set(v) != expected:
            raise ValueError(
                f"max_impact must define exactly {sorted(expected)}, got {sorted(v)}."
            )
        for name, coef in v.items():
            if not 0.0 <= coef <= 1.0:
                raise ValueError(f"max_impact['{name}'] must be in [0, 1], got {coef}.")
        return v

    @model_validator(mode="after")
    def validate_envelope(self) -> "SimulationConfig":
        if not 0.0 <= self.envelope_min <= self.envelope_max <= 100.0:
            raise ValueError(
                "Reduction envelope must satisfy 0 <= envelope_min <= envelope_max <= 100, "
                f"got [{self.envelope_min}, {self.envelope_max}]."
            )
        if self.sensitivity_delta < 0:
            raise ValueError("sensitivity_delta must be non-negative.")
        if not 0.0 <= self.confidence <= 100.0:
            raise ValueError(f"confidence must be in [0, 100], got {self.confidence}.")
        return self


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/cityspark.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration, the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    scoring: ScoringConfig = ScoringConfig()
    forecast: ForecastConfig = ForecastConfig()
    simulation: SimulationConfig = SimulationConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply CITYSPARK_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CITYSPARK_* env vars to the raw config dict.

    Supported overrides:
      CITYSPARK_DISTRICTS_FILE  → raw["data"]["districts_file"]
      CITYSPARK_MIGRATION_FILE  → raw["data"]["migration_file"]
      CITYSPARK_LOG_LEVEL       → raw["logging"]["level"]
      CITYSPARK_DEBUG           → raw["debug"]
    """
    if districts := os.environ.get("CITYSPARK_DISTRICTS_FILE"):
        raw.setdefault("data", {})["districts_file"] = districts

    if migration := os.environ.get("CITYSPARK_MIGRATION_FILE"):
        raw.setdefault("data", {})["migration_file"] = migration

    if log_level := os.environ.get("CITYSPARK_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("CITYSPARK_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        simulation=SimulationConfig(**raw.get("simulation", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
