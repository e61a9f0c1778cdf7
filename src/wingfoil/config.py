"""
wingfoil configuration loader

Analysis thresholds and geocoding settings come from layered sources. Every
threshold has a default and can be overridden on its own, from a committed
repo file, a personal file in the home directory, an environment variable
or a CLI flag.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by the CLI via AnalysisConfig.with_overrides)
2) Environment variables (WINGFOIL_*)
3) User config: ~/.config/wingfoil/config.toml
4) Repo config: config/config.toml next to src/
5) Hard defaults (AnalysisConfig / GeocodeConfig field defaults)

TOML is read with tomllib on Python 3.11+ and the tomli backport before that.

Units
-----
Speed thresholds that users think about in km/h are stored in km/h, but the
analysis engine only ever compares in m/s. The conversion happens exactly
once, in the `*_ms` properties of AnalysisConfig.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from wingfoil.errors import ConfigError

KMH_PER_MS = 3.6


# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise a ConfigError
      with a clear, user-facing message.
    """
    if not path.is_file():
        return {}

    try:
        try:
            # Python 3.11+ standard library
            import tomllib
            return tomllib.loads(path.read_text(encoding="utf-8")) or {}
        except ModuleNotFoundError:
            import tomli
            return tomli.loads(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "analysis.jibe_angle_threshold_deg")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_float(v: Any, key: str) -> Optional[float]:
    """
    Coerce a config value into a float.

    Returns None when the value is absent. Anything present but not numeric
    is a user mistake and raises ConfigError naming the key.
    """
    if v is None:
        return None
    if isinstance(v, bool):
        raise ConfigError(f"{key}: expected a number, got {v!r}")
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return None
        try:
            return float(s)
        except ValueError:
            pass
    raise ConfigError(f"{key}: expected a number, got {v!r}")


def _as_bool(v: Any, default: bool) -> bool:
    """
    Coerce loosely-typed config values into booleans.

    Accepts common truthy / falsy representations so that TOML, environment
    variables and user overrides all behave consistently.
    """
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    return default


def _as_str(v: Any, default: str) -> str:
    """
    Coerce config values into strings.

    Always returns a string; never raises.
    """
    if v is None:
        return default
    return str(v)


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalysisConfig:
    """
    Thresholds for one analysis run.

    Invariants (checked on construction):
    - 0 < tack_angle_threshold_deg < jibe_angle_threshold_deg <= 180
    - maneuver_time_window_s > 0
    - every other threshold >= 0

    speed_jump_limit_ms is optional: when set, the sustained maximum speed is
    evaluated only over points whose speed differs from the last kept speed by
    at most this many m/s.
    """

    flying_speed_threshold_kmh: float = 8.0
    flying_jibe_speed_threshold_kmh: float = 8.0
    jibe_angle_threshold_deg: float = 140.0
    tack_angle_threshold_deg: float = 80.0
    maneuver_time_window_s: float = 15.0
    min_flying_segment_s: float = 5.0
    min_max_speed_duration_s: float = 3.0
    outlier_speed_cap_ms: float = 50.0
    speed_jump_limit_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if not 0 < self.tack_angle_threshold_deg < self.jibe_angle_threshold_deg <= 180:
            raise ConfigError(
                "Angle thresholds must satisfy 0 < tack < jibe <= 180 "
                f"(tack={self.tack_angle_threshold_deg}, jibe={self.jibe_angle_threshold_deg})"
            )
        if self.maneuver_time_window_s <= 0:
            raise ConfigError(f"maneuver_time_window_s must be > 0 (got {self.maneuver_time_window_s})")
        for name in (
            "flying_speed_threshold_kmh",
            "flying_jibe_speed_threshold_kmh",
            "min_flying_segment_s",
            "min_max_speed_duration_s",
            "outlier_speed_cap_ms",
        ):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0 (got {getattr(self, name)})")
        if self.speed_jump_limit_ms is not None and self.speed_jump_limit_ms < 0:
            raise ConfigError(f"speed_jump_limit_ms must be >= 0 (got {self.speed_jump_limit_ms})")

    @property
    def flying_speed_threshold_ms(self) -> float:
        return self.flying_speed_threshold_kmh / KMH_PER_MS

    @property
    def flying_jibe_speed_threshold_ms(self) -> float:
        return self.flying_jibe_speed_threshold_kmh / KMH_PER_MS

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """
        Return a validated copy with the given fields replaced.

        None values are ignored so argparse namespaces can be passed through
        without filtering.
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            raise ConfigError(f"Unknown analysis setting(s): {', '.join(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class GeocodeConfig:
    """
    Reverse geocoding settings for session metadata.

    Disabled by default: the analysis never needs a network.
    """

    enabled: bool = False
    base_url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "wingfoil/0.1"
    timeout_s: float = 10.0


@dataclass(frozen=True)
class WingfoilConfig:
    """
    Fully merged wingfoil configuration.

    Attributes:
    - analysis: engine thresholds
    - geocode: reverse geocoding collaborator settings
    - source: provenance map showing where each value came from
    """

    analysis: AnalysisConfig
    geocode: GeocodeConfig
    source: dict[str, str]


# dotted TOML key -> environment variable
ANALYSIS_ENV = {
    "analysis.flying_speed_threshold_kmh": "WINGFOIL_FLYING_SPEED_KMH",
    "analysis.flying_jibe_speed_threshold_kmh": "WINGFOIL_FLYING_JIBE_SPEED_KMH",
    "analysis.jibe_angle_threshold_deg": "WINGFOIL_JIBE_ANGLE_DEG",
    "analysis.tack_angle_threshold_deg": "WINGFOIL_TACK_ANGLE_DEG",
    "analysis.maneuver_time_window_s": "WINGFOIL_MANEUVER_WINDOW_S",
    "analysis.min_flying_segment_s": "WINGFOIL_MIN_FLYING_SEGMENT_S",
    "analysis.min_max_speed_duration_s": "WINGFOIL_MIN_MAX_SPEED_DURATION_S",
    "analysis.outlier_speed_cap_ms": "WINGFOIL_OUTLIER_SPEED_CAP_MS",
    "analysis.speed_jump_limit_ms": "WINGFOIL_SPEED_JUMP_LIMIT_MS",
}

GEOCODE_ENV = {
    "geocode.enabled": "WINGFOIL_GEOCODE_ENABLED",
    "geocode.base_url": "WINGFOIL_GEOCODE_URL",
    "geocode.user_agent": "WINGFOIL_GEOCODE_USER_AGENT",
    "geocode.timeout_s": "WINGFOIL_GEOCODE_TIMEOUT_S",
}


# ---------------------------------------------------------------------------
# Repo discovery
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the wingfoil repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> WingfoilConfig:
    """
    Load, merge, and validate all wingfoil configuration.

    This function is the single authoritative entry point
    for configuration access.
    """
    if environ is None:
        environ = dict(os.environ)

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "wingfoil" / "config.toml"

    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    # Raw values keyed by dotted key; later layers overwrite earlier ones.
    values: dict[str, Any] = {}
    src: dict[str, str] = {k: "default" for k in list(ANALYSIS_ENV) + list(GEOCODE_ENV)}

    for cfg, label, path in ((repo_cfg, "repo", repo_config_path), (user_cfg, "user", user_config_path)):
        for key in src:
            v = _deep_get(cfg, key)
            if v is None:
                continue
            values[key] = v
            src[key] = f"{label}:{path}"

    # Environment variable overrides (highest non-CLI precedence)
    for key, env in {**ANALYSIS_ENV, **GEOCODE_ENV}.items():
        v = environ.get(env)
        if v is None or not v.strip():
            continue
        values[key] = v
        src[key] = f"env:{env}"

    # Build typed analysis config
    analysis_kwargs: dict[str, Any] = {}
    for key in ANALYSIS_ENV:
        f = _as_float(values.get(key), key)
        if f is not None:
            analysis_kwargs[key.split(".", 1)[1]] = f
    analysis = AnalysisConfig(**analysis_kwargs)

    defaults = GeocodeConfig()
    timeout = _as_float(values.get("geocode.timeout_s"), "geocode.timeout_s")
    geocode = GeocodeConfig(
        enabled=_as_bool(values.get("geocode.enabled"), defaults.enabled),
        base_url=_as_str(values.get("geocode.base_url"), defaults.base_url),
        user_agent=_as_str(values.get("geocode.user_agent"), defaults.user_agent),
        timeout_s=timeout if timeout is not None else defaults.timeout_s,
    )

    return WingfoilConfig(analysis=analysis, geocode=geocode, source=src)
