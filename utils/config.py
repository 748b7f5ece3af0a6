# utils/config.py
"""Configuration loading for agents and matches.

Settings live in ``config/config.yaml``. An optional TOML file can override
any of them; both are merged section by section before being turned into
the :class:`AgentConfig` and :class:`MatchConfig` dataclasses.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml

from game.constants import SELECTION_MODES

log = structlog.get_logger(__name__)

PROJECT_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

FALLBACK_POLICIES = ("hold", "random_walk")


# --- Config Loading Helpers ---
def load_toml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a TOML configuration file. Missing files yield an empty dict."""
    if not config_path.is_file():
        log.warning(f"{config_name} config file not found", path=str(config_path))
        return {}
    try:
        with config_path.open("rb") as f:  # tomllib requires bytes mode
            config_data = tomllib.load(f)
        log.info(f"{config_name} config loaded", path=str(config_path))
        return config_data
    except tomllib.TOMLDecodeError as e:
        log.error(
            f"Error parsing TOML for {config_name}",
            path=str(config_path),
            error=str(e),
        )
        raise


def load_yaml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a generic YAML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(
            f"{config_name} configuration file not found: {config_path}"
        )
    try:
        with config_path.open("r") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}",
            path=str(config_path),
            error=str(e),
        )
        raise
    if config_data is None:
        log.warning(f"{config_name} config file is empty.", path=str(config_path))
        return {}
    if not isinstance(config_data, dict):
        raise ValueError(f"{config_name} config must be a mapping: {config_path}")
    log.info(f"{config_name} config loaded", path=str(config_path))
    return config_data


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Typed settings ---
@dataclass
class AgentConfig:
    """Tunables for :class:`game.ai.fruit_agent.FruitAgent`."""

    max_radius: Optional[int] = None  # None means max(width, height)
    top_k: int = 3
    selection: str = "best_ties"
    widen_on_miss: bool = True
    fallback_policy: str = "random_walk"
    rng_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_radius is not None and self.max_radius < 2:
            raise ValueError(f"search.max_radius must be >= 2, got {self.max_radius}")
        if self.top_k < 1:
            raise ValueError(f"search.top_k must be >= 1, got {self.top_k}")
        if self.selection not in SELECTION_MODES:
            raise ValueError(
                f"search.selection must be one of {SELECTION_MODES}, "
                f"got {self.selection!r}"
            )
        if self.fallback_policy not in FALLBACK_POLICIES:
            raise ValueError(
                f"fallback.policy must be one of {FALLBACK_POLICIES}, "
                f"got {self.fallback_policy!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentConfig":
        search = data.get("search", {}) or {}
        fallback = data.get("fallback", {}) or {}
        return cls(
            max_radius=search.get("max_radius"),
            top_k=int(search.get("top_k", 3)),
            selection=search.get("selection", "best_ties"),
            widen_on_miss=bool(search.get("widen_on_miss", True)),
            fallback_policy=fallback.get("policy", "random_walk"),
            rng_seed=data.get("rng_seed"),
        )


@dataclass
class MatchConfig:
    """Board and match settings used by the local match runner."""

    width: int = 10
    height: int = 10
    num_types: int = 3
    min_per_type: int = 1
    max_per_type: int = 7
    max_turns: int = 200
    board_seed: Optional[int] = None
    opponent: str = "random"

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"match dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.num_types < 1:
            raise ValueError(f"match.num_types must be >= 1, got {self.num_types}")
        if not 1 <= self.min_per_type <= self.max_per_type:
            raise ValueError(
                "match.min_per_type must be >= 1 and <= match.max_per_type"
            )
        if self.min_per_type == self.max_per_type and self.min_per_type % 2 == 0:
            raise ValueError(
                "match.min_per_type..max_per_type must contain an odd count"
            )
        if self.max_turns < 1:
            raise ValueError(f"match.max_turns must be >= 1, got {self.max_turns}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchConfig":
        match = data.get("match", {}) or {}
        known = {k: v for k, v in match.items() if k in cls.__dataclass_fields__}
        unknown = sorted(set(match) - set(known))
        if unknown:
            log.warning("Ignoring unknown match settings", keys=unknown)
        return cls(**known)


def load_settings(
    config_path: Path = CONFIG_FILE, overrides_path: Optional[Path] = None
) -> tuple[AgentConfig, MatchConfig]:
    """Load the YAML config, apply TOML overrides and build typed settings."""
    data = load_yaml_config(config_path, "Main")
    if overrides_path is not None:
        data = merge_config(data, load_toml_config(overrides_path, "Overrides"))
    return AgentConfig.from_dict(data), MatchConfig.from_dict(data)


__all__ = [
    "AgentConfig",
    "MatchConfig",
    "CONFIG_FILE",
    "FALLBACK_POLICIES",
    "SELECTION_MODES",
    "load_settings",
    "load_toml_config",
    "load_yaml_config",
    "merge_config",
]
