"""Configuration loading utilities.

Settings files are YAML with one section per component:

    search:
      iterations: 400
      use_rave: true
    ensemble:
      size: 4
      executor: thread
    match:
      games: 10
    logging:
      level: INFO

Command-line overrides use OmegaConf dotlist syntax
(`search.iterations=1000`) and are merged on top of the file.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf

from pnmcts.benchmark.match import MatchConfig
from pnmcts.core.errors import SearchConfigError
from pnmcts.ensemble.orchestrator import EnsembleConfig
from pnmcts.search.config import SearchConfig


@dataclass
class LoggingSettings:
    """Logging section of a settings file."""

    level: str = "INFO"
    file: str | None = None
    search_trace: bool = False


@dataclass
class Settings:
    """Everything a settings file can configure."""

    search: SearchConfig = field(default_factory=SearchConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    match: MatchConfig = field(default_factory=MatchConfig)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def load_config(config_path: str | Path, overrides: list[str] | None = None) -> DictConfig:
    """Load a configuration file with optional overrides.

    Args:
        config_path: Path to the YAML configuration file.
        overrides: Optional list of CLI-style overrides (e.g., ["search.iterations=1000"]).

    Returns:
        Merged configuration as a DictConfig.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    config = OmegaConf.load(config_path)

    if overrides:
        override_conf = OmegaConf.from_dotlist(overrides)
        config = OmegaConf.merge(config, override_conf)

    return config


def save_config(config: DictConfig | dict[str, Any], path: str | Path) -> None:
    """Save a configuration to a YAML file.

    Args:
        config: Configuration to save.
        path: Path to save the configuration to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(config, dict):
        config = OmegaConf.create(config)

    OmegaConf.save(config, path)


def _check_keys(section: str, data: dict[str, Any], cls: type) -> None:
    known = {f.name for f in fields(cls) if f.init}
    for key in data:
        if key not in known:
            raise SearchConfigError(f"{section}.{key}", "unknown setting")


def search_config_from_dict(
    data: dict[str, Any],
    base: SearchConfig | None = None,
) -> SearchConfig:
    """Create a SearchConfig from a mapping, on top of `base` when given.

    Raises:
        SearchConfigError: On unknown keys or out-of-range values.
    """
    _check_keys("search", data, SearchConfig)
    if base is None:
        return SearchConfig(**data)
    return base.with_overrides(**data)


def ensemble_config_from_dict(data: dict[str, Any], base: SearchConfig) -> EnsembleConfig:
    """Create an EnsembleConfig; `members` entries are overrides of `base`."""
    _check_keys("ensemble", data, EnsembleConfig)
    data = dict(data)
    members = data.pop("members", None) or []
    return EnsembleConfig(
        members=tuple(search_config_from_dict(dict(m), base) for m in members),
        **data,
    )


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Create Settings from a dictionary (e.g., from OmegaConf).

    Args:
        data: Dictionary with configuration values. Missing sections use
            their defaults.

    Returns:
        Settings instance.
    """
    for section in data:
        if section not in {f.name for f in fields(Settings)}:
            raise SearchConfigError(section, "unknown settings section")

    logging_data = data.get("logging") or {}
    match_data = data.get("match") or {}
    _check_keys("logging", logging_data, LoggingSettings)
    _check_keys("match", match_data, MatchConfig)

    search = search_config_from_dict(data.get("search") or {})
    return Settings(
        search=search,
        ensemble=ensemble_config_from_dict(data.get("ensemble") or {}, search),
        match=MatchConfig(**match_data),
        logging=LoggingSettings(**logging_data),
    )


def load_settings(
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> Settings:
    """Load Settings from an optional YAML file plus dotlist overrides."""
    if config_path is not None:
        config = load_config(config_path, overrides)
    else:
        config = OmegaConf.from_dotlist(overrides or [])
    data = OmegaConf.to_container(config, resolve=True)
    return settings_from_dict(data or {})


def config_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert Settings to a dictionary for serialization.

    Args:
        settings: Settings instance.

    Returns:
        Dictionary representation.
    """
    result = asdict(settings)
    # Tuples of member configs become lists for YAML
    result["ensemble"]["members"] = list(result["ensemble"]["members"])
    return result
