"""
Settings for the Axion server.

Values are layered, lowest precedence first: dataclass defaults,
``config/config.yaml``, a ``.env`` file, then ``AXION_<SECTION>_<KEY>``
variables already present in the process environment.  A ``.env`` entry
never replaces a variable the process was started with.
"""

import logging
import os
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "config.yaml"
DEFAULT_ENV_PATH = _PROJECT_ROOT / ".env"
ENV_PREFIX = "AXION_"


@dataclass
class ApiSettings:
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit_per_minute: int = 100
    version: str = "1.0.0"


@dataclass
class CacheSettings:
    """TTLs per tier, and the tier user lookups are stored in."""

    l1_ttl_seconds: float = 60.0
    l2_ttl_seconds: float = 300.0
    l3_ttl_seconds: float = 3600.0
    user_tier: str = "L1"


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: str = "json"


@dataclass
class Settings:
    api: ApiSettings = field(default_factory=ApiSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


_SECTIONS = [f.name for f in fields(Settings)]


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Parse *path* as a YAML mapping; a missing file or non-mapping gives ``{}``."""
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _apply_dict(target: object, data: Dict[str, Any]) -> None:
    known = {f.name for f in fields(target)}
    for key, value in data.items():
        if key in known:
            setattr(target, key, value)
        else:
            logger.warning(
                "Unknown config key ignored",
                extra={"section": type(target).__name__, "key": key},
            )


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Env values are strings; cast by the type of the field's current value.
_CASTS: Dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    list: _split_list,
}


def _apply_env_overrides(settings: Settings) -> None:
    for section_name in _SECTIONS:
        section = getattr(settings, section_name)
        for f in fields(section):
            env_key = f"{ENV_PREFIX}{section_name.upper()}_{f.name.upper()}"
            raw = os.environ.get(env_key)
            if raw is None:
                continue
            cast = _CASTS.get(type(getattr(section, f.name)), str)
            try:
                value = cast(raw)
            except (TypeError, ValueError):
                logger.warning("Invalid env override %s=%r ignored", env_key, raw)
                continue
            setattr(section, f.name, value)
            logger.debug("Env override applied", extra={"key": env_key})


def _build_settings(config_path: Path, env_path: Path) -> Settings:
    # override=False: variables set by the process outrank the .env file.
    load_dotenv(env_path, override=False)

    raw = _load_yaml(config_path)
    settings = Settings()
    for section_name in _SECTIONS:
        section_data = raw.get(section_name)
        if isinstance(section_data, dict):
            _apply_dict(getattr(settings, section_name), section_data)
    _apply_env_overrides(settings)
    return settings


_settings: Optional[Settings] = None
_lock = threading.Lock()


def get_settings(
    *,
    yaml_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
    _force_reload: bool = False,
) -> Settings:
    """Return the process-wide :class:`Settings`, loading them on first use.

    Args:
        yaml_path: YAML file to read instead of ``config/config.yaml``.
        env_path: Dotenv file to read instead of ``.env``.
        _force_reload: Rebuild even if settings are already loaded.
    """
    global _settings

    with _lock:
        if _settings is None or _force_reload:
            config_path = yaml_path or DEFAULT_CONFIG_PATH
            _settings = _build_settings(config_path, env_path or DEFAULT_ENV_PATH)
            logger.info("Settings loaded", extra={"config_path": str(config_path)})
        return _settings


def reset_settings() -> None:
    """Forget the loaded settings so the next :func:`get_settings` reloads."""
    global _settings
    with _lock:
        _settings = None
