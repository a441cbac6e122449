"""Load application settings from config/settings.yaml."""

import os
from pathlib import Path
from typing import Any

import yaml

_DEFAULTS: dict[str, Any] = {
    "bus": {
        "url": "http://localhost:8080",
        "timeout": 10.0,
    },
    "app": {
        "topic": "games",
        "subscriber": "games_app",
        "resources": ["UI"],
        "resource_topics": ["UIEvents", "UCEvents"],
        "locale": "en-GB",
        # Host the UI uses to reach the file server; not the bind address.
        "advertised_host": "localhost",
    },
    "controller": {
        "poll_interval": 0.5,
        "config_request_interval": 1.0,
        "strict_resource_subscription": False,
    },
    "catalog": {
        "games_folder": "games",
        "image_prefix": "/_img/mario",
        "extension": ".swf",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8085,
    },
    "locales": {
        "dir": "locales",
    },
    "logging": {
        "file": "logs/gamesapp.log",
        "level": "INFO",
        "log_to_console": True,
        "max_bytes": 10485760,  # 10 MB
        "backup_count": 3,
        # httpx logs every poll request at INFO; uvicorn.access every game download.
        "loggers": {
            "httpx": "WARNING",
            "uvicorn.access": "WARNING",
            "uvicorn.error": "INFO",
        },
    },
}

# Environment variable -> dot path. Applied after settings.yaml.
_ENV_OVERRIDES: dict[str, str] = {
    "GAMESAPP_BUS_URL": "bus.url",
    "GAMESAPP_HOST": "app.advertised_host",
    "GAMESAPP_PORT": "server.port",
    "GAMESAPP_LOG_LEVEL": "logging.level",
}

_cached: dict[str, Any] | None = None


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base recursively. Mutates base."""
    for key, value in overlay.items():
        if value is None:
            continue
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def get_default_settings() -> dict[str, Any]:
    """Return a deep copy of default settings."""
    return _deep_copy_nested(_DEFAULTS)


def get_setting(settings: dict[str, Any], path: str, default: Any = None) -> Any:
    """Get a nested value by dot path (e.g. 'controller.poll_interval')."""
    current: Any = settings
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def _set_setting(settings: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = settings
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value


def _apply_env(settings: dict[str, Any]) -> None:
    for env_name, path in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        if isinstance(get_setting(_DEFAULTS, path), int):
            try:
                _set_setting(settings, path, int(raw))
            except ValueError:
                continue
        else:
            _set_setting(settings, path, raw)


def reload_settings() -> None:
    """Clear the settings cache. Call after config files or environment change."""
    global _cached
    _cached = None


def load_settings(config_dir: Path | None = None) -> dict[str, Any]:
    """Load settings from config/settings.yaml. Returns merged defaults + file + env values."""
    global _cached
    if _cached is not None:
        return _cached

    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent / "config"
    path = config_dir / "settings.yaml"

    result: dict[str, Any] = {}
    for k, v in _DEFAULTS.items():
        result[k] = _deep_copy_nested(v)

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                _deep_merge(result, data)
        except (yaml.YAMLError, OSError):
            pass

    _apply_env(result)
    _cached = result
    return result


def _deep_copy_nested(obj: Any) -> Any:
    """Return a deep copy of nested dicts/lists for defaults."""
    if isinstance(obj, dict):
        return {k: _deep_copy_nested(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_deep_copy_nested(x) for x in obj]
    return obj
