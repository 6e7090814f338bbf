"""Read and write ``config.json``.

The file is camelCase JSON; the schema is snake_case. Profile names and route
keys under ``models`` are user-chosen identifiers and pass through unchanged in
both directions.
"""

import json
import os
from pathlib import Path
from typing import Any

from thinkly.config.defaults import apply_missing_defaults
from thinkly.config.schema import Config

CONFIG_VERSION = 1


def get_config_path() -> Path:
    """Location of config.json under the thinkly home directory."""
    from thinkly.utils.helpers import get_data_path

    return get_data_path() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the config file, filling absent sections with defaults.

    A missing file gives the default config. An unreadable or invalid file is
    reported on stdout and also gives the default config.
    """
    path = config_path or get_config_path()
    if not path.exists():
        return Config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("Config root must be a JSON object")
        models = raw.pop("models", None)
        snake = convert_keys(raw)
        snake["models"] = _models_from_json(models)
        apply_missing_defaults(snake)
        return Config.model_validate(snake)
    except ValueError as e:
        print(f"Warning: Failed to load config from {path}: {e}")
        print("Using default configuration.")
        return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write ``config`` to ``config_path`` (or the default location)."""
    _atomic_write_config(config_path or get_config_path(), config)


def _models_from_json(models: Any) -> Any:
    if not isinstance(models, dict):
        return {} if models is None else models
    loaded = dict(models)
    profiles = models.get("profiles")
    if isinstance(profiles, dict):
        loaded["profiles"] = {name: convert_keys(body) for name, body in profiles.items()}
    return loaded


def _models_to_json(models: dict[str, Any]) -> dict[str, Any]:
    return {
        "profiles": {name: convert_to_camel(body) for name, body in models["profiles"].items()},
        "routes": dict(models["routes"]),
    }


def _atomic_write_config(path: Path, config: Config) -> None:
    """Replace the config file in one step; the result is readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump()
    payload["config_version"] = CONFIG_VERSION
    models = payload.pop("models")
    data = convert_to_camel(payload)
    data["models"] = _models_to_json(models)

    tmp_path = path.with_name(f".{path.name}.tmp-{os.getpid()}")
    try:
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        try:
            tmp_path.chmod(0o600)
        except OSError:
            pass
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def convert_keys(data: Any) -> Any:
    """Recursively rename camelCase dict keys to snake_case."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Recursively rename snake_case dict keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() and i else c.lower() for i, c in enumerate(name))


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
