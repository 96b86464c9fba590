import json
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import ValidationError

from luckyday.models.schema import AppConfig

DEFAULT_CONFIG_PATH = "luckyday.json"


class ConfigError(ValueError):
    pass


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    load_dotenv()
    return Path(path or os.getenv("LUCKYDAY_CONFIG", DEFAULT_CONFIG_PATH))


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Read the JSON config file; a missing file yields the defaults."""
    config_path = resolve_config_path(path)
    raw = {}
    if config_path.exists():
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"cannot parse config file {config_path}: {exc}") from exc

    try:
        config = AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {config_path}: {exc}") from exc

    db_url = os.getenv("LUCKYDAY_DB_URL")
    if db_url:
        config.datasource.database.url = db_url
    return config
