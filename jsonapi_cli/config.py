from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .cli_shared import (
    DCLI_API_KEY,
    DCLI_BASE_URL,
    DCLI_CONFIG,
    ValidationError,
    _write_secure_json,
)

CONFIG_DIR_NAME = ".dcli"
CONFIG_FILE_NAME = "config.json"


class ConfigError(ValidationError):
    """Raised when the config file is unreadable or malformed."""


@dataclass(frozen=True)
class Config:
    base_url: str = ""
    api_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"base_url": self.base_url}
        if self.api_key:
            out["api_key"] = self.api_key
        return out

    def redacted(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "api_key": _redact(self.api_key),
        }


def _redact(secret: str) -> str:
    s = str(secret or "")
    if not s:
        return ""
    if len(s) <= 8:
        return "*" * len(s)
    return f"{s[:4]}...{s[-2:]}"


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def config_path_from(raw: str | None, *, env_or_none: Callable[..., str | None]) -> Path:
    chosen = (raw or env_or_none(DCLI_CONFIG) or "").strip()
    if not chosen:
        return default_config_path()
    return Path(chosen).expanduser()


def load_config(path: Path, *, required: bool = False) -> Config:
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return Config()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"failed to parse config file {path}: expected JSON object")
    base_url = raw.get("base_url")
    api_key = raw.get("api_key")
    if base_url is not None and not isinstance(base_url, str):
        raise ConfigError(f"invalid base_url in {path}: expected string")
    if api_key is not None and not isinstance(api_key, str):
        raise ConfigError(f"invalid api_key in {path}: expected string")
    return Config(base_url=(base_url or "").strip(), api_key=(api_key or "").strip())


def save_config(config: Config, path: Path) -> Path:
    _write_secure_json(path=path, obj=config.to_dict())
    return path


def resolve_config(
    *,
    base_url: str | None,
    api_key: str | None,
    config_path: Path,
    env_or_none: Callable[..., str | None],
) -> Config:
    """Resolve base URL and API key: flags, then environment, then config file."""

    file_cfg = load_config(config_path)
    resolved_base_url = (base_url or env_or_none(DCLI_BASE_URL) or file_cfg.base_url or "").strip()
    resolved_api_key = (api_key or env_or_none(DCLI_API_KEY) or file_cfg.api_key or "").strip()
    return Config(base_url=resolved_base_url, api_key=resolved_api_key)


def require_base_url(config: Config, *, config_path: Path) -> str:
    url = config.base_url.strip()
    if not url:
        raise ConfigError(
            f"missing base_url (pass --base-url, set {DCLI_BASE_URL}, or add it to {config_path})"
        )
    return url
