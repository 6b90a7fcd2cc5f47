from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from search_pager.domain.search.cursor import DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Settings:
    # API
    base_url: str | None = None
    api_username: str | None = None
    api_password: str | None = None
    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False
    ca_file: str | None = None

    # Search
    page_size: int = DEFAULT_PAGE_SIZE

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_PREFIX = "SEARCH_PAGER_"


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_bool(v: str) -> bool:
    vv = v.lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean env value: {v}")


_PARSERS = {
    "timeout_seconds": float,
    "retries": int,
    "retry_backoff_seconds": float,
    "tls_skip_verify": _parse_bool,
    "page_size": int,
}


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    names = [f.name for f in fields(Settings)]
    merged = {name: getattr(Settings(), name) for name in names}

    # 1) config file
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")
        for name in names:
            if name in cfg:
                merged[name] = cfg[name]

    # 2) env: SEARCH_PAGER_BASE_URL, SEARCH_PAGER_PAGE_SIZE, ...
    env = {name: _env_get(ENV_PREFIX + name.upper()) for name in names}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for name, value in env.items():
        if value is None:
            continue
        parser = _PARSERS.get(name)
        merged[name] = parser(value) if parser else value

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    # YAML может содержать строки ("25", "yes"), приводим к типам Settings.
    for name, parser in _PARSERS.items():
        value = merged[name]
        if isinstance(value, str):
            merged[name] = parser(value.strip())
        elif name == "tls_skip_verify":
            merged[name] = bool(value)
        else:
            try:
                merged[name] = parser(value)
            except TypeError as exc:
                raise ValueError(f"Invalid {name} value: {value!r}") from exc
    if merged["page_size"] <= 0:
        raise ValueError(f"page_size must be positive, got {merged['page_size']}")

    return LoadedSettings(settings=Settings(**merged), sources_used=sources)
