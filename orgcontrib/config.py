from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from orgcontrib.github import DEFAULT_API_BASE, DEFAULT_TIMEOUT

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class RunConfig:
    concurrency: int | None = 8
    top: int = 20


@dataclass(frozen=True)
class AppConfig:
    org: str | None = None
    api: ApiConfig = field(default_factory=ApiConfig)
    run: RunConfig = field(default_factory=RunConfig)
    log_level: str = "WARNING"


def default_app_config() -> AppConfig:
    return AppConfig()


def load_app_config(config_path: str | Path) -> AppConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping")

    org = data.get("org")
    if org is not None and (not isinstance(org, str) or not org.strip()):
        raise ValueError("'org' must be a non-empty string")

    return AppConfig(
        org=org.strip() if org else None,
        api=_parse_api(data.get("api")),
        run=_parse_run(data.get("run")),
        log_level=_parse_log_level(data.get("log_level", "WARNING")),
    )


def _parse_api(raw: Any) -> ApiConfig:
    if raw is None:
        return ApiConfig()
    if not isinstance(raw, dict):
        raise ValueError("'api' must be a mapping")

    base_url = raw.get("base_url", DEFAULT_API_BASE)
    if not isinstance(base_url, str) or not base_url.startswith(("http://", "https://")):
        raise ValueError(f"api.base_url must be an http(s) URL, got {base_url!r}")

    timeout = raw.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"api.timeout must be a positive number, got {timeout!r}")

    return ApiConfig(base_url=base_url.rstrip("/"), timeout=float(timeout))


def _parse_run(raw: Any) -> RunConfig:
    if raw is None:
        return RunConfig()
    if not isinstance(raw, dict):
        raise ValueError("'run' must be a mapping")

    concurrency = raw.get("concurrency", RunConfig.concurrency)
    if concurrency is not None:
        concurrency = _non_negative_int(concurrency, "run.concurrency")
        # 0 means one worker per repository
        concurrency = concurrency or None

    top = _non_negative_int(raw.get("top", RunConfig.top), "run.top")
    return RunConfig(concurrency=concurrency, top=top)


def _parse_log_level(raw: Any) -> str:
    level = str(raw).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {', '.join(sorted(LOG_LEVELS))}, got {raw!r}")
    return level


def _non_negative_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value
