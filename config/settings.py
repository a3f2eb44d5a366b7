"""Configuration helpers for the Ustaz-AI teacher assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    data_dir: Path = Path("data")
    assets_dir: Path = Path("assets")
    log_dir: Path = Path("logs")
    gemini_key: Optional[str] = None
    openai_key: Optional[str] = None
    anthropic_key: Optional[str] = None
    preferred_backend: Optional[str] = None
    thinking_budget: int = 4000
    refresh_seconds: float = 60.0
    curriculum_cache_seconds: float = 3600.0
    metadata: dict[str, Any] = field(default_factory=dict)


DEFAULT_MODELS: dict[str, str] = {
    "gemini_model_fast": "gemini-3-flash-preview",
    "gemini_model_pro": "gemini-3-pro-preview",
    "openai_model_fast": "gpt-4o-mini",
    "openai_model_pro": "gpt-4o",
    "claude_model_fast": "claude-3-5-haiku-latest",
    "claude_model_pro": "claude-sonnet-4-5",
}


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    data_dir = Path(os.getenv("USTAZ_DATA_DIR", "data")).expanduser()
    log_dir = Path(os.getenv("USTAZ_LOG_DIR", "logs")).expanduser()
    assets_dir = Path(os.getenv("USTAZ_ASSETS_DIR", "assets")).expanduser()

    metadata: dict[str, Any] = {}
    for key, default in DEFAULT_MODELS.items():
        metadata[key] = os.getenv(key.upper()) or default

    openai_base_url = os.getenv("OPENAI_BASE_URL")
    if openai_base_url:
        metadata["openai_base_url"] = openai_base_url
    gemini_base_url = os.getenv("GEMINI_BASE_URL")
    if gemini_base_url:
        metadata["gemini_base_url"] = gemini_base_url

    thinking_budget = int(_float_env("USTAZ_THINKING_BUDGET", 4000))

    return AppConfig(
        data_dir=data_dir,
        log_dir=log_dir,
        assets_dir=assets_dir,
        gemini_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        openai_key=os.getenv("OPENAI_API_KEY"),
        anthropic_key=os.getenv("ANTHROPIC_API_KEY"),
        preferred_backend=os.getenv("USTAZ_BACKEND") or None,
        thinking_budget=thinking_budget,
        refresh_seconds=_float_env("USTAZ_REFRESH_SECONDS", 60.0),
        curriculum_cache_seconds=_float_env("USTAZ_CURRICULUM_CACHE_SECONDS", 3600.0),
        metadata=metadata,
    )
