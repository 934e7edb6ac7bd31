"""Configuration loading and schema.

- YAML-first configuration under configs/*.yaml
- Strict ${ENV_VAR} expansion (missing/empty env vars are errors)
- The API key is resolved once into ``AppConfig.llm.api_key``
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from groq_ask.config.errors import ConfigError
from groq_ask.config.loader import load_config, resolve_profile_configs
from groq_ask.config.model import AppConfig, DispatchConfig, LlmConfig, ServerConfig, TerminalConfig

__all__ = [
    "AppConfig",
    "ConfigError",
    "DispatchConfig",
    "LlmConfig",
    "ServerConfig",
    "TerminalConfig",
    "load_app_config",
    "load_config",
    "resolve_profile_configs",
]


def load_app_config(paths: Path | Sequence[Path], *, load_dotenv_file: bool = True) -> AppConfig:
    return AppConfig.from_mapping(load_config(paths, load_dotenv_file=load_dotenv_file))
