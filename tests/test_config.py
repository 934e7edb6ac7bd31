from __future__ import annotations

import os
from pathlib import Path

import pytest

from groq_ask.config import AppConfig, ConfigError, load_app_config
from groq_ask.config.model import DEFAULT_PROMPT_TEMPLATE


def test_defaults_with_env_key() -> None:
    cfg = AppConfig.from_mapping({}, env={"GROQ_API_KEY": "gsk_1"})

    assert cfg.llm.api_key == "gsk_1"
    assert cfg.llm.base_url == "https://api.groq.com/openai/v1"
    assert cfg.llm.model == "llama3-70b-8192"
    assert cfg.llm.max_tokens == 2048
    assert cfg.dispatch.prompt_template == DEFAULT_PROMPT_TEMPLATE
    assert cfg.dispatch.max_concurrency is None
    assert cfg.dispatch.batch_timeout_s is None
    assert cfg.server.port == 8080
    assert cfg.terminal.model == "llama3-8b-8192"
    assert cfg.terminal.history_size == 3


def test_api_key_precedence() -> None:
    env = {"GROQ_API_KEY": "groq", "OPENAI_API_KEY": "openai"}

    assert AppConfig.from_mapping({"llm": {"api_key": "yaml"}}, env=env).llm.api_key == "yaml"
    assert AppConfig.from_mapping({}, env=env).llm.api_key == "groq"
    assert AppConfig.from_mapping({}, env={"OPENAI_API_KEY": "openai"}).llm.api_key == "openai"
    assert AppConfig.from_mapping({}, env={"GROQ_API_KEY": " ", "OPENAI_API_KEY": "openai"}).llm.api_key == "openai"


def test_missing_api_key_is_fatal() -> None:
    with pytest.raises(ConfigError) as ei:
        AppConfig.from_mapping({}, env={})

    msg = str(ei.value)
    assert "llm.api_key" in msg
    assert "GROQ_API_KEY" in msg


def test_resolving_key_does_not_touch_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "groq")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("PORT", raising=False)

    AppConfig.from_mapping({})

    assert "OPENAI_API_KEY" not in os.environ


def test_port_env_overrides_yaml() -> None:
    cfg = AppConfig.from_mapping({"server": {"port": 9000}}, env={"GROQ_API_KEY": "k", "PORT": "7001"})
    assert cfg.server.port == 7001

    with pytest.raises(ConfigError, match="PORT"):
        AppConfig.from_mapping({}, env={"GROQ_API_KEY": "k", "PORT": "http"})


@pytest.mark.parametrize(
    ("raw", "path"),
    [
        ({"dispatch": {"max_concurrency": -2}}, "dispatch.max_concurrency"),
        ({"dispatch": {"batch_timeout_s": 0}}, "dispatch.batch_timeout_s"),
        ({"dispatch": {"prompt_template": "no placeholder"}}, "dispatch.prompt_template"),
        ({"llm": {"max_tokens": "lots"}}, "llm.max_tokens"),
        ({"server": "nope"}, "server"),
    ],
)
def test_invalid_values_name_the_key(raw: dict, path: str) -> None:
    with pytest.raises(ConfigError) as ei:
        AppConfig.from_mapping(raw, env={"GROQ_API_KEY": "k"})
    assert path in str(ei.value)


def test_zero_or_null_concurrency_means_unbounded() -> None:
    env = {"GROQ_API_KEY": "k"}
    assert AppConfig.from_mapping({"dispatch": {"max_concurrency": 0}}, env=env).dispatch.max_concurrency is None
    assert AppConfig.from_mapping({"dispatch": {"max_concurrency": None}}, env=env).dispatch.max_concurrency is None
    assert AppConfig.from_mapping({"dispatch": {"max_concurrency": 4}}, env=env).dispatch.max_concurrency == 4


def test_repo_configs_loadable(monkeypatch: pytest.MonkeyPatch) -> None:
    # Only checks syntax and schema; no real key needed.
    monkeypatch.setenv("GROQ_API_KEY", "k_dummy")
    monkeypatch.delenv("PORT", raising=False)

    root = Path(__file__).resolve().parents[1] / "configs"
    cfg = load_app_config([root / "app.yaml", root / "dev.yaml"], load_dotenv_file=False)

    assert cfg.llm.model
    assert cfg.dispatch.max_concurrency == 8
    assert cfg.server.host == "127.0.0.1"
