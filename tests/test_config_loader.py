from __future__ import annotations

from pathlib import Path

import pytest

from groq_ask.config.errors import ConfigError
from groq_ask.config.loader import load_config, resolve_profile_configs


def test_load_config_expands_env_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "gsk_abc")

    cfg_path = tmp_path / "app.yaml"
    cfg_path.write_text(
        """
llm:
  api_key: ${GROQ_API_KEY}
  base_url: https://example.invalid
nested:
  arr:
    - key-${GROQ_API_KEY}
""".lstrip(),
        encoding="utf-8",
    )

    cfg = load_config(cfg_path, load_dotenv_file=False)
    assert cfg["llm"]["api_key"] == "gsk_abc"
    assert cfg["nested"]["arr"][0] == "key-gsk_abc"


def test_load_config_missing_env_var_is_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)

    cfg_path = tmp_path / "app.yaml"
    cfg_path.write_text("llm:\n  api_key: ${GROQ_API_KEY}\n", encoding="utf-8")

    with pytest.raises(ConfigError) as ei:
        load_config(cfg_path, load_dotenv_file=False)

    msg = str(ei.value)
    assert "GROQ_API_KEY" in msg
    assert "missing" in msg
    assert "llm.api_key" in msg


def test_load_config_empty_env_var_is_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "")

    cfg_path = tmp_path / "app.yaml"
    cfg_path.write_text("llm:\n  api_key: ${GROQ_API_KEY}\n", encoding="utf-8")

    with pytest.raises(ConfigError) as ei:
        load_config(cfg_path, load_dotenv_file=False)

    assert "empty" in str(ei.value)


def test_later_files_override_earlier(tmp_path: Path) -> None:
    base = tmp_path / "app.yaml"
    base.write_text("server:\n  host: 0.0.0.0\n  port: 8080\n", encoding="utf-8")
    overlay = tmp_path / "dev.yaml"
    overlay.write_text("server:\n  host: 127.0.0.1\n", encoding="utf-8")

    cfg = load_config([base, overlay], load_dotenv_file=False)
    assert cfg["server"] == {"host": "127.0.0.1", "port": 8080}


def test_missing_file_and_non_mapping_are_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml", load_dotenv_file=False)

    bad = tmp_path / "list.yaml"
    bad.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(bad, load_dotenv_file=False)


def test_dotenv_does_not_override_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "from_env")
    dotenv = tmp_path / ".env"
    dotenv.write_text("GROQ_API_KEY=from_dotenv\n", encoding="utf-8")
    cfg_path = tmp_path / "app.yaml"
    cfg_path.write_text("llm:\n  api_key: ${GROQ_API_KEY}\n", encoding="utf-8")

    cfg = load_config(cfg_path, dotenv_path=dotenv)
    assert cfg["llm"]["api_key"] == "from_env"


def test_resolve_profile_configs(tmp_path: Path) -> None:
    assert resolve_profile_configs(profile="app", configs_dir=tmp_path) == [tmp_path / "app.yaml"]
    assert resolve_profile_configs(profile="dev", configs_dir=tmp_path) == [
        tmp_path / "app.yaml",
        tmp_path / "dev.yaml",
    ]
    with pytest.raises(ConfigError):
        resolve_profile_configs(profile="prod", configs_dir=tmp_path)
