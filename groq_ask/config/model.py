from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from groq_ask.config.errors import ConfigError


DEFAULT_PROMPT_TEMPLATE = "Answer the following question clearly and concisely: {question}"

# Earlier entries win. The process environment is only read, never written.
API_KEY_ENV_VARS: tuple[str, ...] = ("GROQ_API_KEY", "OPENAI_API_KEY")


@dataclass(frozen=True, slots=True)
class LlmConfig:
    api_key: str
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama3-70b-8192"
    max_tokens: int = 2048
    timeout_s: float = 60.0


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    # None keeps one in-flight request per question.
    max_concurrency: int | None = None
    batch_timeout_s: float | None = None


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    max_batch_size: int = 100


@dataclass(frozen=True, slots=True)
class TerminalConfig:
    model: str = "llama3-8b-8192"
    history_size: int = 3
    shell_timeout_s: float = 60.0


@dataclass(frozen=True, slots=True)
class AppConfig:
    llm: LlmConfig
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    terminal: TerminalConfig = field(default_factory=TerminalConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build the typed view of an expanded config mapping.

        The API key is resolved once here: ``llm.api_key`` first, then the
        variables in ``API_KEY_ENV_VARS`` in order. A missing key is fatal.
        """

        env = os.environ if env is None else env

        llm_raw = _section(raw, "llm")
        dispatch_raw = _section(raw, "dispatch")
        server_raw = _section(raw, "server")
        terminal_raw = _section(raw, "terminal")

        llm = LlmConfig(
            api_key=resolve_api_key(llm_raw.get("api_key"), env=env),
            base_url=_str(llm_raw, "base_url", LlmConfig.base_url, path="llm"),
            model=_str(llm_raw, "model", LlmConfig.model, path="llm"),
            max_tokens=_positive_int(llm_raw, "max_tokens", LlmConfig.max_tokens, path="llm"),
            timeout_s=_positive_float(llm_raw, "timeout_s", LlmConfig.timeout_s, path="llm"),
        )

        template = _str(dispatch_raw, "prompt_template", DispatchConfig.prompt_template, path="dispatch")
        if "{question}" not in template:
            raise ConfigError("must contain the '{question}' placeholder", path="dispatch.prompt_template")

        max_conc = dispatch_raw.get("max_concurrency")
        dispatch = DispatchConfig(
            prompt_template=template,
            max_concurrency=(
                _positive_int(dispatch_raw, "max_concurrency", 1, path="dispatch") if max_conc else None
            ),
            batch_timeout_s=(
                _positive_float(dispatch_raw, "batch_timeout_s", 1.0, path="dispatch")
                if dispatch_raw.get("batch_timeout_s") is not None
                else None
            ),
        )

        port = _positive_int(server_raw, "port", ServerConfig.port, path="server")
        if env.get("PORT"):
            try:
                port = int(env["PORT"])
            except ValueError:
                raise ConfigError(f"PORT must be an integer, got {env['PORT']!r}", path="server.port") from None

        server = ServerConfig(
            host=_str(server_raw, "host", ServerConfig.host, path="server"),
            port=port,
            max_batch_size=_positive_int(server_raw, "max_batch_size", ServerConfig.max_batch_size, path="server"),
        )

        terminal = TerminalConfig(
            model=_str(terminal_raw, "model", TerminalConfig.model, path="terminal"),
            history_size=_positive_int(terminal_raw, "history_size", TerminalConfig.history_size, path="terminal"),
            shell_timeout_s=_positive_float(
                terminal_raw, "shell_timeout_s", TerminalConfig.shell_timeout_s, path="terminal"
            ),
        )

        return cls(llm=llm, dispatch=dispatch, server=server, terminal=terminal)


def resolve_api_key(configured: Any, *, env: Mapping[str, str]) -> str:
    if isinstance(configured, str) and configured.strip():
        return configured.strip()
    if configured not in (None, ""):
        raise ConfigError("must be a string", path="llm.api_key")

    for name in API_KEY_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value

    raise ConfigError(
        f"no API key configured; set llm.api_key or one of {', '.join(API_KEY_ENV_VARS)}",
        path="llm.api_key",
    )


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError("must be a mapping", path=key)
    return value


def _str(d: Mapping[str, Any], key: str, default: str, *, path: str) -> str:
    value = d.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("must be a non-empty string", path=f"{path}.{key}")
    return value


def _positive_int(d: Mapping[str, Any], key: str, default: int, *, path: str) -> int:
    value = d.get(key, default)
    if isinstance(value, bool):
        raise ConfigError("must be an integer >= 1", path=f"{path}.{key}")
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ConfigError("must be an integer >= 1", path=f"{path}.{key}") from None
    if out < 1:
        raise ConfigError("must be an integer >= 1", path=f"{path}.{key}")
    return out


def _positive_float(d: Mapping[str, Any], key: str, default: float, *, path: str) -> float:
    value = d.get(key, default)
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigError("must be a number > 0", path=f"{path}.{key}") from None
    if out <= 0:
        raise ConfigError("must be a number > 0", path=f"{path}.{key}")
    return out
