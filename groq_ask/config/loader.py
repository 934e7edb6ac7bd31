from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

import yaml
from dotenv import load_dotenv

from groq_ask.config.errors import ConfigError


_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

PROFILES: dict[str, tuple[str, ...]] = {
    "app": ("app.yaml",),
    "dev": ("app.yaml", "dev.yaml"),
}


@dataclass(frozen=True, slots=True)
class _MissingEnv:
    name: str
    key_path: str
    reason: str  # "missing" | "empty"


def _merge(base: MutableMapping[str, Any], overlay: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Recursively merge ``overlay`` into ``base``; non-mapping values replace."""

    for key, value in overlay.items():
        current = base.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            base[key] = _merge(dict(current), value)
        else:
            base[key] = value
    return base


def _read_fragment(path: Path) -> Mapping[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config file: {e}", path=str(path)) from e

    try:
        data = yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("top-level YAML must be a mapping", path=str(path))
    return data


def _substitute(obj: Any, *, key_path: str, missing: list[_MissingEnv]) -> Any:
    if isinstance(obj, str):

        def repl(match: re.Match[str]) -> str:
            name = match.group(1)
            value = os.environ.get(name)
            if value is None or value == "":
                missing.append(
                    _MissingEnv(name=name, key_path=key_path, reason="missing" if value is None else "empty")
                )
                return match.group(0)
            return value

        return _PLACEHOLDER_RE.sub(repl, obj)

    if isinstance(obj, Mapping):
        return {
            str(k): _substitute(v, key_path=f"{key_path}.{k}" if key_path else str(k), missing=missing)
            for k, v in obj.items()
        }

    if isinstance(obj, list):
        return [_substitute(v, key_path=f"{key_path}[{i}]", missing=missing) for i, v in enumerate(obj)]

    return obj


def load_config(
    paths: Path | Sequence[Path],
    *,
    load_dotenv_file: bool = True,
    dotenv_path: Path | None = None,
) -> dict[str, Any]:
    """Load and merge YAML files, then expand ``${ENV_VAR}`` placeholders.

    Later files override earlier ones. A ``.env`` file is read first (without
    overriding variables that are already set) so secrets can stay out of YAML.

    Raises:
        ConfigError: a file is unreadable or not a mapping, or a placeholder
            refers to a missing or empty environment variable.
    """

    files: list[Path] = [paths] if isinstance(paths, Path) else list(paths)
    if not files:
        raise ConfigError("no config files given")

    if load_dotenv_file:
        load_dotenv(dotenv_path or Path.cwd() / ".env", override=False)

    merged: dict[str, Any] = {}
    for path in files:
        if not path.exists():
            raise ConfigError("config file not found", path=str(path))
        merged = dict(_merge(merged, _read_fragment(path)))

    missing: list[_MissingEnv] = []
    expanded = _substitute(merged, key_path="", missing=missing)

    if missing:
        lines = ["Unresolved environment variables in config:"]
        lines.extend(f"- {m.name} ({m.reason}) at {m.key_path or '<root>'}" for m in missing)
        raise ConfigError("\n".join(lines))

    return expanded


def resolve_profile_configs(*, profile: str, configs_dir: Path) -> list[Path]:
    """Map a profile name to its ordered list of YAML files under ``configs_dir``."""

    try:
        names = PROFILES[profile]
    except KeyError:
        raise ConfigError(f"unknown profile {profile!r}; expected one of {sorted(PROFILES)}") from None
    return [configs_dir / name for name in names]
