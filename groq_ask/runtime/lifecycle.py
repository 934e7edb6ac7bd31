from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console

from groq_ask.config import AppConfig, ConfigError, load_config, resolve_profile_configs
from groq_ask.core.types import Answer
from groq_ask.dispatch import Dispatcher
from groq_ask.llm.client import CompletionClient, FakeCompletionClient
from groq_ask.observability import configure_logging


logger = logging.getLogger(__name__)

_COMMANDS = ("serve", "terminal", "ask", "print-config")
_SECRET_HINTS = ("api_key", "token", "secret", "password")


def _redact_secrets(obj: Any) -> Any:
    """Best-effort redaction for human-facing config dumps."""

    if isinstance(obj, dict):
        return {
            k: "<redacted>" if isinstance(k, str) and any(h in k.lower() for h in _SECRET_HINTS) else _redact_secrets(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact_secrets(x) for x in obj]
    return obj


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="groq-ask",
        description="Answer batches of questions concurrently with an OpenAI-compatible LLM",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (e.g. DEBUG, INFO, WARNING)")
    parser.add_argument("--fake", action="store_true", help="Use the offline fake completion client")

    group = parser.add_mutually_exclusive_group()
    group.add_argument("--config", type=Path, help="Path to a YAML config file (skips profile resolution)")
    group.add_argument(
        "--profile",
        choices=["app", "dev"],
        default="app",
        help="Config profile under ./configs (app loads app.yaml; dev overlays dev.yaml)",
    )

    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Serve POST /api/questions over HTTP")
    serve_p.add_argument("--host", default=None, help="Override server.host")
    serve_p.add_argument("--port", type=int, default=None, help="Override server.port")

    sub.add_parser("terminal", help="Interactive terminal assistant")

    ask_p = sub.add_parser("ask", help="Answer the given questions concurrently and exit")
    ask_p.add_argument("questions", nargs="+", help="Questions, one per argument")
    ask_p.add_argument("--json", action="store_true", help="Print results as JSON")

    sub.add_parser("print-config", help="Load and print the expanded config")

    return parser


def _normalize_argv(argv: list[str]) -> list[str]:
    # Default to `serve` when no subcommand is given.
    if any(tok in _COMMANDS for tok in argv):
        return argv
    if any(tok in ("-h", "--help") for tok in argv):
        return argv
    return [*argv, "serve"]


def _config_paths(ns: argparse.Namespace) -> list[Path]:
    if ns.config is not None:
        return [ns.config]
    return resolve_profile_configs(profile=ns.profile, configs_dir=Path.cwd() / "configs")


def _typed_config(raw: dict[str, Any], *, fake: bool) -> AppConfig:
    # Offline stub: allow running without a real key.
    env = {**os.environ, "GROQ_API_KEY": "k_fake"} if fake else None
    return AppConfig.from_mapping(raw, env=env)


def _make_client(cfg: AppConfig, *, fake: bool, model: str | None = None) -> CompletionClient:
    if fake:
        return FakeCompletionClient()
    return CompletionClient(cfg.llm, model=model)


def _cmd_serve(ns: argparse.Namespace, cfg: AppConfig) -> int:
    from groq_ask.api import create_app, run_server

    server_cfg = cfg.server
    if ns.host is not None:
        server_cfg = replace(server_cfg, host=ns.host)
    if ns.port is not None:
        server_cfg = replace(server_cfg, port=ns.port)

    client = _make_client(cfg, fake=ns.fake)
    dispatcher = Dispatcher.from_config(client, cfg.dispatch)
    app = create_app(dispatcher, server_cfg=server_cfg, model_name=client.model_name)
    run_server(app, server_cfg)
    return 0


def _cmd_terminal(ns: argparse.Namespace, cfg: AppConfig) -> int:
    from groq_ask.terminal import TerminalSession

    session = TerminalSession(
        client=_make_client(cfg, fake=ns.fake, model=cfg.terminal.model),
        dispatcher=Dispatcher.from_config(_make_client(cfg, fake=ns.fake), cfg.dispatch),
        history_size=cfg.terminal.history_size,
        shell_timeout_s=cfg.terminal.shell_timeout_s,
    )
    session.run()
    return 0


def _cmd_ask(ns: argparse.Namespace, cfg: AppConfig) -> int:
    from groq_ask.api.contracts import OutcomeOut, QuestionsOut
    from groq_ask.terminal import render_outcomes

    dispatcher = Dispatcher.from_config(_make_client(cfg, fake=ns.fake), cfg.dispatch)
    outcomes = dispatcher.dispatch_sync(ns.questions)

    if ns.json:
        result = QuestionsOut(responses=[OutcomeOut.from_outcome(o) for o in outcomes])
        sys.stdout.write(result.model_dump_json(indent=2, exclude_none=True))
        sys.stdout.write("\n")
    else:
        render_outcomes(Console(), ns.questions, outcomes)

    return 0 if all(isinstance(o, Answer) for o in outcomes) else 3


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint referenced by pyproject.toml.

    Exit codes: 0 ok, 1 fatal error, 2 configuration error, 3 some questions failed (``ask``),
    130 interrupted.
    """

    argv_list = _normalize_argv(list(argv) if argv is not None else sys.argv[1:])
    parser = _build_parser()

    try:
        ns = parser.parse_args(argv_list)
    except SystemExit as e:
        code = e.code
        return int(code) if isinstance(code, int) else 1

    configure_logging(level=ns.log_level, force=True)

    try:
        paths = _config_paths(ns)
        raw = load_config(paths)
        logger.info("config_loaded", extra={"config_files": [str(p) for p in paths], "fake": ns.fake})

        # print-config works without an API key.
        if ns.command == "print-config":
            sys.stdout.write(json.dumps(_redact_secrets(raw), ensure_ascii=False, indent=2))
            sys.stdout.write("\n")
            return 0

        cfg = _typed_config(raw, fake=ns.fake)
        if ns.command == "terminal":
            return _cmd_terminal(ns, cfg)
        if ns.command == "ask":
            return _cmd_ask(ns, cfg)
        return _cmd_serve(ns, cfg)

    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        logger.error("config_error", extra={"error": str(e)})
        sys.stderr.write(f"ConfigError: {e}\n")
        return 2
    except Exception as e:  # noqa: BLE001
        logger.exception("fatal_error")
        sys.stderr.write(f"Fatal error: {e}\n")
        return 1
