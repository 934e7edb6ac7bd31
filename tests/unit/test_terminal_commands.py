from __future__ import annotations

import pytest

from groq_ask.terminal.commands import USAGE, Command, parse_command


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("chat what is rust?", Command("chat", argument="what is rust?")),
        ("  terminal   how do I list files  ", Command("terminal", argument="how do I list files")),
        ("run ls -la", Command("run", argument="ls -la")),
        ("CHAT hi", Command("chat", argument="hi")),
        ("exit", Command("exit")),
        ("quit", Command("exit")),
        ("help", Command("help")),
        ("", Command("empty")),
        ("   ", Command("empty")),
    ],
)
def test_parse_command(line: str, expected: Command) -> None:
    assert parse_command(line) == expected


def test_ask_splits_questions_on_pipe() -> None:
    cmd = parse_command("ask What is 2+2? | Name a primary color |  | last")

    assert cmd.verb == "ask"
    assert cmd.questions == ("What is 2+2?", "Name a primary color", "last")


@pytest.mark.parametrize(
    ("line", "hint"),
    [
        ("chat", "Please provide a question after 'chat'"),
        ("terminal   ", "Please provide a question after 'terminal'"),
        ("run", "Please provide a command after 'run'"),
        ("ask | |", "Please provide questions after 'ask'"),
    ],
)
def test_missing_argument(line: str, hint: str) -> None:
    cmd = parse_command(line)

    assert cmd.verb == "invalid"
    assert cmd.error is not None and hint in cmd.error


def test_unknown_verb_lists_commands() -> None:
    cmd = parse_command("deploy prod")

    assert cmd.verb == "invalid"
    assert cmd.error == f"Unknown command. {USAGE}"
