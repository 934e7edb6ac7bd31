from __future__ import annotations

from dataclasses import dataclass


USAGE = "Commands: 'chat <question>', 'terminal <question>', 'run <command>', 'ask <q1> | <q2> ...', 'help', 'exit'"

_ARG_HINTS = {
    "chat": "Please provide a question after 'chat'",
    "terminal": "Please provide a question after 'terminal'",
    "run": "Please provide a command after 'run'",
    "ask": "Please provide questions after 'ask', separated by '|'",
}

_EXIT_WORDS = frozenset({"exit", "quit"})


@dataclass(frozen=True, slots=True)
class Command:
    """One parsed REPL line.

    verb is one of: chat, terminal, run, ask, help, exit, empty, invalid.
    """

    verb: str
    argument: str = ""
    questions: tuple[str, ...] = ()
    error: str | None = None


def parse_command(line: str) -> Command:
    text = line.strip()
    if not text:
        return Command("empty")

    head, _, rest = text.partition(" ")
    verb = head.lower()
    argument = rest.strip()

    if verb in _EXIT_WORDS and not argument:
        return Command("exit")
    if verb == "help" and not argument:
        return Command("help")

    if verb not in _ARG_HINTS:
        return Command("invalid", error=f"Unknown command. {USAGE}")

    if not argument:
        return Command("invalid", error=f"Error: {_ARG_HINTS[verb]}")

    if verb == "ask":
        questions = tuple(q.strip() for q in argument.split("|") if q.strip())
        if not questions:
            return Command("invalid", error=f"Error: {_ARG_HINTS[verb]}")
        return Command("ask", argument=argument, questions=questions)

    return Command(verb, argument=argument)
