from __future__ import annotations

import asyncio
from collections import deque
from pathlib import Path

from rich.console import Console
from rich.text import Text

from groq_ask.core.types import Answer, QuestionBatch, ResultBatch
from groq_ask.dispatch import CancelToken, Dispatcher
from groq_ask.llm.client import Completer
from groq_ask.observability import get_logger

from .commands import USAGE, Command, parse_command
from .shell import run_shell
from .workspace import describe_workspace


TITLE = "Terminal AI Assistant (Type 'exit' to quit)"

CHAT_SYSTEM_PROMPT = "You are a helpful assistant."

TERMINAL_SYSTEM_PROMPT = (
    "You are a terminal assistant that helps users navigate their filesystem and suggests commands. "
    "When suggesting commands, be specific and explain what each command does. "
    "Here is information about the current filesystem:\n\n"
)


class TerminalSession:
    """Line-based interactive front end.

    ``chat`` and ``terminal`` send a single prompt to ``client``; ``ask``
    goes through the batch dispatcher; ``run`` executes a shell command and
    remembers its output for later ``terminal`` questions.
    """

    def __init__(
        self,
        *,
        client: Completer,
        dispatcher: Dispatcher,
        console: Console | None = None,
        workdir: Path | None = None,
        history_size: int = 3,
        shell_timeout_s: float = 60.0,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._console = console or Console()
        self._workdir = workdir
        self._history: deque[str] = deque(maxlen=history_size)
        self._shell_timeout_s = shell_timeout_s
        self._log = get_logger("groq_ask.terminal")

    @property
    def history(self) -> list[str]:
        return list(self._history)

    def run(self) -> None:
        """Read lines until ``exit``, EOF or Ctrl-C.

        The prompt is read on the calling thread so Ctrl-C interrupts it
        directly; each command then runs on one event loop kept for the
        whole session.
        """

        self._console.print(TITLE, style="bold")
        self._console.print(USAGE, style="dim")

        with asyncio.Runner() as runner:
            while True:
                try:
                    line = self._console.input("[bold cyan]> [/]")
                    keep_going = runner.run(self.handle(line))
                except (EOFError, KeyboardInterrupt):
                    self._console.print()
                    return

                if not keep_going:
                    return

    async def handle(self, line: str) -> bool:
        """Execute one input line. Returns False when the session should end."""

        cmd = parse_command(line)
        self._log.debug("terminal_command", verb=cmd.verb)

        if cmd.verb == "exit":
            return False
        if cmd.verb == "empty":
            return True
        if cmd.verb == "help":
            self._console.print(USAGE)
        elif cmd.verb == "invalid":
            self._console.print(Text(cmd.error or USAGE, style="yellow"))
        elif cmd.verb == "chat":
            await self._single(cmd, system=CHAT_SYSTEM_PROMPT, title="AI Response:")
        elif cmd.verb == "terminal":
            await self._terminal(cmd)
        elif cmd.verb == "run":
            await self._run(cmd)
        elif cmd.verb == "ask":
            await self._ask(cmd)
        return True

    def terminal_context(self) -> str:
        context = TERMINAL_SYSTEM_PROMPT + describe_workspace(self._workdir)
        if self._history:
            context += "\n\nRecent command output history:\n" + "\n---\n".join(self._history)
        return context

    async def _single(self, cmd: Command, *, system: str, title: str, status: str = "Processing your request...") -> None:
        try:
            with self._console.status(status):
                answer = await self._client.complete(cmd.argument, system=system)
        except Exception as e:  # noqa: BLE001
            self._log.warning("terminal_completion_failed", error_type=type(e).__name__, error=str(e))
            self._console.print(Text(f"Error: {e}", style="red"))
            return

        self._console.print(title, style="bold green")
        self._console.print(Text(answer))

    async def _terminal(self, cmd: Command) -> None:
        try:
            context = await asyncio.to_thread(self.terminal_context)
        except OSError as e:
            self._console.print(Text(f"Error getting filesystem info: {e}", style="red"))
            return

        await self._single(
            cmd,
            system=context,
            title="Terminal Assistant Response:",
            status="Analyzing filesystem and processing your request...",
        )

    async def _run(self, cmd: Command) -> None:
        self._console.print(Text(f"Executing command: {cmd.argument}", style="dim"))
        cwd = str(self._workdir) if self._workdir else None
        result = await asyncio.to_thread(run_shell, cmd.argument, timeout_s=self._shell_timeout_s, cwd=cwd)

        if result.error:
            self._console.print(Text(f"Command error: {result.error}", style="red"))

        self._history.append(f"Command: {cmd.argument}\nOutput: {result.output}")

        self._console.print("Command output:", style="bold")
        self._console.print(Text(result.output.rstrip("\n")))

    async def _ask(self, cmd: Command) -> None:
        with self._console.status(f"Asking {len(cmd.questions)} questions concurrently..."):
            outcomes = await self._dispatcher.dispatch(cmd.questions, cancel=CancelToken())
        render_outcomes(self._console, cmd.questions, outcomes)


def render_outcomes(console: Console, questions: QuestionBatch, outcomes: ResultBatch) -> None:
    for i, (question, outcome) in enumerate(zip(questions, outcomes), start=1):
        console.print(Text(f"[{i}] {question}", style="bold"))
        if isinstance(outcome, Answer):
            console.print(Text(outcome.text))
        else:
            console.print(Text(f"Failed: {outcome.message}", style="red"))
