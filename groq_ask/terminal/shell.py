from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ShellResult:
    command: str
    output: str
    returncode: int | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def shell_argv(command: str, *, platform: str | None = None) -> list[str]:
    if (platform or sys.platform).startswith("win"):
        return ["powershell", "-Command", command]
    return ["bash", "-c", command]


def run_shell(command: str, *, timeout_s: float = 60.0, cwd: str | None = None) -> ShellResult:
    """Run ``command`` through the platform shell, capturing stdout+stderr together.

    Output is kept even when the command fails.
    """

    try:
        proc = subprocess.run(
            shell_argv(command),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout_s,
            cwd=cwd,
            check=False,
        )
    except FileNotFoundError as e:
        return ShellResult(command=command, output="", returncode=None, error=f"shell not available: {e}")
    except subprocess.TimeoutExpired as e:
        partial = e.output if isinstance(e.output, str) else (e.output or b"").decode(errors="replace")
        return ShellResult(
            command=command,
            output=partial,
            returncode=None,
            error=f"timed out after {timeout_s:g}s",
        )

    error = None if proc.returncode == 0 else f"exit status {proc.returncode}"
    return ShellResult(command=command, output=proc.stdout or "", returncode=proc.returncode, error=error)
