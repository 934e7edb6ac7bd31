from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .shell import run_shell


@dataclass(frozen=True, slots=True)
class ProjectMarker:
    language: str
    source_glob: str
    manifest: str


PROJECT_MARKERS: tuple[ProjectMarker, ...] = (
    ProjectMarker("Go", "*.go", "go.mod"),
    ProjectMarker("Python", "*.py", "pyproject.toml"),
    ProjectMarker("Node.js", "*.js", "package.json"),
    ProjectMarker("Rust", "*.rs", "Cargo.toml"),
)

MAX_MANIFEST_CHARS = 4000


def describe_workspace(root: Path | None = None, *, git_timeout_s: float = 10.0) -> str:
    """Plain-text snapshot of a directory, used as model context.

    Lists direct entries, the ``git status`` of a repository root and any
    recognised project manifests.
    """

    base = (root or Path.cwd()).resolve()
    lines: list[str] = [f"Current directory: {base}", "", "Files and directories:"]

    for entry in sorted(base.iterdir(), key=lambda p: p.name):
        try:
            stat = entry.stat()
        except OSError:
            continue
        kind = "Directory" if entry.is_dir() else "File"
        lines.append(f"- {entry.name} ({kind}, {stat.st_size} bytes)")

    if (base / ".git").exists():
        lines += ["", "This is a git repository."]
        status = run_shell("git status", timeout_s=git_timeout_s, cwd=str(base))
        if status.ok:
            lines += ["Git status summary:", status.output.rstrip()]

    for marker in PROJECT_MARKERS:
        sources = sorted(p.name for p in base.glob(marker.source_glob))
        manifest = base / marker.manifest
        if not sources and not manifest.exists():
            continue

        lines += ["", f"This is a {marker.language} project."]
        if sources:
            lines.append(f"{marker.language} files found: {', '.join(sources)}")
        if manifest.is_file():
            try:
                content = manifest.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            lines += ["", f"{marker.manifest} content:", content[:MAX_MANIFEST_CHARS].rstrip()]

    return "\n".join(lines) + "\n"
