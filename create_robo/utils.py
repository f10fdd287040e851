"""Shared utility functions for create-robo.

Provides async command execution, JSON I/O for ``package.json``, package
manager detection, and Rich-based console reporting.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)

INDENT = "   "

# ---------------------------------------------------------------------------
# Package manager subprocesses
# ---------------------------------------------------------------------------


async def run_command(
    argv: list[str],
    cwd: str | Path | None = None,
    timeout: int = 600,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run *argv* without a shell and capture its output.

    Args:
        argv: Executable followed by its arguments.
        cwd: Directory the child runs in, normally the generated project.
        timeout: Seconds to wait before killing the child.
        env: Variables layered over the current environment.

    Returns:
        ``(returncode, stdout, stderr)`` with both streams decoded and
        stripped.  An executable that cannot be found yields 127 and a
        timeout yields -1.
    """
    child_env = {**os.environ, **env} if env else None
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=None if cwd is None else str(cwd),
            env=child_env,
        )
    except FileNotFoundError as exc:
        return 127, "", str(exc)

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return -1, "", f"{format_command(argv)} timed out after {timeout}s"

    return (
        process.returncode or 0,
        _decode(out),
        _decode(err),
    )


def _decode(stream: bytes | None) -> str:
    return (stream or b"").decode("utf-8", errors="replace").strip()


def format_command(argv: list[str]) -> str:
    """Join *argv* for display in warnings and debug output."""
    return " ".join(argv)


# ---------------------------------------------------------------------------
# Package managers
# ---------------------------------------------------------------------------

PACKAGE_MANAGERS = ("npm", "yarn", "pnpm", "bun")

_EXECUTORS: dict[str, str] = {
    "npm": "npx",
    "yarn": "yarn",
    "pnpm": "pnpx",
    "bun": "bunx",
}


def get_package_manager(user_agent: str | None = None) -> str:
    """Detect the package manager that launched this process.

    Package managers advertise themselves through ``npm_config_user_agent``
    (e.g. ``"pnpm/8.6.0 npm/? node/v20.3.0 linux x64"``).  Defaults to npm.
    """
    if user_agent is None:
        user_agent = os.environ.get("npm_config_user_agent", "")
    for manager in ("yarn", "pnpm", "bun"):
        if user_agent.startswith(manager):
            return manager
    return "npm"


def get_package_executor(package_manager: str) -> str:
    """Return the one-off executor binary for *package_manager*."""
    return _EXECUTORS.get(package_manager, "npx")


def cmd(binary: str) -> str:
    """Return the platform-specific name of a Node.js binary."""
    if sys.platform == "win32":
        return f"{binary}.cmd"
    return binary


def run_prefix(package_manager: str) -> str:
    """Prefix used to run a package.json script (``npm run lint`` vs ``yarn lint``)."""
    return "npm run " if package_manager == "npm" else f"{package_manager} "


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def sort_object_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with keys in ascending order."""
    return {key: data[key] for key in sorted(data)}


def load_json(path: str | Path) -> dict[str, Any]:
    """Read a JSON file whose top level must be an object.

    Raises:
        FileNotFoundError: If *path* is missing.
        ValueError: If the content is not JSON or not a JSON object
            (``json.JSONDecodeError`` is a ``ValueError``).
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


async def save_json(data: dict[str, Any], path: str | Path) -> None:
    """Write *data* with tab indentation, matching npm's ``package.json`` style."""
    await asyncio.to_thread(
        write_text, Path(path), json.dumps(data, indent="\t", ensure_ascii=False)
    )


def write_text(path: Path, content: str) -> None:
    """Write *content*, creating missing parent directories first."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def oxford_join(items: list[str]) -> str:
    """Join items as English prose: ``a``, ``a and b``, ``a, b, and c``."""
    if len(items) <= 1:
        return "".join(items)
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


def highlight_list(items: list[str]) -> str:
    """Oxford-join items, each rendered in bold cyan."""
    return oxford_join([f"[bold cyan]{escape(item)}[/bold cyan]" for item in items])


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_section(title: str) -> None:
    """Print a bold section heading."""
    console.print()
    console.print(f"{INDENT}[bold]{title}[/bold]")


def print_step(message: str) -> None:
    """Print an indented progress line under the current section."""
    console.print(f"{INDENT}   {message}")


def print_debug(message: str, verbose: bool) -> None:
    """Print a dim diagnostic line when *verbose* is enabled."""
    if verbose:
        console.print(f"[dim]{escape(message)}[/dim]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
