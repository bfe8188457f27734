"""Reporting sinks for leveled narration (info / success / warn / error)."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape


class Reporter(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleReporter:
    """Renders messages on a rich console; warnings and errors go to stderr."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]*[/] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]v[/] {escape(message)}")

    def warn(self, message: str) -> None:
        self.err_console.print(f"[yellow]![/] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]x[/] {escape(message)}")


class RecordingReporter:
    """Keeps (level, message) pairs in memory."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def lines(self, level: str | None = None) -> list[str]:
        return [m for lvl, m in self.messages if level is None or lvl == level]
