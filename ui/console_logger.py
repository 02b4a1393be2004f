"""Console diagnostics for the proxy."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

from ui.log_utils import redact_headers, redact_text, write_cli_log

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "cyan",
    "WARN": "yellow",
    "WARNING": "yellow",
    "ERROR": "red bold",
}


class ConsoleLogger:
    """Print proxy diagnostics with rich.

    Debug, info and warning output only appears when ``debug`` is enabled;
    errors are always printed and written to the CLI log file.
    """

    def __init__(self, debug: bool = False, console: Console | None = None):
        self.debug = debug
        self.console = console or Console(stderr=True)

    def log(self, level: str, message: Any, *args: Any) -> None:
        level = (level or "info").upper()
        if level == "ERROR":
            self._log_error(message, *args)
            return
        if not self.debug:
            return
        text = " ".join(_format(part) for part in (message, *args))
        self.console.print(f"[{LEVEL_STYLES.get(level, 'white')}]{level}:[/] {escape(text)}", highlight=False)

    def log_request(self, strategy: str, method: str, url: str, status: int) -> None:
        if self.debug:
            line = f"{method} {redact_text(url)} -> {status} ({strategy})"
            self.console.print(f"[dim]{escape(line)}[/dim]", highlight=False)

    def log_error(self, route: str, status: int, message: str) -> None:
        write_cli_log("ERROR", message[:200], route=route, status=status)

    def _log_error(self, message: Any, *args: Any) -> None:
        if isinstance(message, BaseException):
            self.console.print(f"[red bold]ERROR:[/] {escape(redact_text(str(message)))}")
            self.console.print(Traceback.from_exception(type(message), message, message.__traceback__))
        else:
            text = " ".join(_format(part) for part in (message, *args))
            self.console.print(f"[red bold]ERROR:[/] {escape(text)}", highlight=False)


def _format(value: Any) -> str:
    if isinstance(value, dict):
        return json.dumps(redact_headers(value), indent=2, default=str)
    return redact_text(str(value))
