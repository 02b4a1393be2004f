"""Live terminal view of proxied traffic."""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from core.router import ResponseStrategy
from ui.log_utils import redact_text, write_cli_log

STRATEGY_STYLES = {
    ResponseStrategy.PIPEABLE.value: "green",
    ResponseStrategy.TRANSFORMABLE_LAYOUT_DATA.value: "blue",
    ResponseStrategy.RENDER_TARGET.value: "magenta",
}

MAX_RECENT_REQUESTS = 12
MAX_RECENT_ERRORS = 3


@dataclass(frozen=True)
class HandledRequest:
    strategy: str
    method: str
    url: str
    status: int
    at: datetime = field(default_factory=datetime.now)

    @property
    def short_url(self) -> str:
        url = redact_text(self.url)
        return url if len(url) <= 80 else url[:80] + "..."


class Dashboard:
    """ProxyLogger that keeps per-strategy counters and a rich Live view.

    Only failed requests and (in debug mode) diagnostics reach the CLI log
    file; the terminal is owned by the live view while it runs.
    """

    def __init__(self, config: Config, console: Console | None = None):
        self.config = config
        self.console = console or Console()
        self.counts: Counter[str] = Counter({strategy.value: 0 for strategy in ResponseStrategy})
        self.recent: deque[HandledRequest] = deque(maxlen=MAX_RECENT_REQUESTS)
        self.errors: deque[str] = deque(maxlen=MAX_RECENT_ERRORS)
        self._lock = Lock()
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        self._live = Live(self.render(), console=self.console, refresh_per_second=4, screen=False)
        self._live.start()
        return self

    def stop(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    # ProxyLogger

    def log(self, level: str, message: Any, *args: Any) -> None:
        level = (level or "info").upper()
        if level == "ERROR" or self.config.proxy.debug:
            text = " ".join(str(part) for part in (message, *args))
            write_cli_log(level, text[:500])

    def log_request(self, strategy: str, method: str, url: str, status: int) -> None:
        with self._lock:
            self.counts[strategy] += 1
            self.recent.appendleft(HandledRequest(strategy, method, url, status))
        self._update()

    def log_error(self, route: str, status: int, message: str) -> None:
        route = redact_text(route)
        summary = message if len(message) <= 50 else message[:50] + "..."
        with self._lock:
            self.errors.appendleft(f"{route} {status}: {summary}")
        write_cli_log("ERROR", message[:200], route=route, status=status)
        self._update()

    # Rendering

    def render(self) -> Group:
        with self._lock:
            return Group(self._summary(), self._requests_table(), self._status())

    def _update(self) -> None:
        if self._live is not None:
            self._live.update(self.render())

    def _summary(self) -> Panel:
        line = Text("Layout Render Proxy", style="bold cyan")
        for strategy, count in self.counts.items():
            line.append("  |  ")
            line.append(f"{strategy}: {count}", style=STRATEGY_STYLES.get(strategy, "white"))
        line.append(f"  |  Port: {self.config.server.port}", style="dim")
        return Panel(line, style="cyan")

    def _requests_table(self) -> Panel:
        if not self.recent:
            return Panel(
                Text("No requests yet.", style="dim"),
                title="[blue]Recent Requests[/blue]",
                border_style="blue",
            )

        table = Table(expand=True, box=None, header_style="bold")
        table.add_column("Time", style="dim", width=8)
        table.add_column("Strategy", width=12)
        table.add_column("Status", width=6)
        table.add_column("Request", ratio=1)
        for item in self.recent:
            strategy_style = STRATEGY_STYLES.get(item.strategy, "white")
            status_style = "red" if item.status >= 400 else "green"
            table.add_row(
                item.at.strftime("%H:%M:%S"),
                Text(item.strategy, style=strategy_style),
                Text(str(item.status), style=status_style),
                escape(f"{item.method} {item.short_url}"),
            )
        return Panel(table, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _status(self) -> Panel:
        if self.errors:
            body = Text("\n").join(Text(f"! {err}", style="red") for err in self.errors)
        else:
            body = Text(
                f"http://{self.config.server.host}:{self.config.server.port} "
                f"-> {self.config.proxy.api_host}",
                style="dim",
            )
        return Panel(body, title="[dim]Status[/dim]", border_style="dim")
