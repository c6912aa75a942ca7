"""Real-time CLI dashboard for gateway monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock
from typing import Any

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_upstream_log

console = Console()


class UpstreamCall:
    """Info about a single upstream call."""

    def __init__(self, route: str, method: str, url: str, timestamp: datetime):
        self.route = route
        self.method = method
        self.url = url[:70] + "..." if len(url) > 70 else url
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing upstream traffic and recent errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._calls: list[UpstreamCall] = []
        self._max_calls = 10
        self._request_count: Counter[str] = Counter()
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_upstream(
        self,
        route: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Log a call forwarded to an upstream API."""
        with self._lock:
            self._request_count[route] += 1
            self._calls.insert(0, UpstreamCall(route, method, url, datetime.now()))
            self._calls = self._calls[: self._max_calls]

            write_upstream_log(route, method, url, params=params, headers=headers)
            write_cli_log("UPSTREAM", f"{method} {url}", route=route)

            self._refresh()

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="calls"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["calls"].update(self._build_calls_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with per-upstream counts."""
        stats = Text()
        stats.append("DeFi Gateway", style="bold cyan")
        for route, count in sorted(self._request_count.items()):
            stats.append("  |  ")
            stats.append(f"{route}: {count}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.server.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_calls_panel(self) -> Panel:
        """Build the recent upstream calls table."""
        if self._calls:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Upstream", width=12)
            table.add_column("Method", width=6)
            table.add_column("URL", ratio=1)

            for call in self._calls:
                table.add_row(
                    call.timestamp.strftime("%H:%M:%S"),
                    call.route,
                    call.method,
                    call.url,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Upstream Calls[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Serving on http://{self.config.server.host}:{self.config.server.port}/api",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
