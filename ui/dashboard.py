"""Real-time CLI dashboard for proxy monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_forward_log

console = Console()


class RequestInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, url: str, timestamp: datetime):
        self.method = method
        self.target = url
        self.url = url[:80] + "..." if len(url) > 80 else url
        self.timestamp = timestamp
        self.status: int | None = None


class Dashboard:
    """Real-time dashboard showing recently forwarded requests."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
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

    def log_forward(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
    ) -> None:
        """Log a request about to be sent upstream."""
        with self._lock:
            self._request_count[method] += 1
            self._recent.insert(0, RequestInfo(method, url, datetime.now()))
            self._recent = self._recent[: self._max_recent]

            write_forward_log(method, url, headers, body)
            write_cli_log("FORWARD", url, method=method)

            self._refresh()

    def log_response(self, method: str, url: str, status: int) -> None:
        """Record the upstream status for the matching recent request."""
        with self._lock:
            for info in self._recent:
                if info.status is None and info.method == method and info.target == url:
                    info.status = status
                    break
            write_cli_log("RESPONSE", url, method=method, status=status)
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
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with per-method counts."""
        stats = Text()
        stats.append("CORS Relay", style="bold cyan")
        for method in ("GET", "POST", "PUT", "DELETE"):
            stats.append("  |  ")
            stats.append(f"{method}: {self._request_count[method]}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build the recent requests table."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("Target", ratio=1)

            for info in self._recent:
                status = "..." if info.status is None else str(info.status)
                style = "red" if info.status and info.status >= 400 else ""
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    Text(status, style=style),
                    Text(info.url),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Forwarded Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and usage hint."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Request http://localhost:{self.config.proxy.port}/<host>/<path> to forward",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
