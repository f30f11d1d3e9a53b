"""CLI entry point for cors-relay."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, load_config
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    config = load_config()

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]CORS Relay[/bold cyan]

Forwards /<host>/<path> to https://<host>/<path> and adds CORS headers.

[bold]Usage:[/bold]
    cors-relay              Start with live dashboard
    cors-relay --config     Show config location
    cors-relay --help       Show this help

[bold]Query parameters:[/bold]
    headers   JSON object or Name:Value pair merged into the request headers
    d         Request body for POST/PUT (JSON is re-serialized)
    key       Credential moved onto the target URL, masked in logs

[bold]Environment:[/bold]
    PORT      Overrides proxy.port from the config file
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
