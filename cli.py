"""Command line entry point: layout-render-proxy [--check | --config | --help]."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, Config, load_config, resolve_config
from core.exceptions import ConfigurationError
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, redact_text, write_cli_log

console = Console()

HELP = """
[bold cyan]Layout Render Proxy[/bold cyan]

Serves app routes by fetching their layout data and rendering them;
media, API and other excluded paths are passed through unchanged.

[bold]Usage:[/bold]
    layout-render-proxy              Start the proxy
    layout-render-proxy --check      Validate the configuration
    layout-render-proxy --config     Show config location
    layout-render-proxy --help       Show this help

Hooks, the renderer and the route parser are 'module:function' strings
in the config file. Set server.dashboard to true for the live view.
"""


def main():
    config = load_config()
    option = sys.argv[1] if len(sys.argv) > 1 else None

    if option == "--check":
        check_config(config)
    elif option == "--config":
        console.print(f"[bold]Config file:[/bold] {CONFIG_FILE}")
    elif option in ("--help", "-h"):
        console.print(HELP)
    else:
        serve(config)


def check_config(config: Config) -> None:
    """Resolve the configuration and print what the proxy would use."""
    try:
        resolved = resolve_config(config)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)

    rows = {
        "API host": resolved.api_host,
        "Layout service route": resolved.layout_service_route,
        "API key": redact_text(f"sc_apikey={resolved.api_key}"),
        "Exclusions": resolved.exclusion,
        "Max response size": f"{resolved.max_response_size_bytes} bytes",
        "Renderer": config.app.renderer or "not configured",
    }
    console.print("[green]Configuration OK[/green]")
    for label, value in rows.items():
        console.print(f"[bold]{label}:[/bold] ", end="")
        console.print(str(value), markup=False, highlight=False)


def serve(config: Config) -> None:
    """Build the app and run it under uvicorn until interrupted."""
    if config.app.renderer is None:
        console.print("[red][ERROR][/red] app.renderer is not set")
        console.print(f"[dim]Point it at your render function in {CONFIG_FILE}[/dim]")
        sys.exit(1)

    import uvicorn

    clear_logs()
    dashboard = Dashboard(config, console) if config.server.dashboard else None
    logger = dashboard or ConsoleLogger(debug=config.proxy.debug, console=console)
    try:
        app = create_app(config, logger)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level="warning",
            timeout_keep_alive=config.server.keep_alive_timeout,
        )
    )

    started = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.server.port)
    if dashboard:
        dashboard.start()
    try:
        server.run()
    finally:
        if dashboard:
            dashboard.stop()
        write_cli_log("SHUTDOWN", "Proxy stopped", uptime=str(datetime.now() - started))


if __name__ == "__main__":
    main()
