"""CLI entry point for defi-gateway."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, KNOWN_SECRETS, Config, EnvSecretProvider, load_config
from ui.dashboard import Dashboard
from ui.log_utils import FileRequestLogger, clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()
    headless = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--check":
            print_secret_status(config)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--headless":
            headless = True
        else:
            console.print(f"[red][ERROR][/red] Unknown option: {arg}")
            _print_help()
            sys.exit(2)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = None if headless else Dashboard(config)
    logger = dashboard or FileRequestLogger()

    import uvicorn

    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=uvicorn_log_level(config, headless),
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Gateway started", port=config.server.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Gateway stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()


def uvicorn_log_level(config: Config, headless: bool) -> str:
    if config.server.debug:
        return "debug"
    return "info" if headless else "warning"


def print_secret_status(config: Config) -> None:
    """Report which API keys are available, never their values."""
    secrets = EnvSecretProvider(config)
    for key in KNOWN_SECRETS:
        if secrets.get(key):
            console.print(f"[green]{key}[/green] configured")
        else:
            console.print(f"[yellow]{key}[/yellow] not configured")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]DeFi Gateway[/bold cyan]

Proxies CoinGecko, DefiLlama, Jupiter, Moralis, NowNodes, ENS and Solana RPC
for the dashboard, keeping API keys on the server.

[bold]Usage:[/bold]
    defi-gateway              Start with live dashboard
    defi-gateway --headless   Start without dashboard (file logs only)
    defi-gateway --check      Show which API keys are configured
    defi-gateway --config     Show config location
    defi-gateway --help       Show this help

[bold]API keys:[/bold]
    Read from the environment (NOWNODES_API_KEY, MORALIS_API_KEY,
    JUPITER_APP_ID) or from the "secrets" section of the config file.
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
