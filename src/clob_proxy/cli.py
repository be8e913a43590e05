"""Command line interface for the CLOB proxy."""

import asyncio
import socket

import httpx
import structlog
import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .app import configure_logging, create_app
from .config import Settings, settings
from .errors import BootstrapError

app = typer.Typer(help="CLOB Proxy - transparent forwarding proxy")
console = Console()
logger = structlog.get_logger(__name__)


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind the listening socket, raising BootstrapError if that is impossible."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        raise BootstrapError(f"Cannot listen on {host}:{port}: {e}") from e
    sock.set_inheritable(True)
    return sock


def _effective_settings(
    host: str | None, port: int | None, debug: bool
) -> Settings:
    overrides = {}
    if host is not None:
        overrides["listen_host"] = host
    if port is not None:
        overrides["port"] = port
    if debug:
        overrides.update(debug=True, log_level="DEBUG")
    return settings.model_copy(update=overrides) if overrides else settings


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Host to bind to"),
    port: int | None = typer.Option(None, "--port", help="Port to bind to"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Start the proxy server."""
    active = _effective_settings(host, port, debug)
    configure_logging(active)

    try:
        sock = bind_listener(active.listen_host, active.port)
    except BootstrapError as e:
        logger.error("Failed to start listener", error=str(e))
        raise typer.Exit(1)

    logger.info(
        "CLOB proxy listening",
        address=f"{active.listen_host}:{active.port}",
        target=active.clob_target,
    )
    server = uvicorn.Server(
        uvicorn.Config(create_app(active), log_level=active.log_level.lower())
    )
    server.run(sockets=[sock])


@app.command()
def config_check() -> None:
    """Check configuration and upstream connectivity."""
    configure_logging(settings)

    table = Table(title="Configuration Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Value", style="yellow")

    table.add_row("Upstream", "✓", settings.clob_target)
    table.add_row(
        "API Key",
        "✓" if settings.auth_enabled else "✗",
        "Set" if settings.auth_enabled else "Not set (writes are not gated)",
    )
    table.add_row("Listen", "✓", f"{settings.listen_host}:{settings.port}")
    table.add_row("Upstream Timeout", "✓", f"{settings.upstream_timeout}s")
    table.add_row("Body Limit", "✓", f"{settings.body_limit} bytes")
    table.add_row("Region", "✓", settings.region)
    table.add_row("Log Level", "✓", settings.log_level)

    console.print(table)

    async def _test_connectivity():
        try:
            async with httpx.AsyncClient(
                timeout=settings.upstream_timeout, follow_redirects=True
            ) as client:
                response = await client.get(settings.clob_target)
            console.print(
                f"[green]Upstream reachable[/green] - HTTP {response.status_code}"
            )
        except httpx.HTTPError as e:
            console.print(f"[red]Upstream unreachable: {e}[/red]")
            raise typer.Exit(1)

    asyncio.run(_test_connectivity())


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
