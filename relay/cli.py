"""
CLI for running and poking at the signaling relay.

Provides a command to serve the relay with uvicorn and two small
WebSocket clients for debugging signaling between peers.
"""

import asyncio
import copy

import typer
import uvicorn
import websockets
from websockets.exceptions import WebSocketException
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from uvicorn.config import LOGGING_CONFIG

from relay.settings import app_settings

# Initialize Typer app with help text
typer_app = typer.Typer(
    name="signal-relay",
    help="Signal relay CLI - serve the relay or talk to a running one",
    add_completion=False,
)
console = Console()


def default_url() -> str:
    """WebSocket URL of a relay running locally with current settings."""
    return f"ws://localhost:{app_settings.PORT}{app_settings.SIGNAL_PATH}"


def build_log_config() -> dict:
    """Uvicorn's default log config with monitoring paths filtered out."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config.setdefault("filters", {})["exclude_metrics"] = {
        "()": "relay.uvicorn_filters.ExcludeMetricsFilter",
    }
    log_config["handlers"]["access"]["filters"] = ["exclude_metrics"]
    return log_config


@typer_app.command(name="serve")
def serve(
    host: str = typer.Option(app_settings.HOST, help="Bind address"),
    port: int = typer.Option(app_settings.PORT, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """
    Run the relay with uvicorn.

    Example:
        python -m relay serve --port 8443
    """
    console.print(
        Panel.fit(
            f"[bold cyan]Signal relay[/bold cyan]\n\n"
            f"ws://{host}:{port}{app_settings.SIGNAL_PATH}",
            border_style="cyan",
        )
    )
    uvicorn.run(
        "relay:application",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=build_log_config(),
    )


async def _send(url: str, message: str) -> None:
    async with websockets.connect(url) as websocket:
        await websocket.send(message)


async def _listen(url: str, count: int | None) -> list[str | bytes]:
    received: list[str | bytes] = []
    async with websockets.connect(url) as websocket:
        console.print(f"[green]✓ Connected to {url}[/green]")
        while count is None or len(received) < count:
            message = await websocket.recv()
            received.append(message)
            if isinstance(message, bytes):
                console.print(f"← [dim]binary[/dim] {message.hex()}")
            else:
                console.print(f"← {escape(message)}")
    return received


@typer_app.command(name="send")
def send(
    message: str = typer.Argument(..., help="Payload, sent as one text frame"),
    url: str = typer.Option(None, help="Relay WebSocket URL"),
):
    """
    Send one signaling message to every peer connected to a relay.

    Example:
        python -m relay send '{"type": "offer", "sdp": "..."}'
    """
    url = url or default_url()
    try:
        asyncio.run(_send(url, message))
    except (OSError, WebSocketException) as e:
        console.print(f"[red]✗ Could not send to {url}[/red]: {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Sent {len(message)} characters to {url}[/green]")


@typer_app.command(name="listen")
def listen(
    url: str = typer.Option(None, help="Relay WebSocket URL"),
    count: int = typer.Option(
        None, min=1, help="Exit after this many messages"
    ),
):
    """
    Join a relay as a silent peer and print every message it forwards.

    Example:
        python -m relay listen --count 2
    """
    url = url or default_url()
    try:
        asyncio.run(_listen(url, count))
    except (OSError, WebSocketException) as e:
        console.print(
            f"[red]✗ Connection to {url} failed[/red]: {escape(str(e))}"
        )
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.print()


if __name__ == "__main__":
    typer_app()
