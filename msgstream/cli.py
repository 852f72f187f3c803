"""msgstream CLI: Typer + Rich terminal interface.

Commands: message, models, setup.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from msgstream import __version__
from msgstream.client import MessagesClient
from msgstream.errors import DecodeError, MsgStreamError, TransportError
from msgstream.registry import load_model_limits
from msgstream.schemas import (
    ClaudeModel,
    ContentBlockDeltaChunk,
    MaxTokens,
    Message,
    RequestOptions,
    build_request,
)
from msgstream.streaming import StreamAccumulator

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="msgstream",
    help="Send messages to the Messages API and stream the replies.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"msgstream {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log protocol details to stderr.",
    ),
) -> None:
    """msgstream: typed Messages API client."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


# ── Commands ─────────────────────────────────────────────────────


@app.command()
def message(
    prompt: str = typer.Option("", "--prompt", "-p", help="System prompt"),
    text: str = typer.Option(..., "--message", "-m", help="User message"),
    model: ClaudeModel = typer.Option(
        ClaudeModel.CLAUDE_3_HAIKU_20240307, "--model", help="Model to call",
    ),
    max_tokens: int = typer.Option(1024, "--max-tokens", help="Output token budget"),
    stream: bool = typer.Option(
        False, "--stream/--no-stream", help="Print the reply as it is generated",
    ),
) -> None:
    """Send one message and print the reply."""
    try:
        request = build_request(
            model,
            [Message.user(text)],
            MaxTokens.new(max_tokens, model),
            RequestOptions(system=prompt or None, stream=stream),
        )
        asyncio.run(_send(request))
    except MsgStreamError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


async def _send(request) -> None:
    async with MessagesClient.from_env() as client:
        if not request.stream:
            response = await client.create_a_message(request)
            console.print(Panel(response.text, title=response.model))
            _print_usage(response.stop_reason, response.usage)
            return

        acc = StreamAccumulator()
        async with aclosing(client.create_a_message_stream(request)) as items:
            async for item in items:
                if isinstance(item, (DecodeError, TransportError)):
                    console.print()
                    err_console.print(f"[red]Stream error:[/red] {item}")
                    raise typer.Exit(1)
                acc.add(item)
                if isinstance(item, ContentBlockDeltaChunk):
                    console.print(item.delta.text, end="", markup=False, highlight=False)
        console.print()
        completed = acc.finish()
        _print_usage(completed.stop_reason, completed.usage)


def _print_usage(stop_reason, usage) -> None:
    reason = stop_reason.value if stop_reason else "none"
    console.print(
        f"[dim]stop: {reason} · input: {usage.input_tokens:,} · "
        f"output: {usage.output_tokens:,} tokens[/dim]"
    )


@app.command()
def models() -> None:
    """Show the model-limit table."""
    try:
        limits = load_model_limits()
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading models:[/red] {e}")
        raise typer.Exit(1) from None

    table = Table(title="Models")
    table.add_column("Model", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Max Output", justify="right")

    for row in limits.values():
        table.add_row(row.model.value, row.display_name, f"{row.max_output_tokens:,}")

    console.print(table)


@app.command()
def setup(
    key: str = typer.Option(
        ..., "--key", prompt="API key", hide_input=True,
        help="API key to save",
    ),
) -> None:
    """Save an API key to ~/.msgstream/keys.env."""
    from msgstream.keys import save_key

    path = save_key(key.strip())
    console.print(f"[green]Saved[/green] to {path}")


# ── Entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    app()
