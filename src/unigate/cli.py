"""CLI entry point for unigate.

Translates unified requests and provider replies offline, or sends a live
completion through a provider adapter. Uses Click and Rich.

Usage::

    unigate build-request request.json
    unigate transform-response reply.json --status 429
    unigate transform-stream events.txt --fallback-id chatcmpl-1
    unigate complete request.json --stream --verbose
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from unigate.adapters import get_adapter, list_providers
from unigate.adapters.base import ProviderAdapter
from unigate.client import GatewayClient
from unigate.errors import GatewayError, ParameterError, StreamParseError
from unigate.params import RangePolicy
from unigate.settings import GatewaySettings
from unigate.streaming import iter_sse_fragments, transform_stream

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON in {path}:[/red] {exc}")
        raise SystemExit(1) from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


def _adapter(ctx: click.Context) -> ProviderAdapter:
    return ctx.obj["adapter"]


@click.group()
@click.version_option(package_name="unigate")
@click.option("--provider", default="anthropic", show_default=True, help="Provider adapter.")
@click.option("--clamp", is_flag=True, help="Clamp out-of-range parameters instead of rejecting.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, provider: str, clamp: bool, verbose: bool) -> None:
    """unigate: unified chat-completion translation for upstream providers."""
    _setup_logging(verbose)
    kwargs = {"range_policy": RangePolicy.CLAMP} if clamp else {}
    try:
        adapter = get_adapter(provider, **kwargs)
    except GatewayError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
    ctx.obj = {"adapter": adapter, "clamp": clamp}


@main.command()
def providers() -> None:
    """List the registered provider adapters."""
    table = Table(title="Providers")
    table.add_column("Provider", style="bold")
    table.add_column("Parameters")
    for name in list_providers():
        adapter = get_adapter(name)
        table.add_row(name, ", ".join(adapter.config))
    console.print(table)


@main.command("build-request")
@click.argument("request_json", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def build_request(ctx: click.Context, request_json: str) -> None:
    """Print the provider body for a unified request."""
    request = _load_json(request_json)
    try:
        body = _adapter(ctx).build_request(request)
    except ParameterError as exc:
        err_console.print(f"[red]Invalid request:[/red] {exc}")
        raise SystemExit(1) from exc
    _echo_json(body)


@main.command("transform-response")
@click.argument("response_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--status", default=200, show_default=True, help="HTTP status of the reply.")
@click.pass_context
def transform_response(ctx: click.Context, response_json: str, status: int) -> None:
    """Print the unified form of a provider reply."""
    payload = _load_json(response_json)
    _echo_json(_adapter(ctx).transform_response(payload, status).to_dict())


@main.command("transform-stream")
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--fallback-id", default="chatcmpl-local", show_default=True, help="Chunk id.")
@click.pass_context
def transform_stream_cmd(ctx: click.Context, events_file: str, fallback_id: str) -> None:
    """Print unified SSE lines for a captured provider event stream."""
    lines = Path(events_file).read_text(encoding="utf-8").splitlines()
    adapter = _adapter(ctx)
    try:
        for line in transform_stream(
            iter_sse_fragments(lines), adapter.transform_stream_fragment, fallback_id
        ):
            click.echo(line, nl=False)
    except StreamParseError as exc:
        err_console.print(f"[red]Stream aborted:[/red] {exc}")
        raise SystemExit(1) from exc


@main.command()
@click.argument("request_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--stream", "stream_", is_flag=True, help="Stream the completion.")
@click.option("--env-file", default=".env", show_default=True, help="Dotenv file to load.")
@click.pass_context
def complete(ctx: click.Context, request_json: str, stream_: bool, env_file: str) -> None:
    """Send a unified request to the provider and print the unified reply."""
    load_dotenv(env_file)
    request = _load_json(request_json)
    try:
        settings = GatewaySettings.from_env()
    except GatewayError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        raise SystemExit(1) from exc

    adapter = _adapter(ctx)
    if not ctx.obj["clamp"]:
        adapter.range_policy = settings.range_policy
    if not settings.api_key:
        err_console.print("[yellow]Warning:[/yellow] ANTHROPIC_API_KEY is not set")

    try:
        asyncio.run(_complete(adapter, settings, request, stream_))
    except GatewayError as exc:
        err_console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
        raise SystemExit(1) from exc


async def _complete(
    adapter: ProviderAdapter,
    settings: GatewaySettings,
    request: dict[str, Any],
    stream_: bool,
) -> None:
    async with GatewayClient(adapter, settings) as client:
        if stream_:
            async for line in client.stream(request):
                click.echo(line, nl=False)
            return
        result = await client.complete(request)
        _echo_json(result.to_dict())
