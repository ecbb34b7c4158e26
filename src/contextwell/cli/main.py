"""Main CLI entry point.

    contextwell serve                      # MCP server over stdio
    contextwell manifest                   # list slices and bundles
    contextwell resolve app-info -b @debug # print resolved context
    contextwell tools                      # registered tools and execution mode
    contextwell init                       # write .contextwell/config.yaml
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from contextwell import __version__
from contextwell.cli.execute_tool import execute_tool
from contextwell.config import CONFIG_DIR, CONFIG_FILE, save_default_config
from contextwell.foundation.errors import ConfigError, EmptyRequestError
from contextwell.foundation.logging import configure_logging
from contextwell.runtime import Runtime

console = Console()
err_console = Console(stderr=True)


def get_runtime(ctx: click.Context) -> Runtime:
    """Runtime for this invocation, built once and with config loaded."""
    obj = ctx.ensure_object(dict)
    if obj.get("runtime") is None:
        runtime = Runtime(obj.get("workspace"), obj.get("config"))
        try:
            runtime.config
        except ConfigError as e:
            raise click.ClickException(str(e)) from e
        if runtime.config.debug and not obj.get("debug"):
            configure_logging(debug=True)
        obj["runtime"] = runtime
    return obj["runtime"]


@click.group()
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="Config file path")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="contextwell")
@click.pass_context
def main(ctx: click.Context, workspace: str | None, config_path: str | None, debug: bool) -> None:
    """Contextwell - on-demand application context for AI agents."""
    configure_logging(debug=debug)
    obj = ctx.ensure_object(dict)
    obj["workspace"] = workspace
    obj["config"] = config_path
    obj["debug"] = debug


main.add_command(execute_tool)


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server over stdio."""
    from contextwell.mcp.server import create_server

    mcp = create_server(runtime=get_runtime(ctx))
    try:
        mcp.run()
    except KeyboardInterrupt:
        pass  # Clean exit for MCP subprocess


@main.command()
@click.pass_context
def manifest(ctx: click.Context) -> None:
    """List every context slice and bundle."""
    # Plain echo: category tags like [debug] are not rich markup
    click.echo(get_runtime(ctx).manifest.render())


@main.command()
@click.argument("slice_ids", nargs=-1)
@click.option("--bundle", "-b", "bundles", multiple=True, help="Bundle id (repeatable), e.g. @debug")
@click.option(
    "--params",
    default=None,
    help='JSON object of slice id -> parameters, e.g. \'{"get-config": {"key": "app.name"}}\'',
)
@click.pass_context
def resolve(ctx: click.Context, slice_ids: tuple[str, ...], bundles: tuple[str, ...], params: str | None) -> None:
    """Resolve slices and bundles and print the assembled context."""
    slices: dict[str, object] = {slice_id: {} for slice_id in slice_ids}
    if params:
        try:
            extra = json.loads(params)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"not valid JSON: {e}", param_hint="--params") from e
        if not isinstance(extra, dict):
            raise click.BadParameter("must be a JSON object", param_hint="--params")
        slices.update(extra)

    try:
        output = get_runtime(ctx).resolver.resolve_request(slices, list(bundles))
    except EmptyRequestError as e:
        err_console.print(f"[red]Error:[/red] {e}", markup=True, highlight=False)
        sys.exit(1)

    click.echo(output)


@main.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """Show registered tools and how each one is executed."""
    runtime = get_runtime(ctx)
    registry = runtime.registry
    executor = runtime.executor

    table = Table(title="Registered Tools", show_header=True)
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Read-only", no_wrap=True)
    table.add_column("Mode", style="magenta", no_wrap=True)
    table.add_column("Description")

    for name in registry.names():
        metadata = registry.metadata(name)
        if metadata is None:
            continue
        table.add_row(
            name,
            "yes" if metadata.read_only else "[yellow]no[/yellow]",
            executor.mode_for(name),
            metadata.description,
        )

    console.print(table)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a documented default config to .contextwell/config.yaml."""
    workspace = Path(ctx.obj.get("workspace") or Path.cwd())
    path = workspace / CONFIG_DIR / CONFIG_FILE
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    save_default_config(path)
    console.print(f"[green]✓[/green] Wrote {path}")
