"""Command listing: the application's click commands and console scripts."""

from __future__ import annotations

from typing import Any

import click

from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


def walk_commands(group: click.Group, prefix: str = "") -> list[dict[str, str]]:
    """Flatten a click group into ``{"name", "description"}`` entries.

    Nested groups contribute their subcommands as ``"group sub"``.
    """
    commands: list[dict[str, str]] = []
    ctx = click.Context(group, info_name=group.name)
    for name in group.list_commands(ctx):
        command = group.get_command(ctx, name)
        if command is None or command.hidden:
            continue
        full_name = f"{prefix}{name}"
        if isinstance(command, click.Group):
            commands.extend(walk_commands(command, f"{full_name} "))
            continue
        commands.append({"name": full_name, "description": command.get_short_help_str(limit=120)})
    return commands


@tool_metadata(
    name="list-commands",
    description="List the application's CLI commands and console scripts",
)
class ListCommandsTool(BaseTool):
    """List the commands you can run for this application.

    Includes every command of the configured click group (application.cli)
    and the console scripts declared in pyproject.toml, sorted by name.
    """

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        app = self.app
        commands = [
            {"name": name, "description": f"Console script ({target})"}
            for name, target in app.scripts.items()
        ]

        group = app.load_cli()
        if group is not None:
            if not isinstance(group, click.Group):
                return ToolResponse.error(f"application.cli is not a click group: {app.config.cli}")
            commands.extend(walk_commands(group))

        return ToolResponse.json(sorted(commands, key=lambda c: c["name"]))
