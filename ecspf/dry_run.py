"""
Dry-run display of generated session commands.
"""

from typing import List

import click

from .commands import GeneratedCommand

RULE = "━" * 50


def render_dry_run(result: GeneratedCommand, color: bool = True) -> List[str]:
    """
    Render a generated command for display.

    Args:
        result: Output of the command generator
        color: Apply click styles to headings

    Returns:
        Lines to print, without trailing newlines
    """
    def style(text: str, fg: str) -> str:
        return click.style(text, fg=fg) if color else text

    info = result.summary
    lines = [
        "",
        style("🏃 Dry Run Mode - Commands that would be executed:", "cyan"),
        "",
        style("AWS Command:", "blue"),
        RULE,
        result.raw_command,
        RULE,
        "",
        style("Reproducible Command:", "green"),
        RULE,
        result.reproducible_command,
        RULE,
        "",
        style("Session Information:", "yellow"),
        f"Region: {info.region}",
        f"Cluster: {info.cluster}",
        f"Task: {info.task}",
    ]
    if info.database:
        lines.append(f"RDS: {info.database}")
        lines.append(f"RDS Port: {info.remote_port}")
        lines.append(f"Local Port: {info.local_port}")
    if info.container:
        lines.append(f"Container: {info.container}")
        lines.append(f"Command: {info.command}")
    lines.append("")
    return lines


def display_dry_run(result: GeneratedCommand) -> None:
    for line in render_dry_run(result):
        click.echo(line)
