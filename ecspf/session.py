"""
Run generated session commands as child processes.
"""

import logging
import subprocess

import click

from .commands import GeneratedCommand
from .errors import ExternalError

logger = logging.getLogger(__name__)


def run_session(command: str) -> int:
    """
    Run a command string produced by the command generator.

    The string is passed to the shell unchanged; its parts were validated
    before generation.

    Returns:
        int: Exit code of the session

    Raises:
        ExternalError: If the shell cannot be started
    """
    logger.debug(f"Running: {command}")
    try:
        proc = subprocess.run(command, shell=True, check=False)
    except OSError as e:
        raise ExternalError(f"Failed to start session: {e}", cause=e)
    return proc.returncode


def start_tunnel(result: GeneratedCommand) -> int:
    info = result.summary
    click.echo(click.style("Command:", fg="blue"))
    click.echo(click.style(result.raw_command, fg="cyan"))
    click.echo("")
    click.echo(click.style(f"🎯 RDS available at localhost:{info.local_port}", fg="green"))
    click.echo(click.style("Press Ctrl+C to end the session", fg="yellow"))
    click.echo("")
    click.echo(click.style("Reproducible command:", fg="blue"))
    click.echo(result.reproducible_command)
    click.echo("")

    try:
        code = run_session(result.raw_command)
    except KeyboardInterrupt:
        click.echo(click.style("\n🛑 Session closed", fg="yellow"))
        return 0
    if code == 127:
        raise ExternalError("AWS CLI not found. Install the AWS CLI and the Session Manager plugin.")
    if code == 0:
        click.echo(click.style("✅ Session ended", fg="green"))
    else:
        click.echo(click.style(f"❌ Session exited with code {code}", fg="red"))
    return code


def start_exec(result: GeneratedCommand) -> int:
    info = result.summary
    click.echo(click.style(f"Executing '{info.command}' in {info.container} ({info.cluster})", fg="blue"))
    click.echo(click.style("Reproducible command:", fg="blue"))
    click.echo(result.reproducible_command)
    click.echo("")
    try:
        code = run_session(result.raw_command)
    except KeyboardInterrupt:
        return 0
    if code == 127:
        raise ExternalError("AWS CLI not found. Install the AWS CLI and the Session Manager plugin.")
    return code
