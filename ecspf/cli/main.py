"""Main CLI entrypoint for ecs-pf."""

import json
import sys
from typing import Any, Dict, List, Tuple

import click

from .. import __version__
from ..config import load_settings
from ..errors import EcsPfError, ExternalError, FormatError, NotFoundError, ValidationError
from ..flows import connect_flow, enable_exec_flow, exec_flow, run_with_retry
from ..log import setup_logging
from ..validation import parse_connect_options, parse_enable_exec_options, parse_exec_options

EXIT_ERROR = 1
EXIT_VALIDATION = 2


@click.group()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name='ecs-pf')
@click.pass_context
def main(ctx, output_json, verbose):
    """ecs-pf - Port forwarding and ECS Exec sessions through ECS tasks."""
    ctx.ensure_object(dict)
    ctx.obj['json'] = output_json
    setup_logging(verbose)


def _json_output(data: Dict[str, Any]) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None, ensure_ascii=False))


def _human_output(message: str) -> None:
    """Output human-readable message."""
    if not click.get_current_context().obj.get('json', False):
        click.echo(message)


def _error_details(error: EcsPfError) -> Tuple[str, str, List[str]]:
    """Map an error to (title, problem, hints) for display."""
    if isinstance(error, ValidationError):
        hints = [f"{field}: {reason}" for field, reason in error.issues[1:]]
        return "Invalid input", f"{error.field}: {error.reason}", hints
    if isinstance(error, NotFoundError):
        return "Nothing found", str(error), [error.suggestion] if error.suggestion else []
    if isinstance(error, ExternalError):
        hints = ["Check your AWS credentials and region"]
        if error.cause is not None:
            hints.append(f"Cause: {error.cause}")
        return "AWS call failed", str(error), hints
    if isinstance(error, FormatError):
        return "Could not build command", str(error), ["Re-run with --verbose for details"]
    return "Error", str(error), []


def _show_error(error: EcsPfError) -> None:
    title, problem, hints = _error_details(error)
    if click.get_current_context().obj.get('json', False):
        _json_output({'error': title, 'message': problem, 'hints': hints})
        return
    click.echo(click.style(f"❌ {title}", fg='red', bold=True), err=True)
    click.echo(f"   {problem}", err=True)
    for hint in hints:
        click.echo(click.style(f"   💡 {hint}", fg='yellow'), err=True)


def _fail(error: EcsPfError) -> None:
    sys.exit(EXIT_VALIDATION if isinstance(error, ValidationError) else EXIT_ERROR)


def _run(flow, output_json: bool):
    """Run a flow with retries, mapping errors to exit codes."""
    try:
        if output_json:
            return flow()
        return run_with_retry(flow, on_error=_show_error)
    except ValidationError as e:
        _show_error(e)
        _fail(e)
    except EcsPfError as e:
        if output_json:
            _show_error(e)
        _fail(e)
    except (click.Abort, KeyboardInterrupt):
        _human_output("\n👋 Cancelled")
        sys.exit(130)


@main.command()
@click.option('--region', help='AWS region')
@click.option('--cluster', help='ECS cluster name')
@click.option('--task', help='ECS task id')
@click.option('--rds', help='RDS instance identifier')
@click.option('--rds-port', help='RDS port (defaults to the instance port)')
@click.option('--local-port', help='Local port (defaults to the first free port from 8888)')
@click.option('--dry-run', is_flag=True, help='Print commands without running them')
@click.pass_context
def connect(ctx, region, cluster, task, rds, rds_port, local_port, dry_run):
    """Forward a local port to an RDS instance through an ECS task."""
    output_json = ctx.obj.get('json', False)
    settings = load_settings()
    try:
        options = parse_connect_options({
            'region': region, 'cluster': cluster, 'task': task, 'rds': rds,
            'rds_port': rds_port, 'local_port': local_port, 'dry_run': dry_run,
        })
    except ValidationError as e:
        _show_error(e)
        _fail(e)

    result = _run(lambda: connect_flow(options, settings, output_json=output_json), output_json)
    if output_json:
        _json_output(result.to_dict())


@main.command('exec-task')
@click.option('--region', help='AWS region')
@click.option('--cluster', help='ECS cluster name')
@click.option('--task', help='ECS task id or ARN')
@click.option('--container', help='Container name')
@click.option('--command', help='Command to run (defaults to /bin/bash)')
@click.option('--dry-run', is_flag=True, help='Print commands without running them')
@click.pass_context
def exec_task(ctx, region, cluster, task, container, command, dry_run):
    """Open an ECS Exec session in a container."""
    output_json = ctx.obj.get('json', False)
    settings = load_settings()
    try:
        options = parse_exec_options({
            'region': region, 'cluster': cluster, 'task': task,
            'container': container, 'command': command, 'dry_run': dry_run,
        })
    except ValidationError as e:
        _show_error(e)
        _fail(e)

    result = _run(lambda: exec_flow(options, settings, output_json=output_json), output_json)
    if output_json:
        _json_output(result.to_dict())


@main.command('enable-exec')
@click.option('--region', help='AWS region')
@click.option('--cluster', help='ECS cluster name')
@click.option('--service', help='ECS service name')
@click.option('--all', 'all_services', is_flag=True, help='Enable for every service lacking ECS Exec')
@click.option('--dry-run', is_flag=True, help='Print commands without running them')
@click.pass_context
def enable_exec(ctx, region, cluster, service, all_services, dry_run):
    """Enable ECS Exec on services of a cluster."""
    output_json = ctx.obj.get('json', False)
    settings = load_settings()
    try:
        options = parse_enable_exec_options({
            'region': region, 'cluster': cluster, 'service': service, 'dry_run': dry_run,
        })
    except ValidationError as e:
        _show_error(e)
        _fail(e)

    updated = _run(lambda: enable_exec_flow(options, settings, all_services=all_services), output_json)
    if output_json:
        _json_output({'services': updated, 'dry_run': dry_run})


if __name__ == '__main__':
    main()
