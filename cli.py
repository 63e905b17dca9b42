"""
CLI entry point for the Auth0 Management Tool.

Sub-commands: test (connectivity self-test), list, find and export.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config import AppConfig, ConfigurationError, load_config, load_credentials, print_setup_hint
from errors import ManagementError
from export import save_resource_csv
from logging_utils import setup_logging
from management_client import ManagementClient

logger: logging.Logger | None = None
console = Console()

# resource name -> (list method, find method, columns shown by `list`)
RESOURCES: dict[str, tuple[str, str, list[str]]] = {
    'applications': ('list_applications', 'find_application_by_name', ['client_id', 'name', 'app_type']),
    'connections': ('list_connections', 'find_connection_by_name', ['id', 'name', 'strategy']),
    'actions': ('list_actions', 'find_action_by_name', ['id', 'name', 'runtime', 'status']),
    'resource-servers': ('list_resource_servers', 'find_resource_server_by_identifier',
                         ['id', 'name', 'identifier']),
    'roles': ('list_roles', 'find_role_by_name', ['id', 'name', 'description']),
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='auth0-mgmt',
        description='Auth0 Management API tools',
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=Path('config.toml'),
        help='Path to config.toml (default: ./config.toml)',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('test', help='Check credentials and Management API access')

    list_parser = sub.add_parser('list', help='List resources of one type')
    list_parser.add_argument('resource', choices=sorted(RESOURCES))

    find_parser = sub.add_parser('find', help='Find a resource by name (identifier for resource-servers)')
    find_parser.add_argument('resource', choices=sorted(RESOURCES))
    find_parser.add_argument('query')

    export_parser = sub.add_parser('export', help='Export every resource type to CSV')
    export_parser.add_argument(
        '--output-dir',
        type=Path,
        default=None,
        help='Override output directory (default: [paths] output_dir from config)',
    )
    return parser.parse_args(argv)


# -----------------------------------------------
# Commands
# -----------------------------------------------

async def _cmd_test(mgmt: ManagementClient) -> int:
    result = await mgmt.test_connection()
    if result['success']:
        console.print(Panel(
            f"[bold green]Connected[/bold green] to [cyan]{mgmt.domain}[/]\n"
            f"  Audience: [cyan]{mgmt.audience}[/]",
            border_style="green",
        ))
        return 0
    console.print(Panel(
        f"[bold red]Connection failed[/bold red] for [cyan]{mgmt.domain}[/]\n\n  {result['error']}",
        border_style="red",
    ))
    return 1


async def _cmd_list(mgmt: ManagementClient, resource: str) -> int:
    list_method, _, columns = RESOURCES[resource]
    records = await getattr(mgmt, list_method)()

    table = Table(title=f"{resource} ({len(records)})")
    for col in columns:
        table.add_column(col, style="cyan" if col == columns[0] else None)
    for record in records:
        table.add_row(*(str(record.get(col, '')) for col in columns))
    console.print(table)
    return 0


async def _cmd_find(mgmt: ManagementClient, resource: str, query: str) -> int:
    _, find_method, _ = RESOURCES[resource]
    record = await getattr(mgmt, find_method)(query)
    if record is None:
        console.print(f"[yellow]No {resource} entry matching[/] '{query}'")
        return 1
    console.print_json(json.dumps(record))
    return 0


async def _cmd_export(mgmt: ManagementClient, config: AppConfig, output_dir: Path) -> int:
    start = datetime.now()
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )
    counts: dict[str, int] = {}
    with progress:
        task_id = progress.add_task("Exporting", total=len(RESOURCES))
        for resource, (list_method, _, _) in RESOURCES.items():
            progress.update(task_id, description=f"Exporting {resource}")
            records = await getattr(mgmt, list_method)()
            save_resource_csv(resource.replace('-', '_'), records, output_dir)
            counts[resource] = len(records)
            progress.advance(task_id)

    elapsed = (datetime.now() - start).total_seconds()
    summary = ", ".join(f"{count} {name}" for name, count in counts.items())
    console.print(f"\n[green]Export complete.[/] {summary} -> {output_dir} ({elapsed:.1f}s)")
    logger.info(f"Export of {config.tenant.domain} complete in {elapsed:.2f}s: {summary}")
    return 0


# -----------------------------------------------
# Entry point
# -----------------------------------------------

async def run(args: argparse.Namespace) -> int:
    """Load config and credentials, open a client, dispatch the sub-command."""
    global logger

    try:
        config = load_config(args.config)
        client_id, client_secret = load_credentials(config.project_root)
    except ConfigurationError as e:
        print_setup_hint()
        console.print(f"[red]Configuration error:[/] {e}")
        return 1

    logger = setup_logging(
        log_name='auth0_mgmt',
        verbose_console_logging=config.logging.verbose_console_logging,
    )
    logger.info(f"Tenant: {config.tenant.domain} ({args.command})")

    try:
        async with ManagementClient.from_config(config, client_id, client_secret) as mgmt:
            if args.command == 'test':
                return await _cmd_test(mgmt)
            if args.command == 'list':
                return await _cmd_list(mgmt, args.resource)
            if args.command == 'find':
                return await _cmd_find(mgmt, args.resource, args.query)
            output_dir = config.resolve_path(args.output_dir or config.paths.output_dir)
            return await _cmd_export(mgmt, config, output_dir)
    except ManagementError as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(f"[red]Error:[/] {e}")
        return 1


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    sys.exit(asyncio.run(run(args)))


if __name__ == '__main__':
    main()
