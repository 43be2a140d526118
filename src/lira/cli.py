"""
Command Line Interface for LIRA.
"""

import json
import logging
import click
from pathlib import Path
from .version import VERSION
from .errors import LiraError
from .logs import setup_logging
from .replay import SCRIPT_SCHEMA, run_script


def _issue_rows(board):
    rows = []
    for issue in board.get_issues():
        parent = board.get_parent(issue.id)
        assignees = ", ".join(u.name for u in board.get_assignees(issue.id))
        rows.append((issue.title, issue.type.value, issue.state.value,
                     parent.title if parent else "-", assignees or "-"))
    return rows


@click.group()
@click.version_option(version=VERSION, prog_name="lira")
@click.option('-v', '--verbose', is_flag=True, help='Log every board change to stderr')
def main(verbose):
    """
    LIRA - an in-memory project board.

    Epics, features and tasks with assignments, driven by replay scripts.
    """
    if verbose:
        setup_logging(level=logging.DEBUG)


@main.command()
@click.argument('script', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--format', 'output_format', type=click.Choice(['table', 'yaml']), default='table',
              help='How to print the resulting board')
def replay(script, output_format):
    """Run a replay SCRIPT against a fresh board and show the result."""
    try:
        result = run_script(script.read_text(encoding='utf-8'))
    except LiraError as e:
        click.echo(f"❌ {type(e).__name__}: {e}", err=True)
        raise SystemExit(1)

    board = result.board
    if output_format == 'yaml':
        click.echo(board.snapshot().to_yaml(), nl=False)
        return

    click.echo(f"✅ Ran {result.steps_run} steps")
    click.echo(f"👤 Users: {len(board.get_users())}")
    click.echo(f"📋 Issues: {len(board)}")
    rows = _issue_rows(board)
    if not rows:
        return
    headers = ("TITLE", "TYPE", "STATE", "PARENT", "ASSIGNEES")
    widths = [max(len(str(r[i])) for r in rows + [headers]) for i in range(len(headers))]
    click.echo("")
    click.echo("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip())
    for row in rows:
        click.echo("  ".join(str(c).ljust(w) for c, w in zip(row, widths)).rstrip())


@main.command()
def schema():
    """Print the JSON schema replay scripts are validated against."""
    click.echo(json.dumps(SCRIPT_SCHEMA, indent=2))


if __name__ == "__main__":
    main()
