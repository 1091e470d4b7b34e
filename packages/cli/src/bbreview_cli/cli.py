"""CLI entry point for bbreview.

Commands:
  run    — review the PR or answer a trigger-phrase comment (pipeline use)
  check  — verify configuration, Bitbucket access and the Claude CLI
  init   — write a starter .claude-review.yml
"""

from __future__ import annotations

import importlib.metadata

import click

from bbreview_cli.commands.check import check_cmd
from bbreview_cli.commands.init import init_cmd
from bbreview_cli.commands.run import run_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("bbreview"),
    prog_name="bbreview",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging. Same as VERBOSE=true.")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Claude-powered pull request reviews for Bitbucket Pipelines."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


main.add_command(run_cmd)
main.add_command(check_cmd)
main.add_command(init_cmd)
