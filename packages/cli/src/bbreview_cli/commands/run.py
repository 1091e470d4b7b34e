"""run command — execute review or tag mode for the current pipeline."""

from __future__ import annotations

import click
from rich.console import Console

from bbreview_core.bitbucket.client import BitbucketClient
from bbreview_core.claude.install import ensure_claude_cli, is_claude_installed
from bbreview_core.modes import ReviewResult, run_mode, should_run
from bbreview_cli.settings import build_config

console = Console()


@click.command("run")
@click.option(
    "--mode",
    type=click.Choice(["review", "tag"]),
    default=None,
    help="Mode to run. Overrides the MODE environment variable.",
)
@click.option(
    "--stream",
    is_flag=True,
    help="Use stream-json output and print the assistant's text as it arrives.",
)
@click.option(
    "--no-install",
    "no_install",
    is_flag=True,
    help="Fail instead of installing the Claude CLI when it is missing.",
)
@click.pass_context
def run_cmd(ctx, mode: str | None, stream: bool, no_install: bool):
    """Run the configured mode against the pull request in this pipeline.

    \b
    review  review the PR diff and post a summary comment
    tag     answer the latest comment mentioning the trigger phrase

    \b
    Required environment variables:
      BITBUCKET_WORKSPACE      workspace slug
      BITBUCKET_REPO_SLUG      repository slug
      ANTHROPIC_API_KEY        passed to the Claude CLI
    Optional:
      BITBUCKET_PR_ID, BITBUCKET_ACCESS_TOKEN, MODE, TRIGGER_PHRASE, MODEL,
      MAX_TURNS, OUTPUT_FORMAT, CLAUDE_TIMEOUT, VERBOSE
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    config = build_config(verbose, mode=mode, output_format="stream-json" if stream else None)

    console.print(
        f"[bold]Mode:[/bold] {config.mode}  [bold]Repo:[/bold] {config.workspace}/{config.repo_slug}  "
        f"[bold]PR:[/bold] {config.pr_id if config.pr_id is not None else '(not set)'}"
    )

    if not should_run(config):
        console.print(f"[yellow]No pull request in this pipeline - {config.mode} mode skipped.[/yellow]")
        return

    if no_install:
        if not is_claude_installed(config.claude_bin):
            raise click.ClickException(f"Claude CLI not found: {config.claude_bin}")
    elif not ensure_claude_cli(config.claude_bin):
        raise click.ClickException("Claude CLI is required but not available.")

    client = BitbucketClient.from_config(config)
    result = run_mode(config, client)

    if not result.success:
        raise click.ClickException(f"{config.mode} mode failed: {result.error or 'unknown error'}")

    if isinstance(result, ReviewResult):
        status = "posted" if result.review_posted else "not posted"
        console.print(f"[green]Review complete ({status}).[/green]")
    elif result.responded:
        console.print(f"[green]Replied with comment #{result.comment_id}.[/green]")
    else:
        console.print("[yellow]No reply posted.[/yellow]")
