"""check command — verify configuration, Bitbucket access and the Claude CLI."""

from __future__ import annotations

import click
from rich.console import Console

from bbreview_core.bitbucket.client import BitbucketClient
from bbreview_core.claude.install import get_claude_version
from bbreview_core.claude.runner import run_claude
from bbreview_core.tools import NO_TOOLS
from bbreview_cli.settings import build_config

console = Console()

_SMOKE_PROMPT = "Say 'Hello from Claude!' in exactly 5 words."


@click.command("check")
@click.option("--skip-claude", is_flag=True, help="Do not run a test prompt through the Claude CLI.")
@click.pass_context
def check_cmd(ctx, skip_claude: bool):
    """Check that a pipeline is ready to run.

    Validates the environment, fetches the PR and its diff when BITBUCKET_PR_ID
    is set, and sends a tiny prompt through the Claude CLI with no tools.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    config = build_config(verbose)
    console.print("[green]Configuration valid.[/green]")
    console.print(f"  Workspace: {config.workspace}")
    console.print(f"  Repo:      {config.repo_slug}")
    console.print(f"  Mode:      {config.mode}")
    console.print(f"  Trigger:   {config.trigger_phrase}")
    console.print(f"  Model:     {config.model}")

    if config.pr_id is not None:
        client = BitbucketClient.from_config(config)
        pr = client.get_pull_request(config.pr_id)
        if pr is not None:
            console.print(f'[green]PR found:[/green] "{pr.title}"')
            console.print(f"  Author: {pr.author or 'unknown'}")
            console.print(f"  Branch: {pr.source_branch} → {pr.destination_branch}")
            console.print(f"  State:  {pr.state}")
        else:
            console.print("[yellow]Could not fetch PR details (check token permissions).[/yellow]")

        diff = client.get_pull_request_diff(config.pr_id)
        if diff:
            console.print(f"[green]Diff fetched:[/green] {len(diff)} characters")
        else:
            console.print("[yellow]Could not fetch diff.[/yellow]")
    else:
        console.print("[dim]No PR ID provided - skipping Bitbucket API check.[/dim]")

    if skip_claude:
        return

    version = get_claude_version(config.claude_bin)
    if version is None:
        raise click.ClickException(f"Claude CLI not found: {config.claude_bin}")
    console.print(f"[dim]Claude CLI {version}[/dim]")

    result = run_claude(config, _SMOKE_PROMPT, NO_TOOLS)
    if not result.success:
        raise click.ClickException(f"Claude CLI failed: {result.error}")
    console.print("[green]Claude CLI working![/green]")
    console.print(f"  Response: {result.output}", markup=False)
