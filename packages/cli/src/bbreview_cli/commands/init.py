"""init command — write a starter .claude-review.yml and pipeline snippet.

Why an init command:
- The project file is optional, but teams almost always want include/exclude
  globs and a project name in the prompt. Generating it avoids typos in key
  names, which the loader silently ignores.
- The pipelines snippet shows the two steps (review on PR, tag on demand) with
  the environment variables each one needs.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from bbreview_core.project_config import CONFIG_FILE_NAME, find_config_file

console = Console()

_PIPELINE_TEMPLATE = """\
pipelines:
  pull-requests:
    '**':
      - step:
          name: Claude review
          image: node:20
          script:
            - apt-get update && apt-get install -y python3-pip
            - pip install bbreview
            - MODE=review bbreview run

  custom:
    claude-tag:
      - step:
          name: Answer {trigger} mentions
          image: node:20
          script:
            - apt-get update && apt-get install -y python3-pip
            - pip install bbreview
            - MODE=tag bbreview run

# Repository variables: ANTHROPIC_API_KEY, BITBUCKET_ACCESS_TOKEN (secured)
"""


def _starter_config(name: str, project_type: str, trigger: str) -> dict:
    return {
        "project": {"name": name, "type": project_type},
        "trigger": trigger,
        "review": {
            "prompt": "Focus on correctness and security. Skip formatting nits.",
            "include": ["**"],
            "exclude": ["vendor/**", "node_modules/**", "*.lock", "**/*.min.js"],
        },
        "tools": {
            "actionable": {"allowed": ["Read", "Edit", "Write", "Grep", "Glob", "Bash"]},
            "informational": {"allowed": ["Read", "Grep", "Glob"]},
        },
    }


@click.command("init")
@click.option("--name", default=None, help="Project name shown in prompts. Defaults to the directory name.")
@click.option("--type", "project_type", default="generic", show_default=True, help="Project type, e.g. symfony.")
@click.option("--trigger", default="@claude", show_default=True, help="Trigger phrase for tag mode.")
@click.option("--force", is_flag=True, help="Overwrite an existing project config file.")
def init_cmd(name: str | None, project_type: str, trigger: str, force: bool):
    """Create .claude-review.yml in the current directory."""
    root = Path.cwd()
    existing = find_config_file(root)
    if existing is not None and not force:
        raise click.UsageError(f"{existing.name} already exists. Use --force to overwrite it.")

    target = existing or root / CONFIG_FILE_NAME
    config = _starter_config(name or root.name, project_type, trigger)
    target.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    console.print(f"[green]Wrote {target.name}[/green]")

    console.print("\nAdd this to [bold]bitbucket-pipelines.yml[/bold]:\n")
    console.print(_PIPELINE_TEMPLATE.format(trigger=trigger), markup=False, highlight=False)
