"""Config assembly shared by the CLI commands.

Kept out of cli.py so commands can import it without importing the group.
"""

from __future__ import annotations

import dataclasses
import logging
import os

import click

from bbreview_core.config import Config, ConfigurationError, config_warnings, env_flag, load_config, require_valid_config
from bbreview_core.logging_setup import configure_logging
from bbreview_core.project_config import load_project_config

logger = logging.getLogger(__name__)


def build_config(verbose: bool = False, **overrides) -> Config:
    """Load env + project config, apply CLI overrides, and validate.

    ``overrides`` with a None value are ignored so unset CLI options never
    clobber the environment. Raises click.UsageError listing every
    configuration problem.
    """
    verbose = verbose or env_flag(os.environ.get("VERBOSE"))
    configure_logging(verbose)

    repo_dir = os.environ.get("BITBUCKET_CLONE_DIR") or os.getcwd()
    project_config = load_project_config(repo_dir)

    config = load_config(project_config=project_config)
    changes = {k: v for k, v in overrides.items() if v is not None}
    if verbose:
        changes["verbose"] = True
    if changes:
        config = dataclasses.replace(config, **changes)

    for warning in config_warnings(config):
        logger.warning(warning)

    try:
        return require_valid_config(config)
    except ConfigurationError as e:
        raise click.UsageError("Configuration errors:\n" + "\n".join(f"  - {err}" for err in e.errors))
