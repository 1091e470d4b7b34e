import os
from dataclasses import dataclass
from typing import Mapping, Optional

from bbreview_core.project_config import ProjectConfig

MODES = ("review", "tag")
OUTPUT_FORMATS = ("json", "stream-json", "text")

DEFAULT_TRIGGER_PHRASE = "@claude"
DEFAULT_MODEL = "haiku"
DEFAULT_MAX_TURNS = 30
DEFAULT_TIMEOUT = 1800  # seconds; the assistant may run tools for a while on large PRs


class ConfigurationError(Exception):
    """Raised when required configuration is missing. Carries every problem found."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True)
class Config:
    workspace: str
    repo_slug: str
    pr_id: Optional[int]
    destination_branch: str
    bitbucket_token: str  # "username:app_password" or a bearer access token
    anthropic_api_key: str
    mode: str = "review"
    trigger_phrase: str = DEFAULT_TRIGGER_PHRASE
    model: str = DEFAULT_MODEL
    max_turns: int = DEFAULT_MAX_TURNS
    verbose: bool = False
    source_branch: str = ""
    pr_title: str = ""
    output_format: str = "json"
    timeout: int = DEFAULT_TIMEOUT
    claude_bin: str = "claude"
    repo_dir: str = "."
    project_config: Optional[ProjectConfig] = None


def _optional_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    project_config: Optional[ProjectConfig] = None,
) -> Config:
    """
    Build the run configuration by merging (in order of precedence):
      1. Environment variables set by the Bitbucket pipeline (or the user)
      2. Project overrides from .claude-review.yml (trigger, model)
      3. Built-in defaults
    """
    env = os.environ if environ is None else environ

    mode = env.get("MODE", "review")
    if mode not in MODES:
        mode = "review"

    output_format = env.get("OUTPUT_FORMAT", "json")
    if output_format not in OUTPUT_FORMATS:
        output_format = "json"

    project_trigger = project_config.trigger if project_config else None
    project_model = project_config.model if project_config else None

    return Config(
        workspace=env.get("BITBUCKET_WORKSPACE", ""),
        repo_slug=env.get("BITBUCKET_REPO_SLUG", ""),
        pr_id=_optional_int(env.get("BITBUCKET_PR_ID")),
        destination_branch=env.get("BITBUCKET_PR_DESTINATION_BRANCH") or "main",
        bitbucket_token=env.get("BITBUCKET_ACCESS_TOKEN", ""),
        anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
        mode=mode,
        trigger_phrase=env.get("TRIGGER_PHRASE") or project_trigger or DEFAULT_TRIGGER_PHRASE,
        model=env.get("MODEL") or project_model or DEFAULT_MODEL,
        max_turns=_optional_int(env.get("MAX_TURNS")) or DEFAULT_MAX_TURNS,
        verbose=env_flag(env.get("VERBOSE")),
        source_branch=env.get("BITBUCKET_BRANCH", ""),
        pr_title=env.get("BITBUCKET_PR_TITLE", ""),
        output_format=output_format,
        timeout=_optional_int(env.get("CLAUDE_TIMEOUT")) or DEFAULT_TIMEOUT,
        claude_bin=env.get("CLAUDE_BIN") or "claude",
        repo_dir=env.get("BITBUCKET_CLONE_DIR") or os.getcwd(),
        project_config=project_config,
    )


def validate_config(config: Config) -> list[str]:
    """Return a list of configuration errors. An empty list means the run may proceed."""
    errors = []
    if not config.workspace:
        errors.append("BITBUCKET_WORKSPACE is required")
    if not config.repo_slug:
        errors.append("BITBUCKET_REPO_SLUG is required")
    if not config.anthropic_api_key:
        errors.append("ANTHROPIC_API_KEY is required")
    return errors


def config_warnings(config: Config) -> list[str]:
    warnings = []
    if not config.bitbucket_token:
        warnings.append("BITBUCKET_ACCESS_TOKEN not set - results will be printed, not posted to the PR")
    if config.pr_id is None:
        warnings.append("BITBUCKET_PR_ID not set - modes that need a pull request will be skipped")
    return warnings


def require_valid_config(config: Config) -> Config:
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(errors)
    return config
