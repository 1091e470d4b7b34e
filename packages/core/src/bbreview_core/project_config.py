"""Project-level overrides loaded from ``.claude-review.yml``.

The YAML is untrusted input: every field is type-checked here and anything
malformed is dropped, so the rest of the pipeline only ever sees the frozen
dataclasses below.

Example::

    project:
      name: shop-api
      type: symfony
    trigger: "@reviewbot"
    model: sonnet
    review:
      prompt: |
        Pay special attention to Doctrine migrations.
      include: ["src/**"]
      exclude: ["src/generated/**", "*.lock"]
    tools:
      actionable:
        allowed: [Read, Edit, Grep, Glob]
      informational:
        blocked: [Bash, Write, Edit]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".claude-review.yml"
CONFIG_FILE_ALTERNATIVES = (".claude-review.yaml", "claude-review.yml", "claude-review.yaml")


@dataclass(frozen=True)
class ProjectInfo:
    name: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class ReviewSettings:
    prompt: str | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None


@dataclass(frozen=True)
class ToolOverride:
    """Replacement allow/block lists for one request type.

    An empty or missing list means "inherit the built-in list".
    """

    allowed: list[str] | None = None
    blocked: list[str] | None = None


@dataclass(frozen=True)
class ToolsSettings:
    actionable: ToolOverride | None = None
    informational: ToolOverride | None = None


@dataclass(frozen=True)
class ProjectConfig:
    project: ProjectInfo | None = None
    review: ReviewSettings | None = None
    tools: ToolsSettings | None = None
    trigger: str | None = None
    model: str | None = None


def _str(value) -> str | None:
    return value if isinstance(value, str) else None


def _str_list(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _tool_override(value) -> ToolOverride | None:
    if not isinstance(value, dict):
        return None
    return ToolOverride(allowed=_str_list(value.get("allowed")), blocked=_str_list(value.get("blocked")))


def parse_project_config(data) -> ProjectConfig | None:
    """Decode a parsed YAML document into a ProjectConfig.

    Returns None when the document is not a mapping. Individual fields of the
    wrong type are silently dropped rather than failing the whole file.
    """
    if not isinstance(data, dict):
        logger.warning("Invalid project config: expected a mapping, got %s", type(data).__name__)
        return None

    project = None
    if isinstance(data.get("project"), dict):
        raw = data["project"]
        project = ProjectInfo(name=_str(raw.get("name")), type=_str(raw.get("type")))

    review = None
    if isinstance(data.get("review"), dict):
        raw = data["review"]
        review = ReviewSettings(
            prompt=_str(raw.get("prompt")),
            include=_str_list(raw.get("include")),
            exclude=_str_list(raw.get("exclude")),
        )

    tools = None
    if isinstance(data.get("tools"), dict):
        raw = data["tools"]
        tools = ToolsSettings(
            actionable=_tool_override(raw.get("actionable")),
            informational=_tool_override(raw.get("informational")),
        )

    return ProjectConfig(
        project=project,
        review=review,
        tools=tools,
        trigger=_str(data.get("trigger")),
        model=_str(data.get("model")),
    )


def find_config_file(repo_dir: str | Path) -> Path | None:
    root = Path(repo_dir)
    for name in (CONFIG_FILE_NAME, *CONFIG_FILE_ALTERNATIVES):
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_project_config(repo_dir: str | Path) -> ProjectConfig | None:
    """Load the project config from ``repo_dir`` if one exists.

    Never raises: a missing file, unreadable file or invalid YAML all yield
    None so a broken override file cannot block a review.
    """
    path = find_config_file(repo_dir)
    if path is None:
        logger.debug("No project config file found in %s", repo_dir)
        return None

    logger.info("Loading project config from %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load project config %s: %s", path, e)
        return None

    return parse_project_config(data)


def review_patterns(project_config: ProjectConfig | None) -> tuple[list[str] | None, list[str] | None]:
    """Return the (include, exclude) glob lists configured for review mode."""
    if project_config is None or project_config.review is None:
        return None, None
    return project_config.review.include, project_config.review.exclude
