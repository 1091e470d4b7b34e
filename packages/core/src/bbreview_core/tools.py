"""Tool permission policies passed to the assistant CLI.

A policy is the allow/block pair rendered as ``--allowed-tools`` and
``--disallowed-tools``. Informational requests run read-only; actionable
requests may edit files and run commands. Projects can replace either list
per request type in .claude-review.yml.
"""

from __future__ import annotations

from dataclasses import dataclass

from bbreview_core.classify import RequestType
from bbreview_core.project_config import ProjectConfig, ToolOverride

READ_ONLY_TOOLS = ("Read", "Grep", "Glob")
BLOCKED_WRITE_TOOLS = ("Write", "Edit", "MultiEdit", "Bash")
FULL_ACCESS_TOOLS = ("Read", "Edit", "Write", "Grep", "Glob", "Bash")


@dataclass(frozen=True)
class ToolPolicy:
    allowed_tools: tuple[str, ...] = ()
    blocked_tools: tuple[str, ...] = ()


READ_ONLY = ToolPolicy(allowed_tools=READ_ONLY_TOOLS, blocked_tools=BLOCKED_WRITE_TOOLS)
FULL_ACCESS = ToolPolicy(allowed_tools=FULL_ACCESS_TOOLS, blocked_tools=())
NO_TOOLS = ToolPolicy()


def merge_tool_policy(default: ToolPolicy, override: ToolOverride | None = None) -> ToolPolicy:
    """Apply a project override on top of a built-in policy.

    Each list is replaced wholesale when the override supplies a non-empty
    one; the lists are never merged element by element.
    """
    if override is None:
        return default
    return ToolPolicy(
        allowed_tools=tuple(override.allowed) if override.allowed else default.allowed_tools,
        blocked_tools=tuple(override.blocked) if override.blocked else default.blocked_tools,
    )


def policy_for(request_type: RequestType, project_config: ProjectConfig | None = None) -> ToolPolicy:
    tools = project_config.tools if project_config else None
    if request_type is RequestType.ACTIONABLE:
        return merge_tool_policy(FULL_ACCESS, tools.actionable if tools else None)
    return merge_tool_policy(READ_ONLY, tools.informational if tools else None)
