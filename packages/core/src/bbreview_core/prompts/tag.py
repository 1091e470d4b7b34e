"""Tag mode prompt templates.

Two variants share the same header: actionable requests tell the assistant to
make the change, informational requests forbid edits. The tool policy is the
real guard; the wording just keeps the assistant from trying.
"""

from __future__ import annotations

from dataclasses import dataclass

from bbreview_core.classify import RequestType
from bbreview_core.models import InlineLocation
from bbreview_core.prompts.review import guidelines_section, project_line

# Appended to every reply so later runs can tell the comment was already answered.
REPLY_MARKER = "<!-- bbreview:reply -->"
# Error replies are ours too, but leave the request open so a re-run answers it.
ERROR_MARKER = "<!-- bbreview:error -->"


@dataclass(frozen=True)
class TagPromptParams:
    pr_id: int
    source_branch: str
    dest_branch: str
    request: str
    inline_context: InlineLocation | None = None
    custom_prompt: str | None = None
    project_name: str | None = None
    project_type: str | None = None


def _inline_section(ctx: InlineLocation | None) -> str:
    if ctx is None:
        return ""
    return (
        "\n## Inline Comment Context\n"
        f"The user commented on file: **{ctx.path}**\n"
        f"Lines: {ctx.from_line or 'start'} - {ctx.to_line or 'end'}\n"
    )


def _header(title: str, params: TagPromptParams) -> str:
    return (
        f"# {title}\n\n"
        f"**PR #{params.pr_id}**\n"
        f"**Branch:** {params.source_branch} → {params.dest_branch}\n"
        f"{project_line(params.project_name, params.project_type)}"
        f"{_inline_section(params.inline_context)}"
    )


def build_actionable_prompt(params: TagPromptParams) -> str:
    return f"""{_header("Pull Request Task", params)}
## User Request
{params.request}
{guidelines_section(params.custom_prompt)}
## Instructions
The user has requested a code change. You should:

1. Read the relevant files to understand the context
2. Make the requested changes using Edit or Write tools
3. If you make changes, explain what you did

Be concise in your response. Focus on completing the task.
"""


def build_informational_prompt(params: TagPromptParams) -> str:
    return f"""{_header("Pull Request Question", params)}
## User Question
{params.request}
{guidelines_section(params.custom_prompt)}
## Instructions
The user is asking a question. Provide a helpful, concise answer.

- Read relevant files if needed to understand context
- Do NOT make any code changes
- Be direct and helpful
"""


def build_tag_prompt(params: TagPromptParams, request_type: RequestType) -> str:
    if request_type is RequestType.ACTIONABLE:
        return build_actionable_prompt(params)
    return build_informational_prompt(params)


def format_tag_reply(output: str) -> str:
    return f"{output.strip()}\n\n{REPLY_MARKER}"


def format_error_reply(error: str) -> str:
    return f"Sorry, I encountered an error: {error}\n\n{ERROR_MARKER}"
