"""Review mode prompt templates."""

from __future__ import annotations

from dataclasses import dataclass

# Hard character cut applied to the diff before it is interpolated. Large PRs
# lose their tail; the assistant can still Read the files it needs.
MAX_DIFF_SIZE = 30_000


@dataclass(frozen=True)
class ReviewPromptParams:
    title: str
    source_branch: str
    dest_branch: str
    diff: str
    custom_prompt: str | None = None
    project_name: str | None = None
    project_type: str | None = None


def project_line(project_name: str | None, project_type: str | None) -> str:
    if not project_name and not project_type:
        return ""
    suffix = f" ({project_type})" if project_type else ""
    return f"**Project:** {project_name or ''}{suffix}\n"


def guidelines_section(custom_prompt: str | None) -> str:
    if not custom_prompt:
        return ""
    return f"\n## Project Guidelines\n{custom_prompt.strip()}\n"


def build_review_prompt(params: ReviewPromptParams) -> str:
    return f"""Review this PR. Be concise - bullet points only.

**{params.title}** ({params.source_branch} → {params.dest_branch})
{project_line(params.project_name, params.project_type)}
Check for: bugs, security issues, logic errors. Skip style nits.
{guidelines_section(params.custom_prompt)}
Format: 🔴 Critical | 🟡 Important | 🟢 Minor
- File:line - Issue - Fix

If code is good, just say "LGTM".

```diff
{params.diff[:MAX_DIFF_SIZE]}
```"""


def format_review_comment(output: str) -> str:
    """Wrap the assistant's review in the header/footer posted to the PR."""
    return f"""## Claude Code Review

{output.strip()}

---
*Automated review by Claude*"""
