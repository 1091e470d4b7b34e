"""Local git queries against the pipeline's checkout.

Reading the diff from the clone avoids a Bitbucket API round trip and works
without a token. All helpers log and return an empty value on failure.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

# Generous for big PRs; the prompt builder truncates anyway.
_MAX_OUTPUT_CHARS = 10 * 1024 * 1024


class GitError(Exception):
    pass


def _git(args: list[str], repo_dir: str) -> str:
    logger.debug("Running in %s: git %s", repo_dir, " ".join(args))
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_dir,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as e:
        raise GitError(str(e)) from e
    if result.returncode != 0:
        raise GitError(result.stderr.strip() or f"git {args[0]} exited with code {result.returncode}")
    if len(result.stdout) > _MAX_OUTPUT_CHARS:
        logger.warning("git %s output truncated to %d characters", args[0], _MAX_OUTPUT_CHARS)
        return result.stdout[:_MAX_OUTPUT_CHARS]
    return result.stdout


def _fetch(repo_dir: str) -> None:
    try:
        _git(["fetch", "origin"], repo_dir)
    except GitError as e:
        logger.debug("git fetch failed, continuing with local refs: %s", e)


def get_local_diff(destination_branch: str, repo_dir: str = ".") -> str:
    """Return the diff between ``origin/<destination_branch>`` and HEAD."""
    _fetch(repo_dir)
    try:
        return _git(["diff", f"origin/{destination_branch}...HEAD"], repo_dir)
    except GitError as e:
        logger.error("Failed to get git diff: %s", e)
        return ""


def get_changed_files(destination_branch: str, repo_dir: str = ".") -> list[str]:
    try:
        output = _git(["diff", "--name-only", f"origin/{destination_branch}...HEAD"], repo_dir)
    except GitError as e:
        logger.error("Failed to get changed files: %s", e)
        return []
    return [line for line in output.strip().splitlines() if line]


def get_current_branch(repo_dir: str = ".") -> str:
    try:
        return _git(["rev-parse", "--abbrev-ref", "HEAD"], repo_dir).strip()
    except GitError:
        return "unknown"
