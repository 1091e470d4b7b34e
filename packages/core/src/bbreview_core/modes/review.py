"""Review mode: review the whole PR diff and post one top-level comment.

Runs on every PR pipeline; no trigger phrase involved. The assistant only
gets read-only tools here.
"""

from __future__ import annotations

import logging

from bbreview_core.bitbucket.client import BitbucketClient
from bbreview_core.claude.runner import log_usage, run_claude
from bbreview_core.classify import RequestType
from bbreview_core.config import Config
from bbreview_core.modes.common import ReviewResult, echo_chunk, show_output
from bbreview_core.project_config import review_patterns
from bbreview_core.prompts.review import ReviewPromptParams, build_review_prompt, format_review_comment
from bbreview_core.tools import policy_for
from bbreview_core.utils.diff import filter_diff, filter_files
from bbreview_core.utils.git import get_changed_files, get_current_branch, get_local_diff

logger = logging.getLogger(__name__)


def should_run_review(config: Config) -> bool:
    if config.pr_id is None:
        logger.info("No PR ID - review mode skipped")
        return False
    return config.mode == "review"


def run_review_mode(config: Config, client: BitbucketClient) -> ReviewResult:
    logger.info("Starting review mode...")

    if config.pr_id is None:
        return ReviewResult(success=False, error="No PR ID")

    # PR metadata only improves the prompt header; the diff comes from git.
    pr = None
    if client.has_token:
        pr = client.get_pull_request(config.pr_id)
        if pr is None:
            logger.warning("Could not fetch PR details, using environment variables")

    include, exclude = review_patterns(config.project_config)

    # get_local_diff fetches origin, so it has to run before the file listing.
    raw_diff = get_local_diff(config.destination_branch, config.repo_dir)

    all_files = get_changed_files(config.destination_branch, config.repo_dir)
    changed_files = filter_files(all_files, include, exclude)
    if include or exclude:
        logger.info("File patterns applied: %d → %d files", len(all_files), len(changed_files))
    logger.info("Changed files: %d", len(changed_files))
    for name in changed_files:
        logger.debug("  %s", name)

    diff = filter_diff(raw_diff, include, exclude)
    if not diff.strip():
        logger.warning("No diff found (after filtering)")
        return ReviewResult(success=True, review_posted=False, error="No diff")
    logger.info("Diff size: %d characters", len(diff))

    project = config.project_config.project if config.project_config else None
    review = config.project_config.review if config.project_config else None
    prompt = build_review_prompt(
        ReviewPromptParams(
            title=(pr.title if pr else "") or config.pr_title or "PR",
            source_branch=(pr.source_branch if pr else "")
            or config.source_branch
            or get_current_branch(config.repo_dir),
            dest_branch=(pr.destination_branch if pr else "") or config.destination_branch,
            diff=diff,
            custom_prompt=review.prompt if review else None,
            project_name=project.name if project else None,
            project_type=project.type if project else None,
        )
    )

    policy = policy_for(RequestType.INFORMATIONAL, config.project_config)
    streaming = config.output_format == "stream-json"
    result = run_claude(config, prompt, policy, on_chunk=echo_chunk if streaming else None)

    if not result.success:
        logger.error("Claude review failed: %s", result.error)
        return ReviewResult(success=False, review_posted=False, error=result.error)

    log_usage(result.usage)

    if not result.output:
        logger.warning("Claude returned empty output")
        return ReviewResult(success=True, review_posted=False)

    if not client.has_token:
        logger.info("Review output (no token to post):")
        show_output("REVIEW OUTPUT", result.output)
        return ReviewResult(success=True, review_posted=False)

    posted = client.post_comment(config.pr_id, format_review_comment(result.output))
    if posted is None:
        logger.error("Failed to post review comment")
        show_output("REVIEW OUTPUT", result.output)
        return ReviewResult(success=True, review_posted=False, error="Failed to post comment")

    logger.info("Review posted to PR #%d", config.pr_id)
    return ReviewResult(success=True, review_posted=True)
