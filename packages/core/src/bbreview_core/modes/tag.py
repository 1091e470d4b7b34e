"""Tag mode: answer the latest comment that mentions the trigger phrase.

The request text decides the tool policy: questions run read-only, change
requests get edit and shell access.
"""

from __future__ import annotations

import logging

from bbreview_core.bitbucket.client import BitbucketClient
from bbreview_core.claude.runner import log_usage, run_claude
from bbreview_core.classify import RequestType, classify_request, extract_request
from bbreview_core.config import Config
from bbreview_core.models import Comment
from bbreview_core.modes.common import TagResult, echo_chunk, show_output
from bbreview_core.prompts.tag import (
    ERROR_MARKER,
    REPLY_MARKER,
    TagPromptParams,
    build_tag_prompt,
    format_error_reply,
    format_tag_reply,
)
from bbreview_core.tools import policy_for
from bbreview_core.utils.git import get_current_branch

logger = logging.getLogger(__name__)


def should_run_tag(config: Config) -> bool:
    if config.pr_id is None:
        logger.info("No PR ID - tag mode skipped")
        return False
    return config.mode == "tag"


def find_trigger_comment(comments: list[Comment], trigger_phrase: str) -> Comment | None:
    """Return the most recent comment mentioning the trigger phrase.

    Our own replies (carrying REPLY_MARKER or ERROR_MARKER) are never
    candidates, even if they quote the trigger. Comments with equal
    timestamps resolve to the earliest one in the API order.
    """
    needle = trigger_phrase.lower()
    latest = None
    for comment in comments:
        if comment.deleted or REPLY_MARKER in comment.raw or ERROR_MARKER in comment.raw:
            continue
        if needle not in comment.raw.lower():
            continue
        if latest is None or _sort_key(comment) > _sort_key(latest):
            latest = comment
    return latest


def _sort_key(comment: Comment) -> float:
    return comment.created_on.timestamp() if comment.created_on else float("-inf")


def is_answered(comment: Comment, comments: list[Comment]) -> bool:
    return any(c.parent_id == comment.id and REPLY_MARKER in c.raw for c in comments)


def run_tag_mode(config: Config, client: BitbucketClient) -> TagResult:
    logger.info("Starting tag mode...")

    if config.pr_id is None:
        return TagResult(success=False, error="No PR ID")

    logger.info("Fetching PR comments...")
    comments = client.get_comments(config.pr_id)
    if not comments:
        logger.info("No comments found")
        return TagResult(success=True, responded=False)

    trigger = find_trigger_comment(comments, config.trigger_phrase)
    if trigger is None:
        logger.info("No %s mentions found", config.trigger_phrase)
        return TagResult(success=True, responded=False)

    if is_answered(trigger, comments):
        logger.info("Comment #%d was already answered", trigger.id)
        return TagResult(success=True, responded=False)

    logger.info("Found trigger comment #%d by %s", trigger.id, trigger.author or "unknown")

    request = extract_request(trigger.raw, config.trigger_phrase)
    logger.info('User request: "%s"', request[:100])

    request_type = classify_request(request)
    logger.info("Request type: %s", request_type.value)

    project = config.project_config.project if config.project_config else None
    review = config.project_config.review if config.project_config else None
    prompt = build_tag_prompt(
        TagPromptParams(
            pr_id=config.pr_id,
            source_branch=config.source_branch or get_current_branch(config.repo_dir),
            dest_branch=config.destination_branch,
            request=request,
            inline_context=trigger.inline,
            custom_prompt=review.prompt if review else None,
            project_name=project.name if project else None,
            project_type=project.type if project else None,
        ),
        request_type,
    )

    policy = policy_for(request_type, config.project_config)
    if request_type is RequestType.ACTIONABLE:
        logger.info("Granting write access: %s", ", ".join(policy.allowed_tools))

    streaming = config.output_format == "stream-json"
    result = run_claude(config, prompt, policy, on_chunk=echo_chunk if streaming else None)

    if not result.success:
        logger.error("Claude failed: %s", result.error)
        if client.has_token:
            # Best effort: the run already failed, a failed reply changes nothing.
            if client.reply_to_comment(config.pr_id, trigger.id, format_error_reply(result.error or "")) is None:
                logger.warning("Could not post error reply to comment #%d", trigger.id)
        return TagResult(success=False, responded=False, error=result.error)

    log_usage(result.usage)

    if result.output and client.has_token:
        reply = client.reply_to_comment(config.pr_id, trigger.id, format_tag_reply(result.output))
        if reply is not None:
            logger.info("Responded to comment #%d", trigger.id)
            return TagResult(success=True, responded=True, comment_id=reply.id)
        logger.error("Failed to reply to comment #%d", trigger.id)

    logger.info("Response (not posted):")
    show_output("TAG RESPONSE", result.output)
    return TagResult(success=True, responded=False)
