from bbreview_core.modes.common import ModeResult, ReviewResult, TagResult
from bbreview_core.modes.review import run_review_mode, should_run_review
from bbreview_core.modes.tag import run_tag_mode, should_run_tag


def should_run(config) -> bool:
    """Return True if the mode selected by ``config.mode`` has something to do."""
    if config.mode == "tag":
        return should_run_tag(config)
    return should_run_review(config)


def run_mode(config, client) -> ModeResult:
    """Run the mode selected by ``config.mode``."""
    if config.mode == "tag":
        return run_tag_mode(config, client)
    return run_review_mode(config, client)


__all__ = [
    "ModeResult",
    "ReviewResult",
    "TagResult",
    "run_mode",
    "should_run",
    "run_review_mode",
    "run_tag_mode",
    "should_run_review",
    "should_run_tag",
]
