"""Bitbucket Cloud REST client.

Only the handful of pull request endpoints the pipeline needs. Every method
is best-effort: HTTP and network errors are logged and turned into None (or
an empty value), never raised, so an unreachable API degrades a run instead
of crashing it.
"""

from __future__ import annotations

import base64
import logging

import requests

from bbreview_core.models import Comment, PullRequest

logger = logging.getLogger(__name__)

API_BASE = "https://api.bitbucket.org/2.0"
_TIMEOUT = 30  # seconds per request
_MAX_COMMENT_PAGES = 50


def build_auth_header(token: str) -> str:
    """Return the Authorization header value for a configured token.

    ``username:app_password`` (anything containing a colon) becomes Basic
    auth; everything else is sent as a Bearer access token.
    """
    if not token:
        return ""
    if ":" in token:
        return "Basic " + base64.b64encode(token.encode("utf-8")).decode("ascii")
    return f"Bearer {token}"


class BitbucketClient:
    def __init__(self, workspace: str, repo_slug: str, token: str = "", session: requests.Session | None = None):
        self.workspace = workspace
        self.repo_slug = repo_slug
        self.session = session or requests.Session()
        self.auth_header = build_auth_header(token)
        if self.auth_header:
            self.session.headers["Authorization"] = self.auth_header
            logger.debug("Auth: %s", self.auth_header.split(" ", 1)[0])
        else:
            logger.debug("Auth: no token provided")

    @classmethod
    def from_config(cls, config) -> BitbucketClient:
        return cls(config.workspace, config.repo_slug, config.bitbucket_token)

    @property
    def has_token(self) -> bool:
        return bool(self.auth_header)

    def _pr_path(self, pr_id: int, suffix: str = "") -> str:
        return f"{API_BASE}/repositories/{self.workspace}/{self.repo_slug}/pullrequests/{pr_id}{suffix}"

    def _request(self, method: str, url: str, payload: dict | None = None) -> requests.Response | None:
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, json=payload, timeout=_TIMEOUT)
        except requests.RequestException as e:
            logger.error("Request failed: %s %s: %s", method, url, e)
            return None
        if not response.ok:
            logger.error("API error (%s): %s", response.status_code, response.text[:500])
            return None
        return response

    def _json(self, method: str, url: str, payload: dict | None = None) -> dict | None:
        response = self._request(method, url, payload)
        if response is None or not response.text:
            return None
        try:
            data = response.json()
        except ValueError:
            logger.error("Invalid JSON from %s %s", method, url)
            return None
        return data if isinstance(data, dict) else None

    def get_pull_request(self, pr_id: int) -> PullRequest | None:
        data = self._json("GET", self._pr_path(pr_id))
        return PullRequest.from_api(data) if data else None

    def get_pull_request_diff(self, pr_id: int) -> str:
        response = self._request("GET", self._pr_path(pr_id, "/diff"))
        return response.text if response is not None else ""

    def get_comments(self, pr_id: int) -> list[Comment]:
        """Return every comment on the PR, following pagination."""
        comments: list[Comment] = []
        url: str | None = self._pr_path(pr_id, "/comments")
        for _ in range(_MAX_COMMENT_PAGES):
            if not url:
                break
            data = self._json("GET", url)
            if data is None:
                break
            for value in data.get("values") or []:
                try:
                    comments.append(Comment.from_api(value))
                except (KeyError, TypeError):
                    logger.debug("Skipping malformed comment payload: %r", value)
            url = data.get("next")
        return comments

    def _post_comment(self, pr_id: int, payload: dict) -> Comment | None:
        if not self.has_token:
            logger.warning("No auth token - cannot post comment")
            return None
        data = self._json("POST", self._pr_path(pr_id, "/comments"), payload)
        if data is None:
            return None
        try:
            return Comment.from_api(data)
        except (KeyError, TypeError):
            logger.error("Unexpected comment response: %r", data)
            return None

    def post_comment(self, pr_id: int, content: str) -> Comment | None:
        return self._post_comment(pr_id, {"content": {"raw": content}})

    def reply_to_comment(self, pr_id: int, parent_id: int, content: str) -> Comment | None:
        return self._post_comment(pr_id, {"content": {"raw": content}, "parent": {"id": parent_id}})
