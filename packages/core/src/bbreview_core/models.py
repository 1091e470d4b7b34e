"""Pull request data as returned by the Bitbucket API.

The API payloads are nested dicts; ``from_api`` flattens the few fields the
pipeline reads so nothing downstream has to know the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class InlineLocation:
    """File and line range an inline comment is attached to."""

    path: str
    from_line: int | None = None
    to_line: int | None = None


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        # Bitbucket sends "+00:00" offsets, but accept a trailing "Z" too.
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Comment:
    id: int
    raw: str
    author: str = ""
    created_on: datetime | None = None
    inline: InlineLocation | None = None
    parent_id: int | None = None
    deleted: bool = False

    @classmethod
    def from_api(cls, data: dict) -> Comment:
        inline = None
        if isinstance(data.get("inline"), dict) and data["inline"].get("path"):
            raw_inline = data["inline"]
            inline = InlineLocation(
                path=raw_inline["path"],
                from_line=raw_inline.get("from"),
                to_line=raw_inline.get("to"),
            )
        parent = data.get("parent") or {}
        return cls(
            id=data["id"],
            raw=(data.get("content") or {}).get("raw") or "",
            author=(data.get("user") or {}).get("display_name", ""),
            created_on=parse_timestamp(data.get("created_on")),
            inline=inline,
            parent_id=parent.get("id"),
            deleted=bool(data.get("deleted", False)),
        )


@dataclass(frozen=True)
class PullRequest:
    id: int
    title: str
    description: str = ""
    source_branch: str = ""
    destination_branch: str = ""
    author: str = ""
    state: str = ""

    @classmethod
    def from_api(cls, data: dict) -> PullRequest:
        def branch(side: str) -> str:
            return ((data.get(side) or {}).get("branch") or {}).get("name", "")

        return cls(
            id=data["id"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            source_branch=branch("source"),
            destination_branch=branch("destination"),
            author=(data.get("author") or {}).get("display_name", ""),
            state=data.get("state", ""),
        )
