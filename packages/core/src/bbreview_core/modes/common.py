"""Result types and console helpers shared by the review and tag modes."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

console = Console()


@dataclass(frozen=True)
class ReviewResult:
    success: bool
    review_posted: bool = False
    error: str | None = None


@dataclass(frozen=True)
class TagResult:
    success: bool
    responded: bool = False
    comment_id: int | None = None
    error: str | None = None


ModeResult = ReviewResult | TagResult


def echo_chunk(text: str) -> None:
    """Live-print streamed assistant text."""
    console.print(text, end="", markup=False, highlight=False)


def show_output(title: str, output: str) -> None:
    """Print assistant output locally when it is not (or cannot be) posted."""
    console.print(f"\n[bold]=== {title} ===[/bold]")
    console.print(output or "(empty)", markup=False, highlight=False)
    console.print("[bold]=== END OUTPUT ===[/bold]\n")
