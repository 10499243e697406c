"""
Rendering functions for orgsync report lines.

Core services return data; this module turns update results into the
styled lines the reporter prints.
"""

from typing import List, Sequence

from rich.markup import escape

from .domain.repository import Author

ROBOT_STYLE = "dim"
HUMAN_STYLE = "bold"


def is_bot(name: str, bot_patterns: Sequence[str]) -> bool:
    """Case-insensitive substring match against known bot names."""
    lowered = name.lower()
    return any(pattern.lower() in lowered for pattern in bot_patterns)


def is_robot_only(authors: Sequence[Author], bot_patterns: Sequence[str]) -> bool:
    """True iff there is at least one author and every author is a bot."""
    return bool(authors) and all(is_bot(author.name, bot_patterns) for author in authors)


def style_for(is_robot: bool) -> str:
    return ROBOT_STYLE if is_robot else HUMAN_STYLE


def render_authors(authors: Sequence[Author], bot_patterns: Sequence[str]) -> str:
    """`name (count)` list in git's order, each styled bot or human."""
    parts: List[str] = []
    for author in authors:
        style = style_for(is_bot(author.name, bot_patterns))
        parts.append(f"[{style}]{escape(author.name)}[/{style}] ({author.count})")
    return ", ".join(parts)


def render_updated_line(relpath: str, robot_only: bool) -> str:
    style = style_for(robot_only)
    return f"Updated: [{style}]{escape(relpath)}[/{style}]"


def render_compare_line(compare_link: str, authors: Sequence[Author], bot_patterns: Sequence[str]) -> str:
    return f"  {escape(compare_link)} - {render_authors(authors, bot_patterns)}"
