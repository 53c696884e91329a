"""Markdown conversion for Azure DevOps rich-text fields."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

import markdown
from markdown.blockprocessors import HashHeaderProcessor
from markdown.extensions import Extension

if TYPE_CHECKING:
    from markdown import Markdown

# Azure DevOps rejects pull request descriptions longer than this.
DESCRIPTION_CHUNK_SIZE: Final[int] = 4000


class GitHubHashHeaderProcessor(HashHeaderProcessor):
    """ATX headings as GitHub renders them: the hashes must be followed by whitespace.

    Plain Python-Markdown also reads "#3 is the root cause" as a heading,
    which would swallow the issue mention.
    """

    RE = re.compile(r"(?:^|\n)(?P<level>#{1,6})(?=[ \t\n]|$)(?P<header>(?:\\.|[^\\])*?)#*(?:\n|$)")


class GitHubHeadingsExtension(Extension):
    def extendMarkdown(self, md: Markdown) -> None:  # noqa: N802
        # Same name and priority as the built-in processor, which it replaces
        md.parser.blockprocessors.register(GitHubHashHeaderProcessor(md.parser), "hashheader", 70)


def _extensions() -> list[str | Extension]:
    return ["fenced_code", "tables", "sane_lists", GitHubHeadingsExtension()]


def to_html(text: str | None) -> str:
    """Convert GitHub markdown to HTML. Missing text converts to an empty string."""
    if not text:
        return ""
    return markdown.markdown(text, extensions=_extensions())


def split_chunks(text: str, size: int = DESCRIPTION_CHUNK_SIZE) -> list[str]:
    """Split text into consecutive chunks of at most ``size`` characters.

    Joining the chunks gives back the original text. Empty text yields a
    single empty chunk so callers always have a first chunk to use.
    """
    if size <= 0:
        msg = f"Chunk size must be positive, got {size}"
        raise ValueError(msg)
    if not text:
        return [""]
    return [text[i : i + size] for i in range(0, len(text), size)]
