"""Markdown parser producing mistune's token tree.

Uses mistune v3 in AST mode.  The tree is a list of token dicts, each with
a ``type`` and optional ``raw``, ``children`` and ``attrs`` keys; it is the
same shape :class:`mistune.HTMLRenderer` consumes, so the highlighter can
rewrite tokens in place and the renderer can serialize whatever is left.
"""

from __future__ import annotations

from typing import Any, Iterator

import mistune
from mistune.core import BlockState

Token = dict[str, Any]

PLUGINS = ["table", "strikethrough", "task_lists"]

# Node types that carry literal HTML through to the output.
HTML_NODE_TYPES = ("block_html", "inline_html")


class MarkdownParser:
    """Parse Markdown text into a fresh token tree."""

    def __init__(self) -> None:
        self._md = mistune.create_markdown(renderer=None, plugins=PLUGINS)

    def parse(self, markdown_text: str) -> tuple[list[Token], BlockState]:
        """Return ``(tokens, state)`` for *markdown_text*.

        Each call builds a new tree; nothing is shared between documents.
        """
        tokens, state = self._md.parse(markdown_text)
        return tokens, state  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------

def walk(tokens: list[Token]) -> Iterator[Token]:
    """Yield every token depth-first, in document order."""
    for tok in tokens:
        yield tok
        children = tok.get("children")
        if isinstance(children, list):
            yield from walk(children)


def find_nodes(tokens: list[Token], *types: str) -> list[Token]:
    """Collect all tokens whose type is one of *types*."""
    return [tok for tok in walk(tokens) if tok.get("type") in types]


def collect_text(tokens: list[Token]) -> str:
    """Concatenate the visible text of *tokens* (for tests and previews)."""
    parts: list[str] = []
    for tok in walk(tokens):
        if tok.get("type") in ("text", "codespan", "block_code"):
            parts.append(tok.get("raw", ""))
    return "".join(parts)
