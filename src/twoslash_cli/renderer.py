"""Serialize a token tree to HTML.

Raw HTML nodes are passed through unescaped; that is how the highlighted
code blocks produced by :mod:`twoslash_cli.highlighter` reach the output.
"""

from __future__ import annotations

import mistune
from mistune.core import BlockState

from twoslash_cli.parser import PLUGINS, Token


class HtmlRenderer:
    """Render whole documents or single nodes with ``allowDangerousHtml``."""

    def __init__(self) -> None:
        # Creating a Markdown instance registers the plugin render methods
        # (tables, task lists, strikethrough) on its HTML renderer.
        md = mistune.create_markdown(escape=False, plugins=PLUGINS)
        self._renderer: mistune.HTMLRenderer = md.renderer  # type: ignore[assignment]

    def render(self, tokens: list[Token], state: BlockState | None = None) -> str:
        """Return the HTML for a full token tree."""
        return self._renderer(tokens, state or BlockState())

    def render_node(self, token: Token, state: BlockState | None = None) -> str:
        """Return the HTML for a single node (used when splitting samples)."""
        return self._renderer.render_token(token, state or BlockState())
