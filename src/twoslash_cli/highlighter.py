"""Syntax highlighting transform over a mistune token tree.

:meth:`Highlighter.transform` mutates the tree in place: every fenced code
block becomes a ``block_html`` node holding Pygments output, and blocks
tagged ``twoslash`` are first run through :func:`run_twoslash`.  Callers
own the tree for the duration of one render and must not share it.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

import pygments
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.styles import get_all_styles
from pygments.util import ClassNotFound

from twoslash_cli.errors import SettingsError
from twoslash_cli.parser import Token, walk
from twoslash_cli.settings import TwoslashSettings
from twoslash_cli.twoslash import TwoslashResult, run_twoslash

TWOSLASH_MARKER = "twoslash"

_META_RE = re.compile(
    r"\{(?P<lines>[^}]*)\}"
    r"|(?P<key>[\w-]+)=(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>\S+))"
    r"|(?P<word>\S+)"
)


@dataclass
class FenceMeta:
    """Parsed code fence info string: ``lang word key="value" {1,3-4}``."""

    lang: str = ""
    words: list[str] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    highlight_lines: set[int] = field(default_factory=set)

    @property
    def is_twoslash(self) -> bool:
        return TWOSLASH_MARKER in self.words


def _parse_line_ranges(ranges: str) -> set[int]:
    lines: set[int] = set()
    for part in ranges.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, _, end = part.partition("-")
            if start.strip().isdigit() and end.strip().isdigit():
                lines.update(range(int(start), int(end) + 1))
        elif part.isdigit():
            lines.add(int(part))
    return lines


def parse_fence_info(info: Optional[str]) -> FenceMeta:
    info = (info or "").strip()
    if not info:
        return FenceMeta()
    lang, _, rest = info.partition(" ")
    meta = FenceMeta(lang=lang)
    for match in _META_RE.finditer(rest):
        if match.group("lines") is not None:
            meta.highlight_lines |= _parse_line_ranges(match.group("lines"))
        elif match.group("key"):
            value = match.group("dq")
            if value is None:
                value = match.group("sq")
            if value is None:
                value = match.group("bare")
            meta.attrs[match.group("key")] = value
        else:
            meta.words.append(match.group("word"))
    return meta


def available_themes() -> list[str]:
    return sorted(get_all_styles())


def _get_lexer(lang: str) -> Lexer:
    # Leading/trailing blank lines must survive so error rows stay aligned.
    try:
        return get_lexer_by_name(lang, stripnl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False)


class Highlighter:
    """Replace code fences with highlighted HTML.

    Usage::

        highlighter = Highlighter(TwoslashSettings(theme="monokai"))
        highlighter.transform(tokens)   # tokens are rewritten in place
    """

    def __init__(
        self,
        settings: Optional[TwoslashSettings] = None,
        type_checker: Optional[Sequence[str]] = None,
    ) -> None:
        self.settings = settings or TwoslashSettings()
        self.type_checker = tuple(type_checker) if type_checker else None
        try:
            self._formatter = HtmlFormatter(
                nowrap=True, noclasses=True, style=self.settings.theme
            )
        except ClassNotFound as exc:
            raise SettingsError(
                f"Unknown theme {self.settings.theme!r}. "
                f"Choose from: {', '.join(available_themes())}"
            ) from exc

    # -- public API ---------------------------------------------------------

    def transform(self, tokens: list[Token]) -> None:
        """Highlight every fenced code block in *tokens*, in place."""
        for tok in walk(tokens):
            if tok.get("type") != "block_code":
                continue
            meta = parse_fence_info((tok.get("attrs") or {}).get("info"))
            if self._is_ignored(meta):
                continue
            rendered = self.highlight(tok.get("raw", ""), meta)
            tok.clear()
            tok.update({"type": "block_html", "raw": rendered})

    def highlight(self, code: str, meta: FenceMeta) -> str:
        """Return the HTML for one code block."""
        result: Optional[TwoslashResult] = None
        if meta.is_twoslash:
            result = run_twoslash(
                code,
                meta.lang,
                self.settings.default_compiler_options,
                self.type_checker,
            )
            code = result.code
        return self._to_html(code, meta, result)

    # -- internals ----------------------------------------------------------

    def _is_ignored(self, meta: FenceMeta) -> bool:
        ignored = self.settings.ignore_codeblocks_with_codefence_meta
        return any(word in ignored for word in meta.words)

    def _to_html(self, code: str, meta: FenceMeta, result: Optional[TwoslashResult]) -> str:
        if code.endswith("\n"):
            code = code[:-1]
        line_count = code.count("\n") + 1
        highlighted = pygments.highlight(code, _get_lexer(meta.lang), self._formatter)
        # Pygments closes its spans at every newline, so each row is balanced.
        lines = highlighted.split("\n")[:line_count]
        lines += [""] * (line_count - len(lines))

        errors_by_line: dict[int, list[str]] = {}
        queries_by_line: dict[int, list[str]] = {}
        if result is not None:
            for diag in result.errors:
                errors_by_line.setdefault(diag.line, []).append(
                    f'<div class="error"><span>{html.escape(diag.message)}</span>'
                    f'<span class="code">{diag.code}</span></div>'
                )
            for query in result.queries:
                queries_by_line.setdefault(query.line, []).append(
                    f'<div class="meta-line"><span class="query">'
                    f'{" " * query.character}^?</span></div>'
                )

        rows: list[str] = []
        for number, line in enumerate(lines, start=1):
            css = "line highlight" if number in meta.highlight_lines else "line"
            rows.append(f'<div class="{css}">{line}</div>')
            rows.extend(errors_by_line.get(number - 1, []))
            rows.extend(queries_by_line.get(number - 1, []))

        classes = ["shiki", self.settings.theme]
        if meta.is_twoslash:
            classes.extend(["twoslash", "lsp"])
        background = self._formatter.style.background_color
        title = meta.attrs.get("title")

        parts = [f'<pre class="{" ".join(classes)}" style="background-color: {background}">']
        if meta.lang:
            parts.append(f'<div class="language-id">{html.escape(meta.lang)}</div>')
        if title:
            parts.append(f'<div class="code-title">{html.escape(title)}</div>')
        parts.append('<div class="code-container"><code>')
        parts.append("".join(rows))
        parts.append("</code></div></pre>")
        return "".join(parts)
