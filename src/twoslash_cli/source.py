"""Wrap TypeScript/JavaScript source files in a synthetic Markdown document.

A source file may start with directive comments that are forwarded into the
Markdown::

    // twoslash: {theme: "monokai"}    ->  <!-- twoslash: {theme: "monokai"} -->
    // codefence: {2} title="demo.ts"  ->  extra code fence attributes
"""

from __future__ import annotations

from pathlib import Path

TWOSLASH_DIRECTIVE = "// twoslash: "
CODEFENCE_DIRECTIVE = "// codefence: "
FENCE_MARKER = "twoslash"


def _pop_directive(content: str, directive: str) -> tuple[str | None, str]:
    if not content.startswith(directive):
        return None, content
    first, _, rest = content.partition("\n")
    return first[len(directive):].rstrip("\r"), rest


def extract_directives(content: str) -> tuple[str, list[str], str]:
    """Split leading directives off *content*.

    Returns ``(prefix, classes, content)`` where *prefix* is the Markdown
    settings comment (or ``""``) and *classes* are the forwarded code fence
    attributes.  Directive lines are removed from the returned content.
    """
    prefix = ""
    payload, content = _pop_directive(content, TWOSLASH_DIRECTIVE)
    if payload is not None:
        prefix = f"<!-- twoslash: {payload} -->"

    classes: list[str] = []
    highlight_opts, content = _pop_directive(content, CODEFENCE_DIRECTIVE)
    if highlight_opts is not None:
        classes.append(highlight_opts)

    return prefix, classes, content


def to_markdown(prefix: str, lang: str, classes: list[str], content: str) -> str:
    """Wrap *content* in a fenced code block tagged *lang* and *classes*."""
    return f"{prefix}\n```{lang} {' '.join(classes)}\n{content}\n```\n"


def wrap_source(content: str, lang: str, *, twoslash: bool = True) -> str:
    """Return the synthetic Markdown document for source *content*."""
    prefix, classes, content = extract_directives(content)
    if twoslash:
        classes = [*classes, FENCE_MARKER]
    return to_markdown(prefix, lang, classes, content)


def write_synthetic(source: Path, scratch_dir: Path, *, twoslash: bool = True) -> Path:
    """Write the synthetic document for *source* into *scratch_dir*.

    The file is named ``<basename>.md`` (or ``<basename>_src.md`` for the
    unhighlighted copy), so two sources sharing a basename share a path.
    """
    content = source.read_text(encoding="utf-8")
    lang = source.suffix.lstrip(".")
    suffix = ".md" if twoslash else "_src.md"
    target = scratch_dir / f"{source.name}{suffix}"
    scratch_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(wrap_source(content, lang, twoslash=twoslash), encoding="utf-8")
    return target
