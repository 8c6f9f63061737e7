"""Write rendered HTML to disk."""

from __future__ import annotations

from pathlib import Path

HTML_SUFFIX = ".html"


def resolve_output_path(destination: str | Path, source: str | Path) -> Path:
    """Return the file that *destination* names for *source*.

    A destination ending in ``.html`` is always a file path, even when a
    directory of that name exists.  Anything else is a directory and the
    file is named after *source* with ``.md`` replaced by ``.html``.
    """
    destination = str(destination)
    if destination.endswith(HTML_SUFFIX):
        return Path(destination)
    name = Path(source).name
    if name.endswith(".md"):
        name = name[: -len(".md")] + HTML_SUFFIX
    else:
        name += HTML_SUFFIX
    return Path(destination) / name


def write_output(path: Path, content: str) -> Path:
    """Create *path*'s parent directories and overwrite *path* with *content*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
