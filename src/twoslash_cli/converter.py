"""High-level conversion orchestrator.

Ties together the path filter, source wrapper, settings extractor, parser,
highlighter, renderer and writer.  One :class:`ConversionRequest` flows
through the pipeline per file::

    request = ConversionRequest(source=Path("docs/intro.md"), destination="out")
    run_on_file(request)                 # writes out/intro.html
"""

from __future__ import annotations

import dataclasses
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from twoslash_cli.highlighter import Highlighter
from twoslash_cli.parser import HTML_NODE_TYPES, MarkdownParser, find_nodes
from twoslash_cli.paths import can_convert
from twoslash_cli.renderer import HtmlRenderer
from twoslash_cli.settings import TwoslashSettings, get_settings_from_markdown
from twoslash_cli.source import write_synthetic
from twoslash_cli.writer import resolve_output_path, write_output

logger = logging.getLogger(__name__)

SAMPLES_DIR = "mds"

RenderResult = Union[Path, list[Path], None]


@dataclass(frozen=True)
class ConversionRequest:
    """Everything one conversion needs.  Never mutated; derive with :meth:`replace`."""

    source: Path
    destination: str
    split_out_code_samples: bool = False
    also_render_source: bool = False
    lint: bool = False
    # The user's file when ``source`` is a synthetic document; display only.
    real_source: Optional[Path] = None
    # Where synthetic documents are written; None means the system temp dir.
    scratch_dir: Optional[Path] = None
    type_checker: Optional[tuple[str, ...]] = None

    def replace(self, **changes) -> ConversionRequest:
        return dataclasses.replace(self, **changes)

    @property
    def display_source(self) -> Path:
        return self.real_source or self.source


def run_on_file(request: ConversionRequest) -> RenderResult | list[RenderResult]:
    """Convert one file, or return None if the path is not convertible."""
    if not can_convert(request.source):
        return None
    if Path(request.source).suffix == ".md":
        return render_markdown(request)
    return render_source(request)


def render_source(request: ConversionRequest) -> list[RenderResult]:
    """Render a TypeScript/JavaScript file through a synthetic Markdown document.

    With ``also_render_source`` a second, un-twoslashed copy is rendered so
    the two can be compared side by side.
    """
    source = Path(request.source)
    scratch_dir = request.scratch_dir or Path(tempfile.gettempdir())

    synthetic = write_synthetic(source, scratch_dir)
    results = [render_markdown(request.replace(source=synthetic, real_source=source))]

    if request.also_render_source:
        synthetic_src = write_synthetic(source, scratch_dir, twoslash=False)
        results.append(
            render_markdown(request.replace(source=synthetic_src, real_source=source))
        )
    return results


def render_markdown(request: ConversionRequest) -> RenderResult:
    """Highlight a Markdown file and write it as one page or as split samples.

    Returns the written path, the list of sample paths when splitting, or
    None in lint mode.  Any failure aborts the conversion.
    """
    source = Path(request.source)
    text = source.read_text(encoding="utf-8")
    settings = TwoslashSettings.from_mapping(get_settings_from_markdown(text, source))

    tokens, state = MarkdownParser().parse(text)
    Highlighter(settings, request.type_checker).transform(tokens)

    # Linting is running the transform; bail before touching the destination.
    if request.lint:
        logger.debug("  - %s checked", request.display_source)
        return None

    renderer = HtmlRenderer()

    if not request.split_out_code_samples:
        html = renderer.render(tokens, state)
        write_path = write_output(resolve_output_path(request.destination, source), html)
        logger.info("  - %s -> %s ", request.display_source, write_path)
        return write_path

    samples_dir = Path(request.destination) / SAMPLES_DIR
    samples_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for index, node in enumerate(find_nodes(tokens, *HTML_NODE_TYPES), start=1):
        html = renderer.render_node(node, state)
        written.append(write_output(samples_dir / f"code-{index}.html", html))

    logger.info(" -> Wrote %d files to %s", len(written), request.destination)
    return written
