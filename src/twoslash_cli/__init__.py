"""Render Markdown and TypeScript/JavaScript samples with Twoslash code fences to HTML."""

__version__ = "0.1.0"

from twoslash_cli.converter import (  # noqa: E402
    ConversionRequest,
    render_markdown,
    render_source,
    run_on_file,
)
from twoslash_cli.paths import can_convert  # noqa: E402

__all__ = [
    "__version__",
    "ConversionRequest",
    "can_convert",
    "render_markdown",
    "render_source",
    "run_on_file",
]
