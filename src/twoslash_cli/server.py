"""FastAPI web service for rendering twoslash documents to HTML.

Endpoints::

    GET  /health        Health check.
    GET  /themes        List available highlighting themes.
    POST /render        Upload a .md/.ts/.js/.tsx/.jsx file, receive HTML.
    POST /render/text   Send raw Markdown text, receive HTML.

Run::

    uvicorn twoslash_cli.server:app --host 0.0.0.0 --port 8000

Rendering happens in memory; nothing is written to disk and no type
checker is run.  Lint mode and type checking are only available from the
``twoslash`` command line.
"""

from __future__ import annotations

from pathlib import PurePath

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse

from twoslash_cli import __version__
from twoslash_cli.errors import SettingsError, TwoslashError
from twoslash_cli.highlighter import Highlighter, available_themes
from twoslash_cli.parser import MarkdownParser
from twoslash_cli.paths import CONVERTIBLE_SUFFIXES
from twoslash_cli.renderer import HtmlRenderer
from twoslash_cli.settings import TwoslashSettings, get_settings_from_markdown
from twoslash_cli.source import wrap_source

app = FastAPI(
    title="twoslash-cli",
    description="Twoslash Markdown to HTML rendering service",
    version=__version__,
)


def render_text(markdown: str, name: str = "document.md") -> str:
    """Render Markdown *markdown* to an HTML string."""
    settings = TwoslashSettings.from_mapping(get_settings_from_markdown(markdown, name))
    tokens, state = MarkdownParser().parse(markdown)
    Highlighter(settings).transform(tokens)
    return HtmlRenderer().render(tokens, state)


@app.exception_handler(SettingsError)
@app.exception_handler(TwoslashError)
async def _render_error(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/themes")
async def list_themes() -> dict[str, list[str]]:
    """List available highlighting themes."""
    return {"themes": available_themes()}


@app.post("/render", response_class=HTMLResponse)
async def render_file(
    file: UploadFile = File(...),
    encoding: str = Form("utf-8"),
) -> HTMLResponse:
    """Upload a Markdown or source file and receive HTML back.

    - **file**: ``.md``, ``.ts``, ``.js``, ``.tsx`` or ``.jsx`` file
    - **encoding**: Source file encoding
    """
    name = file.filename or "document.md"
    suffix = PurePath(name).suffix
    if suffix not in CONVERTIBLE_SUFFIXES:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {suffix or name}")

    raw = await file.read()
    try:
        text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise HTTPException(
            status_code=400, detail=f"Could not decode {name} as {encoding}"
        ) from exc
    if suffix != ".md":
        text = wrap_source(text, suffix.lstrip("."))

    return HTMLResponse(content=render_text(text, name))


@app.post("/render/text", response_class=HTMLResponse)
async def render_markdown_text(markdown: str = Form(...)) -> HTMLResponse:
    """Send raw Markdown text and receive HTML.

    - **markdown**: Markdown source text
    """
    return HTMLResponse(content=render_text(markdown))
