"""Twoslash markup processing and type checking for a single code sample.

A twoslash sample is ordinary TypeScript/JavaScript with a few comment
conventions layered on top::

    // @errors: 2322            expected compiler error codes
    // @noErrors                ignore every diagnostic
    // @filename: input.tsx     name of the file handed to the checker
    // @strict: false           any other flag is a compiler option
    const hidden = 1
    // ---cut---                everything above is checked but not shown
    const shown = hidden
    //    ^?                    query the identifier above the caret

Flag and query lines are removed from the displayed code.  A bare
``// @word`` that is neither twoslash markup nor a known boolean compiler
switch (``// @deprecated``) stays in the code as a plain comment.  When a type
checker command is configured the whole (uncut) sample is compiled with it
and the diagnostics are compared against ``@errors``.
"""

from __future__ import annotations

import re
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Sequence

from twoslash_cli.errors import TwoslashError, TypeCheckerError

CUT_MARKER = "// ---cut---"

_FLAG_RE = re.compile(r"^\s*//\s*@(?P<name>\w+)(?::\s?(?P<value>.*))?$")
_QUERY_RE = re.compile(r"^\s*//\s*\^\?\s*$")
_DIAGNOSTIC_RE = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<col>\d+)\): error TS(?P<code>\d+): (?P<message>.*)$"
)
_GLOBAL_DIAGNOSTIC_RE = re.compile(r"^error TS(?P<code>\d+): (?P<message>.*)$")

# Markup understood by twoslash itself; never forwarded to the compiler.
_TWOSLASH_FLAGS = {
    "errors",
    "noErrors",
    "noErrorValidation",
    "filename",
    "showEmit",
    "showEmittedFile",
    "noStaticSemanticInfo",
    "keepNotations",
}

# Compiler switches that may appear bare (`// @strict`).  Any other bare
# `// @word` is an ordinary comment (`@deprecated`, `@internal`, ...).
_BOOLEAN_COMPILER_FLAGS = {
    "allowJs",
    "allowSyntheticDefaultImports",
    "allowUnreachableCode",
    "allowUnusedLabels",
    "alwaysStrict",
    "checkJs",
    "declaration",
    "downlevelIteration",
    "emitDecoratorMetadata",
    "esModuleInterop",
    "exactOptionalPropertyTypes",
    "experimentalDecorators",
    "importHelpers",
    "isolatedModules",
    "noFallthroughCasesInSwitch",
    "noImplicitAny",
    "noImplicitOverride",
    "noImplicitReturns",
    "noImplicitThis",
    "noLib",
    "noPropertyAccessFromIndexSignature",
    "noUncheckedIndexedAccess",
    "noUnusedLocals",
    "noUnusedParameters",
    "preserveConstEnums",
    "resolveJsonModule",
    "skipLibCheck",
    "strict",
    "strictBindCallApply",
    "strictFunctionTypes",
    "strictNullChecks",
    "strictPropertyInitialization",
    "useDefineForClassFields",
    "useUnknownInCatchVariables",
    "verbatimModuleSyntax",
}

_EXTENSIONS = {
    "ts": "ts",
    "typescript": "ts",
    "tsx": "tsx",
    "js": "js",
    "javascript": "js",
    "jsx": "jsx",
}


@dataclass
class Diagnostic:
    code: int
    message: str
    # Zero-based position in the displayed code; line is negative when the
    # diagnostic points above the cut.
    line: int
    character: int


@dataclass
class Query:
    line: int
    character: int


@dataclass
class TwoslashResult:
    code: str
    filename: str
    compiler_options: dict[str, Any] = field(default_factory=dict)
    expected_errors: list[int] = field(default_factory=list)
    no_errors: bool = False
    errors: list[Diagnostic] = field(default_factory=list)
    queries: list[Query] = field(default_factory=list)


def _coerce(value: Optional[str]) -> Any:
    if value is None:
        return True
    value = value.strip()
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if value.isdigit():
        return int(value)
    return value


def _default_filename(lang: str) -> str:
    return f"index.{_EXTENSIONS.get(lang, 'ts')}"


def _is_flag(name: str, value: Optional[str]) -> bool:
    # `// @name: value` is always markup; a bare `// @name` only when known.
    return value is not None or name in _TWOSLASH_FLAGS or name in _BOOLEAN_COMPILER_FLAGS


def _check_filename(filename: str) -> str:
    relative = PurePosixPath(filename.replace("\\", "/"))
    if relative.is_absolute() or ".." in relative.parts:
        raise TwoslashError(
            f"@filename must be a relative path inside the sample, got {filename!r}"
        )
    return str(relative)


def _same_file(reported: str, filename: str) -> bool:
    wanted = PurePosixPath(filename).parts
    parts = PurePosixPath(reported.replace("\\", "/")).parts
    return parts[-len(wanted):] == wanted


def run_twoslash(
    code: str,
    lang: str,
    default_compiler_options: Optional[dict[str, Any]] = None,
    type_checker: Optional[Sequence[str]] = None,
) -> TwoslashResult:
    """Process twoslash markup in *code* and optionally type check it.

    Raises:
        TwoslashError: the checker reported errors not listed in
            ``@errors``, or listed errors never appeared.
        TypeCheckerError: the checker command could not be run.
    """
    options: dict[str, Any] = dict(default_compiler_options or {})
    expected: list[int] = []
    no_errors = False
    filename = _default_filename(lang)

    kept: list[str] = []
    query_positions: list[tuple[int, int]] = []
    cut_at = 0

    for line in code.rstrip("\n").split("\n"):
        stripped = line.strip()
        if stripped == CUT_MARKER:
            cut_at = len(kept)
            continue
        if _QUERY_RE.match(line):
            if kept:
                query_positions.append((len(kept) - 1, line.index("^")))
            continue
        flag = _FLAG_RE.match(line)
        if flag and _is_flag(flag.group("name"), flag.group("value")):
            name, value = flag.group("name"), flag.group("value")
            if name == "errors":
                expected = [int(c) for c in (value or "").split() if c.isdigit()]
            elif name in ("noErrors", "noErrorValidation"):
                no_errors = no_errors or _coerce(value) is True
            elif name == "filename":
                filename = _check_filename((value or "").strip() or filename)
            elif name not in _TWOSLASH_FLAGS:
                options[name] = _coerce(value)
            continue
        kept.append(line)

    result = TwoslashResult(
        code="\n".join(kept[cut_at:]),
        filename=filename,
        compiler_options=options,
        expected_errors=expected,
        no_errors=no_errors,
        queries=[Query(line - cut_at, ch) for line, ch in query_positions if line >= cut_at],
    )

    if type_checker:
        diagnostics = check_types("\n".join(kept) + "\n", filename, options, type_checker)
        for diag in diagnostics:
            diag.line -= cut_at
        result.errors = diagnostics
        if not no_errors:
            _validate_errors(result)

    return result


def _compiler_flags(filename: str, options: dict[str, Any]) -> list[str]:
    flags: list[str] = []
    if filename.endswith((".js", ".jsx")):
        options = {"allowJs": True, "checkJs": True, **options}
    if filename.endswith((".tsx", ".jsx")):
        options = {"jsx": "preserve", **options}
    for name, value in options.items():
        if value is True:
            flags.append(f"--{name}")
        elif isinstance(value, (list, tuple)):
            flags.extend([f"--{name}", ",".join(str(v) for v in value)])
        else:
            flags.extend([f"--{name}", str(value).lower() if value is False else str(value)])
    return flags


def parse_diagnostics(output: str, filename: str) -> list[Diagnostic]:
    """Parse ``--pretty false`` compiler output for errors in *filename*.

    Positions are converted to zero-based lines and columns.
    """
    diagnostics: list[Diagnostic] = []
    for line in output.splitlines():
        match = _DIAGNOSTIC_RE.match(line.strip())
        if match:
            if not _same_file(match.group("file"), filename):
                continue
            diagnostics.append(Diagnostic(
                code=int(match.group("code")),
                message=match.group("message"),
                line=int(match.group("line")) - 1,
                character=int(match.group("col")) - 1,
            ))
            continue
        match = _GLOBAL_DIAGNOSTIC_RE.match(line.strip())
        if match:
            raise TwoslashError(
                f"Compiler rejected the options for {filename}: "
                f"TS{match.group('code')}: {match.group('message')}"
            )
    return diagnostics


def check_types(
    source: str,
    filename: str,
    options: dict[str, Any],
    type_checker: Sequence[str],
) -> list[Diagnostic]:
    """Compile *source* with *type_checker* and return its diagnostics."""
    with tempfile.TemporaryDirectory(prefix="twoslash-") as tmp:
        path = Path(tmp) / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        cmd = [
            *type_checker,
            "--noEmit",
            "--pretty", "false",
            *_compiler_flags(filename, options),
            str(path),
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, cwd=tmp, check=False)
        except FileNotFoundError as exc:
            raise TypeCheckerError(f"Type checker not found: {type_checker[0]}") from exc

    output = proc.stdout + proc.stderr
    diagnostics = parse_diagnostics(output, filename)
    if proc.returncode != 0 and not diagnostics:
        raise TypeCheckerError(
            f"Type checker exited with status {proc.returncode}: {output.strip()}"
        )
    return diagnostics


def _validate_errors(result: TwoslashResult) -> None:
    raised = {d.code for d in result.errors}
    unexpected = [d for d in result.errors if d.code not in result.expected_errors]
    missing = sorted(set(result.expected_errors) - raised)

    if unexpected:
        codes = " ".join(sorted({str(d.code) for d in unexpected}))
        details = "\n".join(
            f"  [{d.code}] {d.line + 1}:{d.character + 1} - {d.message}" for d in unexpected
        )
        raise TwoslashError(
            "Errors were thrown in the sample, but not included in an errors tag.\n\n"
            f"These errors were not marked as being expected: {codes}.\n\n"
            f"Expected: // @errors: {codes}\n\n"
            f"Compiler Errors:\n\n{result.filename}\n{details}"
        )
    if missing:
        raise TwoslashError(
            "The sample expected errors which were not raised: "
            + " ".join(str(c) for c in missing)
        )
