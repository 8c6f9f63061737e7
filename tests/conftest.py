"""Shared fixtures."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_md() -> Path:
    return FIXTURE_DIR / "sample.md"


@pytest.fixture
def sample_ts() -> Path:
    return FIXTURE_DIR / "sample.ts"


@pytest.fixture
def fake_tsc(monkeypatch):
    """Replace the type checker subprocess with canned ``--pretty false`` output.

    Set ``fake_tsc.lines`` to ``"(line,col): error TSnnnn: message"`` strings;
    the checked file path is prepended.  Every invocation is recorded in
    ``fake_tsc.calls``.
    """

    class FakeTsc:
        def __init__(self) -> None:
            self.lines: list[str] = []
            self.calls: list[list[str]] = []

        def __call__(self, cmd, **kwargs):
            self.calls.append(list(cmd))
            path = cmd[-1]
            stdout = "".join(f"{path}{line}\n" for line in self.lines)
            return subprocess.CompletedProcess(cmd, 2 if self.lines else 0, stdout, "")

    fake = FakeTsc()
    monkeypatch.setattr("twoslash_cli.twoslash.subprocess.run", fake)
    return fake
