"""Shared pytest fixtures for clefreader tests."""
from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary CLEF files."""

    def _make(lines: list[str], name: str = "test.clef") -> Path:
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def clef_lines() -> list[str]:
    ts = "2016-10-12T04:20:58.0554314Z"
    return [
        json.dumps({"@t": ts, "@mt": "Hello, {@User}", "User": {"Name": "nblumhardt", "Id": 101}}),
        json.dumps({"@t": ts, "@mt": "Number {N:x8}", "@r": ["0000002a"], "N": 42}),
        json.dumps({"@t": ts, "@mt": "String {S}", "S": "Yes"}),
        json.dumps({"@t": ts, "@mt": "Tags are {Tags}", "@l": "Warning", "Tags": ["test", "orange"]}),
        json.dumps({
            "@t": ts,
            "@mt": "Something failed",
            "@l": "Error",
            "@x": "System.DivideByZeroException: Attempted to divide by zero.",
        }),
        json.dumps({"@t": ts, "@m": "Hello", "@i": "a1b2c3d4"}),
    ]
