"""Tests for output mode selection."""

from __future__ import annotations

import json

from tracectl.output.formatters import OutputSettings, format_result
from tracectl.services.result import ServiceResult

_RESULT = ServiceResult(ok=True, op="pin", data={"node_id": "a", "pinned": True})


class TestFormatResult:
    def test_default_is_rich(self) -> None:
        assert format_result(_RESULT).split()[:2] == ["OK", "pin"]

    def test_json(self) -> None:
        out = format_result(_RESULT, settings=OutputSettings(json_output=True))
        assert json.loads(out)["data"] == {"node_id": "a", "pinned": True}

    def test_json_beats_quiet(self) -> None:
        out = format_result(_RESULT, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(out)["op"] == "pin"

    def test_quiet(self) -> None:
        assert format_result(_RESULT, settings=OutputSettings(quiet=True)) == "OK: pin"
