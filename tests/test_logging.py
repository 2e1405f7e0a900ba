# RequestSync test scripts
from __future__ import annotations

import io
import json

from _logging import Logger


def _logger(level: str = "info") -> tuple[Logger, io.StringIO]:
    buf = io.StringIO()
    return Logger(stream=buf, level=level, use_color=False, show_time=False), buf


def test_child_prefixes_module() -> None:
    lg, buf = _logger()
    lg.child("SEERR").info("hello", 3)
    assert buf.getvalue() == "[SEERR] INFO hello 3\n"


def test_level_filtering() -> None:
    lg, buf = _logger("warn")
    lg.info("quiet")
    lg.warn("loud")
    lg.set_level("off")
    lg.error("muted")
    assert buf.getvalue() == "WARN loud\n"


def test_debug_needs_runtime_gate(monkeypatch) -> None:
    lg, buf = _logger("debug")
    monkeypatch.setenv("RS_DEBUG", "1")
    lg.debug("visible")
    assert "DEBUG visible" in buf.getvalue()


def test_callable_adapter_and_json_sink(tmp_path) -> None:
    lg, buf = _logger()
    sink = tmp_path / "log.jsonl"
    lg.enable_json(str(sink))
    lg("stored", level="success", module="RUNNER", extra={"n": 1})
    lg._json_stream.close()

    assert buf.getvalue() == "[RUNNER] SUCCESS stored\n"
    row = json.loads(sink.read_text("utf-8").strip())
    assert row["level"] == "SUCCESS"
    assert row["ctx"] == {"module": "RUNNER"}
    assert row["extra"] == {"n": 1}
