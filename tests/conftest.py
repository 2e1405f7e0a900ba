# RequestSync test scripts
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from _logging import Logger  # noqa: E402
from rs_platform.library import InMemoryLibrary  # noqa: E402


@pytest.fixture()
def config_base(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CONFIG_BASE", str(tmp_path))
    return tmp_path


@pytest.fixture()
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def logger(log_stream: io.StringIO) -> Logger:
    return Logger(stream=log_stream, level="debug", use_color=False, show_time=False)


@pytest.fixture()
def library() -> InMemoryLibrary:
    return InMemoryLibrary()


SEERR_URL = "http://seerr.local"


@pytest.fixture()
def seerr_cfg() -> dict:
    return {
        "jellyseerr": {
            "enabled": True,
            "sync_requests": True,
            "urls": SEERR_URL + "/\n",
            "api_key": "k3y",
            "max_retries": 1,
        },
    }
