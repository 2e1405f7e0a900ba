# /requestsync.py
# RequestSync - Mirror Jellyseerr requests into Jellyfin watchlists
from __future__ import annotations

import argparse
import sys

import uvicorn
from fastapi import FastAPI

from _logging import log
from api import register as register_api
from rs_platform.config_base import CONFIG_BASE, load_config, state_dir

__VERSION__ = "1.0.0"


def create_app() -> FastAPI:
    app = FastAPI(title="RequestSync", version=__VERSION__)
    register_api(app)

    @app.get("/api/health")
    def api_health() -> dict[str, str]:
        return {"status": "ok", "version": __VERSION__}

    return app


app = create_app()


def run_once() -> int:
    from services.sync_runner import RUNNER

    summary = RUNNER.run_once()
    if summary.aborted_reason:
        return 2
    return 1 if summary.cancelled else 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="requestsync")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8788)
    p.add_argument("--once", action="store_true", help="run one sync in the foreground and exit")
    args = p.parse_args(argv)

    if args.once:
        return run_once()

    cfg = load_config()
    mlog = log.child("MAIN")
    debug = bool((cfg.get("runtime") or {}).get("debug"))
    mlog.info(f"Config: {CONFIG_BASE() / 'config.json'}")
    mlog.info(f"State:  {state_dir(cfg)}")
    mlog.info(f"Listening on {args.host}:{args.port}")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=("debug" if debug else "warning"),
        access_log=debug,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
