"""Command line launcher for the Monster Mayhem server."""

from __future__ import annotations

import argparse

import uvicorn

from mayhem.backend.config import load_settings
from mayhem.backend.logging_config import configure_logging, get_logger


APP_FACTORY = "mayhem.backend.api:create_app"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Monster Mayhem server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--log-level", type=str.upper, default=settings.log_level, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-json", action="store_true", default=settings.log_json)
    parser.add_argument("--reload", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)
    get_logger(__name__).info("Starting server", host=args.host, port=args.port)
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        reload=args.reload,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
