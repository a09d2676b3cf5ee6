from __future__ import annotations

import argparse
import sys

from pydantic import ValidationError

from busybox import __version__
from busybox.config import load_settings
from busybox.errors import StartupError
from busybox.lifecycle import run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="busybox",
        description="HTTP server that echoes back what it receives, for debugging clients and proxies",
    )
    parser.add_argument("--config", default=None, help="Path to an env file with settings (default: .env)")
    parser.add_argument("--listen-addr", default=None, help="TCP address to listen on, e.g. :8081")
    parser.add_argument("--env", default=None, help="Environment label")
    parser.add_argument("--trace-collector", default=None, help="OTLP trace collector endpoint")
    parser.add_argument("--log-json", action=argparse.BooleanOptionalAction, default=None, help="Emit JSON log records")
    parser.add_argument(
        "--log-stacktrace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Render exception tracebacks in log records",
    )
    parser.add_argument("--log-level", default=None, help="Log level name (default: DEBUG)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            args.config,
            listen_addr=args.listen_addr,
            env=args.env,
            trace_collector_url=args.trace_collector,
            log_json=args.log_json,
            log_stacktrace=args.log_stacktrace,
            log_level=args.log_level,
        )
        run(settings)
    except (StartupError, ValidationError) as exc:
        print(f"busybox: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
