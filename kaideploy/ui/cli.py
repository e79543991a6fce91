from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

from debugproto.protocol.errors import ProtocolError
from kaideploy.config import ConfigError, load_config, parse_address
from kaideploy.features import PackagingError
from kaideploy.main import deploy
from kaideploy.ui.reporter import ConsoleReporter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DEPLOY_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="kaideploy",
        description="Package an app directory and install it through a device's debugger socket.",
    )
    p.add_argument("--socket", help="debugger socket as host:port (default localhost:6000)")
    p.add_argument("--path", dest="app_path", help="app directory to package")
    p.add_argument("--launch", action="store_true", default=None, help="launch the app after install")
    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", dest="verbosity", action="store_const", const="verbose")
    verbosity.add_argument("--quiet", "-q", dest="verbosity", action="store_const", const="quiet")
    p.add_argument("--timeout", dest="request_timeout", type=float, help="seconds to wait for each reply (0 waits forever)")
    p.add_argument("--connect-timeout", type=float)
    p.add_argument("--chunk-size", type=int)
    p.add_argument(
        "--strict-length",
        dest="strict_frame_length",
        action="store_true",
        default=None,
        help="reject malformed frame length prefixes instead of reading them as zero",
    )
    p.add_argument("--log-level")
    p.add_argument("--env-file", default=".env")
    return p


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "app_path": args.app_path,
        "launch": args.launch,
        "verbosity": args.verbosity,
        "request_timeout": args.request_timeout,
        "connect_timeout": args.connect_timeout,
        "chunk_size": args.chunk_size,
        "strict_frame_length": args.strict_frame_length,
        "log_level": args.log_level,
    }
    if args.socket:
        overrides["device_host"], overrides["device_port"] = parse_address(args.socket)
    return overrides


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.env_file, _overrides(args))
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(
        level=config["log_level"],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    reporter = ConsoleReporter(config["verbosity"])
    reporter.banner()
    try:
        asyncio.run(deploy(config, reporter))
    except (PackagingError, ProtocolError, OSError) as exc:
        # ConnectionError and FrameIOError are OSError subclasses
        logger.debug("Deploy failed", exc_info=True)
        reporter.failed(exc)
        return EXIT_DEPLOY_FAILED
    except KeyboardInterrupt:
        reporter.failed(RuntimeError("interrupted"))
        return EXIT_INTERRUPTED
    return EXIT_OK


__all__ = ["build_parser", "main"]
