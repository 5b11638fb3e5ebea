"""Command line entry point: ``python -m tornwatch``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from tornwatch.app import run
from tornwatch.config import TornWatchConfig
from tornwatch.exceptions import TornAuthenticationError, TornConfigError

_logger = logging.getLogger("tornwatch")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tornwatch",
        description="Poll the Torn API and notify on tracked state changes",
    )
    parser.add_argument("--persist-path", help="State file (default: $PERSIST_PATH or ./data/store.json)")
    parser.add_argument("--port", type=int, help="Health endpoint port, 0 to disable (default: $PORT or 3000)")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.persist_path:
        overrides["persist_path"] = args.persist_path
    if args.port is not None:
        overrides["port"] = args.port

    try:
        config = TornWatchConfig.from_env(**overrides)
    except TornConfigError as exc:
        _logger.error("%s", exc)
        return 2

    try:
        asyncio.run(run(config))
    except TornAuthenticationError as exc:
        _logger.error("Invalid Torn API key: %s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
