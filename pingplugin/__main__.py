"""Command-line entry point for the ping plugin."""

import argparse
import json
import logging
import sys
import time

from pingplugin.config import Settings, select_probe
from pingplugin.definition import load_definition
from pingplugin.errors import InvalidArgument, PluginError
from pingplugin.logging_config import configure_logging
from pingplugin.session import Session

logger = logging.getLogger(__name__)


def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pingplugin",
        description="Ping a host and report latency/loss statistics as JSON",
    )
    mode = ap.add_mutually_exclusive_group(required=True)
    mode.add_argument("--definition", action="store_true", help="Print the plugin descriptor")
    mode.add_argument(
        "--execute",
        metavar="JSON",
        help='Execute with a JSON parameter object, e.g. \'{"host": "example.com"}\'',
    )
    ap.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="Run the execution N times on the same session (one JSON line each)",
    )
    ap.add_argument(
        "--interval",
        type=float,
        default=0.0,
        help="Seconds to wait between repeated executions",
    )
    return ap


def parse_parameters(text: str) -> dict:
    """Decode the --execute payload, unwrapping an optional {"params": {...}} envelope."""
    try:
        params = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidArgument(f"invalid parameters JSON: {e}") from e

    if isinstance(params, dict) and set(params) == {"params"} and isinstance(params["params"], dict):
        params = params["params"]
    if not isinstance(params, dict):
        raise InvalidArgument("parameters must be a JSON object")
    return params


def emit(payload: dict) -> None:
    print(json.dumps(payload))


def main(argv=None) -> int:
    """Main entry point; returns the process exit status."""
    configure_logging()
    args = build_argparser().parse_args(argv)
    settings = Settings.from_env()

    try:
        if args.definition:
            emit(load_definition(settings.definition_path))
            return 0

        if args.repeat < 1:
            raise InvalidArgument("--repeat must be at least 1")
        if args.interval < 0:
            raise InvalidArgument("--interval must not be negative")

        params = parse_parameters(args.execute)
        session = Session(select_probe(settings), history_limit=settings.history_limit)

        for i in range(args.repeat):
            if i and args.interval:
                time.sleep(args.interval)
            result = session.execute(params)
            emit(result.to_dict())

    except PluginError as e:
        logger.debug("Execution failed: %s", e)
        emit({"error": str(e)})
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
