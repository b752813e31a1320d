"""CLI entrypoint: convoy <command> [options]."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from convoy import __version__
from convoy.commands import COMMANDS
from convoy.core.config import Settings
from convoy.core.exceptions import ConvoyError
from convoy.utils.logging import setup_logging
from convoy.utils.metrics import write_metrics

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="convoy", description="Convention-driven AWS deployments")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd")
    for name, command in COMMANDS.items():
        command.add_arguments(sub.add_parser(name, help=command.help))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 1

    try:
        settings = Settings()
    except ValidationError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.log_level, settings.log_format)
    logger.info("Starting convoy", version=__version__, command=args.cmd)

    try:
        exit_code = COMMANDS[args.cmd](settings).execute(args)
    except ConvoyError as e:
        logger.error(str(e), error=e.__class__.__name__, code=e.code)
        exit_code = 1
    except (ClientError, BotoCoreError) as e:
        logger.error(f"An unrecognised AWS error stopped the deployment: {e}", error=e.__class__.__name__)
        exit_code = 1
    finally:
        if settings.metrics_textfile:
            write_metrics(settings.metrics_textfile)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
