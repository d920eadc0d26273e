"""
Command-Line Interface for KataPass
-----------------------------------
Runs the GTP proxy between a controller on stdin/stdout and the engine named
in the configuration file. The exit status is the engine's own.
"""

import argparse
import logging
import os
import sys

from katapass.engine.errors import KataPassError
from katapass.engine.supervisor import run_proxy
from katapass.utils.config_loader import load_config

logger = logging.getLogger("katapass")


def setup_logging(level: str, fmt: str) -> None:
    """Send log records to stderr; stdout belongs to the GTP controller."""
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="katapass",
        description="GTP proxy that passes when the engine says passing is good enough.",
    )
    parser.add_argument(
        "config",
        type=str,
        help="Path to the configuration file (YAML, or legacy [KATAPASS] INI).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the log level from the configuration file.",
    )
    return parser


def exit_status(returncode: int) -> int:
    """Map the engine's return code to ours; a signal ``N`` becomes ``128 + N``."""
    if returncode < 0:
        logger.error("Engine process killed by signal %s", -returncode)
        return 128 - returncode
    if returncode != 0:
        logger.error("Engine process exited with status %s", returncode)
    return returncode


def terminate(code: int) -> None:
    """Exit without interpreter shutdown.

    The broker thread may still be blocked reading stdin when the engine
    quits, and a normal shutdown aborts on the stdin buffer lock it holds.
    """
    logging.shutdown()
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


def main(argv=None) -> None:
    """
    Main function to parse arguments and run the proxy.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        setup_logging("ERROR", "%(levelname)s - %(message)s")
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    setup_logging(args.log_level or config.logging.level, config.logging.format)

    try:
        exit_code = exit_status(run_proxy(config))
    except KataPassError as e:
        logger.error("%s", e)
        exit_code = 1
    except OSError as e:
        logger.error("I/O failure: %s", e)
        exit_code = 1
    except KeyboardInterrupt:
        exit_code = 130

    terminate(exit_code)


if __name__ == "__main__":
    main()
