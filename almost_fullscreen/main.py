#!/usr/bin/env python3
import argparse
import logging
import sys
import threading

from almost_fullscreen.core.log_setup import setup_logging


def global_exception_handler(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger = logging.getLogger("almost_fullscreen")
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
        extra={"thread_name": threading.current_thread().name},
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="almost-fullscreen",
        description="Resize new windows to fill the screen, minus a small padding.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="configuration file (default: search the XDG config dir, then the install dir)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="log debug messages to the console"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = setup_logging(level=logging.DEBUG if args.debug else logging.INFO)
    sys.excepthook = global_exception_handler

    from almost_fullscreen.app import Daemon

    try:
        daemon = Daemon(logger, config_file=args.config)
    except Exception:
        logger.exception("Failed to start almost-fullscreen")
        return 1
    return daemon.run()


if __name__ == "__main__":
    sys.exit(main())
