"""
Application entry point.

Run with: python -m phracked [issue]
"""

import argparse
import atexit
import logging
import sys

from textual.logging import TextualHandler

from .app import PhrackApp
from .config import DEFAULT_ISSUE, FETCH_TIMEOUT, ISSUE_URL_TEMPLATE
from .errors import PhrackedError
from .session import Session, sanitize_issue

logger = logging.getLogger("phracked")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="phracked", description="Download and read a Phrack issue.")
    parser.add_argument("issue", nargs="?", default=DEFAULT_ISSUE,
                        help="issue number to open (default: %(default)s)")
    parser.add_argument("--url-template", default=ISSUE_URL_TEMPLATE,
                        help="archive URL containing an {issue} placeholder")
    parser.add_argument("--timeout", type=float, default=FETCH_TIMEOUT,
                        help="network timeout in seconds (default: %(default)s)")
    parser.add_argument("--log-file", help="write diagnostics to this file")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    args = parser.parse_args(argv)

    args.issue = sanitize_issue(args.issue)
    if not args.issue:
        parser.error("issue must contain at least one digit")
    if "{issue}" not in args.url_template:
        parser.error("--url-template must contain {issue}")
    return args


def configure_logging(log_file: str | None = None, debug: bool = False) -> None:
    # The TUI owns the terminal, so records go to a file or the Textual console.
    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else TextualHandler()
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        level=logging.DEBUG if debug else logging.INFO,
        handlers=[handler],
    )


def main(argv=None) -> int:
    """Open the requested issue in the reader and return the exit status."""
    args = parse_args(argv)
    configure_logging(args.log_file, args.debug)

    session = Session(url_template=args.url_template)
    atexit.register(session.release)
    try:
        session.reset(args.issue)
    except PhrackedError as e:
        logger.error("Startup failed: %s", e)
        print(f"FATAL [{e.code}]: {e.message}", file=sys.stderr)
        return 1

    app = PhrackApp(session, timeout=args.timeout)
    app.run()
    session.release()
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
