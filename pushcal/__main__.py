"""Command-line entry for pushcal.

Examples:
  python -m pushcal                      # Start server on PORT (default 9012)
  python -m pushcal serve --port 3000    # Start server on port 3000
  python -m pushcal issue-token 1        # Print a calendar token for user 1
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from . import run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the pushcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="pushcal",
        description="pushcal - web-push relay, Pusher channel auth and iCalendar feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP server (default)")
    serve.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 9012, or from PORT env var)",
    )
    serve.add_argument("--debug", action="store_true", help="Enable debug logging")

    token = subparsers.add_parser(
        "issue-token", help="Print a calendar subscription token for a user"
    )
    token.add_argument("user_id", help="Id of the calendar owner")
    token.add_argument(
        "--expires-in",
        type=int,
        metavar="SECONDS",
        help="Token lifetime in seconds (default: no expiry)",
    )

    return parser


def _issue_token(user_id: str, expires_in: Optional[int]) -> int:
    from pushcal.auth.tokens import CalendarTokenVerifier, normalize_subject
    from pushcal.core.config import ConfigManager
    from pushcal.exceptions import AuthTokenInvalid

    config = ConfigManager().load()
    verifier = CalendarTokenVerifier(config.calendar_token_secret)
    try:
        print(verifier.issue(normalize_subject(user_id), expires_in=expires_in))
    except AuthTokenInvalid as exc:
        print(f"Cannot issue token: {exc.message}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run the pushcal CLI and return the process exit code."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    if args.command == "issue-token":
        return _issue_token(args.user_id, args.expires_in)

    run_server(port=getattr(args, "port", None), debug=getattr(args, "debug", False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
