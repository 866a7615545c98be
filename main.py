#!/usr/bin/env python3
"""
jwt-auth -- Issue and inspect bearer tokens from the command line.

Uses the same configuration as the API (JWT_SIGN_KEY, JWT_ISSUER, ... from
the environment or .env), so a token issued here is accepted by the server
and vice versa.

Usage:
  python main.py issue will
  python main.py issue will --role admin --role user
  python main.py issue will --expire 300
  python main.py inspect eyJhbGciOi...
  python main.py inspect --file token.txt
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from auth.errors import AuthError, TokenError
from auth.keys import KeyMaterial
from auth.tokens import TokenIssuer, TokenValidator
from core.config import get_settings


def _load_token(path: str) -> Optional[str]:
    """Read a token from the first non-blank line of a file."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.", file=sys.stderr)
        return None
    try:
        lines = file_path.read_text().splitlines()
    except OSError as e:
        print(f"  [!] Could not read file '{path}': {e}", file=sys.stderr)
        return None
    for line in lines:
        if line.strip():
            return line.strip()
    return None


def cmd_issue(args: argparse.Namespace, material: KeyMaterial) -> int:
    issuer = TokenIssuer(material)
    try:
        token = issuer.issue(args.subject, args.role or (), expire_seconds=args.expire)
    except AuthError as e:
        print(f"  [!] {e.code}: {e}", file=sys.stderr)
        return 1
    print(token)
    return 0


def cmd_inspect(args: argparse.Namespace, material: KeyMaterial) -> int:
    token = _load_token(args.file) if args.file else args.token
    if not token:
        print("  [!] No token given.", file=sys.stderr)
        return 2
    validator = TokenValidator(material)
    try:
        claims = validator.validate(token)
    except TokenError as e:
        print(f"  [!] {e.code}: {e}", file=sys.stderr)
        return 1
    print(json.dumps([{"type": c.type, "value": c.value} for c in claims], indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jwt-auth",
        description="Issue and inspect HS256 bearer tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py issue will
  python main.py issue will --role admin
  python main.py inspect "$(python main.py issue will)"
  JWT_SIGN_KEY=... JWT_ISSUER=MyIssuer python main.py issue will
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    issue = sub.add_parser("issue", help="Print a signed token for SUBJECT")
    issue.add_argument("subject", metavar="SUBJECT", help="Username to put in the sub claim")
    issue.add_argument(
        "--role",
        action="append",
        metavar="ROLE",
        help="Role claim to include (repeatable)",
    )
    issue.add_argument(
        "--expire",
        type=int,
        default=0,
        metavar="SECONDS",
        help="Validity window in seconds (default: JWT_EXPIRE_SECONDS)",
    )

    inspect = sub.add_parser("inspect", help="Validate a token and print its claims as JSON")
    inspect.add_argument("token", nargs="?", metavar="TOKEN", help="Token string")
    inspect.add_argument("--file", metavar="PATH", help="Read the token from a file instead")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        material = KeyMaterial.load(get_settings())
    except ValueError as e:
        print(f"  [!] Configuration error: {e}", file=sys.stderr)
        return 2

    if args.command == "issue":
        return cmd_issue(args, material)
    return cmd_inspect(args, material)


if __name__ == "__main__":
    sys.exit(main())
