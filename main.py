"""Command-line interface for the WADS-W3 user directory service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

import httpx

logger = logging.getLogger("userapi.main")

_DEFAULT_SERVICE_URL = "http://localhost:3000"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WADS-W3 user directory utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Port for the HTTP API (default: 3000)",
    )

    users_parser = subparsers.add_parser("users", help="List users registered with a running service")
    users_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(*, host: str, port: int) -> None:
    from userapi.application import create_application
    import uvicorn

    logger.info("Starting user directory API on http://%s:%s", host, port)
    uvicorn.run(create_application(), host=host, port=port, log_level="info")


def _list_users(service_url: str) -> int:
    endpoint = service_url.rstrip("/") + "/api/users"

    try:
        response = httpx.get(endpoint, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact the service: {exc}")
        return 1

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return 1

    try:
        payload = response.json()
    except ValueError:
        print("Service returned an unexpected response format.")
        return 1

    users = payload.get("data", [])
    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{payload.get('total', len(users))} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  {'Role':<6}  Created")
    print("-" * 90)
    for user in users:
        print(
            f"{user.get('id', '?'):>4}  {user.get('name', ''):<24}  "
            f"{user.get('email', ''):<32}  {user.get('role', ''):<6}  {user.get('createdAt', '')}"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(host=args.host, port=args.port)
    elif args.command == "users":
        return _list_users(args.service_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
