import argparse
import sys

import httpx


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user on a running WADS-W3 service")
    parser.add_argument("uid", help="Firebase UID the record belongs to")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Contact email address")
    parser.add_argument("--role", choices=["admin", "user"], default=None, help="Role (defaults to user)")
    parser.add_argument(
        "--service-url",
        default="http://localhost:3000",
        help="Base URL of the running service (default: http://localhost:3000)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    body = {"uid": args.uid.strip(), "name": args.name.strip(), "email": args.email.strip()}
    if args.role:
        body["role"] = args.role

    try:
        response = httpx.post(args.service_url.rstrip("/") + "/api/users", json=body, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        payload = response.json()
    except ValueError:
        print(f"Error: unexpected response ({response.status_code})", file=sys.stderr)
        return 1
    if response.status_code != 201:
        print(f"Error: {payload.get('message', response.text)}", file=sys.stderr)
        return 1

    user = payload["data"]
    print(f"Created user #{user['id']}: {user['name']} <{user['email']}> ({user['role']})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
