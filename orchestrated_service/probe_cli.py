#!/usr/bin/env python3
"""
CLI probe for the orchestrated service.

Useful as a container HEALTHCHECK command on images without curl.

Usage:
    orchestrated-probe live
    orchestrated-probe ready --url http://localhost:50001
    orchestrated-probe get 42
"""

import argparse
import os
import sys
from urllib.parse import quote

import httpx

# Use PORT env var if set (for running inside container), otherwise default to 50001
DEFAULT_PORT = os.getenv("PORT", "50001")
DEFAULT_URL = f"http://localhost:{DEFAULT_PORT}"


def probe(client: httpx.Client, path: str, show_body: bool = False) -> int:
    """Request path and return a shell exit code: 0 on HTTP 200, 1 otherwise."""
    try:
        response = client.get(path)
    except httpx.RequestError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return 1

    if response.status_code != 200:
        print(f"Error: {response.status_code} - {response.text}", file=sys.stderr)
        return 1

    if show_body:
        print(response.text)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Probe a running orchestrated service")
    parser.add_argument(
        "--url",
        default=DEFAULT_URL,
        help=f"Service base URL (default: {DEFAULT_URL})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=2.0,
        help="Request timeout in seconds (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Probe to run")
    subparsers.add_parser("live", help="Check the liveness probe")
    subparsers.add_parser("ready", help="Check the readiness probe")
    get_parser = subparsers.add_parser("get", help="Look up a resource and print it")
    get_parser.add_argument("resource_id", help="Resource ID")
    return parser


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    """Main CLI entrypoint."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    with httpx.Client(base_url=args.url, timeout=args.timeout, transport=transport) as client:
        if args.command == "live":
            return probe(client, "/live")
        elif args.command == "ready":
            return probe(client, "/ready")
        else:
            return probe(client, "/" + quote(args.resource_id, safe=""), show_body=True)


if __name__ == "__main__":
    sys.exit(main())
