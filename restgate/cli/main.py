from __future__ import annotations

import argparse
import json
import sys
from typing import Dict, List, Tuple

from restgate.client.request import Entity, Request
from restgate.client.response import is_successful
from restgate.client.rest_client import RestClient
from restgate.client.transport import UrllibTransport
from restgate.errors import NoResponseError, TransportError
from restgate.extension.status import status_from_code


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _pairs(values: List[str], flag: str) -> List[Tuple[str, str]]:
    out = []
    for raw in values or []:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise SystemExit(f"error: {flag} expects KEY=VALUE, got {raw!r}")
        out.append((key, value))
    return out


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the restgate API server.

    Security notes:
    - Bind to 127.0.0.1 by default (safer than 0.0.0.0).

    """

    try:
        import uvicorn
    except ImportError as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    from restgate.api.server import create_app

    app = create_app(allowed_origins=args.allowed_origins)
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def cmd_request(args: argparse.Namespace) -> int:
    """Perform one call through RestClient and print the response body.

    Exit codes: 0 for 2xx, 2 for anything else (including no response).
    """

    builder = Request.builder(args.url)
    for segment in args.path or []:
        builder.path(segment)

    query: Dict[str, List[str]] = {}
    for key, value in _pairs(args.query, "--query"):
        query.setdefault(key, []).append(value)
    builder.query_params(query)

    for key, value in _pairs(args.header, "--header"):
        builder.header(key, value)
    if args.accept:
        try:
            builder.accepting(*args.accept)
        except ValueError as e:
            print(f"error: --accept: {e}", file=sys.stderr)
            return 2
    if args.json is not None:
        try:
            builder.entity(Entity.json(json.loads(args.json)))
        except json.JSONDecodeError as e:
            print(f"error: --json is not valid JSON: {e}", file=sys.stderr)
            return 2

    builder.on_not_found(lambda r: print(f"not found: {r.status} {r.reason}", file=sys.stderr))
    builder.on_failure(lambda e: print(f"error: {e}", file=sys.stderr))

    client = RestClient(UrllibTransport(timeout=args.timeout))
    call = {
        "GET": client.get,
        "POST": client.post,
        "PUT": client.put,
        "DELETE": client.delete,
    }[args.method.upper()]

    try:
        response = call(builder.build())
    except NoResponseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    with response:
        print(f"{response.status} {response.reason}", file=sys.stderr)
        try:
            body = response.text()
        except (TransportError, LookupError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
    if body:
        sys.stdout.write(body)
        if not body.endswith("\n"):
            sys.stdout.write("\n")
    return 0 if is_successful(response) else 2


def cmd_status(args: argparse.Namespace) -> int:
    """Print a status registry entry."""
    info = status_from_code(args.code)
    _print_json(
        {"code": info.code, "reason_phrase": info.reason_phrase, "family": info.family.value}
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="restgate", description="restgate CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("serve", help="Run the API server (requires uvicorn)")
    sp.add_argument("--host", default="127.0.0.1", help="Bind host")
    sp.add_argument("--port", default=8080, type=int, help="Bind port")
    sp.add_argument(
        "--allowed-origins",
        default=None,
        help="CORS allow-list, comma separated or '*' (default: RESTGATE_CORS_ALLOWED_ORIGINS)",
    )
    sp.add_argument("--log-level", default="info", help="uvicorn log level")
    sp.set_defaults(func=cmd_serve)

    rp = sub.add_parser("request", help="Perform an HTTP call and print the body")
    rp.add_argument("method", type=str.upper, choices=["GET", "POST", "PUT", "DELETE"])
    rp.add_argument("url", help="Base target URL")
    rp.add_argument("--path", action="append", default=[], help="Path segment (repeatable)")
    rp.add_argument(
        "--query", action="append", default=[], help="KEY=VALUE query param (repeatable)"
    )
    rp.add_argument("--header", action="append", default=[], help="KEY=VALUE header (repeatable)")
    rp.add_argument(
        "--accept", action="append", default=[], help="Accepted media type (repeatable)"
    )
    rp.add_argument("--json", default=None, help="JSON request body (POST/PUT)")
    rp.add_argument("--timeout", default=30.0, type=float, help="Timeout in seconds")
    rp.set_defaults(func=cmd_request)

    st = sub.add_parser("status", help="Look up an HTTP status code")
    st.add_argument("code", type=int, help="Numeric status code")
    st.set_defaults(func=cmd_status)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
