"""CLI entry point for the JSON validator."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from src.tools.api_client import UpstreamError, fetch_raw, submit_text
from src.utils.json_repair import InvalidJsonError, parse, pretty_print, resolve, sanitize


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _print_resolution(resolution, as_json: bool) -> int:
    if as_json:
        print(resolution.model_dump_json(indent=2))
    else:
        print(resolution.display_text)
    if not resolution.result.ok:
        print(f"Parse error: {resolution.result.error}", file=sys.stderr)
        return 1
    return 0


def cmd_resolve(args) -> int:
    return _print_resolution(resolve(_read_input(args.file)), args.json)


def cmd_sanitize(args) -> int:
    print(sanitize(_read_input(args.file)))
    return 0


def cmd_validate(args) -> int:
    result = parse(_read_input(args.file))
    if args.json:
        print(result.model_dump_json(indent=2))
    elif result.ok:
        print(pretty_print(result.value))
    if not result.ok:
        print(f"Parse error: {result.error}", file=sys.stderr)
        return 1
    return 0


def cmd_fetch(args) -> int:
    raw = fetch_raw(args.base_url, args.email)
    if args.raw:
        print(raw)
        return 0
    return _print_resolution(resolve(raw), args.json)


def cmd_submit(args) -> int:
    response = submit_text(_read_input(args.file), args.base_url, args.email)
    if args.json:
        print(response.model_dump_json(indent=2))
    else:
        print(f"API response ({response.status_code}): {response.body}")
    return 0


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Fetch, repair, validate and resubmit near-JSON payloads",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("resolve", help="Parse, repairing common defects if needed")
    p.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("sanitize", help="Print the repaired text without parsing")
    p.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
    p.set_defaults(func=cmd_sanitize)

    p = sub.add_parser("validate", help="Strictly parse and pretty-print")
    p.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
    p.set_defaults(func=cmd_validate)

    for name, func, help_text in (
        ("fetch", cmd_fetch, "Fetch JSON from the upstream API and resolve it"),
        ("submit", cmd_submit, "Validate a file and submit it upstream"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--base-url", default=None, help="Upstream API URL")
        p.add_argument("--email", default=None, help="Email sent to the upstream API")
        p.set_defaults(func=func)
        if name == "submit":
            p.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
        else:
            p.add_argument("--raw", action="store_true", help="Print the response unmodified")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        code = args.func(args)
    except InvalidJsonError as e:
        print(f"Edited JSON is invalid: {e}", file=sys.stderr)
        code = 1
    except UpstreamError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
