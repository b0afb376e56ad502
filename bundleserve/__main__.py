#!/usr/bin/env python3
"""Serve one or more directories the way the build plugin does."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TYPE, ServeOptions
from .errors import ServeError
from .hook import BuildHook
from .server import DevServer


def parse_pairs(values: Optional[List[str]], separator: str, label: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition(separator)
        if not sep or not key.strip():
            raise ValueError(f"Invalid {label} '{raw}', expected KEY{separator}VALUE")
        pairs[key.strip()] = value.strip()
    return pairs


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bundleserve", description=__doc__)
    parser.add_argument("content_base", nargs="*", help="Directories to serve, searched in order (default: current directory)")
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Host to bind (default: {DEFAULT_HOST})")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help=f"Port to bind (default: {DEFAULT_PORT})")
    parser.add_argument(
        "--fallback",
        nargs="?",
        const=True,
        default=None,
        metavar="PATH",
        help="Serve PATH (default /index.html) when a request matches no file",
    )
    parser.add_argument("--open", action="store_true", help="Open a browser once the server is up")
    parser.add_argument("--open-page", default="", help="Page to open, relative to the server or an absolute URL")
    parser.add_argument("--header", action="append", metavar="NAME:VALUE", help="Extra response header (repeatable)")
    parser.add_argument("--mime", action="append", metavar="EXT=TYPE", help="Content type override (repeatable)")
    parser.add_argument("--default-type", default=DEFAULT_TYPE, help=f"Content type for unknown extensions (default: {DEFAULT_TYPE})")
    parser.add_argument("--cert", help="TLS certificate (PEM); enables HTTPS")
    parser.add_argument("--key", help="TLS private key (PEM)")
    parser.add_argument("--ca", help="CA bundle (PEM)")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def options_from_args(args: argparse.Namespace) -> ServeOptions:
    https = None
    if args.cert:
        https = {"cert": args.cert, "key": args.key, "ca": args.ca}
    elif args.key or args.ca:
        raise ValueError("--key and --ca need --cert")

    return ServeOptions(
        content_base=args.content_base,
        port=args.port,
        host=args.host,
        headers=parse_pairs(args.header, ":", "header"),
        https=https,
        open_page=args.open_page,
        open=args.open,
        history_api_fallback=args.fallback,
        default_type=args.default_type,
        verbose=not args.quiet,
        mime_types=parse_pairs(args.mime, "=", "MIME override"),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        options = options_from_args(args)
        server = DevServer(options)
    except (ValueError, ServeError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    # Nothing is being bundled here, so the served directories count as one finished build.
    BuildHook(server.options, server.url, server=server).generate_bundle()
    print("Press Ctrl+C to stop\n")
    sys.stdout.flush()

    server.serve()
    return 0


if __name__ == "__main__":
    sys.exit(main())
