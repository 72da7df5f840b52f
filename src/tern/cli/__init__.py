"""Tern CLI: start the edge server.

Entry point registered as ``tern`` in ``pyproject.toml``::

    [project.scripts]
    tern = "tern.cli:main"
"""

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tern",
        description="Tern: static files, a JSON API and SSE from one small server.",
    )
    parser.add_argument(
        "app",
        nargs="?",
        default=None,
        help="Import string of an App or app factory (e.g. myapp:app)",
    )
    parser.add_argument("-p", "--port", default=None, help="Bind port number (env PORT)")
    parser.add_argument("-H", "--host", default=None, help="Bind host address (env HOST)")
    parser.add_argument(
        "-d",
        "--public",
        default=None,
        help="Directory to serve static files from (env PUBLIC_DIR)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Log handler and hook failures with tracebacks (env DEBUG)",
    )
    parser.add_argument(
        "--api-prefix",
        default=None,
        help="Path prefix routed to the API (default /api)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``tern`` command."""
    args = build_parser().parse_args(argv)

    from tern.cli._run import run

    run(args)
