"""``tern`` run command.

Resolves the configuration (command line > environment > defaults),
builds or imports the App, and hands it to the uvicorn runner.
"""

import argparse
import logging
import sys

from tern.app import App
from tern.cli._resolve import resolve_app
from tern.config import resolve_config
from tern.errors import ConfigurationError
from tern.server.dev import run_server


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_app(args: argparse.Namespace) -> App:
    """Build the App the command line asks for.

    Without an import string a bare App serves the public directory.
    With one, an App instance is used as-is (its own configuration wins
    except for host and port), and a factory receives the resolved
    configuration.
    """
    config = resolve_config(args)
    if not args.app:
        return App(config)
    return resolve_app(args.app, config)


def run(args: argparse.Namespace) -> None:
    """Start the tern server for parsed CLI *args*."""
    try:
        app = build_app(args)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    config = resolve_config(args, base=app.config)
    configure_logging(config.debug)
    run_server(app, config.host, config.port)
