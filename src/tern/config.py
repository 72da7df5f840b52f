"""Server configuration.

AppConfig is a frozen dataclass, immutable after creation, no string-key
dict lookups.  :func:`resolve_config` builds one from command-line values,
falling back to environment variables, falling back to the defaults here.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from tern.errors import ConfigurationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration.  Immutable after creation.

    Override what you need::

        config = AppConfig(port=8080, public_dir="./dist", debug=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    # Static files
    public_dir: str | Path = "public"
    index: str = "index.html"
    cache_control: str | None = None

    # API
    api_prefix: str = "/api"

    # Compression (1 = fastest, 9 = smallest)
    compression_level: int = 6

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            msg = f"Port must be between 1 and 65535, got {self.port}"
            raise ConfigurationError(msg)
        if not self.api_prefix.startswith("/"):
            msg = f"API prefix must start with '/', got {self.api_prefix!r}"
            raise ConfigurationError(msg)
        if not 1 <= self.compression_level <= 9:
            msg = f"Compression level must be between 1 and 9, got {self.compression_level}"
            raise ConfigurationError(msg)

    def with_overrides(self, **changes: Any) -> "AppConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


def _parse_port(value: object) -> int | None:
    """Return *value* as a usable port, or ``None`` to fall through."""
    if value is None or value == "":
        return None
    try:
        port = int(str(value))
    except ValueError:
        return None
    return port if 0 < port < 65536 else None


def resolve_config(
    args: Any = None,
    environ: Mapping[str, str] | None = None,
    base: AppConfig | None = None,
) -> AppConfig:
    """Build an AppConfig: command line > environment > defaults.

    Args:
        args: Parsed CLI namespace with optional ``port``, ``host``,
            ``public``, ``debug`` and ``api_prefix`` attributes.  Missing or
            empty attributes fall through.
        environ: Environment mapping (defaults to ``os.environ``).  Reads
            ``PORT``, ``HOST``, ``PUBLIC_DIR`` and ``DEBUG``.
        base: Configuration supplying the defaults.

    An unusable port at one level (not a number, out of range) falls
    through to the next level instead of failing.
    """
    env = os.environ if environ is None else environ
    defaults = base or AppConfig()

    def arg(name: str) -> Any:
        value = getattr(args, name, None) if args is not None else None
        return value if value not in (None, "") else None

    port = _parse_port(arg("port")) or _parse_port(env.get("PORT")) or defaults.port
    host = arg("host") or env.get("HOST") or defaults.host
    public_dir = arg("public") or env.get("PUBLIC_DIR") or defaults.public_dir
    debug = bool(arg("debug")) or env.get("DEBUG", "").lower() in _TRUTHY or defaults.debug
    api_prefix = arg("api_prefix") or defaults.api_prefix

    return defaults.with_overrides(
        host=host,
        port=port,
        public_dir=public_dir,
        debug=debug,
        api_prefix=api_prefix,
    )
