"""Query string access for handlers and hooks.

The query never takes part in routing; it is parsed once per request,
percent-decoded as UTF-8, and exposed read-only.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Read-only view of ``?a=1&b=2&b=3``.

    Indexing yields the first value sent for a name; :meth:`get_list`
    yields every value in the order they appeared.  Blank values are kept
    (``?flag=`` maps ``flag`` to ``""``).
    """

    __slots__ = ("_pairs", "_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        pairs = tuple(
            parse_qsl(
                query_string.decode("latin-1"),
                keep_blank_values=True,
                encoding="utf-8",
                errors="replace",
            )
        )
        values: dict[str, list[str]] = {}
        for name, value in pairs:
            values.setdefault(name, []).append(value)
        self._raw = query_string
        self._pairs = pairs
        self._values = values

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw.decode('latin-1')!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, possibly empty."""
        return list(self._values.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """First value of *key* as an int; *default* if absent or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def items_multi(self) -> tuple[tuple[str, str], ...]:
        """All ``(name, value)`` pairs in wire order, repeats included."""
        return self._pairs

    @property
    def raw(self) -> bytes:
        """The query string exactly as received."""
        return self._raw
