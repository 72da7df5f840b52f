"""Request headers as a case-insensitive, read-only mapping.

A request consults the same handful of headers over and over (Host,
Accept-Encoding, Authorization, X-Forwarded-For), so the names are
lower-cased and indexed once when the mapping is built.
"""

from collections.abc import Iterable, Iterator, Mapping

type RawHeaders = tuple[tuple[bytes, bytes], ...]


class Headers(Mapping[str, str]):
    """Case-insensitive header lookup over ASGI byte pairs.

    ``headers["accept"]`` is the first value sent; :meth:`get_list`
    returns all of them, in order.  Keys iterate lower-cased.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        pairs: RawHeaders = tuple((bytes(name), bytes(value)) for name, value in raw)
        index: dict[str, list[str]] = {}
        for name, value in pairs:
            index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._raw = pairs
        self._index = index

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build headers from a plain ``str -> str`` mapping."""
        return cls(
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in headers.items()
        )

    def __getitem__(self, key: str) -> str:
        return self._index[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({dict((k, v[0]) for k, v in self._index.items())!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> RawHeaders:
        """The byte pairs as received."""
        return self._raw
