"""Server-Sent Event frames and their wire encoding."""

import json as json_module
from dataclasses import dataclass
from typing import Any

# Comment frame the keepalive loop writes; clients ignore it.
HEARTBEAT = ":heartbeat\n\n"


def normalize_data(data: Any) -> str:
    """Payload text for *data*: str verbatim, ``None`` empty, else compact JSON."""
    match data:
        case None:
            return ""
        case str():
            return data
        case _:
            return json_module.dumps(data, separators=(",", ":"), default=str)


@dataclass(frozen=True, slots=True)
class SSEEvent:
    data: str
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def _fields(self):
        if self.id:
            yield "id", self.id
        if self.event:
            yield "event", self.event
        if self.retry is not None:
            yield "retry", str(self.retry)
        for line in self.data.splitlines() or [""]:
            yield "data", line

    def encode(self) -> str:
        """Wire text: ``id``, ``event``, ``retry``, then one ``data`` line per payload line."""
        return "".join(f"{name}: {value}\n" for name, value in self._fields()) + "\n"
