"""
Event construction: wraps a normalized document with its origin and the
uniform decorations (timestamp, type, tags, extra fields), then pushes it to
the sink.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .metrics import TAIL_BYTES_TOTAL, TAIL_EVENTS_TOTAL
from .normalize import message_size, normalize
from .sinks import Sink
from .targets import CollectionTarget


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    """One tailed document, ready for the sink."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    message: dict[str, Any]
    database: str
    collection: str
    message_size: int
    timestamp: datetime = Field(default_factory=utc_now, alias="@timestamp")
    version: str = Field(default="1", alias="@version")
    type: Optional[str] = None
    host: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# field names and their serialized aliases; extra fields may not shadow either
CORE_FIELDS = frozenset(Event.model_fields) | frozenset(
    f.alias for f in Event.model_fields.values() if f.alias
)


@dataclass(frozen=True)
class Decorator:
    """Decorations applied to every event of a tailer."""

    type: Optional[str] = None
    tags: Sequence[str] = ()
    add_field: Mapping[str, Any] = field(default_factory=dict)
    host: Optional[str] = field(default_factory=socket.gethostname)

    def fields(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "host": self.host, "tags": list(self.tags)}
        for key, value in self.add_field.items():
            if key not in CORE_FIELDS:
                out[key] = value
        return out


class EventEmitter:
    def __init__(self, sink: Sink, decorator: Optional[Decorator] = None):
        self._sink = sink
        self._decorator = decorator or Decorator()

    def build(self, document: Mapping[str, Any], target: CollectionTarget) -> Event:
        size = message_size(document)
        return Event(
            message=normalize(document),
            database=target.database,
            collection=target.collection,
            message_size=size,
            **self._decorator.fields(),
        )

    def emit(self, document: Mapping[str, Any], target: CollectionTarget) -> Event:
        event = self.build(document, target)
        self._sink.put(event)
        TAIL_EVENTS_TOTAL.labels(database=target.database, collection=target.collection).inc()
        TAIL_BYTES_TOTAL.labels(database=target.database, collection=target.collection).inc(
            event.message_size
        )
        return event
