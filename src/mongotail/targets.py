"""
Collection target resolution.

Collections are configured as ``[database/]collection``, e.g. ``"mydb/capped1"``
or ``"capped2"``; the short form takes the database named in the server URI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .errors import ConfigurationError


@dataclass(frozen=True)
class CollectionTarget:
    """One tailed collection. Immutable for the life of the process."""

    database: str
    collection: str

    def __str__(self) -> str:
        return f"{self.database}/{self.collection}"


def parse_target(raw: str, default_database: Optional[str] = None) -> CollectionTarget:
    """Split ``[database/]collection`` on the first ``/``."""
    database, sep, collection = raw.strip().partition("/")
    if not sep:
        collection, database = database, default_database
    if not collection:
        raise ConfigurationError(f"Empty collection name in {raw!r}")
    if not database:
        raise ConfigurationError(
            f"No database for {raw!r}: use 'database/collection' or name a database in the server URI"
        )
    return CollectionTarget(database=database, collection=collection)


def resolve_targets(
    raw: Union[str, Sequence[str]], default_database: Optional[str] = None
) -> list[CollectionTarget]:
    """Resolve configured collection strings into targets, preserving order."""
    entries = [raw] if isinstance(raw, str) else list(raw)
    targets = [parse_target(entry, default_database) for entry in entries if entry and entry.strip()]
    if not targets:
        raise ConfigurationError("must have at least one collection")
    return targets

