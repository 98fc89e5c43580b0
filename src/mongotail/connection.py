"""
Connection management: one shared MongoClient, one fresh tailable cursor per
(re)connect.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from loguru import logger
from pymongo import ASCENDING, CursorType, MongoClient
from pymongo.cursor import Cursor
from pymongo.errors import ConfigurationError as DriverConfigurationError
from pymongo.errors import PyMongoError

from .errors import (
    NAMESPACE_NOT_FOUND,
    CappedCollectionRequired,
    CursorExhausted,
    OperationFailure,
    map_driver_error,
)
from .targets import CollectionTarget


_USERINFO = re.compile(r"//[^/@]+@")


def redact_uri(uri: Optional[str]) -> Optional[str]:
    """Hide credentials in a connection string before logging it."""
    if not uri:
        return uri
    return _USERINFO.sub("//***@", uri)


class TailCursor:
    """Single-owner wrapper around a tailable pymongo cursor.

    ``next`` returns a document, ``None`` when nothing new is available yet,
    or raises ``CursorExhausted`` once the server-side cursor is dead. After
    any error the cursor must be discarded.
    """

    def __init__(self, cursor: Cursor, target: CollectionTarget):
        self._cursor = cursor
        self.target = target

    @property
    def alive(self) -> bool:
        return self._cursor.alive

    def next(self) -> Optional[dict[str, Any]]:
        try:
            return next(self._cursor)
        except StopIteration:
            if self._cursor.alive:
                return None
            raise CursorExhausted()
        except PyMongoError as e:
            raise map_driver_error(e) from e

    def close(self) -> None:
        try:
            self._cursor.close()
        except PyMongoError as e:
            logger.debug(f"Ignoring error while closing cursor on {self.target}: {e}")


class ConnectionManager:
    """Owns the client handle shared by every tail worker."""

    def __init__(
        self,
        server: Optional[str],
        pool_size: int = 1,
        *,
        server_selection_timeout_ms: int = 30000,
        client: Optional[MongoClient] = None,
    ):
        self.server = server
        self._client = client or MongoClient(
            server,
            maxPoolSize=max(1, pool_size),
            serverSelectionTimeoutMS=server_selection_timeout_ms,
        )

    @property
    def client(self) -> MongoClient:
        return self._client

    @property
    def default_database(self) -> Optional[str]:
        """Database named in the connection string, if any."""
        try:
            return self._client.get_default_database().name
        except DriverConfigurationError:
            return None

    def open(self, target: CollectionTarget) -> TailCursor:
        """Open a tailable, natural-order cursor on a capped collection."""
        try:
            db = self._client.get_database(target.database)
            if not db.list_collection_names(filter={"name": target.collection}):
                raise OperationFailure(
                    f"ns not found: {target}", retryable=False, code=NAMESPACE_NOT_FOUND
                )
            coll = db.get_collection(target.collection)
            if not coll.options().get("capped"):
                raise CappedCollectionRequired(f"Collection must be capped to tail it: {target}")
            cursor = coll.find({}, cursor_type=CursorType.TAILABLE).sort("$natural", ASCENDING)
        except PyMongoError as e:
            raise map_driver_error(e) from e
        return TailCursor(cursor, target)

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
        except PyMongoError as e:
            raise map_driver_error(e) from e
        return True

    def close(self) -> None:
        self._client.close()
