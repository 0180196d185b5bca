from __future__ import annotations

import logging
from dataclasses import dataclass

from pymongo import MongoClient
from pymongo.database import Database as MongoDatabase
from pymongo.errors import ConfigurationError, PyMongoError

from bloodbank.config import DEFAULT_DB_NAME, Settings
from bloodbank.logging_utils import log_json


logger = logging.getLogger(__name__)


@dataclass
class DatabaseInfo:
    name: str
    host: str
    collections: list[str]


class Database:
    """Holds the process-wide MongoClient.

    The client is created on first use and shared by every request; pooling
    is left to the driver. ``connect`` makes exactly one attempt.
    """

    def __init__(self, uri: str | None, name: str | None = None, timeout_ms: int = 5000) -> None:
        self.uri = uri
        self._name = name
        self._timeout_ms = timeout_ms
        self._client: MongoClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.mongo_uri, settings.mongo_db_name, settings.mongo_timeout_ms)

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            if not self.uri:
                raise ConfigurationError("MONGO_URI is not set.")
            try:
                self._client = MongoClient(
                    self.uri,
                    serverSelectionTimeoutMS=self._timeout_ms,
                    tz_aware=True,
                )
            except ValueError as exc:
                # URI parsing reports bad ports and unescaped credentials as ValueError.
                raise ConfigurationError(f"Invalid MONGO_URI: {exc}") from exc
        return self._client

    @property
    def db(self) -> MongoDatabase:
        if self._name:
            return self.client[self._name]
        return self.client.get_default_database(default=DEFAULT_DB_NAME)

    def connect(self) -> bool:
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            log_json(logger, "mongo_connection_failed", level=logging.ERROR, error=str(exc))
            return False
        log_json(logger, "mongo_connected", database=self.db.name)
        return True

    def describe(self) -> DatabaseInfo:
        database = self.db
        address = self.client.address
        host = f"{address[0]}:{address[1]}" if address else "unknown"
        return DatabaseInfo(
            name=database.name,
            host=host,
            collections=sorted(database.list_collection_names()),
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
