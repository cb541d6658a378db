"""
MongoDB-backed key-value storage for map versions and version changes.

Each namespace is a collection of ``{_id: key, value: str, metadata: dict}``
documents. The version store and change log are thin views on top of two
namespaces.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from utilities.dates import get_date_one_day_before, get_today_date
from utilities.exceptions import StoreError

from .models import KVEntry, LatestVersion, VersionChange, VersionHistoryEntry

logger = structlog.get_logger(__name__)

LAST_CHANGE_KEY = "last_change"

# Date keys start with the millennium digit; this keeps the pointer key out of listings.
HISTORY_KEY_PREFIX = "2"


class KVNamespace:
    """
    String key-value namespace stored in a single MongoDB collection.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self.name = getattr(collection, "name", "unknown")

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None."""
        try:
            document = await self.collection.find_one({"_id": key})
        except PyMongoError as e:
            logger.error("Failed to read key", namespace=self.name, key=key, error=str(e))
            raise StoreError(f"Failed to read {key!r} from {self.name}: {e}") from e
        return document["value"] if document else None

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the JSON-decoded value stored under ``key`` or None."""
        value = await self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError as e:
            raise StoreError(f"Value of {key!r} in {self.name} is not valid JSON") from e

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """Fetch several keys in one round-trip; absent keys map to None."""
        keys = list(keys)
        result: Dict[str, Optional[str]] = {key: None for key in keys}
        try:
            async for document in self.collection.find({"_id": {"$in": keys}}):
                result[document["_id"]] = document["value"]
        except PyMongoError as e:
            logger.error("Failed to read keys", namespace=self.name, keys=keys, error=str(e))
            raise StoreError(f"Failed to read {keys!r} from {self.name}: {e}") from e
        return result

    async def put(self, key: str, value: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Insert or replace ``key``."""
        document = {"_id": key, "value": value, "metadata": metadata}
        try:
            await self.collection.replace_one({"_id": key}, document, upsert=True)
        except PyMongoError as e:
            logger.error("Failed to write key", namespace=self.name, key=key, error=str(e))
            raise StoreError(f"Failed to write {key!r} to {self.name}: {e}") from e
        logger.debug("Stored key", namespace=self.name, key=key)

    async def list(self, prefix: str = "") -> List[KVEntry]:
        """List keys starting with ``prefix`` in ascending key order."""
        query = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
        entries = []
        try:
            cursor = self.collection.find(query, {"value": 0}).sort("_id", 1)
            async for document in cursor:
                entries.append(KVEntry(name=document["_id"], metadata=document.get("metadata")))
        except PyMongoError as e:
            logger.error("Failed to list keys", namespace=self.name, prefix=prefix, error=str(e))
            raise StoreError(f"Failed to list {self.name}: {e}") from e
        return entries


class MongoKVManager:
    """
    Async MongoDB manager owning the client and handing out namespaces.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        # Motor connects lazily; no I/O happens until the first operation.
        self.client: AsyncIOMotorClient = AsyncIOMotorClient(connection_url)
        self.database: AsyncIOMotorDatabase = self.client[database_name]

    async def connect(self) -> None:
        """Verify the connection to MongoDB."""
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise StoreError(f"Failed to connect to MongoDB: {e}") from e

        logger.info("Successfully connected to MongoDB", database=self.database_name)

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def namespace(self, name: str) -> KVNamespace:
        return KVNamespace(self.database[name])

    async def health_check(self, *collections: str) -> Dict[str, Any]:
        """
        Perform database health check.

        Args:
            collections: Collection names whose key counts are reported

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            counts = {
                name: await self.database[name].count_documents({})
                for name in collections
            }
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

        return {"status": "healthy", "database": self.database_name, "counts": counts}


class VersionStore:
    """Date -> observed map version."""

    def __init__(self, namespace: KVNamespace):
        self.namespace = namespace

    async def get_latest_version(self, today: Optional[str] = None) -> Optional[LatestVersion]:
        """
        Return the version stored for today, falling back to yesterday.

        Args:
            today: Override for today's date (YYYY-MM-DD)

        Returns:
            LatestVersion for the first date with a value, or None
        """
        today = today or get_today_date()
        dates = [today, get_date_one_day_before(today)]
        versions = await self.namespace.get_many(dates)

        for date in dates:
            version = versions.get(date)
            if version:
                return LatestVersion(date=date, version=version)

        return None

    async def put(self, date: str, version: str) -> None:
        await self.namespace.put(date, version)


class ChangeLogStore:
    """Date -> version change record, plus a pointer to the latest change."""

    def __init__(self, namespace: KVNamespace):
        self.namespace = namespace

    async def record_change(self, date: str, change: VersionChange) -> None:
        """Store ``change`` under ``date`` and point ``last_change`` at it."""
        payload = change.model_dump()
        await self.namespace.put(date, json.dumps(payload), metadata=payload)
        await self.namespace.put(LAST_CHANGE_KEY, date)
        logger.info(
            "Recorded map version change",
            date=date,
            from_version=change.from_version,
            to_version=change.to_version
        )

    async def get_latest_change(self) -> Optional[Tuple[str, VersionChange]]:
        """Follow the pointer key to the most recent change record."""
        date = await self.namespace.get(LAST_CHANGE_KEY)
        if not date:
            return None

        record = await self.namespace.get_json(date)
        if not record:
            logger.warning("Latest change pointer refers to a missing record", date=date)
            return None

        try:
            return date, VersionChange(**record)
        except ValidationError as e:
            logger.error("Malformed change record", date=date, error=str(e))
            raise StoreError(f"Change record {date!r} in {self.namespace.name} is malformed") from e

    async def list_history(self) -> List[VersionHistoryEntry]:
        entries = await self.namespace.list(prefix=HISTORY_KEY_PREFIX)
        return [
            VersionHistoryEntry(
                date=entry.name,
                from_version=(entry.metadata or {}).get("from_version") or None,
                to_version=(entry.metadata or {}).get("to_version") or None,
            )
            for entry in entries
        ]


class MapVersionStores:
    """The two namespaces used by the monitor, bundled for explicit passing."""

    def __init__(self, versions: VersionStore, changes: ChangeLogStore):
        self.versions = versions
        self.changes = changes

    @classmethod
    def from_manager(
        cls,
        manager: MongoKVManager,
        versions_collection: str = "map_versions",
        changes_collection: str = "map_version_changes"
    ) -> "MapVersionStores":
        return cls(
            VersionStore(manager.namespace(versions_collection)),
            ChangeLogStore(manager.namespace(changes_collection)),
        )
