"""
Report persistence.

Records are kept in Redis when a connection URL is configured and
reachable, otherwise in an in-process dictionary with the same semantics.
Each report type lives in its own collection; a record is stored as one JSON
value under ``{collection}:{id}`` and the collection keeps an
insertion-ordered id list under ``{collection}:ids``.

Concurrent updates to the same record are last-write-wins.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

import redis
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from siteinspect.core.config import settings
from siteinspect.core.errors import (
    NotFoundError,
    PersistenceError,
    ValidationError,
    validation_error_from_pydantic,
)
from siteinspect.models.reports import REPORT_SCHEMAS, ReportId, ReportKind, ReportSchema

logger = logging.getLogger(__name__)

FieldInput = Union[Mapping[str, Any], BaseModel]


class RecordStorage:
    """Redis-backed JSON record storage with an in-memory fallback."""

    def __init__(self, redis_url: Optional[str] = None):
        """
        Initialize record storage.

        Args:
            redis_url: Redis connection URL. Falls back to in-memory storage
                when not provided or when the server cannot be reached.
        """
        self.redis_url = redis_url
        self.client: Optional[redis.Redis] = None
        self.use_fallback = False

        # collection -> {record_id: json}; dicts keep insertion order
        self._fallback: Dict[str, Dict[str, str]] = {}

        if self.redis_url:
            try:
                self.client = redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                self.client.ping()
                logger.info("Successfully connected to Redis")
            except RedisError as e:
                logger.warning(f"Failed to connect to Redis: {e}. Using in-memory fallback.")
                self.client = None
                self.use_fallback = True
        else:
            logger.warning("No Redis URL provided. Using in-memory fallback storage.")
            self.use_fallback = True

    @staticmethod
    def _key(collection: str, record_id: str) -> str:
        return f"{collection}:{record_id}"

    @staticmethod
    def _index_key(collection: str) -> str:
        return f"{collection}:ids"

    def insert(self, collection: str, record_id: str, data: Dict[str, Any]) -> None:
        payload = json.dumps(data)
        try:
            if self.use_fallback:
                self._fallback.setdefault(collection, {})[record_id] = payload
                return

            pipe = self.client.pipeline()
            pipe.set(self._key(collection, record_id), payload)
            pipe.rpush(self._index_key(collection), record_id)
            pipe.execute()
        except RedisError as e:
            logger.error(f"Error inserting {collection}/{record_id}: {e}")
            raise PersistenceError("Failed to save report", operation="insert") from e

    def fetch(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            if self.use_fallback:
                data = self._fallback.get(collection, {}).get(record_id)
            else:
                data = self.client.get(self._key(collection, record_id))
        except RedisError as e:
            logger.error(f"Error fetching {collection}/{record_id}: {e}")
            raise PersistenceError("Failed to fetch report", operation="fetch") from e
        return json.loads(data) if data else None

    def fetch_all(self, collection: str) -> List[Dict[str, Any]]:
        """Return every record of a collection in insertion order."""
        try:
            if self.use_fallback:
                values = list(self._fallback.get(collection, {}).values())
            else:
                ids = self.client.lrange(self._index_key(collection), 0, -1)
                if not ids:
                    return []
                values = self.client.mget([self._key(collection, rid) for rid in ids])
        except RedisError as e:
            logger.error(f"Error listing {collection}: {e}")
            raise PersistenceError("Failed to fetch reports", operation="list") from e
        return [json.loads(value) for value in values if value]

    def replace(self, collection: str, record_id: str, data: Dict[str, Any]) -> bool:
        """
        Overwrite an existing record.

        Returns:
            False if no record with this id exists
        """
        payload = json.dumps(data)
        try:
            if self.use_fallback:
                records = self._fallback.get(collection, {})
                if record_id not in records:
                    return False
                records[record_id] = payload
                return True

            # xx: only set if the key already exists
            return bool(self.client.set(self._key(collection, record_id), payload, xx=True))
        except RedisError as e:
            logger.error(f"Error replacing {collection}/{record_id}: {e}")
            raise PersistenceError("Failed to update report", operation="update") from e

    def remove(self, collection: str, record_id: str) -> bool:
        """
        Delete a record.

        Returns:
            False if no record with this id exists
        """
        try:
            if self.use_fallback:
                return self._fallback.get(collection, {}).pop(record_id, None) is not None

            pipe = self.client.pipeline()
            pipe.delete(self._key(collection, record_id))
            pipe.lrem(self._index_key(collection), 0, record_id)
            deleted, _ = pipe.execute()
            return deleted > 0
        except RedisError as e:
            logger.error(f"Error deleting {collection}/{record_id}: {e}")
            raise PersistenceError("Failed to delete report", operation="delete") from e


class ReportStore:
    """
    Collection of one report type.

    Identifiers are generated here and handed out as opaque ``ReportId``
    values; callers never construct them.
    """

    def __init__(self, schema: ReportSchema, storage: RecordStorage):
        self.schema = schema
        self.storage = storage
        self._aliases = {
            name: info.alias or name for name, info in schema.fields_model.model_fields.items()
        }

    @property
    def collection(self) -> str:
        return self.schema.collection

    def _wire_fields(self, fields: FieldInput) -> Dict[str, Any]:
        """Normalize input to wire (camelCase) keys, dropping unmodeled keys."""
        if isinstance(fields, BaseModel):
            return fields.model_dump(mode="json", by_alias=True, exclude_unset=True)
        wire: Dict[str, Any] = {}
        for key, value in fields.items():
            alias = self._aliases.get(key, key)
            if alias in self._aliases.values():
                wire[alias] = value
        return wire

    def _validate(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            model = self.schema.fields_model.model_validate(data)
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e) from e
        return model.model_dump(mode="json", by_alias=True)

    def validate_fields(self, fields: FieldInput) -> Dict[str, Any]:
        """
        Validate a complete set of report fields without storing them.

        Returns:
            The normalized values keyed by wire name

        Raises:
            ValidationError: If a field is missing or invalid
        """
        return self._validate(self._wire_fields(fields))

    def _to_record(self, data: Dict[str, Any]) -> BaseModel:
        return self.schema.record_model.model_validate(data)

    def create(self, fields: FieldInput, document: Optional[str]) -> BaseModel:
        """
        Insert a new report.

        Args:
            fields: Report values, keyed by wire or attribute names
            document: Stored document path; required at creation

        Returns:
            The stored record including its new id

        Raises:
            ValidationError: If a field is missing or invalid, or no document
        """
        if not document:
            raise ValidationError("A document file is required", field="document")

        record = self.validate_fields(fields)
        record_id = ReportId(uuid4().hex)
        record["id"] = record_id
        record["document"] = document
        if "created_at" in self.schema.record_model.model_fields:
            record["createdAt"] = datetime.now(timezone.utc).isoformat()

        self.storage.insert(self.collection, record_id, record)
        logger.info(f"Created {self.schema.kind.value} report {record_id}")
        return self._to_record(record)

    def list(self) -> List[BaseModel]:
        return [self._to_record(data) for data in self.storage.fetch_all(self.collection)]

    def get_by_id(self, report_id: str) -> BaseModel:
        data = self.storage.fetch(self.collection, report_id)
        if data is None:
            raise NotFoundError(report_id=report_id, collection=self.collection)
        return self._to_record(data)

    def validate_update(self, report_id: str, fields: FieldInput) -> Dict[str, Any]:
        """
        Merge a partial update into the stored report and validate the result
        without saving it.

        Returns:
            The merged record keyed by wire name

        Raises:
            NotFoundError: If no report has this id
            ValidationError: If the merged values are invalid
        """
        existing = self.storage.fetch(self.collection, report_id)
        if existing is None:
            raise NotFoundError(report_id=report_id, collection=self.collection)

        record = dict(existing)
        record.update(self._validate({**existing, **self._wire_fields(fields)}))
        return record

    def update_by_id(
        self,
        report_id: str,
        fields: FieldInput,
        document: Optional[str] = None,
    ) -> BaseModel:
        """
        Apply a partial update to a report.

        Only modeled fields present in ``fields`` change. The document path is
        replaced only when a new one is given.

        Raises:
            NotFoundError: If no report has this id
            ValidationError: If the merged values are invalid
        """
        record = self.validate_update(report_id, fields)
        if document:
            record["document"] = document

        if not self.storage.replace(self.collection, report_id, record):
            raise NotFoundError(report_id=report_id, collection=self.collection)

        logger.info(f"Updated {self.schema.kind.value} report {report_id}")
        return self._to_record(record)

    def delete_by_id(self, report_id: str) -> None:
        if not self.storage.remove(self.collection, report_id):
            raise NotFoundError(report_id=report_id, collection=self.collection)
        logger.info(f"Deleted {self.schema.kind.value} report {report_id}")


# Global singleton instances
_storage: Optional[RecordStorage] = None
_stores: Dict[ReportKind, ReportStore] = {}


def get_storage() -> RecordStorage:
    """Get or create the global record storage."""
    global _storage
    if _storage is None:
        _storage = RecordStorage(settings.redis_url)
    return _storage


def get_report_store(kind: ReportKind) -> ReportStore:
    """Get the store for one report type, bound to the global storage."""
    store = _stores.get(kind)
    if store is None or store.storage is not get_storage():
        store = ReportStore(REPORT_SCHEMAS[kind], get_storage())
        _stores[kind] = store
    return store


def reset_storage(storage: Optional[RecordStorage] = None) -> RecordStorage:
    """Replace the global storage (used at startup and by tests)."""
    global _storage
    _storage = storage or RecordStorage(settings.redis_url)
    _stores.clear()
    return _storage
