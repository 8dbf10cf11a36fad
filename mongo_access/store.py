"""
mongo-access Store
Asynchronous CRUD facade over a MongoDB database, backed by motor.

Usage:
    from mongo_access import Store

    store = Store()
    await store.connect({"host": "mongodb://localhost:27017/app"})

    # Insert
    user = await store.insert_one("users", {"name": "Alice"})

    # Find
    same = await store.find("users", {"_id": str(user["_id"])}, limit=1)

    # Update
    await store.update_document("users", {**user, "age": 30})

    # Delete
    await store.remove("users", {"_id": user["_id"]})

    store.close()
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo import errors as mongo_errors
from pymongo.results import DeleteResult, UpdateResult

from .config import StoreConfig
from .errors import ConfigurationError, ConnectionError, IllegalStateError, StoreError, ValidationError
from .identifiers import ID_FIELD, get_bson_object_id, normalize_filter

SortSpec = Union[str, Mapping[str, int], Sequence[Tuple[str, int]]]


def page_window(documents: List[dict], page: int, limit: int) -> List[dict]:
    """Slice the 1-based ``page`` of size ``limit`` out of already fetched documents."""
    start = min(max((page - 1) * limit, 0), len(documents))
    end = min(max(page * limit, start), len(documents))
    return documents[start:end]


def _sort_pairs(sort: SortSpec) -> List[Tuple[str, int]]:
    if isinstance(sort, str):
        return [(sort, ASCENDING)]
    if isinstance(sort, Mapping):
        return list(sort.items())
    message = f"Sort must be a key, a mapping or a list of (key, direction) pairs, got {sort!r}"
    if not isinstance(sort, Sequence):
        raise ValidationError(message)
    pairs = []
    for pair in sort:
        if isinstance(pair, str) or not isinstance(pair, Sequence) or len(pair) != 2:
            raise ValidationError(message)
        pairs.append(tuple(pair))
    return pairs


def _require_mapping(value: Any, name: str) -> None:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{name} must be a mapping, got {type(value).__name__}")


class Store:
    """
    Holds one connection to a MongoDB database and exposes CRUD coroutines.

    A Store is either disconnected or connected. ``connect`` is the only way
    in and ``disconnect``/``close`` the only way out; every other operation
    raises IllegalStateError while disconnected.
    """

    def __init__(
        self,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
        logger: Optional[logging.Logger] = None,
    ):
        self._client_factory = client_factory
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._client = None
        self._db = None
        self._config: Optional[StoreConfig] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def database_name(self) -> Optional[str]:
        return self._db.name if self._db is not None else None

    # Connection lifecycle

    async def connect(self, settings: Union[Mapping[str, Any], StoreConfig]) -> "Store":
        """Open the connection described by ``settings``.

        Raises ConfigurationError for bad settings before touching the
        network, and ConnectionError when the server cannot be reached.
        """
        config = StoreConfig.from_settings(settings)
        if self.is_connected:
            raise IllegalStateError("Store is already connected; disconnect first")

        options: Dict[str, Any] = {"serverSelectionTimeoutMS": config.timeout_ms}
        if config.user:
            options["username"] = config.user
            options["password"] = config.password

        try:
            client = self._client_factory(config.host, **options)
            db = client.get_default_database(config.database)
        except mongo_errors.ConfigurationError as e:
            raise ConfigurationError(str(e)) from e

        try:
            await client.admin.command("ping")
        except mongo_errors.OperationFailure as e:
            if not config.user:
                client.close()
                self._log.error("Unable to connect to MongoDB: %s", e)
                raise ConnectionError(f"Unable to connect to MongoDB: {e}") from e
            self._log.error("Unable to authenticate MongoDB as '%s': %s", config.user, e)
            if config.strict_auth:
                client.close()
                raise ConnectionError(f"Unable to authenticate MongoDB as '{config.user}': {e}") from e
        except mongo_errors.PyMongoError as e:
            client.close()
            self._log.error("Unable to connect to MongoDB: %s", e)
            raise ConnectionError(f"Unable to connect to MongoDB: {e}") from e

        self._client = client
        self._db = db
        self._config = config
        self._log.info("Connected to MongoDB database '%s'", db.name)
        return self

    def disconnect(self) -> None:
        """Close the connection."""
        if not self.is_connected:
            raise IllegalStateError("Store is not connected")
        self._client.close()
        self._log.info("Disconnected from MongoDB database '%s'", self._db.name)
        self._client = None
        self._db = None
        self._config = None

    close = disconnect

    def collection(self, name: str) -> Any:
        """Get a motor collection by name."""
        if not self.is_connected:
            raise IllegalStateError(f"Store is not connected; cannot use collection '{name}'")
        return self._db[name]

    @contextmanager
    def _driver_call(self, operation: str, collection: str) -> Iterator[None]:
        try:
            yield
        except mongo_errors.PyMongoError as e:
            self._log.error("Error during %s on %s: %s", operation, collection, e)
            raise StoreError(operation, collection, str(e), getattr(e, "code", None)) from e

    # Read operations

    async def find(
        self,
        collection: str,
        filter: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        sort: Optional[SortSpec] = None,
        page: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> Union[dict, List[dict], None]:
        """
        Find documents matching a filter.

        With ``limit=1`` the single match (or None) is returned. With
        ``page`` and ``limit`` the fetched documents are windowed to that
        page; note the window lies inside the ``limit`` documents already
        fetched, so use ``skip`` to page across a whole collection.
        Otherwise the list of matches is returned, or None when empty.
        """
        query = normalize_filter(filter)
        sort_pairs = _sort_pairs(sort) if sort else None
        coll = self.collection(collection)

        with self._driver_call("find", collection):
            cursor = coll.find(query)
            if skip:
                cursor.skip(skip)
            if limit:
                cursor.limit(limit)
            if sort_pairs:
                cursor.sort(sort_pairs)
            documents = await cursor.to_list(length=None)

        if limit == 1:
            return documents[0] if documents else None
        if len(documents) > 1 and page is not None and limit:
            return page_window(documents, page, limit)
        return documents or None

    async def find_all(self, collection: str) -> List[dict]:
        """Load every document of a collection into memory."""
        coll = self.collection(collection)
        with self._driver_call("find_all", collection):
            return await coll.find().to_list(length=None)

    async def find_all_by_object(self, collection: str, where: Mapping[str, Any]) -> List[dict]:
        query = normalize_filter(where)
        coll = self.collection(collection)
        with self._driver_call("find_all_by_object", collection):
            return await coll.find(query).to_list(length=None)

    async def find_one_by_object(self, collection: str, where: Mapping[str, Any]) -> Optional[dict]:
        query = normalize_filter(where)
        coll = self.collection(collection)
        with self._driver_call("find_one_by_object", collection):
            return await coll.find_one(query)

    async def find_by_id(self, collection: str, id: Union[str, ObjectId]) -> Optional[dict]:
        object_id = get_bson_object_id(id)
        coll = self.collection(collection)
        with self._driver_call("find_by_id", collection):
            return await coll.find_one({ID_FIELD: object_id})

    # Write operations

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document and write the assigned ``_id`` back into it."""
        _require_mapping(document, "Document")
        coll = self.collection(collection)
        with self._driver_call("insert_one", collection):
            result = await coll.insert_one(document)
        document[ID_FIELD] = result.inserted_id
        return document

    add_entry = insert_one

    async def update_document(self, collection: str, document: Mapping[str, Any]) -> UpdateResult:
        """Replace the fields of a stored document with those of ``document``.

        ``document`` must carry an ``_id`` and is left untouched.
        """
        _require_mapping(document, "Document")
        if document.get(ID_FIELD) is None:
            raise ValidationError("Document must have an _id to be updated")

        fields = dict(document)
        object_id = get_bson_object_id(fields.pop(ID_FIELD))
        coll = self.collection(collection)
        with self._driver_call("update_document", collection):
            return await coll.update_one({ID_FIELD: object_id}, {"$set": fields})

    async def update_entry(
        self, collection: str, id: Union[str, ObjectId], document: Dict[str, Any]
    ) -> Union[str, ObjectId]:
        """Set the fields of ``document`` on the entry with identifier ``id``.

        Unlike update_document this removes ``_id`` from the caller's
        document. Returns ``id``.
        """
        _require_mapping(document, "Document")
        object_id = get_bson_object_id(id)
        document.pop(ID_FIELD, None)
        coll = self.collection(collection)
        with self._driver_call("update_entry", collection):
            await coll.update_one({ID_FIELD: object_id}, {"$set": document})
        return id

    async def update(
        self, collection: str, filter: Mapping[str, Any], update_spec: Mapping[str, Any]
    ) -> UpdateResult:
        """Apply update operators to every document matching ``filter``."""
        _require_mapping(update_spec, "Update specification")
        query = normalize_filter(filter)
        coll = self.collection(collection)
        with self._driver_call("update", collection):
            return await coll.update_many(query, dict(update_spec))

    async def pull(
        self, collection: str, filter: Mapping[str, Any], pull_spec: Mapping[str, Any]
    ) -> UpdateResult:
        """Remove array elements matching ``pull_spec`` from every matching document."""
        _require_mapping(pull_spec, "Pull specification")
        query = normalize_filter(filter)
        coll = self.collection(collection)
        with self._driver_call("pull", collection):
            return await coll.update_many(query, {"$pull": dict(pull_spec)})

    # Delete operations

    async def remove(self, collection: str, filter: Mapping[str, Any], just_one: bool = True) -> DeleteResult:
        """Delete one matching document, or all of them when ``just_one`` is False."""
        query = normalize_filter(filter)
        coll = self.collection(collection)
        with self._driver_call("remove", collection):
            if just_one is False:
                return await coll.delete_many(query)
            return await coll.delete_one(query)

    async def remove_entry(self, collection: str, id: Union[str, ObjectId]) -> DeleteResult:
        object_id = get_bson_object_id(id)
        coll = self.collection(collection)
        with self._driver_call("remove_entry", collection):
            return await coll.delete_one({ID_FIELD: object_id})

    @staticmethod
    def get_bson_object_id(value: Union[str, ObjectId]) -> ObjectId:
        return get_bson_object_id(value)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        if self.is_connected:
            self.close()

    def __repr__(self):
        if self.is_connected:
            return f"Store(database='{self._db.name}', connected=True)"
        return "Store(connected=False)"
