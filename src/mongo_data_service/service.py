"""
High-level DataService API for mongo_data_service.

This module provides the DataService class, the record access layer that sits
directly on top of injected collection handles. It normalizes identifiers into
store queries, assigns store-independent ids on insert, and reports every
successful write to the configured notification sink.
"""

import asyncio
import inspect
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from .config import DEFAULT_COLLECTION_KEY, ServiceOptions, build_options
from .exceptions import CollectionNotFoundError, ConfigurationError
from .ids import INDEPENDENT_ID_FIELD, NATIVE_ID_FIELD, generate_independent_id
from .notifications import ChangeKind
from .queries import create_id_query, match_nothing, native_id_of
from .results import RemoveOutcome, WriteOutcome
from .utils import timing_context


class DataService:
    """
    Record access over a set of document collections.

    Records are plain dicts. A record that already carries ``_id`` is saved by
    replacing the stored copy (upserting if it is gone); one without ``_id`` is
    inserted, after being given an independent ``id`` when that is enabled.

    Example:
        service = DataService(collections={"default": db["records"]})
        outcome = await service.save({"msg": "hello"})
        record = await service.fetch_one(outcome.record["id"])
    """

    def __init__(self, options: Optional[ServiceOptions] = None, **kwargs: Any):
        """
        Initialize DataService.

        Args:
            options: Validated service options
            **kwargs: Fields of ServiceOptions, used when ``options`` is not given

        Raises:
            ConfigurationError: If both forms are given or the options are invalid
        """
        if options is not None and kwargs:
            raise ConfigurationError(
                "Pass either a ServiceOptions instance or keyword options, not both",
                details={"keywords": sorted(kwargs)},
            )
        self.options = options if options is not None else build_options(**kwargs)
        self.log = logger.bind(service=self.options.service_name)

        if DEFAULT_COLLECTION_KEY not in self.options.collections:
            self.log.warning(
                f"DataService '{self.service_name}' has no '{DEFAULT_COLLECTION_KEY}' collection; "
                "calls must name a collection explicitly"
            )
        self.log.info(
            f"DataService initialized with collections: {', '.join(self.collection_names) or 'none'}"
        )

    @property
    def service_name(self) -> str:
        return self.options.service_name

    @property
    def use_independent_ids(self) -> bool:
        return self.options.use_independent_ids

    @property
    def event_name(self) -> str:
        return self.options.event_name

    @property
    def collection_names(self) -> List[str]:
        return list(self.options.collections)

    def get_collection(self, name: str = DEFAULT_COLLECTION_KEY) -> Any:
        """
        Look up a configured collection handle.

        Raises:
            CollectionNotFoundError: If no collection is configured under ``name``
        """
        try:
            return self.options.collections[name]
        except KeyError:
            raise CollectionNotFoundError(
                f"Collection '{name}' is not configured for service '{self.service_name}'",
                collection=name,
            )

    def create_id_query(self, id_or_query: Any) -> Dict[str, Any]:
        """
        Create a query selecting records by ID, honouring this service's
        independent-id setting. See ``queries.create_id_query``.
        """
        return create_id_query(id_or_query, self.use_independent_ids)

    def _target_query(self, id_or_query: Any) -> Dict[str, Any]:
        # An absent id selects nothing; only fetch treats None as "everything"
        if id_or_query is None:
            return match_nothing()
        return self.create_id_query(id_or_query)

    # ==========================================
    # Public operations
    # ==========================================

    async def fetch(self, query: Any = None, collection: str = DEFAULT_COLLECTION_KEY) -> List[Dict[str, Any]]:
        """
        Fetch every record matching a query.

        Args:
            query: Store filter; ``None`` or ``{}`` matches everything. Non-mapping
                values are treated as identifiers and normalized.
            collection: Logical collection name

        Returns:
            List of records after ``process_fetched``; empty if nothing matched
        """
        handle = self.get_collection(collection)
        records = await self._fetch(handle, self.create_id_query(query), collection)
        processed = self.process_fetched(records)
        if inspect.isawaitable(processed):
            processed = await processed
        return processed

    async def fetch_one(self, id_or_query: Any, collection: str = DEFAULT_COLLECTION_KEY) -> Optional[Dict[str, Any]]:
        """
        Fetch the first record matching an ID or query.

        ``None`` matches nothing, so an unsaved record's missing ``_id`` never
        resolves to an arbitrary record.

        Returns:
            The record, or None if nothing matched
        """
        records = await self.fetch(self._target_query(id_or_query), collection=collection)
        if not records:
            return None
        return records[0]

    async def save(self, record: Dict[str, Any], collection: str = DEFAULT_COLLECTION_KEY) -> WriteOutcome:
        """
        Insert or replace a record.

        The record dict is updated in place with any identity assigned during
        the save and is returned on the outcome.

        Args:
            record: Record to save
            collection: Logical collection name

        Returns:
            WriteOutcome describing the path taken
        """
        handle = self.get_collection(collection)
        outcome = await self._save(handle, record, collection)
        self._notify(outcome.record, outcome.kind)
        return outcome

    async def save_many(
        self,
        records: Iterable[Dict[str, Any]],
        collection: str = DEFAULT_COLLECTION_KEY,
    ) -> List[Union[WriteOutcome, BaseException]]:
        """
        Save several records concurrently.

        Each record is saved independently; ordering of the underlying writes is
        not defined. A failed save does not stop the others.

        Returns:
            One entry per input record, in input order: the WriteOutcome, or the
            exception that record's save raised
        """
        return await asyncio.gather(
            *(self.save(record, collection=collection) for record in records),
            return_exceptions=True,
        )

    async def remove(self, id_or_query: Any, collection: str = DEFAULT_COLLECTION_KEY) -> RemoveOutcome:
        """
        Remove every record matching an ID or query.

        A single delete notification carrying the query is sent once the
        deletion completes, however many records it removed. ``None`` matches
        nothing; pass ``{}`` to clear the collection.

        Returns:
            RemoveOutcome with the deleted count
        """
        handle = self.get_collection(collection)
        query = self._target_query(id_or_query)
        outcome = await self._remove(handle, query, collection)
        self._notify(query, ChangeKind.DELETE)
        return outcome

    def process_fetched(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Post-process fetched records before they are returned.

        Subclasses override this to shape results (for example into model
        objects). May also be a coroutine function.
        """
        return records

    # ==========================================
    # Store access
    # ==========================================

    async def _fetch(self, handle: Any, query: Dict[str, Any], collection: str) -> List[Dict[str, Any]]:
        try:
            with timing_context(f"fetch(collection={collection})", self.log):
                return await handle.find(query).to_list(None)
        except Exception as e:
            self.log.error(f"Fetch from '{collection}' failed for query {query}: {str(e)}")
            raise

    async def _save(self, handle: Any, record: Dict[str, Any], collection: str) -> WriteOutcome:
        native_id = native_id_of(record)
        try:
            if native_id is not None:
                with timing_context(f"replace(collection={collection}, _id={native_id})", self.log):
                    result = await handle.replace_one({NATIVE_ID_FIELD: native_id}, record, upsert=True)
                return WriteOutcome(record, ChangeKind.UPDATE, native_id, result)

            # Empty placeholder identity; let the store assign one
            record.pop(NATIVE_ID_FIELD, None)
            if self.use_independent_ids and INDEPENDENT_ID_FIELD not in record:
                record[INDEPENDENT_ID_FIELD] = generate_independent_id()
            with timing_context(f"insert(collection={collection})", self.log):
                result = await handle.insert_one(record)
            record[NATIVE_ID_FIELD] = result.inserted_id
            return WriteOutcome(record, ChangeKind.CREATE, result.inserted_id, result)
        except Exception as e:
            self.log.error(f"Save to '{collection}' failed for _id={native_id}: {str(e)}")
            raise

    async def _remove(self, handle: Any, query: Dict[str, Any], collection: str) -> RemoveOutcome:
        try:
            with timing_context(f"remove(collection={collection})", self.log):
                result = await handle.delete_many(query)
        except Exception as e:
            self.log.error(f"Remove from '{collection}' failed for query {query}: {str(e)}")
            raise

        deleted_count = result.deleted_count
        self.log.info(f"Removed {deleted_count} record(s) from '{collection}'")
        return RemoveOutcome(query, deleted_count, result)

    def _notify(self, payload: Any, kind: ChangeKind) -> None:
        sink = self.options.notification
        if sink is None:
            return
        try:
            sink.emit(self.event_name, payload, kind)
        except Exception as e:
            # Write already applied; listener errors are only logged
            self.log.error(f"Notification sink failed for {kind.value} event '{self.event_name}': {str(e)}")
