"""
Driver wiring for mongo_data_service.

Builds collection handles from DataServiceSettings and assembles DataService
instances from them. The service itself only ever sees collection handles, so
anything exposing the same methods can be passed in instead.
"""

from typing import Any, Dict, Iterable, Optional

from loguru import logger
from pymongo import AsyncMongoClient

from .config import DEFAULT_COLLECTION_KEY, DataServiceSettings, ServiceOptions, get_settings
from .exceptions import StoreConnectionError
from .service import DataService
from .utils import redact_uri


# Global client instance for reuse
_mongo_client: Optional[AsyncMongoClient] = None


def get_mongo_client(settings: Optional[DataServiceSettings] = None) -> AsyncMongoClient:
    """
    Get the shared async client, creating it on first use.
    
    The driver connects lazily, so this does not touch the network.
    
    Args:
        settings: Settings to build the client from (defaults to global settings)
        
    Returns:
        AsyncMongoClient: Shared client
        
    Raises:
        StoreConnectionError: If the client cannot be created
    """
    global _mongo_client
    
    if _mongo_client is None:
        settings = settings or get_settings()
        uri = redact_uri(settings.mongo_uri)
        try:
            _mongo_client = AsyncMongoClient(settings.mongo_uri, **settings.get_client_kwargs())
            logger.info(f"Mongo client initialized for {uri}")
        except Exception as e:
            logger.error(f"Failed to create Mongo client for {uri}: {str(e)}")
            raise StoreConnectionError(f"Failed to create Mongo client: {str(e)}", uri=uri)
    
    return _mongo_client


async def close_mongo_client() -> None:
    """Close the shared client, if one was created."""
    global _mongo_client
    
    if _mongo_client is not None:
        await _mongo_client.close()
        _mongo_client = None
        logger.info("Mongo client closed")


def get_collections(
    names: Iterable[str] = (),
    settings: Optional[DataServiceSettings] = None,
    client: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build collection handles keyed by logical name.
    
    The ``default`` key always maps to ``settings.default_collection``; every
    other name maps to the collection of the same name.
    
    Args:
        names: Extra collection names to include
        settings: Settings naming the database (defaults to global settings)
        client: Client to use (defaults to the shared client)
        
    Returns:
        Dict of collection handles
    """
    settings = settings or get_settings()
    client = client if client is not None else get_mongo_client(settings)
    database = client[settings.database_name]
    
    collections = {DEFAULT_COLLECTION_KEY: database[settings.default_collection]}
    for name in names:
        if name != DEFAULT_COLLECTION_KEY:
            collections[name] = database[name]
    return collections


def create_data_service(
    collections: Optional[Dict[str, Any]] = None,
    notification: Optional[Any] = None,
    settings: Optional[DataServiceSettings] = None,
) -> DataService:
    """
    Create a DataService from settings.
    
    Args:
        collections: Collection handles (defaults to ``get_collections()``)
        notification: Optional notification sink or callable
        settings: Settings to use (defaults to global settings)
        
    Returns:
        DataService instance
        
    Example:
        service = create_data_service(notification=QueueSink())
        # or, with handles from elsewhere
        service = create_data_service({"default": db["records"]})
    """
    settings = settings or get_settings()
    if collections is None:
        collections = get_collections(settings=settings)
    options = ServiceOptions.from_settings(settings, collections, notification)
    return DataService(options)
