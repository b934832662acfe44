"""
Mongo Data Service - async record access over MongoDB-style collections.

This library provides generic fetch/save/remove operations, ID query
normalization across store-native and store-independent identities, and
change notifications.

Usage:
    from mongo_data_service import DataService, QueueSink

    service = DataService(collections={"default": db["records"]}, notification=QueueSink())
    outcome = await service.save({"msg": "hello"})
    record = await service.fetch_one(outcome.record["_id"])
"""

from .service import DataService
from .client import create_data_service, get_mongo_client, get_collections, close_mongo_client
from .queries import create_id_query
from .ids import generate_independent_id, is_independent_id, is_native_id_string
from .notifications import (
    ChangeKind,
    ChangeNotification,
    NotificationSink,
    CallbackSink,
    QueueSink,
    RecordingSink,
)
from .results import WriteOutcome, RemoveOutcome

from .config import DataServiceSettings, ServiceOptions, get_settings, load_settings
from .exceptions import (
    DataServiceError,
    ConfigurationError,
    CollectionNotFoundError,
    StoreConnectionError,
)

__version__ = "0.1.0"

__all__ = [
    # Main API Classes
    "DataService",
    "WriteOutcome",
    "RemoveOutcome",
    
    # Factory Functions
    "create_data_service",
    "get_mongo_client",
    "get_collections",
    "close_mongo_client",
    
    # Queries and IDs
    "create_id_query",
    "generate_independent_id",
    "is_independent_id",
    "is_native_id_string",
    
    # Notifications
    "ChangeKind",
    "ChangeNotification",
    "NotificationSink",
    "CallbackSink",
    "QueueSink",
    "RecordingSink",
    
    # Configuration
    "DataServiceSettings",
    "ServiceOptions",
    "get_settings",
    "load_settings",
    
    # Exceptions
    "DataServiceError",
    "ConfigurationError",
    "CollectionNotFoundError",
    "StoreConnectionError",
]
