"""
Custom exceptions for mongo_data_service.

Store-operation failures raised by the driver are not wrapped here; the
service logs them and re-raises them unchanged. These exceptions cover the
errors that originate in this library itself.
"""

from typing import Optional, Dict, Any


class DataServiceError(Exception):
    """Base exception for all mongo_data_service errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)
    
    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} (Details: {details_str})"
        return self.message


class ConfigurationError(DataServiceError):
    """Raised when service options or settings are missing or invalid."""
    
    def __init__(self, message: str, config_key: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.config_key = config_key
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details)


class CollectionNotFoundError(DataServiceError):
    """Raised when an operation names a collection the service was not given."""
    
    def __init__(self, message: str, collection: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.collection = collection
        details = details or {}
        if collection:
            details["collection"] = collection
        super().__init__(message, details)


class StoreConnectionError(DataServiceError):
    """Raised when a driver client cannot be created from settings."""
    
    def __init__(self, message: str, uri: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.uri = uri
        details = details or {}
        if uri:
            details["uri"] = uri
        super().__init__(message, details)
