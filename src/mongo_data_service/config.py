"""
Configuration management for mongo_data_service.

Two layers live here:

- ``DataServiceSettings``: environment / ``.env`` driven deployment settings
  (where the store lives, logging, default service behaviour).
- ``ServiceOptions``: the explicit, validated construction struct a
  ``DataService`` is built from (collection handles, notification sink,
  event label, independent-id flag).
"""

from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .notifications import CallbackSink, NotificationSink


DEFAULT_EVENT_NAME = "object-change"
DEFAULT_SERVICE_NAME = "data-service"
DEFAULT_COLLECTION_KEY = "default"

# Capabilities a collection handle must expose to back a DataService
REQUIRED_COLLECTION_METHODS = ("find", "insert_one", "replace_one", "delete_many")


class DataServiceSettings(BaseSettings):
    """Deployment settings for mongo_data_service, read from DATA_SERVICE_* variables."""
    
    model_config = SettingsConfigDict(
        env_prefix="DATA_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Store Configuration
    mongo_uri: str = Field(default="mongodb://localhost:27017")
    database_name: str = Field(default="test")
    default_collection: str = Field(default="default")
    server_selection_timeout_ms: int = Field(default=5000)
    
    # Service Configuration
    service_name: str = Field(default=DEFAULT_SERVICE_NAME)
    event_name: str = Field(default=DEFAULT_EVENT_NAME)
    use_independent_ids: bool = Field(default=True)
    
    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
    
    # Environment
    environment: str = Field(default="dev")
    
    @field_validator("mongo_uri")
    @classmethod
    def validate_mongo_uri(cls, v):
        """Validate the connection string scheme."""
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("Mongo URI must start with mongodb:// or mongodb+srv://")
        return v
    
    @field_validator("database_name", "default_collection", "event_name")
    @classmethod
    def validate_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Value must not be empty")
        return v.strip()
    
    @field_validator("server_selection_timeout_ms")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Server selection timeout must be positive")
        return v
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()
    
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = ["dev", "test", "staging", "prod"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()
    
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"
    
    def get_client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for constructing the driver client."""
        return {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "appname": self.service_name,
        }


class ServiceOptions(BaseModel):
    """
    Construction options for a DataService.
    
    Attributes:
        service_name: Name used in log records
        collections: Collection handles keyed by logical name. ``default`` backs
            the calls that don't name a collection.
        notification: Sink receiving change notifications, or a plain callable
            taking ``(payload, kind)``
        event_name: Label passed to the sink with every notification
        use_independent_ids: Assign a store-independent ``id`` to new records
    """
    
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)
    
    service_name: str = DEFAULT_SERVICE_NAME
    collections: Dict[str, Any] = Field(default_factory=dict)
    notification: Optional[Any] = None
    event_name: str = DEFAULT_EVENT_NAME
    use_independent_ids: bool = True
    
    @field_validator("collections")
    @classmethod
    def validate_collections(cls, v):
        for name, handle in v.items():
            missing = [
                method for method in REQUIRED_COLLECTION_METHODS
                if not callable(getattr(handle, method, None))
            ]
            if missing:
                raise ValueError(f"Collection '{name}' is missing required methods: {missing}")
        return v
    
    @field_validator("notification")
    @classmethod
    def validate_notification(cls, v):
        if v is None or isinstance(v, NotificationSink):
            return v
        if callable(getattr(v, "emit", None)):
            return v
        if callable(v):
            return CallbackSink(v)
        raise ValueError("Notification must expose emit(event_name, payload, kind) or be callable")
    
    @field_validator("event_name")
    @classmethod
    def validate_event_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Event name must not be empty")
        return v.strip()
    
    @classmethod
    def from_settings(
        cls,
        settings: DataServiceSettings,
        collections: Dict[str, Any],
        notification: Optional[Any] = None,
    ) -> "ServiceOptions":
        """
        Build options from deployment settings plus runtime collaborators.
        
        Args:
            settings: Loaded settings
            collections: Collection handles keyed by logical name
            notification: Optional notification sink or callable
            
        Returns:
            ServiceOptions instance
            
        Raises:
            ConfigurationError: If the resulting options are invalid
        """
        return build_options(
            service_name=settings.service_name,
            collections=collections,
            notification=notification,
            event_name=settings.event_name,
            use_independent_ids=settings.use_independent_ids,
        )


def build_options(**kwargs: Any) -> ServiceOptions:
    """
    Validate keyword arguments into ServiceOptions.
    
    Raises:
        ConfigurationError: If validation fails
    """
    from .exceptions import ConfigurationError
    
    try:
        return ServiceOptions(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        config_key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(f"Invalid service options: {first.get('msg')}", config_key=config_key)


def load_settings(config_file: Optional[str] = None) -> DataServiceSettings:
    """
    Load settings from environment variables and optional .env file.
    
    Args:
        config_file: Optional path to .env file
        
    Returns:
        DataServiceSettings instance
        
    Raises:
        ConfigurationError: If the config file is missing or values are invalid
    """
    from .exceptions import ConfigurationError
    
    if config_file:
        if not Path(config_file).exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        load_dotenv(config_file)
    elif Path(".env").exists():
        load_dotenv(".env")
    
    try:
        settings = DataServiceSettings()
        logger.info(f"Settings loaded successfully for environment: {settings.environment}")
        return settings
    except ValidationError as e:
        raise ConfigurationError(f"Failed to load settings: {str(e)}")


def setup_logging(settings: DataServiceSettings) -> None:
    """
    Setup logging based on settings.
    
    Args:
        settings: DataServiceSettings instance
    """
    logger.remove()
    
    logger.add(
        sink=lambda message: print(message, end=""),
        format=settings.log_format,
        level=settings.log_level,
        colorize=True,
    )
    
    if settings.is_production():
        logger.add(
            sink="logs/mongo_data_service.log",
            format=settings.log_format,
            level=settings.log_level,
            rotation="10 MB",
            retention="30 days",
            compression="gz",
        )


# Global settings instance
_settings: Optional[DataServiceSettings] = None


def get_settings() -> DataServiceSettings:
    """
    Get the global settings instance, loading it on first use.
    
    Returns:
        DataServiceSettings: Global settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
        setup_logging(_settings)
    return _settings


def set_settings(settings: DataServiceSettings) -> None:
    """
    Set the global settings instance.
    
    Args:
        settings: DataServiceSettings instance to set as global
    """
    global _settings
    _settings = settings
    setup_logging(settings)
