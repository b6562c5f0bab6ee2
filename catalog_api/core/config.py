# Settings management (reads env vars/secrets)
# catalog_api/core/config.py

import json
import logging
import os
from functools import lru_cache
from typing import Annotated, List, Optional, Union

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables or .env file.
    """
    # --- Project Info ---
    PROJECT_NAME: str = Field("Movie Catalog API", validation_alias="PROJECT_NAME")
    API_V1_STR: str = Field("/api", validation_alias="API_V1_STR") # Base path for API endpoints
    VERSION: str = Field("1.0.0", validation_alias="APP_VERSION")
    PORT: int = Field(8080, validation_alias="PORT")

    # --- Logging ---
    LOG_LEVEL: str = Field("INFO", validation_alias="LOG_LEVEL")

    # --- Database (MongoDB) ---
    # SecretStr keeps credentials embedded in the URI out of logs
    MONGODB_URI: SecretStr = Field(SecretStr("mongodb://localhost:27017"), validation_alias="MONGODB_URI")
    MONGODB_DB_NAME: str = Field("movie_catalog", validation_alias="MONGODB_DB_NAME")
    MOVIES_COLLECTION_NAME: str = Field("movies", validation_alias="MOVIES_COLLECTION_NAME")
    # Reserved for user accounts; nothing in the catalog reads it yet
    USERS_COLLECTION_NAME: str = Field("users", validation_alias="USERS_COLLECTION_NAME")
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = Field(
        default=5000,
        validation_alias="MONGODB_SERVER_SELECTION_TIMEOUT_MS",
        description="How long the driver waits for a reachable server before failing an operation",
    )

    # --- External image upload service ---
    EXTERNAL_UPLOAD_URL: Optional[str] = Field(
        None,
        validation_alias="EXTERNAL_UPLOAD_URL",
        description="Endpoint that receives multipart image uploads.",
    )
    EXTERNAL_UPLOAD_TOKEN: Optional[SecretStr] = Field(
        None,
        validation_alias="EXTERNAL_UPLOAD_TOKEN",
        description="Raw token or full 'Bearer <token>' value sent to the upload service.",
    )

    # --- CORS ---
    # Expects a comma-separated string in env var like "http://localhost:3000,https://*.example.com"
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["*"],
        validation_alias="BACKEND_CORS_ORIGINS"
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            # If it's a string from env var, split by comma and strip whitespace
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        raise ValueError(f"Invalid BACKEND_CORS_ORIGINS format: {v}")

    model_config = SettingsConfigDict(
        # Load .env file if it exists (useful for local development)
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

# Settings are loaded only once per process
@lru_cache()
def get_settings() -> Settings:
    """Returns the application settings instance."""
    logger.info("Attempting to load application settings...")
    try:
        settings_instance = Settings()
        # Log some non-sensitive settings for verification
        logger.info(f"Settings loaded successfully for Project: {settings_instance.PROJECT_NAME}")
        logger.info(f"Log Level: {settings_instance.LOG_LEVEL}")
        logger.info(f"CORS Origins: {settings_instance.BACKEND_CORS_ORIGINS}")
        logger.info(f"MongoDB database: {settings_instance.MONGODB_DB_NAME} (collection '{settings_instance.MOVIES_COLLECTION_NAME}')")
        logger.info(f"Upload endpoint: {settings_instance.EXTERNAL_UPLOAD_URL or 'Not Set'}")
        # DO NOT log SecretStr values directly in production logs!
        return settings_instance
    except Exception as e:
        logger.critical(f"CRITICAL ERROR: Failed to load application settings: {e}", exc_info=True)
        raise RuntimeError(f"Could not load settings: {e}")


# Create a single settings instance to be imported by other modules
settings: Settings = get_settings()
