# FastAPI dependencies (get_db, service providers)
# catalog_api/api/deps.py

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from catalog_api.core.config import settings
from catalog_api.core.exceptions import ServerFault
from catalog_api.data_access.mongo_client import MovieRepository
from catalog_api.services.movie_service import MovieService
from catalog_api.services.upload_service import UploadRelay

logger = logging.getLogger(__name__)

# --- Global Clients (Initialized once, managed by the app lifespan) ---

mongo_client: Optional[AsyncIOMotorClient] = None
db_instance: Optional[AsyncIOMotorDatabase] = None

async def initialize_connections():
    """
    Initializes the MongoDB connection.
    Call this during FastAPI startup using lifespan events.

    The client is kept even when the startup ping fails: the driver's pool
    reconnects on its own, and operations attempted while the server is
    unreachable fail with a PyMongoError.
    """
    global mongo_client, db_instance
    logger.info("Initializing external connections...")

    try:
        logger.info(f"Attempting to connect to MongoDB: {settings.MONGODB_URI.get_secret_value()[:15]}...") # Log partial URI safely
        mongo_client = AsyncIOMotorClient(
            settings.MONGODB_URI.get_secret_value(),
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
        )
        db_instance = mongo_client[settings.MONGODB_DB_NAME]
    except PyMongoError as e:
        # Malformed URI or options; nothing to retry against
        logger.critical(f"Could not create MongoDB client: {e}", exc_info=True)
        mongo_client = None
        db_instance = None
        return

    if await ping_database():
        logger.info(f"MongoDB client initialized successfully. Using database: '{settings.MONGODB_DB_NAME}'")
    else:
        logger.warning(
            f"MongoDB not reachable at startup; using database '{settings.MONGODB_DB_NAME}' once it comes back."
        )

async def close_connections():
    """
    Closes the MongoDB connection.
    Call this during FastAPI shutdown using lifespan events.
    """
    global mongo_client, db_instance
    logger.info("Closing external connections...")
    if mongo_client:
        mongo_client.close()
        logger.info("MongoDB client closed.")
    mongo_client = None
    db_instance = None


async def ping_database() -> bool:
    """Sends a `ping` to the server; False when there is no client or it does not answer."""
    if mongo_client is None:
        return False
    try:
        await mongo_client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


# --- Database Dependency ---

async def get_db() -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """
    FastAPI dependency that yields the application's MongoDB database instance.

    Raises:
        ServerFault: If no client was ever created (lifespan not run or unusable URI).
    """
    if db_instance is None:
        logger.critical("MongoDB database instance is not available. Check initialization.")
        raise ServerFault()
    # Motor manages connection pooling internally. Yielding the db instance is sufficient.
    yield db_instance


# --- Service Dependencies ---

def get_movie_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> MovieRepository:
    return MovieRepository(db=db, collection_name=settings.MOVIES_COLLECTION_NAME)

def get_movie_service(repository: MovieRepository = Depends(get_movie_repository)) -> MovieService:
    return MovieService(repository=repository)

def get_upload_relay() -> UploadRelay:
    """
    Builds a relay for the current request. The token is handed to this relay only;
    no HTTP client keeps it as a default header.
    """
    token = settings.EXTERNAL_UPLOAD_TOKEN.get_secret_value() if settings.EXTERNAL_UPLOAD_TOKEN else None
    return UploadRelay(upload_url=settings.EXTERNAL_UPLOAD_URL, token=token)
