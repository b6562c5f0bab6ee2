# MongoDB connection and repository logic
# catalog_api/data_access/mongo_client.py

import logging
from typing import List, Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError
from bson import ObjectId

from catalog_api.data_access.models import MOVIE_FIELD_MAP, from_document, to_document, to_object_id
from catalog_api.models.movie import MovieBase, MovieRead
from catalog_api.utils.helpers import literal_regex, normalize_text, utc_now

logger = logging.getLogger(__name__)

# Genre value the client sends for "no genre filter"
ALL_GENRES = "all"


def build_movie_filter(
    search: Optional[str] = None,
    genre: Optional[str] = None,
    rating: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Composes the list filter from the optional criteria, ANDing whichever are set.

    Returns `{}` (match everything) when no criterion applies, the bare clause
    when exactly one does, and `{"$and": [...]}` otherwise.
    """
    clauses: List[Dict[str, Any]] = []
    if search:
        clauses.append({MOVIE_FIELD_MAP["title"]: literal_regex(search)})
    if genre and genre.strip() and normalize_text(genre) != ALL_GENRES:
        clauses.append({MOVIE_FIELD_MAP["genre"]: literal_regex(genre)})
    if rating is not None:
        clauses.append({MOVIE_FIELD_MAP["rating"]: rating})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


# --- Base Repository ---
class BaseRepository:
    """Common plumbing for repositories bound to one collection."""
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str):
        self.db = db
        self.collection: AsyncIOMotorCollection = db[collection_name]
        logger.debug(f"Initialized repository for collection: {collection_name}")

    def _validate_object_id(self, id_str: str) -> Optional[ObjectId]:
        """Validates a string as a MongoDB ObjectId."""
        obj_id = to_object_id(id_str)
        if obj_id is None:
            logger.warning(f"Invalid ObjectId format: {id_str}")
        return obj_id

# --- Movie Repository ---
class MovieRepository(BaseRepository):
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "movies"):
        super().__init__(db, collection_name=collection_name)

    async def list_movies(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> List[MovieRead]:
        """Lists movies matching the optional criteria, newest first."""
        query = build_movie_filter(search, genre, rating)
        try:
            cursor = self.collection.find(query).sort(MOVIE_FIELD_MAP["createdAt"], DESCENDING)
            docs = await cursor.to_list(length=None)
            logger.info(f"Fetched {len(docs)} movies with query: {query}")
            return [from_document(doc) for doc in docs]
        except PyMongoError as e:
            logger.error(f"DB error listing movies with filters {query}: {e}", exc_info=True)
            raise # Re-raise for service layer to handle

    async def count_movies(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> int:
        """Counts movies matching the same criteria as list_movies."""
        query = build_movie_filter(search, genre, rating)
        try:
            return await self.collection.count_documents(query)
        except PyMongoError as e:
            logger.error(f"DB error counting movies with filters {query}: {e}", exc_info=True)
            raise

    async def find_by_id(self, movie_id: str) -> Optional[MovieRead]:
        """Finds a single movie by its MongoDB ObjectId string."""
        obj_id = self._validate_object_id(movie_id)
        if not obj_id:
            return None
        try:
            doc = await self.collection.find_one({"_id": obj_id})
            if doc:
                return from_document(doc)
            return None
        except PyMongoError as e:
            logger.error(f"DB error finding movie by ID {movie_id}: {e}", exc_info=True)
            raise

    async def create(self, movie: MovieBase) -> MovieRead:
        """Stamps both timestamps, inserts the movie and returns it with its new ID."""
        now = utc_now()
        doc = to_document(movie)
        doc[MOVIE_FIELD_MAP["createdAt"]] = now
        doc[MOVIE_FIELD_MAP["updatedAt"]] = now
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"DB error inserting movie '{movie.title}': {e}", exc_info=True)
            raise
        doc["_id"] = result.inserted_id
        return from_document(doc)

    async def update(self, movie_id: str, movie: MovieRead) -> bool:
        """
        Replaces the stored document with `movie` after setting `movie.updatedAt`
        to the current time.

        Returns whether the store modified a document: False for an unknown or
        malformed ID, and also when the replacement equals what is stored.
        """
        obj_id = self._validate_object_id(movie_id)
        if not obj_id:
            return False
        movie.updatedAt = utc_now()
        try:
            result = await self.collection.replace_one({"_id": obj_id}, to_document(movie))
            return result.modified_count > 0
        except PyMongoError as e:
            logger.error(f"DB error replacing movie {movie_id}: {e}", exc_info=True)
            raise

    async def delete(self, movie_id: str) -> bool:
        """Deletes a movie; True when a document was removed."""
        obj_id = self._validate_object_id(movie_id)
        if not obj_id:
            return False
        try:
            result = await self.collection.delete_one({"_id": obj_id})
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(f"DB error deleting movie {movie_id}: {e}", exc_info=True)
            raise
