# catalog_api/services/movie_service.py

import logging
from typing import List, Optional

from catalog_api.core.exceptions import MovieNotFoundError
from catalog_api.data_access.mongo_client import MovieRepository
from catalog_api.models.movie import MovieCreate, MovieRead, MovieUpdate

logger = logging.getLogger(__name__)

class MovieService:
    def __init__(self, repository: MovieRepository):
        """
        Initializes the Movie Service.

        Args:
            repository: The movie store adapter (MovieRepository or a compatible double).
        """
        self.repository = repository

    async def list_movies(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> List[MovieRead]:
        """
        Retrieves all movies matching the optional filters, newest first.

        Args:
            search: Case-insensitive substring of the title.
            genre: Case-insensitive substring of the genre; "All" means no filter.
            rating: Exact rating.

        Returns:
            A list of MovieRead objects, empty when nothing matches.

        Raises:
            PyMongoError: If a database error occurs.
        """
        return await self.repository.list_movies(search=search, genre=genre, rating=rating)

    async def count_movies(
        self,
        search: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> int:
        """Counts movies matching the same filters as list_movies."""
        return await self.repository.count_movies(search=search, genre=genre, rating=rating)

    async def get_movie(self, movie_id: str) -> MovieRead:
        """
        Retrieves a single movie by its internal DB ID.

        Raises:
            MovieNotFoundError: If the ID is unknown or not a valid ObjectId.
            PyMongoError: If a database error occurs.
        """
        movie = await self.repository.find_by_id(movie_id)
        if movie is None:
            logger.warning(f"Movie with ID {movie_id} not found in database.")
            raise MovieNotFoundError()
        return movie

    async def create_movie(self, movie_data: MovieCreate) -> MovieRead:
        created = await self.repository.create(movie_data)
        logger.info(f"Movie created: ID {created.id}, title '{created.title}'")
        return created

    async def update_movie(self, movie_id: str, movie_data: MovieUpdate) -> MovieRead:
        """
        Replaces every editable field of an existing movie.

        The ID and createdAt of the stored record win over anything the caller sent.
        A store that reports no modification (record deleted in the meantime, or an
        identical replacement) is reported as not found.

        Raises:
            MovieNotFoundError: If the movie does not exist or nothing was modified.
            PyMongoError: If a database error occurs.
        """
        existing = await self.repository.find_by_id(movie_id)
        if existing is None:
            logger.warning(f"Update rejected: movie {movie_id} does not exist.")
            raise MovieNotFoundError()

        replacement = MovieRead(
            **movie_data.model_dump(),
            id=existing.id,
            createdAt=existing.createdAt,
            updatedAt=existing.updatedAt,
        )
        updated = await self.repository.update(movie_id, replacement)
        if not updated:
            logger.warning(f"Update of movie {movie_id} modified no document.")
            raise MovieNotFoundError()

        logger.info(f"Movie updated: ID {movie_id}")
        return replacement

    async def delete_movie(self, movie_id: str) -> None:
        deleted = await self.repository.delete(movie_id)
        if not deleted:
            logger.warning(f"Delete rejected: movie {movie_id} does not exist.")
            raise MovieNotFoundError()
        logger.info(f"Movie deleted: ID {movie_id}")
