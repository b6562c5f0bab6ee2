"""Shared fixtures. The API is exercised through FastAPI's TestClient with the
MongoDB-backed repository swapped for an in-memory one, so no database is needed."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from catalog_api.api.deps import get_movie_service
from catalog_api.data_access.models import to_object_id
from catalog_api.models.movie import MovieBase, MovieRead
from catalog_api.server import app
from catalog_api.services.movie_service import MovieService


class InMemoryMovieRepository:
    """Same interface and outcomes as MovieRepository, backed by a dict."""

    def __init__(self):
        self.movies: Dict[str, MovieRead] = {}
        self.calls: List[str] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def list_movies(self, search=None, genre=None, rating=None) -> List[MovieRead]:
        self.calls.append("list_movies")
        results = list(self.movies.values())
        if search:
            results = [m for m in results if search.lower() in m.title.lower()]
        if genre and genre.strip().lower() != "all":
            results = [m for m in results if m.genre and genre.lower() in m.genre.lower()]
        if rating is not None:
            results = [m for m in results if m.rating == rating]
        return sorted(results, key=lambda m: m.createdAt, reverse=True)

    async def count_movies(self, search=None, genre=None, rating=None) -> int:
        return len(await self.list_movies(search, genre, rating))

    async def find_by_id(self, movie_id: str) -> Optional[MovieRead]:
        self.calls.append("find_by_id")
        if to_object_id(movie_id) is None:
            return None
        stored = self.movies.get(movie_id)
        return stored.model_copy() if stored else None

    async def create(self, movie: MovieBase) -> MovieRead:
        self.calls.append("create")
        now = self._tick()
        created = MovieRead(**movie.model_dump(), id=str(ObjectId()), createdAt=now, updatedAt=now)
        self.movies[created.id] = created
        return created.model_copy()

    async def update(self, movie_id: str, movie: MovieRead) -> bool:
        self.calls.append("update")
        if movie_id not in self.movies:
            return False
        movie.updatedAt = self._tick()
        self.movies[movie_id] = movie.model_copy()
        return True

    async def delete(self, movie_id: str) -> bool:
        self.calls.append("delete")
        return self.movies.pop(movie_id, None) is not None


@pytest.fixture()
def repository():
    return InMemoryMovieRepository()


@pytest.fixture()
def client(repository):
    app.dependency_overrides[get_movie_service] = lambda: MovieService(repository=repository)
    # No context manager: the lifespan (MongoDB connection) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()
