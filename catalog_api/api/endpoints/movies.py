# catalog_api/api/endpoints/movies.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from catalog_api.api.deps import get_movie_service
from catalog_api.core.exceptions import CatalogError, ServerFault
from catalog_api.models.movie import (
    MessageResponse,
    MovieCount,
    MovieCreate,
    MovieRead,
    MovieUpdate,
)
from catalog_api.services.movie_service import MovieService

logger = logging.getLogger(__name__)
router = APIRouter()

NOT_FOUND_RESPONSE = {404: {"model": MessageResponse, "description": "Movie not found"}}
VALIDATION_RESPONSE = {400: {"description": "Validation failure, with per-field messages"}}


@router.get(
    "", # GET /api/movies
    response_model=List[MovieRead],
    summary="List Movies",
    description="Retrieve all movies, newest first, optionally filtered by title search, genre and rating.",
)
async def list_movies(
    search: Optional[str] = Query(None, description="Case-insensitive text contained in the title."),
    genre: Optional[str] = Query(None, description="Case-insensitive text contained in the genre. 'All' disables the filter."),
    rating: Optional[int] = Query(None, description="Exact rating."),
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        return await movie_service.list_movies(search=search, genre=genre, rating=rating)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error fetching movies (search={search!r}, genre={genre!r}, rating={rating}): {e}", exc_info=True)
        raise ServerFault()

@router.get(
    "/count", # GET /api/movies/count
    response_model=MovieCount,
    summary="Count Movies",
    description="Number of movies matching the same filters as the list endpoint.",
)
async def count_movies(
    search: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    rating: Optional[int] = Query(None),
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        count = await movie_service.count_movies(search=search, genre=genre, rating=rating)
        return MovieCount(count=count)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error counting movies: {e}", exc_info=True)
        raise ServerFault()

@router.get(
    "/{movie_id}", # GET /api/movies/{movie_id}
    name="get_movie",
    response_model=MovieRead,
    summary="Get Movie",
    responses=NOT_FOUND_RESPONSE,
)
async def get_movie(
    movie_id: str,
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        return await movie_service.get_movie(movie_id)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error fetching movie {movie_id}: {e}", exc_info=True)
        raise ServerFault()

@router.post(
    "", # POST /api/movies
    response_model=MovieRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Movie",
    description="Creates a movie. The response carries a Location header pointing at the new resource.",
    responses=VALIDATION_RESPONSE,
)
async def create_movie(
    movie_data: MovieCreate,
    request: Request,
    response: Response,
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        created = await movie_service.create_movie(movie_data)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error creating movie '{movie_data.title}': {e}", exc_info=True)
        raise ServerFault()
    response.headers["Location"] = str(request.url_for("get_movie", movie_id=created.id))
    return created

@router.put(
    "/{movie_id}", # PUT /api/movies/{movie_id}
    response_model=MovieRead,
    summary="Replace Movie",
    description="Full replace of an existing movie. `id` and `createdAt` are kept from the stored record.",
    responses={**NOT_FOUND_RESPONSE, **VALIDATION_RESPONSE},
)
async def update_movie(
    movie_id: str,
    movie_data: MovieUpdate,
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        return await movie_service.update_movie(movie_id, movie_data)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error updating movie {movie_id}: {e}", exc_info=True)
        raise ServerFault()

@router.delete(
    "/{movie_id}", # DELETE /api/movies/{movie_id}
    response_model=MessageResponse,
    summary="Delete Movie",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_movie(
    movie_id: str,
    movie_service: MovieService = Depends(get_movie_service),
):
    try:
        await movie_service.delete_movie(movie_id)
    except CatalogError:
        raise
    except Exception as e:
        logger.error(f"Error deleting movie {movie_id}: {e}", exc_info=True)
        raise ServerFault()
    return MessageResponse(message="Movie deleted successfully")
