# catalog_api/models/movie.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

RATING_MIN = 1
RATING_MAX = 5

# --- Base Model ---
class MovieBase(BaseModel):
    """Client-editable attributes of a catalog entry."""
    title: str = Field(..., min_length=1, description="Movie title. Required, must not be blank.")
    genre: Optional[str] = Field(None, description="Free-form genre label, e.g. 'Drama'.")
    rating: Optional[int] = Field(
        None, ge=RATING_MIN, le=RATING_MAX, description="Rating from 1 to 5 inclusive."
    )
    posterImage: Optional[str] = Field(
        None, description="URL of the poster image (usually one returned by /api/upload), or empty."
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The Title field is required.")
        return v

# --- Models for API Requests ---
class MovieCreate(MovieBase):
    """
    Request body for POST /api/movies.

    `id`, `createdAt` and `updatedAt` may be present in the payload (clients often
    send back a record they fetched) but are ignored; the store assigns them.
    """

class MovieUpdate(MovieBase):
    """
    Request body for PUT /api/movies/{id}. The update is a full replace: any
    optional field left out is cleared.
    """

# --- Models for API Responses ---
class MovieRead(MovieBase):
    """A persisted movie as returned by the API."""
    id: str = Field(..., description="Internal database ID (MongoDB ObjectId as string).")
    createdAt: datetime = Field(..., description="UTC timestamp of creation. Never changes.")
    updatedAt: datetime = Field(..., description="UTC timestamp of the last successful write.")

    model_config = ConfigDict(from_attributes=True)

class MovieCount(BaseModel):
    count: int

class MessageResponse(BaseModel):
    message: str

class UploadResponse(BaseModel):
    url: str = Field(..., description="Absolute URL of the uploaded image.")
