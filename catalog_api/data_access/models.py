# Mapping between API models and MongoDB documents
# catalog_api/data_access/models.py

# Field names on the Pydantic side and keys on the document side are kept in one
# table so the stored shape does not depend on how the models happen to be named.

from typing import Any, Dict, Mapping, Optional

from bson import ObjectId

from catalog_api.models.movie import MovieBase, MovieRead

# model attribute -> document key
MOVIE_FIELD_MAP: Dict[str, str] = {
    "title": "title",
    "genre": "genre",
    "rating": "rating",
    "posterImage": "posterImage",
    "createdAt": "createdAt",
    "updatedAt": "updatedAt",
}

ID_KEY = "_id"


def to_object_id(id_str: Optional[str]) -> Optional[ObjectId]:
    """Converts a 24-hex string to an ObjectId, or None when it is not one."""
    if isinstance(id_str, str) and ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return None


def to_document(movie: MovieBase) -> Dict[str, Any]:
    """
    Serializes a movie to the document stored in MongoDB.

    `_id` is never written here: inserts let the driver assign it and
    replacements keep the one matched by the filter.
    """
    data = movie.model_dump()
    return {doc_key: data.get(attr) for attr, doc_key in MOVIE_FIELD_MAP.items() if attr in data}


def from_document(doc: Mapping[str, Any]) -> MovieRead:
    """Builds a MovieRead from a stored document. Unknown keys are ignored."""
    values = {attr: doc.get(doc_key) for attr, doc_key in MOVIE_FIELD_MAP.items()}
    values["id"] = str(doc[ID_KEY])
    return MovieRead.model_validate(values)
