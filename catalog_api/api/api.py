"""
API Router Module - Aggregates all endpoint routers
"""
from fastapi import APIRouter

from catalog_api.api.endpoints import health, movies, upload

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(movies.router, prefix="/movies", tags=["Movies"])
api_router.include_router(upload.router, prefix="/upload", tags=["Upload"])
