# /health endpoint

# catalog_api/api/endpoints/health.py

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel

from catalog_api.api.deps import ping_database

logger = logging.getLogger(__name__)
router = APIRouter()

class HealthResponse(BaseModel):
    status: str = "ok"
    database: bool = False

@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Perform a Health Check",
    response_description="Returns the health status of the API.",
)
async def health_check():
    """
    Liveness check. `database` is the result of a live `ping` against MongoDB,
    so it turns back to true as soon as the server is reachable again.
    """
    db_ok = await ping_database()
    return HealthResponse(status="ok" if db_ok else "degraded", database=db_ok)
