# catalog_api/api/endpoints/upload.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData, UploadFile

from catalog_api.api.deps import get_upload_relay
from catalog_api.core.exceptions import CatalogError, ServerFault
from catalog_api.models.movie import MessageResponse, UploadResponse
from catalog_api.services.upload_service import UPLOAD_FIELD_NAME, UploadRelay

logger = logging.getLogger(__name__)
router = APIRouter()


def pick_upload_file(form: FormData) -> Optional[UploadFile]:
    """The `file` part if there is one, otherwise the first file part of the form."""
    candidate = form.get(UPLOAD_FIELD_NAME)
    if isinstance(candidate, UploadFile):
        return candidate
    for _, value in form.multi_items():
        if isinstance(value, UploadFile):
            return value
    return None


@router.post(
    "", # POST /api/upload
    response_model=UploadResponse,
    summary="Upload Image",
    description="Forwards a multipart image upload to the image host and returns its absolute URL.",
    responses={
        400: {"model": MessageResponse, "description": "No file provided"},
        500: {"model": MessageResponse, "description": "Relay failure"},
    },
)
async def upload_image(
    request: Request,
    relay: UploadRelay = Depends(get_upload_relay),
):
    async with request.form() as form:
        file = pick_upload_file(form)
        try:
            url = await relay.upload(file)
        except CatalogError:
            raise
        except Exception as e:
            filename = file.filename if file else None
            logger.error(f"Error uploading file {filename!r}: {e}", exc_info=True)
            raise ServerFault()
    return UploadResponse(url=url)
