"""Relay for image uploads: forwards one file to the external image host and
turns the path it answers with into an absolute URL."""

import logging
from typing import Dict, Optional
from urllib.parse import urlsplit

import httpx
from starlette.datastructures import UploadFile

from catalog_api.core.exceptions import (
    ImageUrlMissingError,
    NoFileProvidedError,
    ServerFault,
    UpstreamUploadError,
)
from catalog_api.utils.helpers import safe_get

logger = logging.getLogger(__name__)

UPLOAD_FIELD_NAME = "file"
BEARER_PREFIX = "Bearer "
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_authorization_header(token: Optional[str]) -> Optional[str]:
    """A configured 'Bearer ...' value passes through as-is; a raw token gets the scheme."""
    if not token:
        return None
    if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        return token
    return f"{BEARER_PREFIX}{token}"


def url_origin(url: Optional[str]) -> Optional[str]:
    """scheme://host[:port] of `url`, or None when it has no usable scheme and host."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    origin = f"{parts.scheme}://{host}"
    if port is not None:
        origin = f"{origin}:{port}"
    return origin


def resolve_image_url(path: str, upload_url: Optional[str]) -> str:
    """
    Makes the path returned by the upload service absolute.

    "/assets/x.png" is appended to the origin of `upload_url`, "http..." URLs are
    returned unchanged, and anything else is joined to the origin with a "/".
    If no origin can be derived from `upload_url`, `path` is returned as-is.
    """
    origin = url_origin(upload_url)
    if origin is None:
        return path
    if path.startswith("/"):
        return f"{origin}{path}"
    if path.lower().startswith("http"):
        return path
    return f"{origin}/{path}"


def _is_empty(file: Optional[UploadFile]) -> bool:
    if file is None:
        return True
    if file.size is not None:
        return file.size == 0
    stream = file.file
    position = stream.tell()
    stream.seek(0, 2)
    end = stream.tell()
    stream.seek(position)
    return end == 0


class UploadRelay:
    def __init__(
        self,
        upload_url: Optional[str],
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._upload_url = upload_url
        self._token = token
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        authorization = build_authorization_header(self._token)
        if authorization:
            headers["Authorization"] = authorization
        return headers

    async def upload(self, file: Optional[UploadFile]) -> str:
        """
        Forwards `file` to the upload service and returns the absolute image URL.

        Raises:
            NoFileProvidedError: If no file or an empty one was given. Nothing is sent.
            UpstreamUploadError: If the service answered with a non-success status.
            ImageUrlMissingError: If the answer carries no usable `path`.
            ServerFault: On network errors, unparseable answers or missing configuration.
        """
        if _is_empty(file):
            raise NoFileProvidedError()

        if not self._upload_url:
            logger.error("EXTERNAL_UPLOAD_URL is not configured; cannot relay upload.")
            raise ServerFault()

        await file.seek(0)
        files = {
            UPLOAD_FIELD_NAME: (
                file.filename or UPLOAD_FIELD_NAME,
                file.file,
                file.content_type or DEFAULT_CONTENT_TYPE,
            )
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, follow_redirects=True) as client:
                response = await client.post(self._upload_url, files=files, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error(
                "Relaying upload of '%s' to %s failed: %s",
                file.filename, self._upload_url, exc, exc_info=True,
            )
            raise ServerFault() from exc

        if not response.is_success:
            logger.error("Upload failed with status: %d", response.status_code)
            raise UpstreamUploadError(response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            logger.error(
                "Upload service at %s returned a non-JSON body (status %d)",
                self._upload_url, response.status_code, exc_info=True,
            )
            raise ServerFault() from exc

        path = safe_get(body, "path")
        if not isinstance(path, str) or not path:
            logger.error("Upload service response has no 'path': %s", body)
            raise ImageUrlMissingError()

        url = resolve_image_url(path, self._upload_url)
        logger.info("Uploaded '%s' -> %s", file.filename, url)
        return url
