# object_endpoints.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from persistence.errors import NotFound, SerializationError, StorageError
from persistence.objects import DEFAULT_CONTENT_TYPE, content_type_from_data_url, decode_base64_payload
from persistence.repositories import AsyncObjectRepository

router = APIRouter(tags=["objects"])
logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"


def _objects(request: Request) -> AsyncObjectRepository:
    return request.app.state.objects


def _base_url_from_request(request: Request) -> str:
    # Use public URL when present; otherwise whatever host the request used.
    public = request.app.state.settings.public_base_url
    if public:
        return public
    return str(request.base_url).rstrip("/")


def _fail(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": False, "error": error, **extra}, status_code=status_code)


async def _read_upload(request: Request) -> tuple[bytes, str, str | None] | JSONResponse:
    content_type_header = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type_header:
        form = await request.form()
        file = form.get("file")
        if not isinstance(file, UploadFile):
            return _fail(400, "No file provided")
        data = await file.read()
        return data, file.content_type or DEFAULT_CONTENT_TYPE, file.filename

    try:
        body = await request.json()
    except ValueError:
        return _fail(400, "Request body must be JSON or multipart/form-data")
    if not isinstance(body, dict) or not isinstance(body.get("file"), str) or not body["file"]:
        return _fail(400, "No file data provided")
    try:
        data = decode_base64_payload(body["file"])
    except SerializationError as e:
        return _fail(400, str(e))
    filename = body.get("filename") if isinstance(body.get("filename"), str) else None
    ctype = body.get("contentType") if isinstance(body.get("contentType"), str) else None
    return data, ctype or content_type_from_data_url(body["file"]) or DEFAULT_CONTENT_TYPE, filename


@router.api_route("/api/r2", methods=["POST", "PUT"])
async def upload_object(request: Request) -> JSONResponse:
    upload = await _read_upload(request)
    if isinstance(upload, JSONResponse):
        return upload
    data, content_type, filename = upload

    try:
        ref = await _objects(request).object_put(
            data, content_type, filename, base_url=_base_url_from_request(request)
        )
    except StorageError as e:
        logger.error("OBJECT PUT: failed: %s", e)
        return _fail(500, str(e))
    return JSONResponse({"success": True, "url": ref.url, "key": ref.key})


@router.get("/api/r2")
async def missing_object_key() -> JSONResponse:
    return _fail(400, "Missing object key")


@router.get("/api/r2/{key:path}", response_model=None)
async def get_object(request: Request, key: str) -> Response:
    try:
        obj = await _objects(request).object_get(key)
    except NotFound:
        return _fail(404, "Object not found", key=key)
    except StorageError as e:
        logger.error("OBJECT GET: failed for %s: %s", key, e)
        return _fail(500, str(e))
    return Response(
        content=obj.data,
        media_type=obj.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
    )


@router.delete("/api/r2/{key:path}")
async def delete_object(request: Request, key: str) -> JSONResponse:
    try:
        await _objects(request).object_delete(key)
    except StorageError as e:
        logger.error("OBJECT DELETE: failed for %s: %s", key, e)
        return _fail(500, str(e))
    return JSONResponse({"success": True})
