# storage_endpoints.py
from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from persistence.errors import SerializationError, StorageError
from persistence.repositories import AsyncDocumentRepository

router = APIRouter(tags=["storage"])
logger = logging.getLogger(__name__)

Operation = Literal["get", "put", "delete", "list"]


class StorageRequest(BaseModel):
    """
    Body of POST /api/storage:
      { "operation": "get" | "put" | "delete" | "list", "key": "...", "value": ..., "tab": "..." }
    """

    model_config = ConfigDict(populate_by_name=True)

    operation: Operation
    key: str = ""
    value: Any = None
    tab: str | None = None
    logical_only: bool = Field(default=False, alias="logicalOnly")


def _documents(request: Request) -> AsyncDocumentRepository:
    return request.app.state.documents


def _ok(data: Any = None, *, include_data: bool = True) -> JSONResponse:
    payload: dict[str, Any] = {"success": True}
    if include_data:
        payload["data"] = data
    return JSONResponse(payload)


def _fail(status_code: int, error: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


@router.post("/api/storage")
async def storage_operation(request: Request, body: dict[str, Any]) -> JSONResponse:
    op = body.get("operation")
    if op not in ("get", "put", "delete", "list"):
        return _fail(400, "Invalid operation")
    try:
        req = StorageRequest.model_validate(body)
    except ValidationError as e:
        return _fail(400, f"Invalid request: {e.errors()[0].get('msg', 'validation failed')}")

    if req.operation != "list" and not req.key:
        return _fail(400, "key is required")
    if req.operation == "put" and "value" not in body:
        return _fail(400, "value is required")

    if request.app.state.settings.debug_log_requests:
        logger.debug("STORAGE %s key=%s tab=%s", req.operation, req.key, req.tab)

    docs = _documents(request)
    try:
        if req.operation == "get":
            return _ok(await docs.chunked_get(req.key, req.tab))
        if req.operation == "put":
            await docs.chunked_put(req.key, req.value, req.tab)
            return _ok(include_data=False)
        if req.operation == "delete":
            await docs.chunked_delete(req.key, req.tab)
            return _ok(include_data=False)
        keys = await docs.chunked_list(req.tab, logical_only=req.logical_only)
        return _ok({"keys": keys})
    except (SerializationError, ValueError) as e:
        logger.warning("STORAGE %s: rejected %s: %s", req.operation, req.key, e)
        return _fail(400, str(e))
    except StorageError as e:
        logger.error("STORAGE %s: failed for %s: %s", req.operation, req.key, e)
        return _fail(500, str(e))
