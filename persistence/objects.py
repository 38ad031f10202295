from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse

from .errors import NotFound, SerializationError, StorageUnavailable
from .interfaces import ObjectBackend, StoredObject

logger = logging.getLogger(__name__)

OBJECT_ROUTE = "/api/r2"
KEY_PREFIX = "images"
DEFAULT_CONTENT_TYPE = "image/jpeg"
DEFAULT_EXTENSION = "jpg"

MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}

_EXT_RE = re.compile(r"\.([^./\\]+)$")


@dataclass(frozen=True)
class StoredObjectRef:
    key: str
    url: str
    content_type: str
    size: int


def file_extension(filename: str | None = None, content_type: str | None = None) -> str:
    if filename:
        m = _EXT_RE.search(filename)
        if m:
            return m.group(1).lower()
    if content_type:
        return MIME_EXTENSIONS.get(content_type.lower(), DEFAULT_EXTENSION)
    return DEFAULT_EXTENSION


def decode_base64_payload(data: str) -> bytes:
    """Decode base64 file data, with or without a "data:<mime>;base64," prefix."""
    payload = data.split(",", 1)[1] if "," in data else data
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SerializationError(f"invalid base64 data: {e}", phase="decode") from e


def encode_object_key(key: str) -> str:
    # Encode each segment separately so "/" survives in the URL path.
    return "/".join(quote(segment, safe="") for segment in key.split("/"))


def extract_key_from_url(url: str) -> str | None:
    """
    Return the object key from either a public object URL or an
    "/api/r2/<key>" URL; None when no key can be found.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    if path.startswith(OBJECT_ROUTE + "/"):
        path = path[len(OBJECT_ROUTE) + 1 :]
    else:
        path = path.lstrip("/")
    key = unquote(path)
    return key or None


def is_object_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.path.startswith(OBJECT_ROUTE + "/") or (
        parsed.scheme == "https" and parsed.netloc.startswith("pub-") and parsed.netloc.endswith(".r2.dev")
    )


def is_base64_url(url: str) -> bool:
    return url.startswith("data:image/") or url.startswith("data:video/")


def content_type_from_data_url(url: str) -> str | None:
    """Return the MIME type of a "data:<mime>;base64," image or video URL."""
    if not is_base64_url(url):
        return None
    header = url.split(",", 1)[0][len("data:") :]
    return header.split(";", 1)[0].lower() or None


def resolve_object_key(key_or_url: str) -> str:
    """Accept either a bare object key or a URL previously returned by object_put."""
    if is_object_url(key_or_url):
        return extract_key_from_url(key_or_url) or ""
    return key_or_url


class ObjectStore:
    """
    Binary asset storage: single-shot put/get/delete under generated keys
    of the form "images/<uuid>.<ext>".
    """

    def __init__(self, backend: ObjectBackend, *, public_base_url: str = "") -> None:
        self._backend = backend
        self._public_base_url = public_base_url.rstrip("/")

    def url_for(self, key: str, base_url: str | None = None) -> str:
        base = (base_url if base_url is not None else self._public_base_url).rstrip("/")
        return f"{base}{OBJECT_ROUTE}/{encode_object_key(key)}"

    def object_put(
        self,
        data: bytes,
        content_type: str | None = None,
        filename: str | None = None,
        *,
        base_url: str | None = None,
    ) -> StoredObjectRef:
        ctype = content_type or DEFAULT_CONTENT_TYPE
        key = f"{KEY_PREFIX}/{uuid.uuid4()}.{file_extension(filename, ctype)}"
        try:
            self._backend.put(key, data, ctype)
        except OSError as e:
            raise StorageUnavailable(f"object put failed: {e}", key=key, phase="object_put") from e
        logger.info("Stored object %s (%d bytes, %s)", key, len(data), ctype)
        return StoredObjectRef(key=key, url=self.url_for(key, base_url), content_type=ctype, size=len(data))

    def object_get(self, key: str) -> StoredObject:
        key = resolve_object_key(key)
        if not key:
            raise ValueError("object key is required")
        try:
            obj = self._backend.get(key)
        except OSError as e:
            raise StorageUnavailable(f"object get failed: {e}", key=key, phase="object_get") from e
        if obj is None:
            raise NotFound("object not found", key=key, phase="object_get")
        return obj

    def object_delete(self, key: str) -> None:
        key = resolve_object_key(key)
        if not key:
            raise ValueError("object key is required")
        try:
            self._backend.delete(key)
        except OSError as e:
            raise StorageUnavailable(f"object delete failed: {e}", key=key, phase="object_delete") from e
        logger.info("Deleted object %s", key)
