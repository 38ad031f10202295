from __future__ import annotations

from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .chunked_store import DocumentStore

CANVASES_KEY = "canvases"
CANVAS_OBJECTS_KEY = "canvasObjects"


class StoredCanvases(BaseModel):
    """
    Canvas layout document, one entry per aspect ratio:
      { "4:5": {...}, "9:16": {...}, ... }
    Unknown aspect ratios are kept as-is.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    portrait: Any = Field(alias="4:5")
    story: Any = Field(alias="9:16")

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> "StoredCanvases":
        return cls.model_validate(doc)

    def to_doc(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CanvasStateRepository(Protocol):
    def save_canvases(self, canvases: StoredCanvases, tab: str | None = None) -> None:
        ...

    def load_canvases(self, tab: str | None = None) -> StoredCanvases | None:
        ...

    def save_canvas_objects(self, canvas_objects: Mapping[str, Any], tab: str | None = None) -> None:
        ...

    def load_canvas_objects(self, tab: str | None = None) -> dict[str, Any] | None:
        ...


class KVCanvasStateRepository(CanvasStateRepository):
    """
    Canvas documents on top of the chunked document store. The tab is the
    key namespace, so "marketing" + "canvases" is stored as "marketing-canvases".
    """

    def __init__(self, documents: DocumentStore):
        self._documents = documents

    def save_canvases(self, canvases: StoredCanvases, tab: str | None = None) -> None:
        self._documents.put(CANVASES_KEY, canvases.to_doc(), tab)

    def load_canvases(self, tab: str | None = None) -> StoredCanvases | None:
        doc = self._documents.get(CANVASES_KEY, tab)
        if not isinstance(doc, dict):
            return None
        try:
            return StoredCanvases.from_doc(doc)
        except ValidationError:
            # missing one of the required aspect ratios
            return None

    def save_canvas_objects(self, canvas_objects: Mapping[str, Any], tab: str | None = None) -> None:
        self._documents.put(CANVAS_OBJECTS_KEY, dict(canvas_objects), tab)

    def load_canvas_objects(self, tab: str | None = None) -> dict[str, Any] | None:
        doc = self._documents.get(CANVAS_OBJECTS_KEY, tab)
        return doc if isinstance(doc, dict) else None
