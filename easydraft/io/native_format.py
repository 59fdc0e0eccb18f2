"""Native document format: versioned JSON serialization of a Drawing."""

import dataclasses
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

from ..config import DEFAULT_INSUNITS, NATIVE_FORMAT_NAME, NATIVE_FORMAT_VERSION
from ..core.errors import PersistError, PersistErrorKind
from ..core.models import (
    Arc,
    Block,
    Circle,
    Drawing,
    Ellipse,
    Entity,
    Insert,
    Layer,
    Line,
    Point,
    Polyline,
    Text,
)

logger = logging.getLogger(__name__)

ENTITY_TAGS: Dict[type, str] = {
    Line: "line",
    Circle: "circle",
    Arc: "arc",
    Ellipse: "ellipse",
    Polyline: "polyline",
    Text: "text",
    Insert: "insert",
    Point: "point",
}
_ENTITY_CLASSES = {tag: cls for cls, tag in ENTITY_TAGS.items()}


def _migrate_v1_to_v2(data: Dict[str, Any]) -> Dict[str, Any]:
    """Version 1 documents had no blocks, units or metadata."""
    metadata: Dict[str, Any] = {}
    for key in ("name", "created_at", "modified_at"):
        if key in data:
            metadata[key] = data[key]
    return {
        "format": NATIVE_FORMAT_NAME,
        "version": 2,
        "metadata": metadata,
        "units": DEFAULT_INSUNITS,
        "layers": data.get("layers", []),
        "blocks": [],
        "entities": data.get("entities", []),
    }


# Maps a document version to the function upgrading it by one version
MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    1: _migrate_v1_to_v2,
}


def _corrupt(message: str) -> PersistError:
    return PersistError(PersistErrorKind.CORRUPT_DATA, message)


class NativeFormat:
    """Reads and writes drawings in the native JSON document format."""

    def __init__(self, indent: int = 2) -> None:
        """Initialize native format serializer.

        Args:
            indent: JSON indentation for readable output
        """
        self.indent = indent

    def dumps(self, drawing: Drawing) -> str:
        """Serialize a drawing to native document text."""
        drawing.validate()
        document = {
            "format": NATIVE_FORMAT_NAME,
            "version": NATIVE_FORMAT_VERSION,
            "saved_at": datetime.now().isoformat(),
            "metadata": drawing.metadata,
            "units": drawing.units,
            "layers": [dataclasses.asdict(layer) for layer in drawing.layers],
            "blocks": [self._block_to_dict(block) for block in drawing.blocks],
            "entities": [self._entity_to_dict(e) for e in drawing.entities],
        }
        try:
            return json.dumps(
                document, indent=self.indent, ensure_ascii=False, allow_nan=False
            )
        except (TypeError, ValueError) as e:
            raise _corrupt(f"Drawing metadata is not serializable: {e}") from e

    def loads(self, text: str) -> Drawing:
        """Deserialize a drawing from native document text.

        Raises:
            PersistError: CORRUPT_DATA or VERSION_MISMATCH
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise _corrupt(f"Document is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise _corrupt("Document root must be a JSON object")

        version = data.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise PersistError(
                PersistErrorKind.VERSION_MISMATCH,
                f"Document has no valid format version: {version!r}",
            )
        if not 1 <= version <= NATIVE_FORMAT_VERSION:
            raise PersistError(
                PersistErrorKind.VERSION_MISMATCH,
                f"Document version {version} is not supported "
                f"(supported: 1 to {NATIVE_FORMAT_VERSION})",
            )
        if version > 1 and data.get("format") != NATIVE_FORMAT_NAME:
            raise _corrupt(f"Not an {NATIVE_FORMAT_NAME} document")

        while version < NATIVE_FORMAT_VERSION:
            logger.info(f"Migrating document from version {version}")
            data = MIGRATIONS[version](data)
            version += 1

        try:
            return self._drawing_from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            # ValidationError is a ValueError
            raise _corrupt(f"Invalid document content: {e}") from e

    def save(self, drawing: Drawing, file_path: Union[str, Path]) -> None:
        """Save a drawing to disk."""
        path = Path(file_path)
        text = self.dumps(drawing)
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise PersistError(
                PersistErrorKind.IO_FAILURE, f"Failed to save document {path}: {e}"
            ) from e
        logger.info(f"Saved document: {path}")

    def load(self, file_path: Union[str, Path]) -> Drawing:
        """Load a drawing from disk."""
        path = Path(file_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise _corrupt(f"Document {path} is not UTF-8 text: {e}") from e
        except OSError as e:
            raise PersistError(
                PersistErrorKind.IO_FAILURE, f"Failed to load document {path}: {e}"
            ) from e
        drawing = self.loads(text)
        logger.info(f"Loaded document: {path}")
        return drawing

    @staticmethod
    def _entity_to_dict(entity: Entity) -> Dict[str, Any]:
        tag = ENTITY_TAGS.get(type(entity))
        if tag is None:
            raise _corrupt(f"Cannot save {type(entity).__name__}")
        data: Dict[str, Any] = {"type": tag}
        data.update(dataclasses.asdict(entity))
        return data

    def _block_to_dict(self, block: Block) -> Dict[str, Any]:
        return {
            "name": block.name,
            "base_point": list(block.base_point),
            "entities": [self._entity_to_dict(e) for e in block.entities],
        }

    @staticmethod
    def _entity_from_dict(data: Dict[str, Any]) -> Entity:
        values = dict(data)
        tag = values.pop("type")
        cls = _ENTITY_CLASSES.get(tag)
        if cls is None:
            raise ValueError(f"unknown entity type {tag!r}")
        return cls(**values)  # type: ignore[no-any-return]

    def _drawing_from_dict(self, data: Dict[str, Any]) -> Drawing:
        layers = [Layer(**layer) for layer in data["layers"]]
        blocks: List[Block] = [
            Block(
                name=block["name"],
                base_point=block["base_point"],
                entities=tuple(self._entity_from_dict(e) for e in block["entities"]),
            )
            for block in data["blocks"]
        ]
        entities = [self._entity_from_dict(e) for e in data["entities"]]
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError("metadata must be an object")
        return Drawing(
            layers=layers,
            entities=entities,
            blocks=blocks,
            units=data["units"],
            metadata=metadata,
        )


def dumps_document(drawing: Drawing) -> str:
    """Serialize a drawing to native document text."""
    return NativeFormat().dumps(drawing)


def loads_document(text: str) -> Drawing:
    """Deserialize a drawing from native document text."""
    return NativeFormat().loads(text)


def save_document(drawing: Drawing, file_path: Union[str, Path]) -> None:
    """Convenience function to save a drawing in the native format."""
    NativeFormat().save(drawing, file_path)


def load_document(file_path: Union[str, Path]) -> Drawing:
    """Convenience function to load a drawing from the native format."""
    return NativeFormat().load(file_path)
