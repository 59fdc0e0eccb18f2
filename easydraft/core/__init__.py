"""Core module for drawing documents."""

from .errors import (
    CommandArgumentError,
    DXFImportError,
    EasyDraftError,
    ExportError,
    PersistError,
    TokenizeError,
    ValidationError,
)
from .models import (
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

__all__ = [
    "Arc",
    "Block",
    "Circle",
    "Drawing",
    "Ellipse",
    "Entity",
    "Insert",
    "Layer",
    "Line",
    "Point",
    "Polyline",
    "Text",
    "EasyDraftError",
    "CommandArgumentError",
    "ValidationError",
    "TokenizeError",
    "DXFImportError",
    "ExportError",
    "PersistError",
]
