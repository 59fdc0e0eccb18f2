"""Easy Draft - Drawing documents with DXF import and export."""

__version__ = "0.1.0"

# Host-facing commands
from .core.commands import (
    COMMANDS,
    CommandResult,
    dispatch,
    export_dxf,
    import_dxf,
    load_file,
    save_file,
)

# Core models
from .core.models import (
    Arc,
    Block,
    Circle,
    Drawing,
    Ellipse,
    Insert,
    Layer,
    Line,
    Point,
    Polyline,
    Text,
)

__all__ = [
    "COMMANDS",
    "CommandResult",
    "dispatch",
    "save_file",
    "load_file",
    "export_dxf",
    "import_dxf",
    "Drawing",
    "Layer",
    "Block",
    "Line",
    "Circle",
    "Arc",
    "Ellipse",
    "Polyline",
    "Text",
    "Insert",
    "Point",
]
