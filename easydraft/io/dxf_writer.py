"""DXF file writing functionality.

The writer produces R12 (AC1009) text DXF. Tag lines are emitted by ezdxf's
TagWriter; values are formatted here so floats read back exactly.
"""

import io
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Tuple, Union

from ezdxf.lldxf.tagwriter import TagWriter

from ..config import DEFAULT_LINETYPE, DXF_BASELINE_VERSION, ELLIPSE_SEGMENTS
from ..core.errors import ExportError, ExportErrorKind
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
    Vec3,
)
from .dxf_text import encode_dxf_string
from .dxf_tokenizer import ValueType, group_code_type

logger = logging.getLogger(__name__)

Tag = Tuple[int, Any]


def format_float(value: float) -> str:
    """Format a double as the shortest text that reads back exactly."""
    text = repr(float(value))
    return "0.0" if text == "-0.0" else text


def _point(code: int, point: Vec3) -> List[Tag]:
    return [(code, point[0]), (code + 10, point[1]), (code + 20, point[2])]


def _common(name: str, entity: Entity) -> List[Tag]:
    tags: List[Tag] = [(0, name), (8, entity.layer)]
    if entity.linetype is not None:
        tags.append((6, entity.linetype))
    if entity.color is not None:
        tags.append((62, entity.color))
    return tags


def _line_tags(entity: Line) -> List[Tag]:
    return _common("LINE", entity) + _point(10, entity.start) + _point(11, entity.end)


def _circle_tags(entity: Circle) -> List[Tag]:
    return _common("CIRCLE", entity) + _point(10, entity.center) + [(40, entity.radius)]


def _arc_tags(entity: Arc) -> List[Tag]:
    return (
        _common("ARC", entity)
        + _point(10, entity.center)
        + [(40, entity.radius), (50, entity.start_angle), (51, entity.end_angle)]
    )


def _polyline_tags(entity: Polyline) -> List[Tag]:
    elevation = entity.vertices[0][2]
    is_3d = any(v[2] != elevation for v in entity.vertices)
    flags = (1 if entity.closed else 0) | (8 if is_3d else 0)
    vertex_flags = 32 if is_3d else 0

    tags = _common("POLYLINE", entity)
    tags += [(66, 1)] + _point(10, (0.0, 0.0, elevation)) + [(70, flags)]
    for vertex, bulge in zip(entity.vertices, entity.bulges):
        tags += [(0, "VERTEX"), (8, entity.layer)] + _point(10, vertex)
        if bulge:
            tags.append((42, bulge))
        tags.append((70, vertex_flags))
    tags += [(0, "SEQEND"), (8, entity.layer)]
    return tags


def _ellipse_tags(entity: Ellipse) -> List[Tag]:
    # R12 has no ELLIPSE entity
    approximation = Polyline(
        vertices=tuple(map(tuple, entity.points(ELLIPSE_SEGMENTS).tolist())),
        closed=entity.is_full,
        layer=entity.layer,
        color=entity.color,
        linetype=entity.linetype,
    )
    return _polyline_tags(approximation)


def _text_tags(entity: Text) -> List[Tag]:
    return (
        _common("TEXT", entity)
        + _point(10, entity.insert)
        + [(40, entity.height), (1, entity.text), (50, entity.rotation)]
    )


def _insert_tags(entity: Insert) -> List[Tag]:
    return (
        _common("INSERT", entity)
        + [(2, entity.block_name)]
        + _point(10, entity.insert)
        + [
            (41, entity.scale[0]),
            (42, entity.scale[1]),
            (43, entity.scale[2]),
            (50, entity.rotation),
        ]
    )


def _point_tags(entity: Point) -> List[Tag]:
    return _common("POINT", entity) + _point(10, entity.location)


# Group codes of each entity are emitted in this fixed schema order
ENTITY_SCHEMAS: Dict[type, Callable[[Any], List[Tag]]] = {
    Line: _line_tags,
    Circle: _circle_tags,
    Arc: _arc_tags,
    Ellipse: _ellipse_tags,
    Polyline: _polyline_tags,
    Text: _text_tags,
    Insert: _insert_tags,
    Point: _point_tags,
}


class DXFWriter:
    """DXF writer that serializes a Drawing as text DXF."""

    def __init__(self, dxf_version: str = DXF_BASELINE_VERSION) -> None:
        """Initialize DXF writer.

        Args:
            dxf_version: Value written to $ACADVER (default R12 baseline)
        """
        self.dxf_version = dxf_version

    def tokens(self, drawing: Drawing) -> Iterator[Tag]:
        """Generate the (group code, value) pairs for a drawing.

        Raises:
            ExportError: If the drawing holds an entity without a schema
            ValidationError: If the drawing violates a model invariant
        """
        for owner, index, entity in drawing.iter_entities():
            if type(entity) not in ENTITY_SCHEMAS:
                where = "model space" if owner is None else f"block {owner}"
                raise ExportError(
                    ExportErrorKind.UNSUPPORTED_ENTITY,
                    f"Cannot export {type(entity).__name__} ({where} entity {index})",
                )
        drawing.validate()
        ellipses = sum(isinstance(e, Ellipse) for _, _, e in drawing.iter_entities())
        if ellipses:
            logger.info(f"Writing {ellipses} ellipses as polyline approximations")

        yield from self._header_tags(drawing)
        yield from self._table_tags(drawing)
        yield from self._block_tags(drawing.blocks)
        yield (0, "SECTION")
        yield (2, "ENTITIES")
        for entity in drawing.entities:
            yield from self._entity_tags(entity)
        yield (0, "ENDSEC")
        yield (0, "EOF")

    def write(self, drawing: Drawing) -> bytes:
        """Serialize a drawing to DXF bytes.

        Args:
            drawing: Drawing to export

        Returns:
            ASCII encoded DXF content
        """
        stream = io.StringIO()
        tagwriter = TagWriter(stream, write_handles=False, dxfversion=self.dxf_version)
        for code, value in self.tokens(drawing):
            tagwriter.write_tag2(code, self._format_value(code, value))
        return stream.getvalue().encode("ascii")

    @staticmethod
    def _format_value(code: int, value: Any) -> str:
        value_type = group_code_type(code)
        if value_type is ValueType.FLOAT:
            return format_float(value)
        if value_type is ValueType.INTEGER:
            return str(int(value))
        return encode_dxf_string(str(value))

    def _header_tags(self, drawing: Drawing) -> Iterator[Tag]:
        extents = drawing.extents() or ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        yield (0, "SECTION")
        yield (2, "HEADER")
        yield (9, "$ACADVER")
        yield (1, self.dxf_version)
        yield (9, "$INSUNITS")
        yield (70, drawing.units)
        yield (9, "$EXTMIN")
        yield from _point(10, extents[0])
        yield (9, "$EXTMAX")
        yield from _point(10, extents[1])
        yield (0, "ENDSEC")

    def _table_tags(self, drawing: Drawing) -> Iterator[Tag]:
        linetypes = _used_linetypes(drawing)
        yield (0, "SECTION")
        yield (2, "TABLES")

        yield (0, "TABLE")
        yield (2, "LTYPE")
        yield (70, len(linetypes))
        for name in linetypes:
            yield (0, "LTYPE")
            yield (2, name)
            yield (70, 0)
            yield (3, "Solid line" if name.upper() == DEFAULT_LINETYPE else name)
            yield (72, 65)
            yield (73, 0)
            yield (40, 0.0)
        yield (0, "ENDTAB")

        yield (0, "TABLE")
        yield (2, "LAYER")
        yield (70, len(drawing.layers))
        for layer in drawing.layers:
            yield from _layer_tags(layer)
        yield (0, "ENDTAB")

        yield (0, "ENDSEC")

    def _block_tags(self, blocks: List[Block]) -> Iterator[Tag]:
        yield (0, "SECTION")
        yield (2, "BLOCKS")
        for block in blocks:
            yield (0, "BLOCK")
            yield (8, "0")
            yield (2, block.name)
            yield (70, 0)
            yield from _point(10, block.base_point)
            yield (3, block.name)
            for entity in block.entities:
                yield from self._entity_tags(entity)
            yield (0, "ENDBLK")
            yield (8, "0")
        yield (0, "ENDSEC")

    @staticmethod
    def _entity_tags(entity: Entity) -> List[Tag]:
        schema = ENTITY_SCHEMAS.get(type(entity))
        if schema is None:
            raise ExportError(
                ExportErrorKind.UNSUPPORTED_ENTITY,
                f"Cannot export {type(entity).__name__}",
            )
        return schema(entity)


def _layer_tags(layer: Layer) -> List[Tag]:
    # A negative color marks the layer as switched off
    color = layer.color if layer.visible else -layer.color
    return [
        (0, "LAYER"),
        (2, layer.name),
        (70, 0),
        (62, color),
        (6, layer.linetype),
    ]


def _used_linetypes(drawing: Drawing) -> List[str]:
    names: Dict[str, str] = {DEFAULT_LINETYPE.lower(): DEFAULT_LINETYPE}
    for layer in drawing.layers:
        names.setdefault(layer.linetype.lower(), layer.linetype)
    for _, _, entity in drawing.iter_entities():
        if entity.linetype is not None:
            names.setdefault(entity.linetype.lower(), entity.linetype)
    return [name for key, name in names.items() if key not in ("bylayer", "byblock")]


def write_dxf_file(drawing: Drawing, file_path: Union[str, Path]) -> None:
    """Convenience function to export a drawing to a DXF file.

    Args:
        drawing: Drawing to export
        file_path: Output file path
    """
    path = Path(file_path)
    content = DXFWriter().write(drawing)
    try:
        path.write_bytes(content)
    except OSError as e:
        raise ExportError(
            ExportErrorKind.IO_FAILURE, f"Failed to save DXF file {path}: {e}"
        ) from e
    logger.info(f"Saved DXF file: {path} ({drawing.entity_count} entities)")
