"""DXF file reading functionality."""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    Union,
)

from ..config import (
    COLOR_BYLAYER,
    DEFAULT_INSUNITS,
    DEFAULT_LAYER,
    DEFAULT_LAYER_COLOR,
    DEFAULT_LINETYPE,
)
from ..core.errors import (
    DXFImportError,
    TokenizeError,
    TokenizeErrorKind,
    ValidationError,
)
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
    entity_type_name,
    normalize_angle,
)
from .dxf_text import clean_mtext, decode_dxf_string
from .dxf_tokenizer import Token, TokenValue, tokenize

logger = logging.getLogger(__name__)


class ReaderState(Enum):
    """States of the section-level reader state machine."""

    PREAMBLE = "preamble"
    IN_SECTION = "in_section"
    DONE = "done"


@dataclass(frozen=True)
class ImportWarning:
    """Non-fatal problem found while importing a DXF file."""

    message: str
    layer: Optional[str] = None
    entity_index: Optional[int] = None
    section: Optional[str] = None

    def __str__(self) -> str:
        location = []
        if self.section:
            location.append(self.section)
        if self.entity_index is not None:
            location.append(f"entity {self.entity_index}")
        if self.layer:
            location.append(f"layer {self.layer}")
        if location:
            return f"[{', '.join(location)}] {self.message}"
        return self.message


@dataclass
class ImportResult:
    """Drawing reconstructed from DXF plus the warnings raised on the way."""

    drawing: Drawing
    warnings: List[ImportWarning] = field(default_factory=list)
    dxf_version: Optional[str] = None


class TokenCursor:
    """Pull-based cursor over a token iterator with one-token push-back."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._pushed: List[Token] = []

    def next(self) -> Optional[Token]:
        """Get the next token, or None at end of input."""
        if self._pushed:
            return self._pushed.pop()
        return next(self._tokens, None)

    def push_back(self, token: Token) -> None:
        """Return a token so the next call to next() yields it again."""
        self._pushed.append(token)


class _MissingField(Exception):
    """A required group code is absent from an entity record."""


class _Unsupported(Exception):
    """A recognized entity uses a variant that cannot be represented."""


@dataclass
class _Record:
    """A group-code-0 record: type name plus the tags up to the next 0."""

    type: str
    line: int
    tags: List[Tuple[int, TokenValue]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    children: List["_Record"] = field(default_factory=list)

    def first(self, code: int, default: Any = None) -> Any:
        for tag_code, value in self.tags:
            if tag_code == code:
                return value
        return default

    def all(self, code: int) -> List[TokenValue]:
        return [value for tag_code, value in self.tags if tag_code == code]

    def require(self, code: int, description: str) -> Any:
        value = self.first(code)
        if value is None:
            raise _MissingField(f"{self.type} is missing {description} (group {code})")
        return value

    def point(self, code: int, description: str) -> Vec3:
        """Read the point stored in group codes code/code+10/code+20."""
        x = self.require(code, f"{description} X")
        y = self.require(code + 10, f"{description} Y")
        z = self.first(code + 20, 0.0)
        return (float(x), float(y), float(z))

    def optional_point(self, code: int) -> Optional[Vec3]:
        if self.first(code) is None or self.first(code + 10) is None:
            return None
        return self.point(code, "point")


def _common_attributes(record: _Record) -> Dict[str, Any]:
    layer = decode_dxf_string(str(record.first(8, DEFAULT_LAYER))).strip()
    color = record.first(62)
    if color is not None:
        color = abs(int(color))
        if color >= COLOR_BYLAYER:
            color = None
    linetype = record.first(6)
    if linetype is not None:
        linetype = decode_dxf_string(str(linetype)).strip()
        if not linetype or linetype.upper() == "BYLAYER":
            linetype = None
    return {"layer": layer or DEFAULT_LAYER, "color": color, "linetype": linetype}


def _build_line(record: _Record, notes: List[str]) -> Entity:
    return Line(
        start=record.point(10, "start point"),
        end=record.point(11, "end point"),
        **_common_attributes(record),
    )


def _build_circle(record: _Record, notes: List[str]) -> Entity:
    return Circle(
        center=record.point(10, "center"),
        radius=record.require(40, "radius"),
        **_common_attributes(record),
    )


def _build_arc(record: _Record, notes: List[str]) -> Entity:
    center = record.point(10, "center")
    radius = record.require(40, "radius")
    start = normalize_angle(float(record.require(50, "start angle")))
    end = normalize_angle(float(record.require(51, "end angle")))
    if start == end:
        notes.append(
            f"ARC with equal start and end angle ({start} degrees) "
            "imported as a full CIRCLE"
        )
        return Circle(center=center, radius=radius, **_common_attributes(record))
    return Arc(
        center=center,
        radius=radius,
        start_angle=start,
        end_angle=end,
        **_common_attributes(record),
    )


def _build_ellipse(record: _Record, notes: List[str]) -> Entity:
    return Ellipse(
        center=record.point(10, "center"),
        major_axis=record.point(11, "major axis endpoint"),
        ratio=record.require(40, "axis ratio"),
        start_param=float(record.first(41, 0.0)),
        end_param=float(record.first(42, math.tau)),
        **_common_attributes(record),
    )


def _build_lwpolyline(record: _Record, notes: List[str]) -> Entity:
    elevation = float(record.first(38, 0.0))
    xs: List[float] = []
    ys: List[Optional[float]] = []
    bulges: List[float] = []
    for code, value in record.tags:
        if code == 10:
            xs.append(float(value))
            ys.append(None)
            bulges.append(0.0)
        elif code == 20 and ys:
            ys[-1] = float(value)
        elif code == 42 and bulges:
            bulges[-1] = float(value)

    if not xs:
        raise _MissingField("LWPOLYLINE has no vertices")
    vertices = []
    for index, (x, y) in enumerate(zip(xs, ys)):
        if y is None:
            raise _MissingField(f"LWPOLYLINE vertex {index} is missing Y (group 20)")
        vertices.append((x, y, elevation))

    declared = record.first(90)
    if declared is not None and int(declared) != len(vertices):
        notes.append(
            f"LWPOLYLINE declares {declared} vertices but has {len(vertices)}"
        )
    flags = int(record.first(70, 0))
    return Polyline(
        vertices=tuple(vertices),
        bulges=tuple(bulges),
        closed=bool(flags & 1),
        **_common_attributes(record),
    )


def _build_polyline(record: _Record, notes: List[str]) -> Entity:
    flags = int(record.first(70, 0))
    if flags & 16:
        raise _Unsupported("POLYLINE polygon meshes are not supported")
    if flags & 64:
        raise _Unsupported("POLYLINE polyface meshes are not supported")

    elevation = float(record.first(30, 0.0))
    vertices: List[Vec3] = []
    bulges: List[float] = []
    for vertex in record.children:
        if vertex.type != "VERTEX":
            continue
        if vertex.errors:
            raise _MissingField(f"VERTEX {len(vertices)}: {vertex.errors[0]}")
        if int(vertex.first(70, 0)) & 16:
            continue  # spline frame control point
        x = float(vertex.require(10, "vertex X"))
        y = float(vertex.require(20, "vertex Y"))
        z = float(vertex.first(30, elevation))
        vertices.append((x, y, z))
        bulges.append(float(vertex.first(42, 0.0)))

    if not vertices:
        raise _MissingField("POLYLINE has no vertices")
    return Polyline(
        vertices=tuple(vertices),
        bulges=tuple(bulges),
        closed=bool(flags & 1),
        **_common_attributes(record),
    )


def _point_list(record: _Record, code: int) -> List[Vec3]:
    """Collect the repeated points stored in group codes code/code+10/code+20."""
    coords: List[List[Optional[float]]] = []
    for tag_code, value in record.tags:
        if tag_code == code:
            coords.append([float(value), None, 0.0])
        elif tag_code == code + 10 and coords:
            coords[-1][1] = float(value)
        elif tag_code == code + 20 and coords:
            coords[-1][2] = float(value)

    points: List[Vec3] = []
    for index, (x, y, z) in enumerate(coords):
        if y is None:
            raise _MissingField(
                f"{record.type} point {index} is missing Y (group {code + 10})"
            )
        points.append((float(x), y, float(z)))  # type: ignore[arg-type]
    return points


def _build_spline(record: _Record, notes: List[str]) -> Entity:
    # Fit points lie on the curve, control points only near it
    points = _point_list(record, 11)
    source = "fit"
    if len(points) < 2:
        points = _point_list(record, 10)
        source = "control"
    if len(points) < 2:
        raise _MissingField(f"SPLINE has {len(points)} {source} points, needs 2")
    notes.append(f"SPLINE imported as a polyline through its {source} points")
    flags = int(record.first(70, 0))
    return Polyline(
        vertices=tuple(points),
        closed=bool(flags & 1),
        **_common_attributes(record),
    )

def _build_text(record: _Record, notes: List[str]) -> Entity:
    return Text(
        text=decode_dxf_string(str(record.require(1, "text value"))),
        insert=record.point(10, "insertion point"),
        height=record.require(40, "text height"),
        rotation=float(record.first(50, 0.0)),
        **_common_attributes(record),
    )


def _build_mtext(record: _Record, notes: List[str]) -> Entity:
    # Long MTEXT content is split over group 3 chunks followed by group 1
    chunks = [str(v) for v in record.all(3)]
    chunks.append(str(record.require(1, "text value")))
    content = clean_mtext("".join(chunks))

    rotation = record.first(50)
    if rotation is None:
        direction = record.optional_point(11)
        if direction is not None:
            rotation = math.degrees(math.atan2(direction[1], direction[0]))
        else:
            rotation = 0.0
    return Text(
        text=content,
        insert=record.point(10, "insertion point"),
        height=record.require(40, "text height"),
        rotation=float(rotation),
        **_common_attributes(record),
    )


def _build_insert(record: _Record, notes: List[str]) -> Entity:
    if record.children:
        notes.append(f"{len(record.children)} block attribute(s) dropped")
    return Insert(
        block_name=decode_dxf_string(str(record.require(2, "block name"))),
        insert=record.point(10, "insertion point"),
        scale=(
            float(record.first(41, 1.0)),
            float(record.first(42, 1.0)),
            float(record.first(43, 1.0)),
        ),
        rotation=float(record.first(50, 0.0)),
        **_common_attributes(record),
    )


def _build_point(record: _Record, notes: List[str]) -> Entity:
    return Point(location=record.point(10, "location"), **_common_attributes(record))


def _build_solid(record: _Record, notes: List[str]) -> Entity:
    # SOLID and TRACE store quad corners in 0, 1, 3, 2 order
    p0 = record.point(10, "first corner")
    p1 = record.point(11, "second corner")
    p2 = record.point(12, "third corner")
    p3 = record.optional_point(13) or p2
    vertices = (p0, p1, p2) if p3 == p2 else (p0, p1, p3, p2)
    return Polyline(vertices=vertices, closed=True, **_common_attributes(record))


def _build_3dface(record: _Record, notes: List[str]) -> Entity:
    p0 = record.point(10, "first corner")
    p1 = record.point(11, "second corner")
    p2 = record.point(12, "third corner")
    p3 = record.optional_point(13) or p2
    vertices = (p0, p1, p2) if p3 == p2 else (p0, p1, p2, p3)
    return Polyline(vertices=vertices, closed=True, **_common_attributes(record))


EntityBuilder = Callable[[_Record, List[str]], Entity]

ENTITY_BUILDERS: Dict[str, EntityBuilder] = {
    "LINE": _build_line,
    "CIRCLE": _build_circle,
    "ARC": _build_arc,
    "ELLIPSE": _build_ellipse,
    "LWPOLYLINE": _build_lwpolyline,
    "POLYLINE": _build_polyline,
    "SPLINE": _build_spline,
    "TEXT": _build_text,
    "MTEXT": _build_mtext,
    "INSERT": _build_insert,
    "POINT": _build_point,
    "SOLID": _build_solid,
    "TRACE": _build_solid,
    "3DFACE": _build_3dface,
}

# Records that belong to the preceding entity until SEQEND
_CHILD_RECORDS = {"POLYLINE": "VERTEX", "INSERT": "ATTRIB"}

# Layout blocks written by R12 exporters in place of *Model_Space/*Paper_Space
_LAYOUT_BLOCKS = {"$MODEL_SPACE", "$PAPER_SPACE"}


@dataclass
class _BlockRecord:
    name: str
    base_point: Vec3
    records: List[_Record]
    line: int


class DXFReader:
    """DXF reader that rebuilds a Drawing from a token stream.

    A reader instance holds the state of one import; create a new reader
    (or call read() again) for every file.
    """

    def __init__(self) -> None:
        """Initialize DXF reader."""
        self._reset(())

    def _reset(self, tokens: Iterable[Token]) -> None:
        self._cursor = TokenCursor(tokens)
        self._warnings: List[ImportWarning] = []
        self._layers: List[Layer] = []
        self._layer_names: Set[str] = set()
        self._block_records: List[_BlockRecord] = []
        self._entity_records: List[_Record] = []
        self._has_entities_section = False
        self._units = DEFAULT_INSUNITS
        self._version: Optional[str] = None

    def read(self, tokens: Iterable[Token]) -> ImportResult:
        """Read a DXF token stream into a Drawing.

        Args:
            tokens: Tokens produced by the DXF tokenizer

        Returns:
            ImportResult with the drawing and ordered non-fatal warnings

        Raises:
            DXFImportError: If the file structure is broken
        """
        self._reset(tokens)
        section_handlers: Dict[str, Callable[[_Record], None]] = {
            "HEADER": self._read_header,
            "TABLES": self._read_tables,
            "BLOCKS": self._read_blocks,
            "ENTITIES": self._read_entities,
        }

        state = ReaderState.PREAMBLE
        section = _Record(type="SECTION", line=0)
        while state is not ReaderState.DONE:
            if state is ReaderState.PREAMBLE:
                record = self._next_record()
                if record is None:
                    logger.warning("DXF content ends without an EOF marker")
                    state = ReaderState.DONE
                elif record.type == "EOF":
                    state = ReaderState.DONE
                elif record.type == "SECTION":
                    if not record.first(2):
                        raise self._fatal(
                            f"SECTION without a name at line {record.line}"
                        )
                    section = record
                    state = ReaderState.IN_SECTION
                else:
                    self._warn(
                        f"Unexpected {record.type or 'empty'} record outside a "
                        f"section at line {record.line}, ignored"
                    )
            elif state is ReaderState.IN_SECTION:
                name = str(section.first(2)).upper()
                handler = section_handlers.get(name, self._skip_section)
                handler(section)
                state = ReaderState.PREAMBLE

        return self._build_result()

    # -- token and record access -------------------------------------------

    def _fatal(self, message: str) -> DXFImportError:
        return DXFImportError(message, self._warnings)

    def _warn(
        self,
        message: str,
        layer: Optional[str] = None,
        entity_index: Optional[int] = None,
        section: Optional[str] = None,
    ) -> None:
        warning = ImportWarning(message, layer, entity_index, section)
        logger.debug(f"DXF import warning: {warning}")
        self._warnings.append(warning)

    def _next_record(self) -> Optional[_Record]:
        """Read the next group-code-0 record, or None at end of input."""
        while True:
            try:
                head = self._cursor.next()
            except TokenizeError as e:
                if e.kind is TokenizeErrorKind.MALFORMED_NUMBER:
                    self._warn(f"Ignored malformed value: {e}")
                    continue
                raise self._fatal(str(e)) from e
            if head is None:
                return None
            if head.code == 0:
                break
            if head.code != 999:
                self._warn(
                    f"Ignored group code {head.code} outside a record "
                    f"at line {head.line}"
                )

        record = _Record(type=str(head.value).strip().upper(), line=head.line)
        while True:
            try:
                token = self._cursor.next()
            except TokenizeError as e:
                if e.kind is TokenizeErrorKind.MALFORMED_NUMBER:
                    record.errors.append(str(e))
                    continue
                raise self._fatal(str(e)) from e
            if token is None:
                break
            if token.code == 0:
                self._cursor.push_back(token)
                break
            if token.code != 999:
                record.tags.append((token.code, token.value))
        return record

    def _section_record(self, section: str) -> _Record:
        record = self._next_record()
        if record is None:
            raise self._fatal(f"Unexpected end of file inside {section} section")
        if record.type in ("EOF", "SECTION"):
            raise self._fatal(
                f"{section} section is not closed by ENDSEC (found {record.type} "
                f"at line {record.line})"
            )
        return record

    def _skip_section(self, section: _Record) -> None:
        name = str(section.first(2))
        skipped = 0
        while self._section_record(name).type != "ENDSEC":
            skipped += 1
        logger.debug(f"Skipped unsupported section {name} ({skipped} records)")

    # -- sections ------------------------------------------------------------

    def _read_header(self, section: _Record) -> None:
        # Header variables follow the section name as 9/$NAME tag groups
        variables: Dict[str, List[TokenValue]] = {}
        current: Optional[str] = None
        for code, value in section.tags[1:]:
            if code == 9:
                current = str(value).upper()
                variables[current] = []
            elif current is not None:
                variables[current].append(value)

        if variables.get("$ACADVER"):
            self._version = str(variables["$ACADVER"][0])
        if variables.get("$INSUNITS"):
            units = variables["$INSUNITS"][0]
            if isinstance(units, int) and 0 <= units <= 24:
                self._units = units
            else:
                self._warn(
                    f"Ignored invalid $INSUNITS value {units!r}", section="HEADER"
                )

        while True:
            record = self._section_record("HEADER")
            if record.type == "ENDSEC":
                break
            self._warn(
                f"Unexpected {record.type} record in HEADER section, ignored",
                section="HEADER",
            )

    def _read_tables(self, section: _Record) -> None:
        table: Optional[str] = None
        while True:
            record = self._section_record("TABLES")
            if record.type == "ENDSEC":
                break
            if record.type == "TABLE":
                table = str(record.first(2, "")).upper()
            elif record.type == "ENDTAB":
                table = None
            elif record.type == "LAYER" and table == "LAYER":
                self._read_layer(record)
            # Other table entries (LTYPE, STYLE, VPORT, ...) are not modelled

    def _read_layer(self, record: _Record) -> None:
        name = decode_dxf_string(str(record.first(2, ""))).strip()
        if not name:
            self._warn(
                f"Layer without a name at line {record.line} skipped",
                section="TABLES",
            )
            return
        if name.lower() in self._layer_names:
            self._warn(f"Duplicate layer {name} ignored", layer=name, section="TABLES")
            return
        if record.errors:
            self._warn(
                f"Layer skipped: {record.errors[0]}", layer=name, section="TABLES"
            )
            return

        color = int(record.first(62, DEFAULT_LAYER_COLOR))
        visible = color >= 0
        color = abs(color)
        if not 1 <= color <= 255:
            self._warn(
                f"Layer color {color} out of range, using {DEFAULT_LAYER_COLOR}",
                layer=name,
                section="TABLES",
            )
            color = DEFAULT_LAYER_COLOR
        linetype = decode_dxf_string(str(record.first(6, DEFAULT_LINETYPE))).strip()
        try:
            layer = Layer(
                name=name,
                color=color,
                visible=visible,
                linetype=linetype or DEFAULT_LINETYPE,
            )
        except ValidationError as e:
            self._warn(f"Layer skipped: {e}", layer=name, section="TABLES")
            return
        self._layers.append(layer)
        self._layer_names.add(name.lower())

    def _read_entity_records(
        self, section: str, stop_types: Set[str]
    ) -> Tuple[List[_Record], _Record]:
        """Collect entity records up to (and including) a stop record.

        VERTEX and ATTRIB records are attached to the POLYLINE or INSERT
        they follow, up to the closing SEQEND.
        """
        records: List[_Record] = []
        parent: Optional[_Record] = None
        while True:
            record = self._section_record(section)
            if record.type in stop_types:
                return records, record
            if parent is not None:
                if record.type == _CHILD_RECORDS[parent.type]:
                    parent.children.append(record)
                    continue
                if record.type == "SEQEND":
                    parent = None
                    continue
                parent = None
            records.append(record)
            if record.type == "POLYLINE" or (
                record.type == "INSERT" and record.first(66) == 1
            ):
                parent = record

    def _read_blocks(self, section: _Record) -> None:
        while True:
            record = self._section_record("BLOCKS")
            if record.type == "ENDSEC":
                return
            if record.type != "BLOCK":
                self._warn(
                    f"Unexpected {record.type} record in BLOCKS section, ignored",
                    section="BLOCKS",
                )
                continue

            name = decode_dxf_string(str(record.first(2) or record.first(3) or ""))
            entities, end = self._read_entity_records("BLOCKS", {"ENDBLK", "ENDSEC"})
            try:
                base_point = record.point(10, "base point")
            except _MissingField:
                base_point = (0.0, 0.0, 0.0)

            if not name.strip():
                self._warn(
                    f"Block without a name at line {record.line} skipped",
                    section="BLOCKS",
                )
            elif name.startswith("*") or name.upper() in _LAYOUT_BLOCKS:
                logger.debug(f"Skipped anonymous or layout block {name}")
            else:
                self._block_records.append(
                    _BlockRecord(name, base_point, entities, record.line)
                )

            if end.type == "ENDSEC":
                self._warn(f"Block {name} is not closed by ENDBLK", section="BLOCKS")
                return

    def _read_entities(self, section: _Record) -> None:
        self._has_entities_section = True
        records, _ = self._read_entity_records("ENTITIES", {"ENDSEC"})
        self._entity_records.extend(records)

    # -- entity assembly -----------------------------------------------------

    def _build_entities(
        self, records: List[_Record], section: str
    ) -> Tuple[List[Tuple[int, Entity]], int]:
        """Build entities from records, skipping broken ones with warnings.

        Returns:
            (index, entity) pairs and the number of recognized records
        """
        built: List[Tuple[int, Entity]] = []
        recognized = 0
        for index, record in enumerate(records):
            layer = record.first(8)
            layer = str(layer) if layer is not None else None
            builder = ENTITY_BUILDERS.get(record.type)
            if builder is None:
                self._warn(
                    f"Unsupported entity type {record.type or '(empty)'} skipped",
                    layer=layer,
                    entity_index=index,
                    section=section,
                )
                continue

            recognized += 1
            if record.errors:
                self._warn(
                    f"{record.type} skipped: {record.errors[0]}",
                    layer=layer,
                    entity_index=index,
                    section=section,
                )
                continue

            notes: List[str] = []
            try:
                entity = builder(record, notes)
            except (_MissingField, _Unsupported, ValidationError) as e:
                self._warn(
                    f"{record.type} skipped: {e}",
                    layer=layer,
                    entity_index=index,
                    section=section,
                )
                continue
            for note in notes:
                self._warn(note, layer=layer, entity_index=index, section=section)
            built.append((index, entity))
        return built, recognized

    def _resolve(
        self,
        built: List[Tuple[int, Entity]],
        section: str,
        block_names: Set[str],
    ) -> List[Entity]:
        """Reassign undefined layers to layer 0 and drop dangling inserts."""
        resolved: List[Entity] = []
        for index, entity in built:
            if (
                isinstance(entity, Insert)
                and entity.block_name.lower() not in block_names
            ):
                self._warn(
                    f"INSERT references undefined block {entity.block_name!r}, dropped",
                    layer=entity.layer,
                    entity_index=index,
                    section=section,
                )
                continue
            if entity.layer.lower() not in self._layer_names:
                self._warn(
                    f"{entity_type_name(entity)} references undefined layer "
                    f"{entity.layer!r}, moved to layer {DEFAULT_LAYER}",
                    layer=entity.layer,
                    entity_index=index,
                    section=section,
                )
                entity = dataclasses.replace(entity, layer=DEFAULT_LAYER)
            resolved.append(entity)
        return resolved

    def _build_result(self) -> ImportResult:
        if DEFAULT_LAYER not in self._layer_names:
            self._layers.insert(0, Layer(DEFAULT_LAYER))
            self._layer_names.add(DEFAULT_LAYER)

        # Block names first, so inserts can refer to blocks defined later
        block_names: Set[str] = set()
        unique_blocks: List[_BlockRecord] = []
        for block in self._block_records:
            if block.name.lower() in block_names:
                self._warn(f"Duplicate block {block.name} ignored", section="BLOCKS")
                continue
            block_names.add(block.name.lower())
            unique_blocks.append(block)

        blocks: List[Block] = []
        for block in unique_blocks:
            section = f"BLOCK {block.name}"
            built, _ = self._build_entities(block.records, section)
            entities = self._resolve(built, section, block_names)
            blocks.append(Block(block.name, block.base_point, tuple(entities)))

        built, recognized = self._build_entities(self._entity_records, "ENTITIES")
        if recognized and not built:
            raise self._fatal(
                f"None of the {recognized} entities in the ENTITIES section "
                "could be imported"
            )
        entities = self._resolve(built, "ENTITIES", block_names)

        try:
            drawing = Drawing(
                layers=self._layers,
                entities=entities,
                blocks=blocks,
                units=self._units,
            )
        except ValidationError as e:
            raise self._fatal(f"Imported drawing is inconsistent: {e}") from e

        if not self._has_entities_section:
            logger.info("DXF content has no ENTITIES section")
        logger.info(
            f"Imported DXF: {drawing.entity_count} entities, {len(drawing.layers)} "
            f"layers, {len(drawing.blocks)} blocks, {len(self._warnings)} warnings"
        )
        return ImportResult(drawing, list(self._warnings), self._version)


def read_dxf(content: Union[str, bytes]) -> ImportResult:
    """Import DXF content held in memory.

    Args:
        content: DXF file content as text or raw bytes

    Returns:
        ImportResult with drawing and warnings

    Raises:
        DXFImportError: If the content cannot be imported
    """
    try:
        tokens = tokenize(content)
    except TokenizeError as e:
        raise DXFImportError(str(e)) from e
    return DXFReader().read(tokens)


def read_dxf_file(file_path: Union[str, Path]) -> ImportResult:
    """Convenience function to import a DXF file from disk.

    Args:
        file_path: Path to DXF file

    Returns:
        ImportResult with drawing and warnings
    """
    path = Path(file_path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise DXFImportError(f"Failed to read DXF file {path}: {e}") from e

    result = read_dxf(content)
    logger.info(f"Loaded DXF file: {path}")
    return result
