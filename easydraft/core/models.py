"""Core data models for drawings: layers, entities and blocks."""

import math
from collections import Counter
from dataclasses import dataclass, field, fields, is_dataclass
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import numpy as np

from ..config import (
    DEFAULT_INSUNITS,
    DEFAULT_LAYER,
    DEFAULT_LAYER_COLOR,
    DEFAULT_LINETYPE,
    ELLIPSE_SEGMENTS,
    FULL_ELLIPSE_TOLERANCE,
    ROUNDTRIP_TOLERANCE,
)
from .errors import ValidationError, ValidationErrorKind

Vec3 = Tuple[float, float, float]

# Drawing fields the DXF format does not carry
DXF_LOSSY_FIELDS = ("metadata",)


def _invalid(message: str) -> ValidationError:
    return ValidationError(ValidationErrorKind.INVALID_GEOMETRY, message)


def to_finite(value: Any, name: str) -> float:
    """Convert value to a finite float or raise ValidationError."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise _invalid(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise _invalid(f"{name} must be finite, got {number}")
    return number


def to_vec3(value: Sequence[Any], name: str) -> Vec3:
    """Convert a 2D or 3D coordinate sequence to an (x, y, z) float tuple."""
    try:
        coords = list(value)
    except TypeError:
        raise _invalid(f"{name} must be a coordinate sequence, got {value!r}")
    if len(coords) == 2:
        coords.append(0.0)
    if len(coords) != 3:
        raise _invalid(f"{name} must have 2 or 3 coordinates, got {len(coords)}")
    x, y, z = (to_finite(c, name) for c in coords)
    return (x, y, z)


def normalize_angle(angle: float) -> float:
    """Normalize an angle in degrees to the range [0, 360)."""
    result = math.fmod(angle, 360.0)
    if result < 0:
        result += 360.0
    if result >= 360.0:
        result = 0.0
    return result + 0.0  # clears negative zero


def _check_common(entity: Any) -> None:
    kind = type(entity).__name__
    if not isinstance(entity.layer, str) or not entity.layer:
        raise _invalid(f"{kind} must reference a layer name")
    if entity.color is not None:
        if isinstance(entity.color, bool) or not isinstance(entity.color, int):
            raise _invalid(f"{kind} color must be an integer, got {entity.color!r}")
        if not 0 <= entity.color <= 255:
            raise _invalid(f"{kind} color {entity.color} outside 0..255")
    if entity.linetype is not None and not entity.linetype:
        raise _invalid(f"{kind} line type override must not be empty")


@dataclass(frozen=True)
class Line:
    """Straight segment between two points."""

    start: Vec3
    end: Vec3
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", to_vec3(self.start, "Line start"))
        object.__setattr__(self, "end", to_vec3(self.end, "Line end"))
        _check_common(self)


@dataclass(frozen=True)
class Circle:
    """Full circle."""

    center: Vec3
    radius: float
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_vec3(self.center, "Circle center"))
        radius = to_finite(self.radius, "Circle radius")
        if radius <= 0:
            raise _invalid(f"Circle radius must be positive, got {radius}")
        object.__setattr__(self, "radius", radius)
        _check_common(self)


@dataclass(frozen=True)
class Arc:
    """Circular arc running counter-clockwise from start_angle to end_angle.

    Angles are in degrees and normalized to [0, 360). An arc whose start and
    end angles coincide is rejected; use a Circle instead.
    """

    center: Vec3
    radius: float
    start_angle: float
    end_angle: float
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_vec3(self.center, "Arc center"))
        radius = to_finite(self.radius, "Arc radius")
        if radius <= 0:
            raise _invalid(f"Arc radius must be positive, got {radius}")
        object.__setattr__(self, "radius", radius)
        start = normalize_angle(to_finite(self.start_angle, "Arc start angle"))
        end = normalize_angle(to_finite(self.end_angle, "Arc end angle"))
        if start == end:
            raise _invalid(f"Arc start and end angle are equal ({start} degrees)")
        object.__setattr__(self, "start_angle", start)
        object.__setattr__(self, "end_angle", end)
        _check_common(self)

    @property
    def sweep(self) -> float:
        """Counter-clockwise sweep angle in degrees."""
        return (self.end_angle - self.start_angle) % 360.0


@dataclass(frozen=True)
class Ellipse:
    """Elliptical arc around a center point.

    major_axis is the endpoint of the major axis relative to the center and
    ratio is the minor to major axis length ratio. start_param and end_param
    are parametric angles in radians, counter-clockwise from the major axis;
    0 to 2*pi is a full ellipse.
    """

    center: Vec3
    major_axis: Vec3
    ratio: float
    start_param: float = 0.0
    end_param: float = math.tau
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", to_vec3(self.center, "Ellipse center"))
        major_axis = to_vec3(self.major_axis, "Ellipse major axis")
        if major_axis == (0.0, 0.0, 0.0):
            raise _invalid("Ellipse major axis must not be zero")
        object.__setattr__(self, "major_axis", major_axis)
        ratio = to_finite(self.ratio, "Ellipse ratio")
        if not 0 < ratio <= 1:
            raise _invalid(f"Ellipse ratio must be in (0, 1], got {ratio}")
        object.__setattr__(self, "ratio", ratio)
        start = to_finite(self.start_param, "Ellipse start parameter")
        end = to_finite(self.end_param, "Ellipse end parameter")
        if math.isclose(start, end, rel_tol=0.0, abs_tol=1e-12):
            raise _invalid(f"Ellipse start and end parameter are equal ({start})")
        object.__setattr__(self, "start_param", start)
        object.__setattr__(self, "end_param", end)
        _check_common(self)

    @property
    def is_full(self) -> bool:
        """Check if the parameters span the whole ellipse."""
        return abs(self.sweep - math.tau) < FULL_ELLIPSE_TOLERANCE

    @property
    def sweep(self) -> float:
        """Counter-clockwise parameter sweep in radians, in (0, 2*pi]."""
        span = self.end_param - self.start_param
        if abs(span) >= math.tau - FULL_ELLIPSE_TOLERANCE:
            return math.tau
        return span % math.tau

    def points(self, segments: int) -> np.ndarray:
        """Sample the ellipse.

        Args:
            segments: Number of chords for a full ellipse; partial arcs get
                a proportional share, at least one

        Returns:
            (n, 3) array of points from start to end parameter. A full
            ellipse does not repeat its first point.
        """
        count = max(1, int(math.ceil(segments * self.sweep / math.tau)))
        params = self.start_param + np.linspace(0.0, self.sweep, count + 1)
        if self.is_full:
            params = params[:-1]
        major = np.asarray(self.major_axis)
        # Minor axis: major axis turned 90 degrees in the XY plane
        minor = np.array([-major[1], major[0], 0.0]) * self.ratio
        if not minor.any():
            minor = np.array([0.0, np.linalg.norm(major) * self.ratio, 0.0])
        return (
            np.asarray(self.center)
            + np.outer(np.cos(params), major)
            + np.outer(np.sin(params), minor)
        )


@dataclass(frozen=True)
class Polyline:
    """Connected vertex chain with optional bulge per segment.

    bulges[i] is the tangent of a quarter of the included angle of the
    segment starting at vertices[i]; 0 means a straight segment.
    """

    vertices: Tuple[Vec3, ...]
    bulges: Tuple[float, ...] = ()
    closed: bool = False
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        vertices = tuple(
            to_vec3(v, f"Polyline vertex {i}") for i, v in enumerate(self.vertices)
        )
        if not vertices:
            raise _invalid("Polyline must have at least 1 vertex")
        bulges = tuple(to_finite(b, "Polyline bulge") for b in self.bulges)
        if not bulges:
            bulges = (0.0,) * len(vertices)
        if len(bulges) != len(vertices):
            raise _invalid(
                f"Polyline has {len(vertices)} vertices but {len(bulges)} bulges"
            )
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "bulges", bulges)
        object.__setattr__(self, "closed", bool(self.closed))
        _check_common(self)


@dataclass(frozen=True)
class Text:
    """Single-line text placed at an insertion point."""

    text: str
    insert: Vec3
    height: float
    rotation: float = 0.0
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise _invalid(f"Text content must be a string, got {self.text!r}")
        object.__setattr__(self, "insert", to_vec3(self.insert, "Text insert"))
        height = to_finite(self.height, "Text height")
        if height < 0:
            raise _invalid(f"Text height must not be negative, got {height}")
        object.__setattr__(self, "height", height)
        rotation = normalize_angle(to_finite(self.rotation, "Text rotation"))
        object.__setattr__(self, "rotation", rotation)
        _check_common(self)


@dataclass(frozen=True)
class Insert:
    """Placed reference to a Block, looked up by name."""

    block_name: str
    insert: Vec3
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: float = 0.0
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.block_name, str) or not self.block_name:
            raise _invalid("Insert must reference a block name")
        object.__setattr__(self, "insert", to_vec3(self.insert, "Insert point"))
        scale = to_vec3(self.scale, "Insert scale")
        if 0.0 in scale:
            raise _invalid(f"Insert scale factors must be non-zero, got {scale}")
        object.__setattr__(self, "scale", scale)
        rotation = normalize_angle(to_finite(self.rotation, "Insert rotation"))
        object.__setattr__(self, "rotation", rotation)
        _check_common(self)


@dataclass(frozen=True)
class Point:
    """Single point marker."""

    location: Vec3
    layer: str = DEFAULT_LAYER
    color: Optional[int] = None
    linetype: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "location", to_vec3(self.location, "Point"))
        _check_common(self)


Entity = Union[Line, Circle, Arc, Ellipse, Polyline, Text, Insert, Point]

ENTITY_TYPES: Tuple[type, ...] = (
    Line,
    Circle,
    Arc,
    Ellipse,
    Polyline,
    Text,
    Insert,
    Point,
)

_ENTITY_NAMES: Dict[type, str] = {
    Line: "LINE",
    Circle: "CIRCLE",
    Arc: "ARC",
    Ellipse: "ELLIPSE",
    Polyline: "POLYLINE",
    Text: "TEXT",
    Insert: "INSERT",
    Point: "POINT",
}


def entity_type_name(entity: Any) -> str:
    """Return the DXF entity name for an entity variant."""
    return _ENTITY_NAMES.get(type(entity), type(entity).__name__.upper())


@dataclass(frozen=True)
class Layer:
    """Named group of entities sharing default visual properties."""

    name: str
    color: int = DEFAULT_LAYER_COLOR
    visible: bool = True
    linetype: str = DEFAULT_LINETYPE

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise _invalid("Layer name must not be empty")
        if isinstance(self.color, bool) or not isinstance(self.color, int):
            raise _invalid(f"Layer {self.name} color must be an integer")
        if not 1 <= self.color <= 255:
            raise _invalid(f"Layer {self.name} color {self.color} outside 1..255")
        if not self.linetype:
            raise _invalid(f"Layer {self.name} must have a line type")
        object.__setattr__(self, "visible", bool(self.visible))


@dataclass(frozen=True)
class Block:
    """Named, reusable group of entities with a base point."""

    name: str
    base_point: Vec3 = (0.0, 0.0, 0.0)
    entities: Tuple[Entity, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise _invalid("Block name must not be empty")
        object.__setattr__(
            self, "base_point", to_vec3(self.base_point, f"Block {self.name} base")
        )
        entities = tuple(self.entities)
        for entity in entities:
            if not isinstance(entity, ENTITY_TYPES):
                raise _invalid(f"Block {self.name} holds a non-entity: {entity!r}")
        object.__setattr__(self, "entities", entities)


@dataclass
class Drawing:
    """A complete drawing document.

    The default layer "0" is always present; it is inserted first when the
    given layers do not contain it. Construction fails with ValidationError
    if layer or block names collide or an entity references a missing layer
    or block.
    """

    layers: List[Layer] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    blocks: List[Block] = field(default_factory=list)
    units: int = DEFAULT_INSUNITS
    metadata: Dict[str, Any] = field(default_factory=dict)
    _layer_index: Dict[str, Layer] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _block_index: Dict[str, Block] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        self.layers = list(self.layers)
        self.entities = list(self.entities)
        self.blocks = list(self.blocks)
        names = [str(getattr(layer, "name", "")).lower() for layer in self.layers]
        if DEFAULT_LAYER not in names:
            self.layers.insert(0, Layer(DEFAULT_LAYER))
        if isinstance(self.units, bool) or not isinstance(self.units, int):
            raise _invalid(f"Drawing units must be an integer code, got {self.units!r}")
        if not 0 <= self.units <= 24:
            raise _invalid(f"Unknown drawing units code {self.units}")
        self.validate()

    def validate(self) -> None:
        """Rebuild the name indexes and check all drawing invariants."""
        self._layer_index = {}
        for layer in self.layers:
            if not isinstance(layer, Layer):
                raise _invalid(f"Not a layer: {layer!r}")
            key = layer.name.lower()
            if key in self._layer_index:
                raise ValidationError(
                    ValidationErrorKind.DUPLICATE_LAYER,
                    f"Duplicate layer name: {layer.name}",
                )
            self._layer_index[key] = layer

        self._block_index = {}
        for block in self.blocks:
            if not isinstance(block, Block):
                raise _invalid(f"Not a block: {block!r}")
            key = block.name.lower()
            if key in self._block_index:
                raise ValidationError(
                    ValidationErrorKind.DUPLICATE_BLOCK,
                    f"Duplicate block name: {block.name}",
                )
            self._block_index[key] = block

        for owner, index, entity in self.iter_entities():
            self._check_references(entity, owner, index)

    def _check_references(
        self, entity: Entity, owner: Optional[str], index: int
    ) -> None:
        where = f"entity {index}" if owner is None else f"block {owner} entity {index}"
        if not isinstance(entity, ENTITY_TYPES):
            raise _invalid(f"Unsupported entity at {where}: {entity!r}")
        if not self.has_layer(entity.layer):
            raise ValidationError(
                ValidationErrorKind.DANGLING_REFERENCE,
                f"{entity_type_name(entity)} at {where} references "
                f"undefined layer {entity.layer!r}",
            )
        if isinstance(entity, Insert) and not self.has_block(entity.block_name):
            raise ValidationError(
                ValidationErrorKind.DANGLING_REFERENCE,
                f"INSERT at {where} references undefined block "
                f"{entity.block_name!r}",
            )

    def iter_entities(self) -> Iterator[Tuple[Optional[str], int, Entity]]:
        """Yield (block name or None, index, entity) for all entities.

        Model-space entities come first with a block name of None.
        """
        for index, entity in enumerate(self.entities):
            yield None, index, entity
        for block in self.blocks:
            for index, entity in enumerate(block.entities):
                yield block.name, index, entity

    def has_layer(self, name: str) -> bool:
        """Check if a layer exists (case-insensitive)."""
        return name.lower() in self._layer_index

    def get_layer(self, name: str) -> Optional[Layer]:
        """Look up a layer by name (case-insensitive)."""
        return self._layer_index.get(name.lower())

    def has_block(self, name: str) -> bool:
        """Check if a block definition exists (case-insensitive)."""
        return name.lower() in self._block_index

    def get_block(self, name: str) -> Optional[Block]:
        """Look up a block definition by name (case-insensitive)."""
        return self._block_index.get(name.lower())

    def add_layer(self, layer: Layer) -> None:
        """Add a layer, rejecting duplicate names."""
        if self.has_layer(layer.name):
            raise ValidationError(
                ValidationErrorKind.DUPLICATE_LAYER,
                f"Duplicate layer name: {layer.name}",
            )
        self.layers.append(layer)
        self._layer_index[layer.name.lower()] = layer

    def add_block(self, block: Block) -> None:
        """Add a block definition after checking its entity references."""
        if self.has_block(block.name):
            raise ValidationError(
                ValidationErrorKind.DUPLICATE_BLOCK,
                f"Duplicate block name: {block.name}",
            )
        self._block_index[block.name.lower()] = block
        try:
            for index, entity in enumerate(block.entities):
                self._check_references(entity, block.name, index)
        except ValidationError:
            del self._block_index[block.name.lower()]
            raise
        self.blocks.append(block)

    def add_entity(self, entity: Entity) -> None:
        """Append a model-space entity after checking its references."""
        self._check_references(entity, None, len(self.entities))
        self.entities.append(entity)

    @property
    def entity_count(self) -> int:
        """Get number of model-space entities."""
        return len(self.entities)

    def entity_counts(self) -> Dict[str, int]:
        """Count model-space entities per DXF type name."""
        return dict(Counter(entity_type_name(e) for e in self.entities))

    def extents(self) -> Optional[Tuple[Vec3, Vec3]]:
        """Calculate the bounding box of model-space geometry.

        Inserts contribute their insertion point only.

        Returns:
            ((xmin, ymin, zmin), (xmax, ymax, zmax)) or None for an empty drawing
        """
        points: List[Vec3] = []
        for entity in self.entities:
            points.extend(_extent_points(entity))
        if not points:
            return None

        array = np.asarray(points, dtype=float)
        low = array.min(axis=0)
        high = array.max(axis=0)
        return (
            (float(low[0]), float(low[1]), float(low[2])),
            (float(high[0]), float(high[1]), float(high[2])),
        )

    def is_close(
        self,
        other: "Drawing",
        abs_tol: float = ROUNDTRIP_TOLERANCE,
        ignore: Sequence[str] = DXF_LOSSY_FIELDS,
    ) -> bool:
        """Compare two drawings with a tolerance on floating point values.

        Args:
            other: Drawing to compare with
            abs_tol: Absolute tolerance for coordinates and angles
            ignore: Drawing field names left out of the comparison

        Returns:
            True if both drawings are geometrically equal
        """
        if not isinstance(other, Drawing):
            return False
        for f in fields(self):
            if not f.compare or f.name in ignore:
                continue
            if not _values_close(
                getattr(self, f.name), getattr(other, f.name), abs_tol
            ):
                return False
        return True


def _extent_points(entity: Entity) -> List[Vec3]:
    if isinstance(entity, Line):
        return [entity.start, entity.end]
    if isinstance(entity, Circle):
        cx, cy, cz = entity.center
        r = entity.radius
        return [(cx - r, cy - r, cz), (cx + r, cy + r, cz)]
    if isinstance(entity, Arc):
        cx, cy, cz = entity.center
        r = entity.radius
        angles = [entity.start_angle, entity.end_angle]
        # Quadrant points lying inside the counter-clockwise sweep
        for quadrant in (0.0, 90.0, 180.0, 270.0):
            if (quadrant - entity.start_angle) % 360.0 <= entity.sweep:
                angles.append(quadrant)
        return [
            (
                cx + r * math.cos(math.radians(a)),
                cy + r * math.sin(math.radians(a)),
                cz,
            )
            for a in angles
        ]
    if isinstance(entity, Ellipse):
        return [tuple(p) for p in entity.points(ELLIPSE_SEGMENTS).tolist()]
    if isinstance(entity, Polyline):
        return list(entity.vertices)
    if isinstance(entity, (Text, Insert)):
        return [entity.insert]
    if isinstance(entity, Point):
        return [entity.location]
    return []


def _values_close(a: Any, b: Any, tol: float) -> bool:
    numbers = (int, float)
    if (
        isinstance(a, numbers)
        and isinstance(b, numbers)
        and not isinstance(a, bool)
        and not isinstance(b, bool)
        and (isinstance(a, float) or isinstance(b, float))
    ):
        return math.isclose(a, b, rel_tol=0.0, abs_tol=tol)
    if is_dataclass(a) and not isinstance(a, type):
        if type(a) is not type(b):
            return False
        return all(
            _values_close(getattr(a, f.name), getattr(b, f.name), tol)
            for f in fields(a)
            if f.compare
        )
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(
            _values_close(x, y, tol) for x, y in zip(a, b)
        )
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(
            _values_close(a[k], b[k], tol) for k in a
        )
    return bool(a == b)
