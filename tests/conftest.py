"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Tuple

import pytest

from easydraft.core.models import (
    Arc,
    Block,
    Circle,
    Drawing,
    Insert,
    Layer,
    Line,
    Point,
    Polyline,
    Text,
)

Pair = Tuple[int, object]


@pytest.fixture
def test_data_dir() -> Path:
    """Return the path to test data directory."""
    return Path(__file__).parent / "data"


@pytest.fixture
def sample_drawing() -> Drawing:
    """Return a drawing that uses every entity type, a block and extra layers."""
    door = Block(
        name="DOOR",
        base_point=(1.0, 1.0, 0.0),
        entities=(
            Line((0.0, 0.0), (0.0, 900.0)),
            Arc((0.0, 0.0), 900.0, 0.0, 90.0),
        ),
    )
    return Drawing(
        layers=[
            Layer("0"),
            Layer("Walls", color=1),
            Layer("Hidden", color=3, visible=False, linetype="DASHED"),
        ],
        entities=[
            Line((0.0, 0.0), (5000.0, 0.0), layer="Walls"),
            Line((123456.789012345, -98765.4321), (0.1, 0.2, 0.3), color=2),
            Circle((2500.0, 1500.0), 250.0, layer="Walls", linetype="DASHED"),
            Arc((1000.0, 1000.0), 400.0, 30.0, 270.0, layer="Hidden"),
            Polyline(
                vertices=((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)),
                bulges=(0.0, 0.5, 0.0, -0.25),
                closed=True,
                layer="Walls",
            ),
            Polyline(vertices=((0.0, 0.0, 5.0), (10.0, 10.0, 5.0)), color=0),
            Text("Ground floor\nScale 1:100 ä", (50.0, -50.0), 2.5, rotation=30.0),
            Insert("DOOR", (500.0, 0.0), scale=(2.0, 2.0, 1.0), rotation=45.0),
            Point((7.5, 7.5, 1.0), layer="Hidden"),
        ],
        blocks=[door],
        units=6,
        metadata={"name": "Sample house"},
    )


@pytest.fixture
def make_dxf() -> Callable[..., str]:
    """Return a builder for small DXF documents made of (code, value) pairs.

    Each keyword takes the pairs of one section; the section is omitted when
    the keyword is None.
    """

    def build(
        entities: Optional[Sequence[Pair]] = None,
        header: Optional[Sequence[Pair]] = None,
        tables: Optional[Sequence[Pair]] = None,
        blocks: Optional[Sequence[Pair]] = None,
        eof: bool = True,
    ) -> str:
        pairs = []
        for name, content in (
            ("HEADER", header),
            ("TABLES", tables),
            ("BLOCKS", blocks),
            ("ENTITIES", entities),
        ):
            if content is not None:
                pairs.append((0, "SECTION"))
                pairs.append((2, name))
                pairs.extend(content)
                pairs.append((0, "ENDSEC"))
        if eof:
            pairs.append((0, "EOF"))
        return pairs_to_dxf(pairs)

    return build


def pairs_to_dxf(pairs: Iterable[Pair]) -> str:
    """Join (code, value) pairs into DXF text."""
    lines = []
    for code, value in pairs:
        lines.append(str(code))
        lines.append(str(value))
    return "\n".join(lines) + "\n"


def line_pairs(
    start: Tuple[float, float], end: Tuple[float, float], layer: str = "0"
) -> list:
    """Return the pairs of a LINE entity."""
    return [
        (0, "LINE"),
        (8, layer),
        (10, start[0]),
        (20, start[1]),
        (30, 0.0),
        (11, end[0]),
        (21, end[1]),
        (31, 0.0),
    ]


@pytest.fixture
def line_entity() -> Callable[..., list]:
    """Return the LINE pair builder."""
    return line_pairs
