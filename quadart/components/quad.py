"""Quad components: Region, Lineage, Fill, Fidelity, and the QuadNode record.

A quad node is an entity in the World carrying all four components. Components
are frozen: a node is never edited in place, only replaced by its children.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

Color = tuple[int, int, int]


def _check_color(value: Color) -> Color:
    if any(not 0 <= c <= 255 for c in value):
        raise ValueError(f"color channels must be in [0, 255], got {value}")
    return value


def hex_color(color: Color) -> str:
    """Format an RGB triple as ``#rrggbb``."""
    r, g, b = color
    return f"#{r:02x}{g:02x}{b:02x}"


class Component(BaseModel):
    """Base class for all ECS components.

    Components are immutable data containers validated by Pydantic.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}


class Region(Component):
    """Rectangle covered by a quad, in working-image pixel coordinates.

    Coordinates stay fractional after repeated halving.

    Attributes:
        x: Left edge
        y: Top edge
        width: Width, strictly positive
        height: Height, strictly positive
        terminal: True if either side is below the minimum leaf size
    """

    x: float = Field(ge=0.0)
    y: float = Field(ge=0.0)
    width: float = Field(gt=0.0)
    height: float = Field(gt=0.0)
    terminal: bool = False


class Lineage(Component):
    """Where a quad came from.

    Attributes:
        previous_color: Parent's mean color when this quad was created
        parent: Entity ID of the split parent (None for the root)
    """

    previous_color: Color
    parent: int | None = None

    @field_validator("previous_color")
    @classmethod
    def check_channels(cls, value: Color) -> Color:
        return _check_color(value)


class Fill(Component):
    """Mean color of the pixels under a quad."""

    color: Color

    @field_validator("color")
    @classmethod
    def check_channels(cls, value: Color) -> Color:
        return _check_color(value)


class Fidelity(Component):
    """Luma-weighted color error of a quad against its own mean color."""

    error: float = Field(ge=0.0)


@dataclass(frozen=True)
class QuadNode:
    """Read-only view of one live quad, handed to renderers and callers.

    Attributes:
        id: Entity ID, unique for the lifetime of an engine
        x, y, width, height: Geometry
        color: Mean color
        previous_color: Color inherited from the parent at creation
        error: Color-fidelity error against ``color``
        terminal: Whether the quad is too small to be split
    """

    id: int
    x: float
    y: float
    width: float
    height: float
    color: Color
    previous_color: Color
    error: float
    terminal: bool

    @property
    def hex_color(self) -> str:
        return hex_color(self.color)

    @property
    def previous_hex_color(self) -> str:
        return hex_color(self.previous_color)

    @property
    def rect(self) -> tuple[float, float, float, float]:
        """(x, y, width, height)."""
        return (self.x, self.y, self.width, self.height)
