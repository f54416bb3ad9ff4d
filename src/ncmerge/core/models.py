"""Metadata models for dimensions, variables, attributes and compression."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import StrEnum
from math import prod
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from ncmerge.io.types import NCType

ATTR_UNITS = "units"
ATTR_FILL_VALUE = "_FillValue"


class PackType(StrEnum):
    """On-disk layout of a variable's data."""

    CHUNKED = "chunked"
    CONTIGUOUS = "contiguous"
    COMPACT = "compact"


class ZLibCompression(BaseModel):
    """Data Model for zlib (deflate) compression options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    shuffle: bool = Field(default=True, description="Apply the shuffle filter before deflating.")
    level: int = Field(default=4, ge=0, le=9, description="Deflate level (integer 0-9).")

    def __str__(self) -> str:
        """String magic."""
        return f"zlib L{self.level} (shuffle = {self.shuffle})"


@dataclass(frozen=True, slots=True)
class Dimension:
    """A named dimension of a file.

    Attributes:
        name: Name of the dimension.
        size: Current length of the dimension.
        unlimited: Whether the dimension was declared without a fixed length.
    """

    name: str
    size: int
    unlimited: bool = False


@dataclass(frozen=True, slots=True)
class Attribute:
    """A named attribute value, scalar or 1-D array."""

    name: str
    value: Any


@dataclass(frozen=True, slots=True)
class Variable:
    """Metadata of a variable in a file.

    Attributes:
        name: Name of the variable.
        dimensions: Dimension names, slowest varying first.
        shape: Length of each dimension at the time the metadata was read.
        nc_type: Element type.
        attributes: Attributes attached to the variable.
        packing: On-disk layout.
        chunk_sizes: Chunk length along each dimension (chunked variables only).
        compression: Compression settings, if compression is enabled.
    """

    name: str
    dimensions: tuple[str, ...]
    shape: tuple[int, ...]
    nc_type: NCType
    attributes: tuple[Attribute, ...] = field(default=())
    packing: PackType = PackType.CONTIGUOUS
    chunk_sizes: tuple[int, ...] | None = None
    compression: ZLibCompression | None = None

    @property
    def rank(self) -> int:
        """Number of dimensions."""
        return len(self.dimensions)

    @property
    def length(self) -> int:
        """Total number of elements (1 for scalars)."""
        return prod(self.shape)

    @property
    def is_coordinate(self) -> bool:
        """Whether this is the coordinate variable of one of its own dimensions."""
        return self.name in self.dimensions

    def get_attribute(self, name: str) -> Attribute | None:
        """Find an attribute by name."""
        return next((attr for attr in self.attributes if attr.name == name), None)
