"""Index ranges and hyperslabs."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import replace
from math import prod
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class Range:
    """A contiguous span of indices along one dimension.

    Args:
        start: First index of the span.
        count: Number of indices in the span.

    Attributes:
        start: First index of the span.
        count: Number of indices in the span.
    """

    start: int = 0
    count: int = 0

    def __post_init__(self) -> None:
        """Post process and validation."""
        if self.start < 0 or self.count < 0:
            msg = f"Range start and count must be non-negative, got {self.start}:{self.start + self.count}"
            raise ValueError(msg)

    @property
    def stop(self) -> int:
        """Index one past the end of the span."""
        return self.start + self.count

    def shifted(self, offset: int) -> Range:
        """Return the same span moved `offset` indices along the dimension."""
        return replace(self, start=self.start + offset)

    def to_slice(self) -> slice:
        """Convert to a slice usable for array indexing."""
        return slice(self.start, self.stop)

    def __str__(self) -> str:
        """String magic."""
        return f"{self.start}:{self.stop}"


Hyperslab: TypeAlias = tuple[Range, ...]


def hyperslab_shape(hyperslab: Hyperslab) -> tuple[int, ...]:
    """Shape of the block of data described by a hyperslab."""
    return tuple(rng.count for rng in hyperslab)


def hyperslab_count(hyperslab: Hyperslab) -> int:
    """Number of elements described by a hyperslab."""
    return prod(hyperslab_shape(hyperslab))


def hyperslab_slices(hyperslab: Hyperslab) -> tuple[slice, ...]:
    """Convert a hyperslab to a tuple of slices."""
    return tuple(rng.to_slice() for rng in hyperslab)


def format_hyperslab(hyperslab: Hyperslab) -> str:
    """Human-readable form of a hyperslab, e.g. ``[0:5, 0:10]``."""
    return "[" + ", ".join(str(rng) for rng in hyperslab) + "]"
