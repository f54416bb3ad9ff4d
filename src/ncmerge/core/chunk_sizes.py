"""User-specified chunk sizes in ``dim/size`` notation (as used by nco)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ncmerge.exceptions import ChunkSizeParseError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class ChunkSize:
    """Requested chunk length along a single dimension."""

    dimension: str
    size: int

    @classmethod
    def parse(cls, spec: str) -> ChunkSize:
        """Parse a single ``dim/size`` token.

        Args:
            spec: Token such as ``"time/365"``.

        Returns:
            The parsed chunk size.

        Raises:
            ChunkSizeParseError: If the token doesn't have exactly one ``/`` or the
                size is not a positive integer.
        """
        parts = spec.strip().split("/")
        if len(parts) != 2 or not parts[0]:  # noqa: PLR2004
            raise ChunkSizeParseError(spec, "The expected format is 'dim_name/size'")

        dimension, size_str = parts
        # Plain ASCII digits only.
        if not (size_str.isascii() and size_str.isdigit()):
            reason = f"'{size_str}' is not an integer chunk size for dimension {dimension}"
            raise ChunkSizeParseError(spec, reason)

        size = int(size_str)
        if size <= 0:
            raise ChunkSizeParseError(spec, f"Chunk size for dimension {dimension} must be positive")

        return cls(dimension=dimension, size=size)


class ChunkSizeSpec:
    """Lookup from dimension name to a requested chunk size.

    Args:
        chunks: Parsed chunk sizes. When a dimension appears more than once, the
            first occurrence wins.

    Examples:
        >>> spec = ChunkSizeSpec.parse(["lat/1", "lon/1", "time/365"])
        >>> spec.get_chunk_sizes(["time", "lat"])
        (365, 1)
    """

    def __init__(self, chunks: Iterable[ChunkSize] = ()):
        self._chunks: dict[str, int] = {}
        for chunk in chunks:
            self._chunks.setdefault(chunk.dimension, chunk.size)

    @classmethod
    def parse(cls, specs: str | Iterable[str] | None) -> ChunkSizeSpec:
        """Parse ``dim/size`` tokens.

        A single string is split on commas; an iterable may hold comma separated
        strings as well. Empty tokens are ignored.
        """
        if specs is None:
            return cls()
        if isinstance(specs, str):
            specs = [specs]

        tokens = [token for spec in specs for token in spec.split(",") if token.strip()]
        return cls(ChunkSize.parse(token) for token in tokens)

    def __contains__(self, dimension: object) -> bool:
        """Whether a chunk size was requested for `dimension`."""
        return dimension in self._chunks

    def __len__(self) -> int:
        """Number of dimensions with a requested chunk size."""
        return len(self._chunks)

    def __repr__(self) -> str:
        """Representation magic."""
        tokens = ",".join(f"{dim}/{size}" for dim, size in self._chunks.items())
        return f"ChunkSizeSpec('{tokens}')"

    def contains_all(self, dimensions: Iterable[str]) -> bool:
        """Whether every one of `dimensions` has a requested chunk size."""
        return all(dim in self for dim in dimensions)

    def get_chunk_size(self, dimension: str) -> int:
        """Requested chunk size of a dimension.

        Raises:
            KeyError: If no chunk size was requested for `dimension`.
        """
        try:
            return self._chunks[dimension]
        except KeyError:
            msg = f"No chunk size was specified for dimension {dimension}"
            raise KeyError(msg) from None

    def get_chunk_sizes(self, dimensions: Sequence[str]) -> tuple[int, ...]:
        """Requested chunk sizes of several dimensions, in the given order."""
        return tuple(self.get_chunk_size(dim) for dim in dimensions)
