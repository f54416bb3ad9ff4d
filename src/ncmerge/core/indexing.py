"""Indexing logic."""

from __future__ import annotations

import itertools
from math import ceil
from math import prod
from typing import TYPE_CHECKING

from ncmerge.core.range import Range

if TYPE_CHECKING:
    from collections.abc import Iterator
    from collections.abc import Sequence

    from ncmerge.core.range import Hyperslab


def get_chunk_size(chunk_size: int, min_chunk_size: int) -> int:
    """Read chunk length along one dimension.

    Args:
        chunk_size: Native chunk length of the source variable.
        min_chunk_size: Number of native chunks to read at once.

    Returns:
        The scaled chunk length, never smaller than the native one and never below 1.
    """
    # Don't allow zero or negative chunk sizes.
    chunk_size = max(1, chunk_size)
    return max(chunk_size * min_chunk_size, chunk_size)


class HyperslabIterator:
    """Chunk iterator yielding matching read and write hyperslabs.

    This iterator takes an array shape and chunks and every time it is iterated, it returns
    a pair of hyperslabs that align with chunk boundaries: where to read the block from the
    source variable and where to write it in the destination variable. The two are equal
    except along dimensions with a non-zero offset.

    Args:
        shape: The shape of the source array.
        chunks: The chunk sizes for each dimension.
        offsets: Destination offset along each dimension. Defaults to no offset.

    Attributes:
        arr_shape: Shape of the array.
        len_chunks: Length of chunks in each dimension.
        offsets: Destination offset along each dimension.
        dim_chunks: Number of chunks in each dimension.
        num_chunks: Total number of chunks.

    Examples:
        >> iterator = HyperslabIterator(shape=(5, 11), chunks=(3, 4), offsets=(10, 0))
        >> read, write = next(iter(iterator))
        >> read
        (Range(start=0, count=3), Range(start=0, count=4))
        >> write
        (Range(start=10, count=3), Range(start=0, count=4))
    """

    def __init__(
        self,
        shape: Sequence[int],
        chunks: Sequence[int],
        offsets: Sequence[int] | None = None,
    ):
        self.arr_shape = tuple(shape)
        self.len_chunks = tuple(chunks)
        self.offsets = tuple(offsets) if offsets is not None else (0,) * len(self.arr_shape)

        if not len(self.arr_shape) == len(self.len_chunks) == len(self.offsets):
            msg = f"Shape {self.arr_shape}, chunks {self.len_chunks} and offsets {self.offsets} must have equal length"
            raise ValueError(msg)

        if any(chunk < 1 for chunk in self.len_chunks):
            msg = f"Chunk sizes must be positive, got {self.len_chunks}"
            raise ValueError(msg)

        # Compute number of chunks per dimension, and total number of chunks
        self.dim_chunks = tuple(
            ceil(len_dim / chunk) for len_dim, chunk in zip(self.arr_shape, self.len_chunks, strict=True)
        )
        self.num_chunks = prod(self.dim_chunks)

    @property
    def max_chunk_volume(self) -> int:
        """Number of elements in the largest block, a full chunk cut to the array shape."""
        return prod(min(chunk, size) for chunk, size in zip(self.len_chunks, self.arr_shape, strict=True))

    def __len__(self) -> int:
        """Get total number of chunks."""
        return self.num_chunks

    def __iter__(self) -> Iterator[tuple[Hyperslab, Hyperslab]]:
        """Iteration logic.

        This generates C-ordered permutation of chunk indices, so the last
        dimension varies fastest.
        """
        dim_ranges = [range(dim_len) for dim_len in self.dim_chunks]
        for chunk_index in itertools.product(*dim_ranges):
            read = tuple(
                self._read_range(idx, chunk, size)
                for idx, chunk, size in zip(chunk_index, self.len_chunks, self.arr_shape, strict=True)
            )
            write = tuple(rng.shifted(offset) for rng, offset in zip(read, self.offsets, strict=True))
            yield read, write

    @staticmethod
    def _read_range(index: int, chunk: int, size: int) -> Range:
        start = index * chunk
        # The final chunk along a dimension may be smaller.
        stop = min(size, start + chunk)
        return Range(start, stop - start)
