"""ncmerge core functionalities."""

from ncmerge.core.chunk_sizes import ChunkSizeSpec
from ncmerge.core.indexing import HyperslabIterator
from ncmerge.core.range import Range

__all__ = ["ChunkSizeSpec", "HyperslabIterator", "Range"]
