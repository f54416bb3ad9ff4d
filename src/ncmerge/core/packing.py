"""Choosing the on-disk layout and compression of newly created variables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import prod
from typing import TYPE_CHECKING

from ncmerge.core.models import PackType
from ncmerge.core.models import ZLibCompression
from ncmerge.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from collections.abc import Sequence

    from ncmerge.core.chunk_sizes import ChunkSizeSpec
    from ncmerge.io.types import NCType


logger = logging.getLogger(__name__)

# Maximum size of a compact variable is 64 KiB.
MAX_COMPACT_SIZE = 64 * 1024

# Compression level meaning "keep the setting of the input file".
KEEP_COMPRESSION = -1


@dataclass(frozen=True, slots=True)
class PackingPlan:
    """Layout decision for a single variable."""

    packing: PackType
    chunk_sizes: tuple[int, ...] | None = None


def plan_packing(
    variable_name: str,
    nc_type: NCType,
    dimensions: Sequence[str],
    dimension_sizes: Mapping[str, int],
    allow_compact: bool = False,
    chunk_sizes: ChunkSizeSpec | None = None,
) -> PackingPlan:
    """Decide how a new variable should be laid out on disk.

    Variables are chunked when the user requested a chunk size for every one of
    their dimensions, compact when allowed and smaller than `MAX_COMPACT_SIZE`,
    and contiguous otherwise.

    Args:
        variable_name: Name of the variable, for messages.
        nc_type: Element type of the variable.
        dimensions: Dimension names of the variable in order.
        dimension_sizes: Current length of every dimension of the file.
        allow_compact: Whether compact packing may be chosen.
        chunk_sizes: User-requested chunk sizes, if any.

    Returns:
        The chosen layout.

    Raises:
        ConfigurationError: If a requested chunk size is larger than its dimension.
    """
    variable_length = prod(dimension_sizes[dim] for dim in dimensions)
    variable_size = variable_length * nc_type.itemsize

    if chunk_sizes and dimensions and chunk_sizes.contains_all(dimensions):
        sizes = chunk_sizes.get_chunk_sizes(dimensions)
        for dim, size in zip(dimensions, sizes, strict=True):
            if size > dimension_sizes[dim]:
                msg = (
                    f"Chunk size on dimension {dim} ({size}) of variable {variable_name} is greater "
                    f"than the dimension length ({dimension_sizes[dim]})"
                )
                raise ConfigurationError(msg)

        logger.debug("Variable %s will be chunked with chunk sizes %s", variable_name, sizes)
        return PackingPlan(PackType.CHUNKED, sizes)

    if allow_compact and variable_size < MAX_COMPACT_SIZE:
        logger.debug("Variable %s (%d bytes) will be compact", variable_name, variable_size)
        return PackingPlan(PackType.COMPACT)

    return PackingPlan(PackType.CONTIGUOUS)


def resolve_compression(level: int, source: ZLibCompression | None) -> ZLibCompression | None:
    """Compression settings of a new variable.

    Args:
        level: Requested deflate level. -1 keeps the input file's setting, 0
            disables compression and 1-9 forces that level.
        source: Compression settings of the variable in the input file.

    Returns:
        The compression to enable, or None for an uncompressed variable.
    """
    if level > 0:
        return ZLibCompression(shuffle=True, level=level)

    if level == KEEP_COMPRESSION and source is not None and source.level > 0:
        return source

    return None
