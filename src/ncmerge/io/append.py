"""Appending the contents of a variable to a netCDF file along a named dimension."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from ncmerge.core.indexing import HyperslabIterator
from ncmerge.core.indexing import get_chunk_size
from ncmerge.core.logs import DIAGNOSTIC
from ncmerge.core.progress import ignore_progress
from ncmerge.core.range import format_hyperslab
from ncmerge.core.range import hyperslab_count
from ncmerge.core.range import hyperslab_shape
from ncmerge.exceptions import ShapeError
from ncmerge.exceptions import UnitsMismatchError
from ncmerge.exceptions import UnsupportedRankError

if TYPE_CHECKING:
    from ncmerge.core.models import Variable
    from ncmerge.core.progress import ProgressCallback
    from ncmerge.io.netcdf_file import NetCDFFile


# Appending along more dimensions works the same way but hasn't been needed yet.
MAX_RANK = 3


def native_chunk_sizes(variable: Variable) -> tuple[int, ...]:
    """Chunk shape in which a variable is stored in its file.

    Contiguous variables have no chunks; they are read one row of their innermost
    dimension at a time.
    """
    if variable.chunk_sizes is not None:
        return variable.chunk_sizes
    return (1,) * (variable.rank - 1) + (variable.shape[-1],)


class HyperslabCopier:
    """Copies variables between files in blocks aligned to the source chunks.

    Memory use is bounded by one block: a buffer of ``min_chunk_size`` native
    chunks along every dimension is allocated per variable and reused for every
    block of that variable.

    Args:
        min_chunk_size: Number of native chunks to read at a time along each
            dimension. Higher values mean higher throughput and more memory.
        logger: Logger for diagnostics. Defaults to this module's logger.
    """

    def __init__(self, min_chunk_size: int = 1, logger: logging.Logger | None = None):
        if min_chunk_size < 1:
            msg = f"Minimum chunk size must be at least 1, got {min_chunk_size}"
            raise ValueError(msg)

        self.min_chunk_size = min_chunk_size
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def append(
        self,
        nc_in: NetCDFFile,
        nc_out: NetCDFFile,
        variable_name: str,
        dimension_name: str,
        offset: int = 0,
        progress: ProgressCallback = ignore_progress,
    ) -> int:
        """Append a variable of the input file to the same variable of the output file.

        Data is written at `offset` along `dimension_name`. A variable which doesn't
        span that dimension (e.g. ``lat``) is copied to the same indices it has in
        the input file, whatever the offset.

        Args:
            nc_in: Input file.
            nc_out: Output file.
            variable_name: Name of the variable to be copied.
            dimension_name: The dimension along which data will be appended.
            offset: Index along `dimension_name` at which the input data starts.
            progress: Receives the completed fraction after every block.

        Returns:
            Number of elements copied.

        Raises:
            ShapeError: If the variable has a different number of dimensions in the two files.
            UnsupportedRankError: If the variable has more than `MAX_RANK` dimensions.
            UnitsMismatchError: If the units of the variable differ between the two files.
        """
        self._logger.log(
            DIAGNOSTIC, "Appending variable %s along %s axis to %s", variable_name, dimension_name, nc_out.name
        )

        var_in = nc_in.variable(variable_name)
        var_out = nc_out.variable(variable_name)

        if var_in.rank != var_out.rank:
            msg = f"Unable to copy variable {variable_name}: number of dimensions differs between input and output"
            raise ShapeError(msg, ("input", "output"), (var_in.rank, var_out.rank))

        if var_in.rank == 0:
            self._logger.debug("Variable %s is a scalar, nothing to append", variable_name)
            progress(1.0)
            return 0

        if var_in.rank > MAX_RANK:
            raise UnsupportedRankError(variable_name, var_in.rank)

        units_in = nc_in.get_units(variable_name)
        units_out = nc_out.get_units(variable_name)
        if units_in != units_out:
            raise UnitsMismatchError(variable_name, units_in, units_out)

        return self._copy(nc_in, nc_out, var_in, dimension_name, offset, progress)

    def _copy(
        self,
        nc_in: NetCDFFile,
        nc_out: NetCDFFile,
        variable: Variable,
        dimension_name: str,
        offset: int,
        progress: ProgressCallback,
    ) -> int:
        # Only the dimension we're appending along gets an offset. Everything else
        # (e.g. the lat coordinate) is copied to the same place in every file.
        has_offset = dimension_name in variable.dimensions
        offsets = tuple(offset if dim == dimension_name else 0 for dim in variable.dimensions)

        chunks = tuple(get_chunk_size(size, self.min_chunk_size) for size in native_chunk_sizes(variable))
        iterator = HyperslabIterator(variable.shape, chunks, offsets)
        total = len(iterator)

        self._logger.debug(
            "Copying %s %s in %d blocks of %s (offset along %s: %s)",
            variable.name,
            variable.shape,
            total,
            chunks,
            dimension_name,
            offset if has_offset else "none",
        )

        # Allocated once, sized for the largest block.
        buffer = np.empty(iterator.max_chunk_volume, dtype=variable.nc_type.dtype)

        copied = 0
        for iteration, (read, write) in enumerate(iterator, start=1):
            # The last block along a dimension may be smaller than the buffer.
            count = hyperslab_count(read)
            block = buffer[:count].reshape(hyperslab_shape(read))

            self._logger.debug("%s: %s -> %s", variable.name, format_hyperslab(read), format_hyperslab(write))
            nc_in.read(variable.name, read, out=block)
            nc_out.write(variable.name, write, block)

            copied += count
            progress(iteration / total)

        if total == 0:
            progress(1.0)

        return copied
