"""Thin wrapper around a netCDF4 dataset.

`NetCDFFile` owns the `netCDF4.Dataset` handle for its whole lifetime and is the
only place where the netCDF library is called. Library failures are re-raised as
`NativeLayerError` naming the operation, its target and the file.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Any

import netCDF4
import numpy as np

from ncmerge.core.models import ATTR_FILL_VALUE
from ncmerge.core.models import ATTR_UNITS
from ncmerge.core.models import Attribute
from ncmerge.core.models import Dimension
from ncmerge.core.models import PackType
from ncmerge.core.models import Variable
from ncmerge.core.models import ZLibCompression
from ncmerge.core.range import format_hyperslab
from ncmerge.core.range import hyperslab_count
from ncmerge.core.range import hyperslab_slices
from ncmerge.exceptions import MissingAttributeError
from ncmerge.exceptions import NativeLayerError
from ncmerge.exceptions import ShapeError
from ncmerge.io.types import NCType

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from numpy.typing import NDArray

    from ncmerge.core.packing import PackingPlan
    from ncmerge.core.range import Hyperslab


# Errors raised by libnetcdf and HDF5 when a library call fails.
_NATIVE_ERRORS = (RuntimeError, OSError)

# Raised by netCDF4 for unknown names and out of bounds indices.
_LOOKUP_ERRORS = (KeyError, IndexError)


class FileMode(StrEnum):
    """Mode in which a file is opened."""

    READ = "r"
    WRITE = "w"
    APPEND = "a"


class NetCDFFile:
    """An open netCDF file.

    Args:
        path: Path of the file.
        mode: `FileMode.READ` opens an existing file read-only, `FileMode.APPEND`
            opens it read-write and `FileMode.WRITE` creates a new file, replacing
            any existing one.
        logger: Logger for diagnostics. Defaults to this module's logger.

    Raises:
        FileNotFoundError: If an existing file was requested and doesn't exist.
        NativeLayerError: If the library fails to open or create the file.
    """

    def __init__(
        self,
        path: str | Path,
        mode: FileMode = FileMode.READ,
        logger: logging.Logger | None = None,
    ):
        self.path = Path(path)
        self.mode = FileMode(mode)
        self._logger = logger if logger is not None else logging.getLogger(__name__)

        if self.mode != FileMode.WRITE and not self.path.is_file():
            msg = f"Input file '{self.path}' does not exist"
            raise FileNotFoundError(msg)

        self._logger.debug("Opening netcdf file '%s' in mode %s", self.path, self.mode.name)
        with self._native("open", "file"):
            if self.mode == FileMode.WRITE:
                self._dataset = netCDF4.Dataset(self.path, mode="w", clobber=True, format="NETCDF4")
            else:
                self._dataset = netCDF4.Dataset(self.path, mode=self.mode.value)

        # Data is copied verbatim: no masking, scaling or char-to-string conversion.
        self._dataset.set_auto_maskandscale(False)
        self._dataset.set_auto_chartostring(False)
        self._closed = False

    @property
    def name(self) -> str:
        """File name without directory."""
        return self.path.name

    @property
    def read_only(self) -> bool:
        """Whether the file was opened read-only."""
        return self.mode == FileMode.READ

    def __enter__(self) -> NetCDFFile:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit, always closes the file."""
        self.close()

    def __repr__(self) -> str:
        """Representation magic."""
        return f"NetCDFFile('{self.path}', mode={self.mode.name})"

    def close(self) -> None:
        """Close the file. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        with self._native("close", "file"):
            self._dataset.close()
        self._logger.debug("Closed netcdf file '%s'", self.path)

    @contextmanager
    def _native(
        self,
        operation: str,
        target: str,
        errors: tuple[type[Exception], ...] = _NATIVE_ERRORS,
    ) -> Iterator[None]:
        try:
            yield
        except FileNotFoundError:
            raise
        except errors as err:
            raise NativeLayerError(operation, target, str(self.path), reason=str(err)) from err

    def _check_writable(self, operation: str, target: str) -> None:
        if self.read_only:
            raise NativeLayerError(operation, target, str(self.path), reason="file is read-only")

    def _handle(self, name: str) -> netCDF4.Variable:
        with self._native("get variable", name, _NATIVE_ERRORS + _LOOKUP_ERRORS):
            return self._dataset.variables[name]

    # Dimensions

    def dimensions(self) -> list[Dimension]:
        """All dimensions of the file in definition order."""
        return [self.dimension(name) for name in self._dataset.dimensions]

    def dimension(self, name: str) -> Dimension:
        """Look up a dimension by name."""
        with self._native("get dimension", name, _NATIVE_ERRORS + _LOOKUP_ERRORS):
            dim = self._dataset.dimensions[name]
            return Dimension(name=name, size=len(dim), unlimited=dim.isunlimited())

    def axis_length(self, name: str) -> int:
        """Current length of a dimension."""
        return self.dimension(name).size

    def add_dimension(self, name: str, size: int | None = None) -> None:
        """Create a dimension. A size of 0 or None creates an unlimited dimension."""
        self._check_writable("create dimension", name)
        self._logger.debug("Creating dimension %s with size %s in file %s", name, size, self.name)
        with self._native("create dimension", name):
            self._dataset.createDimension(name, size or None)

    # Variables

    def variables(self) -> list[Variable]:
        """Metadata of all variables in definition order."""
        return [self.variable(name) for name in self._dataset.variables]

    def variable(self, name: str) -> Variable:
        """Metadata of a variable."""
        var = self._handle(name)
        with self._native("inspect variable", name):
            attributes = tuple(Attribute(attr, var.getncattr(attr)) for attr in var.ncattrs())
            chunking = var.chunking()
            filters = var.filters() or {}

        if chunking == "contiguous" or chunking is None:
            packing, chunk_sizes = PackType.CONTIGUOUS, None
        else:
            packing, chunk_sizes = PackType.CHUNKED, tuple(int(size) for size in chunking)

        compression = None
        if filters.get("zlib"):
            compression = ZLibCompression(shuffle=bool(filters.get("shuffle")), level=int(filters["complevel"]))

        return Variable(
            name=name,
            dimensions=tuple(var.dimensions),
            shape=tuple(int(size) for size in var.shape),
            nc_type=NCType.from_dtype(var.dtype),
            attributes=attributes,
            packing=packing,
            chunk_sizes=chunk_sizes,
            compression=compression,
        )

    def add_variable(
        self,
        variable: Variable,
        plan: PackingPlan,
        compression: ZLibCompression | None = None,
    ) -> None:
        """Create a variable with the metadata of `variable`.

        Args:
            variable: Name, type, dimensions and attributes of the new variable.
            plan: On-disk layout of the new variable.
            compression: Compression to enable, if any.
        """
        self._check_writable("create variable", variable.name)
        self._logger.debug(
            "Creating variable %s in file %s with type %s and dimensions '%s'",
            variable.name,
            self.name,
            variable.nc_type.name,
            ", ".join(variable.dimensions),
        )

        kwargs: dict[str, Any] = {}
        fill_value = variable.get_attribute(ATTR_FILL_VALUE)
        if fill_value is not None:
            kwargs["fill_value"] = fill_value.value

        if compression is not None and (variable.rank == 0 or variable.nc_type.is_string):
            self._logger.debug("Variable %s can't be compressed, leaving it uncompressed", variable.name)
            compression = None

        if compression is not None:
            self._logger.debug("Enabling %s on variable %s in file %s", compression, variable.name, self.name)
            kwargs.update(compression="zlib", complevel=compression.level, shuffle=compression.shuffle)

        if plan.packing == PackType.CHUNKED:
            kwargs["chunksizes"] = plan.chunk_sizes
        elif variable.rank > 0 and compression is None and not self._spans_unlimited(variable):
            if plan.packing == PackType.COMPACT:
                # netCDF4 exposes no compact layout; contiguous is the closest.
                self._logger.debug("Storing compact variable %s contiguously", variable.name)
            kwargs["contiguous"] = True

        with self._native("create variable", variable.name):
            var = self._dataset.createVariable(
                variable.name,
                variable.nc_type.datatype,
                variable.dimensions,
                **kwargs,
            )

        for attribute in variable.attributes:
            if attribute.name == ATTR_FILL_VALUE:
                continue
            self._logger.debug("Setting attribute %s on variable %s", attribute.name, variable.name)
            with self._native("write attribute", f"{attribute.name} of variable {variable.name}"):
                var.setncattr(attribute.name, attribute.value)

    def _spans_unlimited(self, variable: Variable) -> bool:
        return any(self.dimension(dim).unlimited for dim in variable.dimensions)

    def get_units(self, name: str) -> str:
        """Value of the ``units`` attribute of a variable.

        Raises:
            MissingAttributeError: If the variable has no ``units`` attribute.
        """
        var = self._handle(name)
        if ATTR_UNITS not in var.ncattrs():
            raise MissingAttributeError(ATTR_UNITS, name, str(self.path))
        with self._native("read attribute", f"'{ATTR_UNITS}' of variable {name}"):
            return str(var.getncattr(ATTR_UNITS))

    # Global attributes

    def attributes(self) -> list[Attribute]:
        """All file-level attributes."""
        with self._native("read attribute", "global attributes"):
            return [Attribute(name, self._dataset.getncattr(name)) for name in self._dataset.ncattrs()]

    def set_global_attribute(self, attribute: Attribute) -> None:
        """Write a file-level attribute."""
        self._check_writable("write attribute", attribute.name)
        with self._native("write attribute", f"global {attribute.name}"):
            self._dataset.setncattr(attribute.name, attribute.value)

    def copy_metadata_to(self, other: NetCDFFile) -> None:
        """Copy all file-level attributes to another file."""
        for attribute in self.attributes():
            self._logger.debug("Copying global attribute %s to file %s", attribute.name, other.name)
            other.set_global_attribute(attribute)

    # Data

    def read(self, name: str, hyperslab: Hyperslab, out: NDArray[Any]) -> NDArray[Any]:
        """Read a hyperslab of a variable into `out`.

        Args:
            name: Name of the variable.
            hyperslab: One range per dimension of the variable.
            out: Buffer shaped like the hyperslab.

        Returns:
            The filled buffer.
        """
        var = self._handle(name)
        self._check_hyperslab(var, hyperslab, out)
        target = f"hyperslab {format_hyperslab(hyperslab)} of variable {name}"
        with self._native("read", target, _NATIVE_ERRORS + _LOOKUP_ERRORS):
            out[...] = var[hyperslab_slices(hyperslab)]
        return out

    def write(self, name: str, hyperslab: Hyperslab, data: NDArray[Any]) -> None:
        """Write `data` to a hyperslab of a variable.

        Args:
            name: Name of the variable.
            hyperslab: One range per dimension of the variable.
            data: Values shaped like the hyperslab.
        """
        self._check_writable("write", f"variable {name}")
        var = self._handle(name)
        self._check_hyperslab(var, hyperslab, data)
        target = f"hyperslab {format_hyperslab(hyperslab)} of variable {name}"
        with self._native("write", target, _NATIVE_ERRORS + _LOOKUP_ERRORS):
            var[hyperslab_slices(hyperslab)] = data

    @staticmethod
    def _check_hyperslab(var: netCDF4.Variable, hyperslab: Hyperslab, buffer: np.ndarray) -> None:
        if len(hyperslab) != var.ndim:
            msg = f"Hyperslab rank doesn't match variable {var.name}"
            raise ShapeError(msg, ("hyperslab", "variable"), (len(hyperslab), var.ndim))

        count = hyperslab_count(hyperslab)
        if buffer.size != count:
            msg = f"Buffer length doesn't match hyperslab {format_hyperslab(hyperslab)} of variable {var.name}"
            raise ShapeError(msg, ("buffer", "hyperslab"), (buffer.size, count))
