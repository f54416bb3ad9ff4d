"""Element types supported by the netCDF file format.

This is the single lookup between numpy data types, netCDF type codes and
element byte sizes. Everything else asks `NCType` instead of keeping its own table.
"""

from __future__ import annotations

from enum import StrEnum

import numpy as np
from numpy.typing import DTypeLike

from ncmerge.exceptions import WrongTypeError

# libnetcdf reports sizeof(char*) for variable-length strings.
STRING_ITEMSIZE = 8


class NCType(StrEnum):
    """NetCDF element type, valued by its numpy type code."""

    BYTE = "i1"
    UBYTE = "u1"
    CHAR = "S1"
    SHORT = "i2"
    USHORT = "u2"
    INT = "i4"
    UINT = "u4"
    INT64 = "i8"
    UINT64 = "u8"
    FLOAT = "f4"
    DOUBLE = "f8"
    STRING = "str"

    @property
    def dtype(self) -> np.dtype:
        """Numpy data type used for in-memory buffers of this type."""
        if self is NCType.STRING:
            return np.dtype(object)
        return np.dtype(self.value)

    @property
    def itemsize(self) -> int:
        """Size of a single element in bytes."""
        if self is NCType.STRING:
            return STRING_ITEMSIZE
        return self.dtype.itemsize

    @property
    def datatype(self) -> str | type:
        """Data type argument understood by ``netCDF4.Dataset.createVariable``."""
        if self is NCType.STRING:
            return str
        return self.value

    @property
    def is_string(self) -> bool:
        """Whether this is the variable-length string type."""
        return self is NCType.STRING

    @classmethod
    def from_dtype(cls, dtype: DTypeLike | type) -> NCType:
        """Look up the netCDF type of a numpy data type (or ``str``).

        Raises:
            WrongTypeError: If the data type has no netCDF equivalent.
        """
        if dtype is str:
            return cls.STRING

        np_dtype = np.dtype(dtype)
        if np_dtype.kind in ("O", "U"):
            return cls.STRING
        if np_dtype.kind == "S" and np_dtype.itemsize == 1:
            return cls.CHAR

        code = f"{np_dtype.kind}{np_dtype.itemsize}"
        try:
            return cls(code)
        except ValueError:
            msg = "Data type has no netCDF equivalent"
            raise WrongTypeError(msg, str(np_dtype)) from None
