"""Test configuration before everything runs."""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

import netCDF4
import numpy as np
import pytest

if TYPE_CHECKING:
    from pathlib import Path

    from numpy.typing import NDArray


LAT = np.linspace(-45.0, 45.0, 10, dtype="f4")
TIME_UNITS = "days since 2000-01-01"
TEMPERATURE_UNITS = "K"
FILL_VALUE = np.float32(-9999.0)


class InputFileFactory(Protocol):
    """Signature of the `make_input_file` fixture."""

    def __call__(
        self,
        name: str,
        time: NDArray[Any],
        temperature: NDArray[Any] | None = None,
        *,
        temperature_units: str = TEMPERATURE_UNITS,
        chunk_sizes: tuple[int, int] | None = None,
        complevel: int = 0,
        unlimited: bool = True,
    ) -> Path:
        """Create an input file."""


def write_input_file(  # noqa: PLR0913
    path: Path,
    time: NDArray[Any],
    temperature: NDArray[Any] | None = None,
    *,
    temperature_units: str = TEMPERATURE_UNITS,
    chunk_sizes: tuple[int, int] | None = None,
    complevel: int = 0,
    unlimited: bool = True,
) -> Path:
    """Write a small climate-like file with `time` and `lat` dimensions.

    The file has coordinate variables ``time`` and ``lat`` and a data variable
    ``temperature(time, lat)``. Without explicit `temperature` values, a ramp
    starting at the first time value is used so every file holds distinct data.
    """
    time = np.asarray(time, dtype="f8")
    if temperature is None:
        temperature = (time[:, None] * 100 + np.arange(LAT.size)[None, :]).astype("f4")

    with netCDF4.Dataset(path, mode="w", format="NETCDF4") as ds:
        ds.createDimension("time", None if unlimited else time.size)
        ds.createDimension("lat", LAT.size)

        var_time = ds.createVariable("time", "f8", ("time",))
        var_time.units = TIME_UNITS
        var_time.calendar = "standard"
        var_time[:] = time

        var_lat = ds.createVariable("lat", "f4", ("lat",), contiguous=True)
        var_lat.units = "degrees_north"
        var_lat[:] = LAT

        kwargs: dict[str, Any] = {"fill_value": FILL_VALUE}
        if chunk_sizes is not None:
            kwargs["chunksizes"] = chunk_sizes
        elif not unlimited:
            kwargs["contiguous"] = True
        if complevel:
            kwargs.update(compression="zlib", complevel=complevel, shuffle=True)

        var_temperature = ds.createVariable("temperature", "f4", ("time", "lat"), **kwargs)
        var_temperature.units = temperature_units
        var_temperature.long_name = "Air temperature"
        var_temperature.valid_range = np.array([0, 400], dtype="f4")
        var_temperature[:] = temperature

        ds.title = "ncmerge test data"
        ds.Conventions = "CF-1.8"
        ds.version = np.int32(3)

    return path


@pytest.fixture
def make_input_file(tmp_path: Path) -> InputFileFactory:
    """Factory writing input files into a temporary directory."""
    input_dir = tmp_path / "inputs"
    input_dir.mkdir(exist_ok=True)

    def _make(name: str, time: NDArray[Any], temperature: NDArray[Any] | None = None, **kwargs: Any) -> Path:
        return write_input_file(input_dir / name, time, temperature, **kwargs)

    return _make


@pytest.fixture
def input_files(make_input_file: InputFileFactory) -> list[Path]:
    """Two consecutive files holding 5 and 7 days."""
    return [
        make_input_file("day_00.nc", np.arange(0, 5), chunk_sizes=(2, 4)),
        make_input_file("day_05.nc", np.arange(5, 12), chunk_sizes=(3, 5), complevel=4),
    ]


@pytest.fixture
def output_file(tmp_path: Path) -> Path:
    """Path of the merged output file."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(exist_ok=True)
    return output_dir / "merged.nc"

