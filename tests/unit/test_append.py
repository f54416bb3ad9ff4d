"""Hyperslab copy engine tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

import netCDF4
import numpy as np
import pytest

from ncmerge.core.logs import DIAGNOSTIC
from ncmerge.exceptions import MissingAttributeError
from ncmerge.exceptions import ShapeError
from ncmerge.exceptions import UnitsMismatchError
from ncmerge.exceptions import UnsupportedRankError
from ncmerge.io.append import HyperslabCopier
from ncmerge.io.append import native_chunk_sizes
from ncmerge.io.netcdf_file import FileMode
from ncmerge.io.netcdf_file import NetCDFFile

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import InputFileFactory


def write_file(path: Path, dimensions: dict[str, int], variables: dict[str, tuple[Any, ...]]) -> Path:
    """Write a file with `variables` given as name: (dimensions, data, units)."""
    with netCDF4.Dataset(path, "w") as ds:
        for name, size in dimensions.items():
            ds.createDimension(name, size)
        for name, (dims, data, units) in variables.items():
            var = ds.createVariable(name, "f8", dims)
            if units is not None:
                var.units = units
            var[...] = data
    return path


@pytest.fixture
def source(make_input_file: InputFileFactory) -> Path:
    """Seven days chunked by 3 days and 5 latitudes."""
    return make_input_file("source.nc", np.arange(5, 12), chunk_sizes=(3, 5))


@pytest.fixture
def destination(make_input_file: InputFileFactory) -> Path:
    """Room for twelve days, all zero."""
    temperature = np.zeros((12, 10), dtype="f4")
    return make_input_file("destination.nc", np.zeros(12), temperature, unlimited=False)


def read(path: Path, name: str) -> np.ndarray:
    """Raw values of a variable."""
    with netCDF4.Dataset(path) as ds:
        ds.set_auto_maskandscale(False)
        return ds.variables[name][...]


class TestAppend:
    """Copying variables between files."""

    def test_append_with_offset(self, source: Path, destination: Path) -> None:
        """Data lands after the offset along the merge dimension."""
        reports: list[float] = []
        with NetCDFFile(source) as nc_in, NetCDFFile(destination, FileMode.APPEND) as nc_out:
            copied = HyperslabCopier().append(nc_in, nc_out, "temperature", "time", 5, progress=reports.append)

        assert copied == 70
        result = read(destination, "temperature")
        np.testing.assert_array_equal(result[5:], read(source, "temperature"))
        np.testing.assert_array_equal(result[:5], 0)

    def test_progress(self, source: Path, destination: Path) -> None:
        """One report per block; non-decreasing and ending at exactly 1."""
        reports: list[float] = []
        with NetCDFFile(source) as nc_in, NetCDFFile(destination, FileMode.APPEND) as nc_out:
            HyperslabCopier().append(nc_in, nc_out, "temperature", "time", 5, progress=reports.append)

        # ceil(7 / 3) * ceil(10 / 5)
        assert len(reports) == 6
        assert reports == sorted(reports)
        assert reports[-1] == 1.0

    def test_min_chunk_size(self, source: Path, destination: Path) -> None:
        """Several native chunks are read at a time."""
        reports: list[float] = []
        with NetCDFFile(source) as nc_in, NetCDFFile(destination, FileMode.APPEND) as nc_out:
            HyperslabCopier(min_chunk_size=2).append(nc_in, nc_out, "temperature", "time", 5, reports.append)

        # Blocks of (6, 10).
        assert len(reports) == 2
        np.testing.assert_array_equal(read(destination, "temperature")[5:], read(source, "temperature"))

    def test_contiguous_source(self, make_input_file: InputFileFactory, destination: Path) -> None:
        """Contiguous variables are read one innermost row at a time."""
        source = make_input_file("contiguous.nc", np.arange(5), unlimited=False)
        reports: list[float] = []
        with NetCDFFile(source) as nc_in, NetCDFFile(destination, FileMode.APPEND) as nc_out:
            assert native_chunk_sizes(nc_in.variable("temperature")) == (1, 10)
            HyperslabCopier().append(nc_in, nc_out, "temperature", "time", 0, reports.append)

        assert len(reports) == 5
        np.testing.assert_array_equal(read(destination, "temperature")[:5], read(source, "temperature"))

    def test_variable_without_merge_dimension(self, source: Path, destination: Path) -> None:
        """Variables which don't span the merge dimension ignore the offset."""
        with netCDF4.Dataset(destination, "a") as ds:
            ds.variables["lat"][:] = 0

        with NetCDFFile(source) as nc_in, NetCDFFile(destination, FileMode.APPEND) as nc_out:
            HyperslabCopier().append(nc_in, nc_out, "lat", "time", 5)

        np.testing.assert_array_equal(read(destination, "lat"), read(source, "lat"))

    def test_logger(self, source: Path, destination: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Diagnostics go to the injected logger."""
        logger = logging.getLogger("ncmerge.test.append")
        with (
            caplog.at_level(DIAGNOSTIC, logger=logger.name),
            NetCDFFile(source) as nc_in,
            NetCDFFile(destination, FileMode.APPEND) as nc_out,
        ):
            HyperslabCopier(logger=logger).append(nc_in, nc_out, "temperature", "time", 5)

        assert [record.name for record in caplog.records] == [logger.name]
        assert "Appending variable temperature along time axis" in caplog.text

    def test_scalar(self, tmp_path: Path) -> None:
        """Scalars are trivially complete."""
        src = write_file(tmp_path / "src.nc", {}, {"crs": ((), 1.0, None)})
        dst = write_file(tmp_path / "dst.nc", {}, {"crs": ((), 0.0, None)})

        reports: list[float] = []
        with NetCDFFile(src) as nc_in, NetCDFFile(dst, FileMode.APPEND) as nc_out:
            assert HyperslabCopier().append(nc_in, nc_out, "crs", "time", 3, reports.append) == 0
        assert reports == [1.0]

    def test_rank_three_inner_merge_dimension(self, tmp_path: Path) -> None:
        """The offset applies along the merge dimension wherever it is in the variable."""
        data = np.arange(3 * 5 * 7, dtype="f8").reshape(3, 5, 7)
        src = tmp_path / "src.nc"
        with netCDF4.Dataset(src, "w") as ds:
            ds.createDimension("station", 3)
            ds.createDimension("time", 5)
            ds.createDimension("lon", 7)
            var = ds.createVariable("v", "f8", ("station", "time", "lon"), chunksizes=(2, 2, 3))
            var.units = "m"
            var[...] = data
        dst = write_file(
            tmp_path / "dst.nc",
            {"station": 3, "time": 12, "lon": 7},
            {"v": (("station", "time", "lon"), np.zeros((3, 12, 7)), "m")},
        )

        reports: list[float] = []
        with NetCDFFile(src) as nc_in, NetCDFFile(dst, FileMode.APPEND) as nc_out:
            copied = HyperslabCopier(min_chunk_size=2).append(nc_in, nc_out, "v", "time", 4, reports.append)

        # Blocks of (4, 4, 6): 1 * 2 * 2 of them.
        assert copied == data.size
        assert len(reports) == 4
        result = read(dst, "v")
        np.testing.assert_array_equal(result[:, 4:9, :], data)
        np.testing.assert_array_equal(result[:, :4, :], 0)
        np.testing.assert_array_equal(result[:, 9:, :], 0)


class TestExceptions:
    """Variables which can't be appended."""

    def test_units_mismatch(self, make_input_file: InputFileFactory, destination: Path) -> None:
        """Units conversion is not implemented."""
        source = make_input_file("celsius.nc", np.arange(3), temperature_units="degC")
        with (
            NetCDFFile(source) as nc_in,
            NetCDFFile(destination, FileMode.APPEND) as nc_out,
            pytest.raises(UnitsMismatchError, match="degC"),
        ):
            HyperslabCopier().append(nc_in, nc_out, "temperature", "time", 0)

    def test_units_mismatch_is_not_implemented(self) -> None:
        """Callers may treat it as a missing feature."""
        assert issubclass(UnitsMismatchError, NotImplementedError)

    def test_missing_units(self, tmp_path: Path) -> None:
        """Both variables need a units attribute."""
        src = write_file(tmp_path / "src.nc", {"x": 3}, {"v": (("x",), np.arange(3), None)})
        dst = write_file(tmp_path / "dst.nc", {"x": 3}, {"v": (("x",), np.zeros(3), "m")})
        with (
            NetCDFFile(src) as nc_in,
            NetCDFFile(dst, FileMode.APPEND) as nc_out,
            pytest.raises(MissingAttributeError),
        ):
            HyperslabCopier().append(nc_in, nc_out, "v", "x", 0)

    def test_rank_mismatch(self, tmp_path: Path) -> None:
        """Source and destination must have the same number of dimensions."""
        src = write_file(tmp_path / "src.nc", {"x": 3}, {"v": (("x",), np.arange(3), "m")})
        dst = write_file(tmp_path / "dst.nc", {"x": 3, "y": 2}, {"v": (("x", "y"), np.zeros((3, 2)), "m")})
        with (
            NetCDFFile(src) as nc_in,
            NetCDFFile(dst, FileMode.APPEND) as nc_out,
            pytest.raises(ShapeError, match="number of dimensions differs"),
        ):
            HyperslabCopier().append(nc_in, nc_out, "v", "x", 0)

    def test_rank_four(self, tmp_path: Path) -> None:
        """Four dimensional variables are not supported."""
        dims = {"a": 2, "b": 2, "c": 2, "d": 2}
        variables = {"v": (("a", "b", "c", "d"), np.zeros((2, 2, 2, 2)), "m")}
        src = write_file(tmp_path / "src.nc", dims, variables)
        dst = write_file(tmp_path / "dst.nc", dims, variables)
        with (
            NetCDFFile(src) as nc_in,
            NetCDFFile(dst, FileMode.APPEND) as nc_out,
            pytest.raises(UnsupportedRankError, match="4 dimensions"),
        ):
            HyperslabCopier().append(nc_in, nc_out, "v", "a", 0)

    def test_invalid_min_chunk_size(self) -> None:
        """At least one native chunk is read at a time."""
        with pytest.raises(ValueError, match="at least 1"):
            HyperslabCopier(min_chunk_size=0)
