"""netCDF file information command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import xarray as xr
from rich.console import Console
from rich.table import Table

from ncmerge.core.models import PackType
from ncmerge.exceptions import NCMergeError
from ncmerge.io.netcdf_file import NetCDFFile


def layout_table(path: Path) -> Table:
    """Tabulate the on-disk layout of every variable of a file."""
    table = Table(title=f"Layout of {path.name}")
    table.add_column("Variable")
    table.add_column("Dimensions")
    table.add_column("Type")
    table.add_column("Storage")
    table.add_column("Compression")

    with NetCDFFile(path) as nc:
        for variable in nc.variables():
            storage = variable.packing.value
            if variable.packing == PackType.CHUNKED:
                storage += f" {variable.chunk_sizes}"
            compression = str(variable.compression) if variable.compression is not None else "none"
            table.add_row(
                variable.name,
                ", ".join(f"{dim}={size}" for dim, size in zip(variable.dimensions, variable.shape, strict=True)),
                variable.nc_type.name.lower(),
                storage,
                compression,
            )
    return table


def info(
    path: Annotated[Path, typer.Argument(help="Path of the netCDF file.")],
    layout: Annotated[bool, typer.Option("--layout", help="Also show how each variable is stored.")] = False,
) -> None:
    """Provide information on a netCDF file.

    By default, this prints the dimensions, variables and attributes of the file as
    xarray summarises them. Values are shown as stored, without masking or decoding.
    """
    if not path.is_file():
        typer.secho(f"Input file '{path}' does not exist.", fg="red", err=True)
        raise typer.Exit(1)

    try:
        with xr.open_dataset(path, engine="netcdf4", mask_and_scale=False, decode_times=False) as ds:
            typer.echo(ds)
        if layout:
            Console().print(layout_table(path))
    except (NCMergeError, OSError, ValueError) as err:
        typer.secho(str(err), fg="red", err=True)
        raise typer.Exit(1) from None
