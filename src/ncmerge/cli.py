"""Command-line interface."""

from __future__ import annotations

import typer

from ncmerge.commands.info import info
from ncmerge.commands.mergetime import mergetime
from ncmerge.commands.version import version

app = typer.Typer(
    name="ncmerge",
    help="Merge netCDF files along their time axis.",
    no_args_is_help=True,
    add_completion=False,
)

app.command(name="mergetime")(mergetime)
app.command(name="info")(info)
app.command(name="version")(version)
