"""Merge two or more netCDF files along the time axis.

This command is available under the main CLI as: ncmerge mergetime.
Run: ncmerge mergetime --help for usage.
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Annotated

import click
import typer
from pydantic import ValidationError

from ncmerge.core import config
from ncmerge.core.logs import configure_logging
from ncmerge.core.options import MergeOptions
from ncmerge.core.progress import ProgressReporter
from ncmerge.exceptions import NCMergeError
from ncmerge.exceptions import WalltimeLimitReachedError
from ncmerge.merge_time import MergeTime

if TYPE_CHECKING:
    from click.core import Context
    from click.core import Parameter


WALLTIME_PATTERN = re.compile(r"^(?:(?P<days>\d+)\.)?(?P<hours>\d+):(?P<minutes>[0-5]?\d):(?P<seconds>[0-5]?\d)$")


class WalltimeParamType(click.ParamType):
    """Click parser for durations given as ``[d.]hh:mm:ss`` or a number of seconds."""

    name = "Walltime"

    def convert(self, value: str | timedelta, param: Parameter | None, ctx: Context | None) -> timedelta:
        """Convert a duration string to timedelta."""
        if isinstance(value, timedelta):
            return value

        value = value.strip()
        match = WALLTIME_PATTERN.match(value)
        if match is not None:
            parts = {name: int(part or 0) for name, part in match.groupdict().items()}
            return timedelta(**parts)

        try:
            return timedelta(seconds=float(value))
        except (ValueError, OverflowError):
            self.fail(f"{value} is not a duration in [d.]hh:mm:ss format or a number of seconds", param, ctx)


InputFilesType = Annotated[list[Path], typer.Argument(help="Input files, in the order in which they are merged.")]
OutFileType = Annotated[Path, typer.Option("-o", "--out-file", help="Path to the output file.")]
VerbosityType = Annotated[int | None, typer.Option("-v", "--verbosity", min=0, max=4, help="Logging verbosity (0-4).")]
ShowProgressType = Annotated[bool, typer.Option("-p", "--show-progress", help="Enable progress reporting.")]
ProgressIntervalType = Annotated[
    float | None,
    typer.Option(
        "--progress-interval",
        min=0,
        help="Minimum interval between progress reports in seconds. No effect unless progress reporting is enabled.",
    ),
]
MinChunkSizeType = Annotated[
    int | None,
    typer.Option(
        "--min-chunk-size",
        min=1,
        help=(
            "Number of chunks to read at a time (along each dimension) when copying data. If 1, the chunk size of "
            "the input data is used. Higher values give higher throughput at the cost of higher memory usage."
        ),
    ),
]
UnitsType = Annotated[str | None, typer.Option("-u", "--units", help="Output units (default: same as input units).")]
WorkDirType = Annotated[
    Path | None,
    typer.Option(
        "-w",
        "--work-dir",
        help="Working directory. The output file is written here, then moved to the path given by -o/--out-file.",
    ),
]
WalltimeLimitType = Annotated[
    timedelta | None,
    typer.Option(
        "-W",
        "--walltime-limit",
        click_type=WalltimeParamType(),
        help=(
            "Walltime limit, as [d.]hh:mm:ss or seconds. If this limit is reached, the job terminates with "
            "exit code 42 and may be resumed by re-running the command with the same restart file."
        ),
    ),
]
RestartFileType = Annotated[
    Path | None,
    typer.Option(
        "-r",
        "--restart-file",
        help="Path to the restart file. This allows a previous run to be resumed with the same arguments.",
    ),
]
ChunkSizesType = Annotated[
    list[str] | None,
    typer.Option(
        "-c",
        "--chunk-sizes",
        help="Chunk sizes of the output, in the same format as for nco, e.g. lat/1,lon/1,time/365.",
    ),
]
CompressionLevelType = Annotated[
    int | None,
    typer.Option(
        "-C",
        "--compression-level",
        min=-1,
        max=9,
        help="Compression level 0-9; 0 means no compression. By default the level of the input files is kept.",
    ),
]
AllowCompactType = Annotated[
    bool,
    typer.Option("--allow-compact", help="Allow compact packing of small variables without explicit chunk sizes."),
]
DimensionType = Annotated[
    str | None,
    typer.Option("-d", "--dimension", help="Name of the dimension along which files are merged (default: time)."),
]


def mergetime(
    input_files: InputFilesType,
    out_file: OutFileType,
    verbosity: VerbosityType = None,
    show_progress: ShowProgressType = False,
    progress_interval: ProgressIntervalType = None,
    min_chunk_size: MinChunkSizeType = None,
    units: UnitsType = None,
    work_dir: WorkDirType = None,
    walltime_limit: WalltimeLimitType = None,
    restart_file: RestartFileType = None,
    chunk_sizes: ChunkSizesType = None,
    compression_level: CompressionLevelType = None,
    allow_compact: AllowCompactType = False,
    dimension: DimensionType = None,
) -> None:
    """Merge two or more netCDF files along the time axis.

    Options which are not given default to the NCMERGE__* environment variables.
    """
    try:
        options = MergeOptions(
            output_file=out_file,
            input_files=input_files,
            verbosity=config.default_verbosity() if verbosity is None else verbosity,
            show_progress=show_progress,
            progress_interval=config.default_progress_interval() if progress_interval is None else progress_interval,
            min_chunk_size=config.default_min_chunk_size() if min_chunk_size is None else min_chunk_size,
            chunk_sizes=chunk_sizes or [],
            compression_level=config.default_compression_level() if compression_level is None else compression_level,
            allow_compact=allow_compact,
            units=units,
            merge_dimension=config.default_merge_dimension() if dimension is None else dimension,
            work_dir=work_dir,
            walltime_limit=walltime_limit,
            restart_file=restart_file,
        )
    except (NCMergeError, ValidationError) as err:
        typer.secho(str(err), fg="red", err=True)
        raise typer.Exit(1) from None

    logger = configure_logging(options.verbosity)
    with ProgressReporter(options.show_progress, options.progress_interval, logger=logger) as progress:
        try:
            MergeTime(options, logger=logger, progress=progress).run()
        except WalltimeLimitReachedError as err:
            typer.secho(str(err), fg="yellow", err=True)
            raise typer.Exit(err.exit_code) from None
        except (NCMergeError, OSError) as err:
            typer.secho(str(err), fg="red", err=True)
            raise typer.Exit(1) from None
