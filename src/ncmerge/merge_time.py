"""Merging netCDF files along their time axis.

`MergeTime` drives a whole merge: it creates the output file from the schema of
the first input file, then appends every input file to it one variable at a time.
Files may be merged in several jobs when a walltime limit and a restart file are
given; the restart file records which input files are already in the output.
"""

from __future__ import annotations

import logging
import shutil
import time
from typing import TYPE_CHECKING

from ncmerge.core.logs import DIAGNOSTIC
from ncmerge.core.models import ATTR_UNITS
from ncmerge.core.packing import plan_packing
from ncmerge.core.packing import resolve_compression
from ncmerge.core.progress import ignore_progress
from ncmerge.core.progress import scaled_progress
from ncmerge.exceptions import ConfigurationError
from ncmerge.exceptions import WalltimeLimitReachedError
from ncmerge.io.append import HyperslabCopier
from ncmerge.io.netcdf_file import FileMode
from ncmerge.io.netcdf_file import NetCDFFile

if TYPE_CHECKING:
    from pathlib import Path

    from ncmerge.core.chunk_sizes import ChunkSizeSpec
    from ncmerge.core.models import Variable
    from ncmerge.core.options import MergeOptions
    from ncmerge.core.progress import ProgressCallback


def read_restart_file(path: Path | None) -> list[str]:
    """Input files which have already been merged, in merge order.

    A missing restart file means nothing has been merged yet.
    """
    if path is None or not path.is_file():
        return []
    with path.open() as f:
        return [line.strip() for line in f if line.strip()]


class MergeTime:
    """Merge of several netCDF files into one along the merge dimension.

    The elapsed time counted against the walltime limit starts when the merge is
    created.

    Args:
        options: What to merge and how.
        logger: Logger for everything this merge reports. Defaults to this module's logger.
        progress: Receives the overall completed fraction of the merge.
    """

    def __init__(
        self,
        options: MergeOptions,
        logger: logging.Logger | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.options = options
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._progress = progress if progress is not None else ignore_progress
        self._start_time = time.monotonic()
        self._copier = HyperslabCopier(options.min_chunk_size, logger=self._logger)

    @property
    def elapsed(self) -> float:
        """Seconds since the merge was created."""
        return time.monotonic() - self._start_time

    def run(self) -> Path:
        """Run the merge.

        Returns:
            Path of the merged file.

        Raises:
            ConfigurationError: If the options are contradictory or invalid.
            FileNotFoundError: If an input file doesn't exist.
            WalltimeLimitReachedError: If the walltime limit was reached before
                all files were merged.
        """
        self._logger.info("Running mergetime")

        chunk_sizes = self.validate()
        out_file = self._stage()

        merged = set(read_restart_file(self.options.restart_file))
        self._logger.log(DIAGNOSTIC, "%d files have already been processed", len(merged))

        if not out_file.exists():
            self.initialise_output_file(out_file, chunk_sizes)

        input_files = self.options.input_files
        sizes = [path.stat().st_size for path in input_files]
        total_size = sum(sizes)

        start = 0.0
        offset = 0
        for index, (input_file, size) in enumerate(zip(input_files, sizes, strict=True)):
            step = size / total_size if total_size else 1 / len(input_files)

            if str(input_file) in merged:
                self._logger.log(DIAGNOSTIC, "Skipping already merged file '%s'", input_file)
                offset += self._get_axis_length(input_file)
                start += step
                self._progress(start)
                continue

            self._logger.info("Merging file %d/%d: '%s'", index + 1, len(input_files), input_file)
            offset = self.copy_data(input_file, out_file, offset, scaled_progress(self._progress, start, step))
            self._mark_merged(input_file)
            start += step

            remaining = len(input_files) - index - 1
            if remaining and self._walltime_reached():
                self._logger.warning("Walltime limit reached with %d files remaining", remaining)
                self._finalise(out_file)
                raise WalltimeLimitReachedError(
                    self.elapsed,
                    self.options.walltime_limit.total_seconds(),
                    str(self.options.restart_file),
                )

        self._finalise(out_file)
        self._progress(1.0)
        self._logger.info("Merged %d files into '%s'", len(input_files), self.options.output_file)
        return self.options.output_file

    def validate(self) -> ChunkSizeSpec:
        """Check the options before touching any file.

        Returns:
            The parsed output chunk sizes.

        Raises:
            ConfigurationError: If the options are contradictory or a chunk size is malformed.
            FileNotFoundError: If an input file doesn't exist.
        """
        options = self.options
        if options.walltime_limit is not None and options.restart_file is None:
            msg = (
                "Walltime limit is set but no restart file is provided. This is probably a mistake: "
                "halting the job at the walltime limit without writing a restart file leaves no way "
                "of resuming the job later."
            )
            raise ConfigurationError(msg)

        if options.walltime_limit is None and options.restart_file is not None:
            msg = (
                "Restart file is set but no walltime limit is set. This is probably a mistake: "
                "the restart file is only needed if the walltime limit is reached."
            )
            raise ConfigurationError(msg)

        if not options.input_files:
            msg = "No input files were given"
            raise ConfigurationError(msg)

        chunk_sizes = options.chunk_size_spec

        for input_file in options.input_files:
            if not input_file.is_file():
                msg = f"Input file '{input_file}' does not exist"
                raise FileNotFoundError(msg)

        return chunk_sizes

    def _stage(self) -> Path:
        """Prepare the path the output is written to while merging."""
        options = self.options
        out_file = options.staged_output_file

        if options.work_dir is not None:
            options.work_dir.mkdir(parents=True, exist_ok=True)
            self._logger.log(DIAGNOSTIC, "Intermediate output file will be used: '%s'", out_file)

            resuming = options.restart_file is not None
            if resuming and not out_file.exists() and options.output_file.exists():
                self._logger.log(DIAGNOSTIC, "Copying existing output file into working directory")
                shutil.copy2(options.output_file, out_file)

        if options.restart_file is None and out_file.exists():
            self._logger.log(DIAGNOSTIC, "Deleting existing output file: '%s'", out_file)
            out_file.unlink()

        return out_file

    def _finalise(self, out_file: Path) -> None:
        if self.options.work_dir is None:
            return
        self._logger.info(
            "Moving intermediate output file '%s' to output location: '%s'", out_file, self.options.output_file
        )
        shutil.move(out_file, self.options.output_file)

    def _walltime_reached(self) -> bool:
        limit = self.options.walltime_limit
        return limit is not None and self.elapsed >= limit.total_seconds()

    def _mark_merged(self, input_file: Path) -> None:
        restart_file = self.options.restart_file
        if restart_file is None:
            return
        with restart_file.open("a") as f:
            f.write(f"{input_file}\n")

    def _get_axis_length(self, path: Path) -> int:
        with NetCDFFile(path, logger=self._logger) as nc:
            return nc.axis_length(self.options.merge_dimension)

    def initialise_output_file(self, out_file: Path, chunk_sizes: ChunkSizeSpec) -> None:
        """Create the output file with the schema of the first input file.

        The merge dimension is sized to hold all input files. Coordinate variables
        of the other dimensions are identical in every input file and are copied
        here, once.

        Args:
            out_file: Path of the new file.
            chunk_sizes: Requested chunk sizes of the output variables.
        """
        merge_dimension = self.options.merge_dimension
        first = self.options.input_files[0]

        self._logger.info("Initialising output file")
        self._logger.log(DIAGNOSTIC, "Opening input files to count total length of %s axis", merge_dimension)
        axis_length = sum(self._get_axis_length(path) for path in self.options.input_files)
        self._logger.log(DIAGNOSTIC, "Input files contain %d values along %s axis", axis_length, merge_dimension)

        with (
            NetCDFFile(first, logger=self._logger) as nc_in,
            NetCDFFile(out_file, FileMode.WRITE, logger=self._logger) as nc_out,
        ):
            self._logger.log(DIAGNOSTIC, "Creating dimensions in output file")
            dimension_sizes = {}
            for dim in nc_in.dimensions():
                size = axis_length if dim.name == merge_dimension else dim.size
                nc_out.add_dimension(dim.name, size)
                dimension_sizes[dim.name] = size

            self._logger.log(DIAGNOSTIC, "Creating variables in output file")
            variables = nc_in.variables()
            for variable in variables:
                plan = plan_packing(
                    variable.name,
                    variable.nc_type,
                    variable.dimensions,
                    dimension_sizes,
                    allow_compact=self.options.allow_compact,
                    chunk_sizes=chunk_sizes,
                )
                compression = resolve_compression(self.options.compression_level, variable.compression)
                nc_out.add_variable(variable, plan, compression)
                self._check_units(variable)

            nc_in.copy_metadata_to(nc_out)

            self._logger.log(DIAGNOSTIC, "Copying non-%s coordinate variables to output file", merge_dimension)
            coordinates = {variable.name for variable in variables if variable.is_coordinate}
            for dimension in dimension_sizes:
                if dimension == merge_dimension:
                    continue
                if dimension not in coordinates:
                    self._logger.log(DIAGNOSTIC, "Dimension %s has no coordinate variable", dimension)
                    continue
                self._copier.append(nc_in, nc_out, dimension, merge_dimension, offset=0)

        self._logger.info("Output file has been successfully initialised")

    def _check_units(self, variable: Variable) -> None:
        units = self.options.units
        attribute = variable.get_attribute(ATTR_UNITS)
        if units is None or attribute is None or str(attribute.value) == units:
            return
        self._logger.warning(
            "Variable %s is in %s, not %s: units conversion is not implemented, data will be copied unchanged",
            variable.name,
            attribute.value,
            units,
        )

    def copy_data(
        self,
        input_file: Path,
        output_file: Path,
        offset: int,
        progress: ProgressCallback = ignore_progress,
    ) -> int:
        """Append all data of an input file to the output file.

        Args:
            input_file: File to append.
            output_file: Merged file, already initialised.
            offset: Index along the merge dimension at which the input file's data starts.
            progress: Receives the completed fraction of this file. Each variable
                accounts for a share proportional to its number of elements.

        Returns:
            Offset at which the next input file starts.

        Raises:
            ConfigurationError: If the input file has no merge dimension.
        """
        merge_dimension = self.options.merge_dimension

        with (
            NetCDFFile(input_file, logger=self._logger) as nc_in,
            NetCDFFile(output_file, FileMode.APPEND, logger=self._logger) as nc_out,
        ):
            dimensions = {dim.name: dim for dim in nc_in.dimensions()}
            if merge_dimension not in dimensions:
                msg = f"Input file '{input_file}' has no {merge_dimension} dimension"
                raise ConfigurationError(msg)

            # The coordinate goes first so the offset of every other variable is known to be valid.
            self._copier.append(nc_in, nc_out, merge_dimension, merge_dimension, offset)

            variables = [variable for variable in nc_in.variables() if not variable.is_coordinate]
            total_weight = sum(variable.length for variable in variables)

            start = 0.0
            for variable in variables:
                step = variable.length / total_weight if total_weight else 0.0
                self._copier.append(
                    nc_in,
                    nc_out,
                    variable.name,
                    merge_dimension,
                    offset,
                    progress=scaled_progress(progress, start, step),
                )
                start += step

            if total_weight == 0:
                progress(1.0)

        return offset + dimensions[merge_dimension].size
