"""Options of a merge run."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from ncmerge.core.chunk_sizes import ChunkSizeSpec


class MergeOptions(BaseModel):
    """Configuration of a time merge."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    output_file: Path = Field(..., description="Path of the merged output file.")
    input_files: list[Path] = Field(default_factory=list, description="Input files in merge order.")

    verbosity: int = Field(default=2, ge=0, le=4, description="0 (errors only) to 4 (debug).")
    show_progress: bool = Field(default=False, description="Whether to display progress.")
    progress_interval: float = Field(default=1.0, ge=0, description="Seconds between progress reports.")

    min_chunk_size: int = Field(default=1, ge=1, description="Native chunks read at a time along each dimension.")
    chunk_sizes: list[str] = Field(default_factory=list, description="Output chunk sizes as 'dim/size' tokens.")
    compression_level: int = Field(default=-1, ge=-1, le=9, description="-1 keeps input compression, 0 disables.")
    allow_compact: bool = Field(default=False, description="Allow compact storage of small variables.")
    units: str | None = Field(default=None, description="Requested output units.")

    merge_dimension: str = Field(default="time", min_length=1, description="Dimension along which to merge.")
    work_dir: Path | None = Field(default=None, description="Directory in which the output is staged.")
    walltime_limit: timedelta | None = Field(default=None, description="Stop after this much time.")
    restart_file: Path | None = Field(default=None, description="List of input files already merged.")

    @field_validator("walltime_limit")
    @classmethod
    def positive_walltime(cls, v: timedelta | None) -> timedelta | None:
        """Walltime limit must be positive."""
        if v is not None and v <= timedelta(0):
            msg = f"Walltime limit must be positive, got {v}"
            raise ValueError(msg)
        return v

    @property
    def chunk_size_spec(self) -> ChunkSizeSpec:
        """Parsed `chunk_sizes`."""
        return ChunkSizeSpec.parse(self.chunk_sizes)

    @property
    def staged_output_file(self) -> Path:
        """Path the output is written to while merging."""
        if self.work_dir is None:
            return self.output_file
        return self.work_dir / self.output_file.name
