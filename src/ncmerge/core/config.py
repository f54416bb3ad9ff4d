"""Environment variable management for ncmerge defaults."""

from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from ncmerge.exceptions import EnvironmentFormatError


class NCMergeSettings(BaseSettings):
    """ncmerge environment configuration settings.

    These only provide defaults; options given on the command line take precedence.
    """

    # Logging and progress
    verbosity: int = Field(
        default=2,
        description="Verbosity level, 0 (errors only) to 4 (debug)",
        alias="NCMERGE__VERBOSITY",
    )
    progress_interval: float = Field(
        default=1.0,
        description="Minimum interval between progress reports in seconds",
        alias="NCMERGE__PROGRESS_INTERVAL",
    )

    # Copy configuration
    min_chunk_size: int = Field(
        default=1,
        description="Number of native chunks read at a time along each dimension",
        alias="NCMERGE__MIN_CHUNK_SIZE",
    )
    compression_level: int = Field(
        default=-1,
        description="Deflate level of output variables, -1 keeps the input setting",
        alias="NCMERGE__COMPRESSION_LEVEL",
    )
    merge_dimension: str = Field(
        default="time",
        description="Name of the dimension along which files are merged",
        alias="NCMERGE__MERGE_DIMENSION",
    )

    model_config = SettingsConfigDict(case_sensitive=True)

    @field_validator("merge_dimension", mode="before")
    @classmethod
    def strip_dimension(cls, v: object) -> object:
        """Ignore surrounding whitespace in the dimension name."""
        if isinstance(v, str):
            return v.strip()
        return v


# Map field names back to environment variable names for the error
_ENV_VAR_MAPPING = {name: field.alias for name, field in NCMergeSettings.model_fields.items()}

# Map pydantic error types to our error types
_TYPE_MAPPING = {
    "int_parsing": "int",
    "float_parsing": "float",
    "string_type": "str",
}


def _get_settings() -> NCMergeSettings:
    """Get current ncmerge settings from environment variables."""
    try:
        return NCMergeSettings()
    except ValidationError as e:
        error_details = e.errors()[0]
        field_name = error_details.get("loc", [None])[0]
        error_type = error_details.get("type", "unknown")

        mapped_type = _TYPE_MAPPING.get(error_type, error_type)
        env_var = _ENV_VAR_MAPPING.get(field_name, field_name)

        raise EnvironmentFormatError(env_var, mapped_type) from e


def default_verbosity() -> int:
    """Verbosity level used when none is given."""
    return _get_settings().verbosity


def default_progress_interval() -> float:
    """Progress reporting interval used when none is given."""
    return _get_settings().progress_interval


def default_min_chunk_size() -> int:
    """Minimum chunk multiplier used when none is given."""
    return _get_settings().min_chunk_size


def default_compression_level() -> int:
    """Compression level used when none is given."""
    return _get_settings().compression_level


def default_merge_dimension() -> str:
    """Merge dimension used when none is given."""
    return _get_settings().merge_dimension
