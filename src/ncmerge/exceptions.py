"""Custom exceptions related to ncmerge functionality."""

from __future__ import annotations

EXIT_CODE_WALLTIME_LIMIT = 42


class NCMergeError(Exception):
    """Base exceptions class."""


class ConfigurationError(NCMergeError):
    """Raised when user options are contradictory or invalid."""


class ChunkSizeParseError(ConfigurationError):
    """Raised when a chunk size token can't be parsed.

    Args:
        token: The offending ``dim/size`` token.
        reason: Why the token was rejected.
    """

    def __init__(self, token: str, reason: str):
        self.token = token
        self.message = f"Unable to parse chunk size from spec: '{token}'. {reason}"
        super().__init__(self.message)


class ShapeError(NCMergeError):
    """Raised when the ranks or sizes of two things don't match.

    Args:
        message: Message to show with the exception.
        names: What is being compared, e.g. ``("input", "output")``.
        sizes: Rank or size of each compared thing.
    """

    def __init__(self, message: str, names: tuple[str, str] | None = None, sizes: tuple[int, int] | None = None):
        if names is not None and sizes is not None:
            details = ", ".join(f"{name}={size}" for name, size in zip(names, sizes, strict=True))
            message = f"{message} ({details})"

        super().__init__(message)


class WrongTypeError(NCMergeError):
    """Raised when a type has no equivalent in the file format.

    Args:
        message: Message to show with the exception.
        name: String form of the type for the `message`.
    """

    def __init__(self, message: str, name: str | None = None):
        if name is not None:
            message = f"{message} - Got: {name}"

        super().__init__(message)


class UnitsMismatchError(NCMergeError, NotImplementedError):
    """Raised when input and output units differ; units conversion is not implemented.

    Args:
        variable: Name of the variable being copied.
        units_in: Units in the input file.
        units_out: Units in the output file.
    """

    def __init__(self, variable: str, units_in: str, units_out: str):
        self.variable = variable
        self.units_in = units_in
        self.units_out = units_out
        self.message = (
            f"Unable to copy variable {variable}: input units '{units_in}' differ from "
            f"output units '{units_out}'. Units conversion is not yet implemented."
        )
        super().__init__(self.message)


class UnsupportedRankError(NCMergeError, NotImplementedError):
    """Raised when appending a variable with too many dimensions.

    Args:
        variable: Name of the variable being copied.
        rank: Number of dimensions of the variable.
    """

    def __init__(self, variable: str, rank: int):
        self.variable = variable
        self.rank = rank
        self.message = (
            f"Unable to copy variable {variable}: appending along {rank} dimensions is not yet "
            "implemented (but could theoretically be done)."
        )
        super().__init__(self.message)


class NativeLayerError(NCMergeError):
    """Raised when a call into the netCDF library fails.

    Args:
        operation: Name of the failing operation.
        target: Dimension, variable or attribute the operation acted on.
        path: File the operation acted on.
        reason: Why the operation failed, when known.
    """

    def __init__(self, operation: str, target: str, path: str | None = None, reason: str | None = None):
        self.operation = operation
        self.target = target
        self.path = path
        self.message = f"Failed to {operation} {target}"
        if path is not None:
            self.message += f" in file '{path}'"
        if reason is not None:
            self.message += f": {reason}"
        super().__init__(self.message)


class MissingAttributeError(NativeLayerError):
    """Raised when a required attribute is absent."""

    def __init__(self, attribute: str, variable: str, path: str | None = None):
        self.attribute = attribute
        self.variable = variable
        super().__init__("read attribute", f"'{attribute}' of variable {variable}", path)


class WalltimeLimitReachedError(NCMergeError):
    """Raised when the walltime limit is reached; the job may be resumed with the restart file."""

    exit_code = EXIT_CODE_WALLTIME_LIMIT

    def __init__(self, elapsed: float, limit: float, restart_file: str | None = None):
        self.elapsed = elapsed
        self.limit = limit
        self.restart_file = restart_file
        self.message = f"Walltime limit of {limit:.0f}s reached after {elapsed:.1f}s"
        if restart_file is not None:
            self.message += f"; resume with restart file '{restart_file}'"
        super().__init__(self.message)


class EnvironmentFormatError(NCMergeError):
    """Raised when environment variable is of the wrong format."""

    def __init__(self, name: str, format: str, msg: str = ""):  # noqa: A002
        """Initialize error."""
        self.message = f"Environment variable: {name} not of expected format: {format}. "
        self.message += f"\n{msg}" if msg else ""
        super().__init__(self.message)
