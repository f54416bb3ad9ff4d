"""ncmerge library."""

from __future__ import annotations

from importlib import metadata

from ncmerge.core.options import MergeOptions
from ncmerge.merge_time import MergeTime

try:
    __version__ = metadata.version("ncmerge")
except metadata.PackageNotFoundError:
    __version__ = "unknown"


__all__ = [
    "__version__",
    "MergeOptions",
    "MergeTime",
]
