"""Progress reporting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Protocol

from tqdm.auto import tqdm

if TYPE_CHECKING:
    from types import TracebackType

# Sums of per-file and per-variable weights may overshoot 1 by rounding.
ROUNDING_TOLERANCE = 1e-9


class ProgressCallback(Protocol):
    """Receives the completed fraction of a task, in [0, 1]."""

    def __call__(self, progress: float) -> None:
        """Report progress."""


def ignore_progress(progress: float) -> None:  # noqa: ARG001
    """Progress callback that discards reports."""


def scaled_progress(callback: ProgressCallback, start: float, step: float) -> ProgressCallback:
    """Map a sub-task's progress into the window ``[start, start + step]`` of `callback`."""

    def report(progress: float) -> None:
        callback(start + step * progress)

    return report


class ProgressReporter:
    """Progress bar for a whole merge.

    Args:
        enabled: Whether to display anything at all.
        interval: Minimum number of seconds between two refreshes.
        description: Label shown before the bar.
        logger: Logger for out-of-range reports.
    """

    def __init__(
        self,
        enabled: bool = False,
        interval: float = 1.0,
        description: str = "Working",
        logger: logging.Logger | None = None,
    ):
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self.value = 0.0
        self._bar = tqdm(
            total=100.0,
            desc=description,
            unit="%",
            disable=not enabled,
            mininterval=interval,
            bar_format="{desc}: {n:.2f}% |{bar}| Elapsed: {elapsed}; Remaining: {remaining}",
        )

    def __call__(self, progress: float) -> None:
        """Report overall progress in [0, 1]."""
        if progress < 0:
            self._logger.warning("Progress is negative: %s", progress)
            return
        if progress > 1 + ROUNDING_TOLERANCE:
            self._logger.warning("Progress is >1: %s", progress)
            return
        progress = min(progress, 1.0)

        if progress > self.value:
            self._bar.update(100.0 * (progress - self.value))
            self.value = progress

    def __enter__(self) -> ProgressReporter:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the progress bar."""
        self._bar.close()
