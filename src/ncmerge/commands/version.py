"""ncmerge version command."""

from __future__ import annotations

from importlib import metadata

import typer


def get_package_version(package_name: str, default: str = "unknown") -> str:
    """Safely fetch the package version, providing a default if not found."""
    try:
        return metadata.version(package_name)
    except metadata.PackageNotFoundError:
        return default


def version() -> None:
    """Print the ncmerge version."""
    typer.echo(f"ncmerge CLI Version: {get_package_version('ncmerge')}")
