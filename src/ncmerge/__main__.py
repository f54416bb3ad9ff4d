"""Command-line interface entry point, for ``python -m ncmerge``."""

from ncmerge.cli import app

if __name__ == "__main__":
    app(prog_name="ncmerge")
