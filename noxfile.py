"""Nox sessions."""

import sys
from pathlib import Path
from textwrap import dedent

try:
    import nox
    from nox import Session
    from nox import session
except ImportError:
    message = f"""\
    Nox failed to import.

    Please install it using the following command:

    {sys.executable} -m pip install nox"""
    raise SystemExit(dedent(message)) from None

package = "ncmerge"
python_versions = ["3.13", "3.12", "3.11"]
nox.options.sessions = ("pre-commit", "mypy", "tests", "typeguard")


def session_install_project(session: Session, extras: str = "test") -> None:
    """Install root project with its extras into the session's virtual environment."""
    session.install("-e", f".[{extras}]")


@session(name="pre-commit", python=python_versions[0])
def precommit(session: Session) -> None:
    """Lint using pre-commit."""
    args = session.posargs or ["run", "--all-files", "--hook-stage=manual", "--show-diff-on-failure"]
    session.install("ruff", "pre-commit", "pre-commit-hooks")
    session.run("pre-commit", *args)


@session(python=python_versions)
def mypy(session: Session) -> None:
    """Type-check using mypy."""
    args = session.posargs or ["src", "tests"]
    session_install_project(session)
    session.install("mypy")
    session.run("mypy", *args)
    if not session.posargs:
        session.run("mypy", f"--python-executable={sys.executable}", "noxfile.py")


@session(python=python_versions)
def tests(session: Session) -> None:
    """Run the test suite."""
    session_install_project(session)

    try:
        session.run("coverage", "run", "--parallel", "-m", "pytest", *session.posargs)
    finally:
        if session.interactive:
            session.notify("coverage", posargs=[])


@session(python=python_versions[0])
def coverage(session: Session) -> None:
    """Produce the coverage report."""
    args = session.posargs or ["report"]

    session.install("coverage[toml]")

    if not session.posargs and any(Path().glob(".coverage.*")):
        session.run("coverage", "combine")

    session.run("coverage", *args)


@session(python=python_versions[0])
def typeguard(session: Session) -> None:
    """Runtime type checking using Typeguard."""
    session_install_project(session)
    session.install("typeguard")
    session.run("pytest", f"--typeguard-packages={package}", *session.posargs)
