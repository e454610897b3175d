"""Nox sessions."""
import sys
from pathlib import Path

import nox
from nox import Session
from nox import session


package = "symcalc"
python_versions = ["3.12", "3.11", "3.10", "3.9"]
nox.needs_version = ">= 2021.6.6"
nox.options.sessions = (
    "mypy",
    "tests",
    "doctest",
)


@session(python="3.12")
def mypy(session: Session) -> None:
    """Type-check using mypy."""
    args = session.posargs or ["src", "tests"]
    session.install(".[test]")
    session.install("mypy")
    session.run("mypy", *args)
    if not session.posargs:
        session.run("mypy", f"--python-executable={sys.executable}", "noxfile.py")


@session(python=python_versions)
def tests(session: Session) -> None:
    """Run the test suite."""
    session.install(".[test]")
    try:
        session.run("coverage", "run", "--parallel", "-m", "pytest", *session.posargs)
    finally:
        if session.interactive:
            session.notify("coverage", posargs=[])


@session
def coverage(session: Session) -> None:
    """Produce the coverage report."""
    args = session.posargs or ["report"]

    session.install("coverage[toml]")

    if not session.posargs and any(Path().glob(".coverage.*")):
        session.run("coverage", "combine")

    session.run("coverage", *args)


@session(python=python_versions)
def doctest(session: Session) -> None:
    """Run examples with xdoctest."""
    args = session.posargs or ["all"]
    session.install(".[test]")
    session.run("python", "-m", "xdoctest", "--quiet", package, *args)


@session(python="3.12")
def benchmarks(session: Session) -> None:
    """Compare differentiation with SymPy using pytest-benchmark."""
    session.install(".[benchmark]")
    session.run("pytest", "benchmarks", *session.posargs)
