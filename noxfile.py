"""Nox session definitions mirroring repository quality gates."""

from __future__ import annotations

import nox

nox.options.sessions = ["lint", "typecheck", "tests"]


@nox.session
def lint(session: nox.Session) -> None:
    """Run lint and formatting checks without mutating files."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session
def typecheck(session: nox.Session) -> None:
    """Run mypy on the deck_player package."""
    session.install("mypy")
    session.install("-e", ".")
    session.run("mypy", "src/deck_player")


@nox.session
def tests(session: nox.Session) -> None:
    """Run the pytest suite; `-- <args>` is forwarded to pytest."""
    session.install("-e", ".[test]")
    session.run("pytest", *session.posargs)


@nox.session(name="vlc-tests")
def vlc_tests(session: nox.Session) -> None:
    """Run the suite with python-vlc installed (needs a local libVLC)."""
    session.install("-e", ".[test,vlc]")
    session.run("pytest", *session.posargs)
