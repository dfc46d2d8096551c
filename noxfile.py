import os

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# Wheels with compiled code; a cached build may target another interpreter.
_COMPILED = ["psycopg2-binary", "bcrypt"]

nox.options.sessions = ["tests"]


def _prepare(session: nox.Session) -> None:
    session.install("-e", ".[test]")
    session.install("--force-reinstall", "--no-cache-dir", *_COMPILED)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Whole suite against the in-memory providers."""
    _prepare(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize("layer", ["domain", "application", "bdd", "integration"])
def layer(session: nox.Session, layer: str) -> None:
    """One test layer, selected by the marker conftest assigns per directory."""
    _prepare(session)
    session.run("pytest", "-m", layer, *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def postgres(session: nox.Session) -> None:
    """Whole suite against PostgreSQL; needs DATABASE_URL."""
    if "DATABASE_URL" not in os.environ:
        session.skip("DATABASE_URL is not set")
    _prepare(session)
    session.run("pytest", "--env", "production", *session.posargs)
