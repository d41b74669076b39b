"""Nox configuration for testing and linting."""

import nox

nox.options.sessions = ["tests", "lint"]
python_versions = ["3.11", "3.12"]


@nox.session(python=python_versions)
def tests(session):
    """Run the test suite with coverage."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest",
        "--cov=gatebot",
        "--cov-report=term-missing",
        "--cov-report=xml:coverage.xml",
        "--cov-fail-under=85",
        "-v",
        *session.posargs,
    )


@nox.session(python=python_versions[0])
def lint(session):
    """Run ruff for linting and formatting."""
    session.install("ruff>=0.1.0")
    session.run("ruff", "check", "gatebot", "tests")
    session.run("ruff", "format", "--check", "gatebot", "tests")


@nox.session(python=python_versions[0])
def format_code(session):
    """Format code with ruff."""
    session.install("ruff>=0.1.0")
    session.run("ruff", "format", "gatebot", "tests")
    session.run("ruff", "check", "--fix", "gatebot", "tests")


@nox.session(python=python_versions[0])
def serve(session):
    """Run the bot locally; expects the required env vars to be exported."""
    session.install("-e", ".")
    session.run("python", "-m", "gatebot", *session.posargs)
