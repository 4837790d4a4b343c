import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--all-extras",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no HTTP or provider adapters)."""
    _install(session)
    session.run("pytest", "tests/ordering/domain/")


@nox.session(python=PYTHON_VERSIONS[-1])
def coverage(session: nox.Session) -> None:
    """Run the suite with coverage for the ordering package."""
    _install(session)
    session.run("pytest", "--cov=ordering", "--cov-report=term-missing")
