import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the marketplace package with its test group into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--with",
        "test",
        "--all-extras",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the full suite, BDD scenarios included."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Aggregates, adapters and pure rules only. No HTTP layer."""
    _install(session)
    session.run(
        "pytest",
        "tests/inventory/domain/",
        "tests/cart/domain/",
        "tests/ordering/domain/",
        "tests/payments/domain/",
        "tests/shipping/domain/",
    )


@nox.session(python=PYTHON_VERSIONS)
def tests_api(session: nox.Session) -> None:
    """HTTP endpoints through the FastAPI test client."""
    _install(session)
    session.run("pytest", "-m", "integration")
