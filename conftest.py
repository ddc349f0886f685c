"""
Global pytest configuration for test database toggling.

Usage:
- Default: reuse test DB across runs for speed.
- Override quickly via CLI:
    pytest --db-mode=recreate   # drop and re-create test DB
    pytest --db-mode=flush      # keep schema, flush data at session start
    pytest --db-mode=reuse      # reuse existing test DB (default)
- Or via env var (takes effect if CLI option omitted):
    PYTEST_DB_MODE=recreate pytest

Modes:
- reuse:     pytest-django --reuse-db (fastest, no deletion)
- recreate:  force re-create test DB (--create-db, disable reuse)
- flush:     reuse schema but flush all data once at session start
"""

import os

import pytest
from django.core.management import call_command


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--db-mode",
        action="store",
        default=os.getenv("PYTEST_DB_MODE", "reuse"),
        choices=["reuse", "recreate", "flush"],
        help=(
            "Test DB mode: 'reuse' (default), 'recreate' (drop & re-create), or "
            "'flush' (keep schema, clear data at session start)."
        ),
    )


def pytest_configure(config: pytest.Config) -> None:
    mode = config.getoption("--db-mode")

    # Normalize pytest-django options based on requested mode
    if mode == "recreate":
        config.option.reuse_db = False
        config.option.create_db = True
    else:
        config.option.reuse_db = True
        config.option.create_db = False


@pytest.fixture(scope="session", autouse=True)
def _maybe_flush_db(request: pytest.FixtureRequest, django_db_blocker) -> None:  # type: ignore[no-redef]
    """Flush DB once at session start if --db-mode=flush.

    This keeps the test DB schema (fast) but ensures no leftover data.
    """
    mode = request.config.getoption("--db-mode")
    if mode != "flush":
        return

    with django_db_blocker.unblock():
        call_command("flush", verbosity=0, interactive=False)


@pytest.fixture(autouse=True)
def block_identity_service(monkeypatch):
    """
    Fail loudly if a test reaches the real identity service.

    Tests pass a fake client to the services or patch ``requests.get`` in
    ``apps.kpi.identity`` themselves; an unpatched HTTP call is a test bug.
    """

    def _blocked(*args, **kwargs):
        raise AssertionError(f"Unexpected identity service call: {args} {kwargs}")

    monkeypatch.setattr("apps.kpi.identity.requests.get", _blocked)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Auto-categorize tests as unit or integration.

    Tests touching the database are integration tests, the rest unit tests.
    Explicit @pytest.mark.integration / @pytest.mark.unit markers win.
    """
    for item in items:
        marker_names = {marker.name for marker in item.iter_markers()}
        if "integration" in marker_names or "unit" in marker_names:
            continue

        if "django_db" in marker_names:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
