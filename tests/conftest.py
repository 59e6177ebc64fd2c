"""Test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import responses
import structlog

from tableau_users.rest_api_utils import Transport
from tableau_users.users import TableauUsers

from .support.tableau import CREDENTIALS, SESSION


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the caller's Tableau settings and .local file out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "TABLEAU_URL",
        "TABLEAU_USERNAME",
        "TABLEAU_PASSWORD",
        "TABLEAU_SITE",
        "TABLEAU_EXISTING_ASSETS_USER_NAME",
        "TABLEAU_HTTP_TIMEOUT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_tableau() -> Iterator[responses.RequestsMock]:
    """Intercept all requests made through requests."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def client(mock_tableau: responses.RequestsMock) -> TableauUsers:
    return TableauUsers(
        SESSION, CREDENTIALS, transport=Transport(), verify_wait=0
    )


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo any structlog configuration made by a test."""
    yield
    structlog.reset_defaults()
