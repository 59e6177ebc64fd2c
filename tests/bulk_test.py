"""Tests for bulk site role updates."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses
from responses import matchers

from tableau_users.bulk import (
    BulkUpdateRecord,
    BulkUpdateSummary,
    bulk_update_site_roles,
    load_records,
)
from tableau_users.exceptions import BulkFileError
from tableau_users.users import TableauUsers

from .support.tableau import USERS_URL, user_url, user_xml, users_xml


def mock_get_user(
    mock: responses.RequestsMock, username: str, body: str, status: int = 200
) -> None:
    mock.get(
        USERS_URL,
        body=body,
        status=status,
        match=[matchers.query_param_matcher({"filter": f"name:eq:{username}"})],
    )


def test_load_records(tmp_path: Path) -> None:
    path = tmp_path / "users.yaml"
    path.write_text(
        "- username: john.smith\n"
        "  role: Explorer\n"
        "- username: jane.doe\n"
        "  id: 0f1e2d3c\n"
        "  role: Viewer\n"
    )

    assert load_records(str(path)) == [
        BulkUpdateRecord(username="john.smith", role="Explorer"),
        BulkUpdateRecord(username="jane.doe", role="Viewer"),
    ]


def test_load_records_empty(tmp_path: Path) -> None:
    path = tmp_path / "users.yaml"
    path.write_text("")
    assert load_records(str(path)) == []


def test_load_records_numeric_username(tmp_path: Path) -> None:
    path = tmp_path / "users.yaml"
    path.write_text(
        "- username: 1234\n"
        "  role: Viewer\n"
        "- username: jane\n"
        "  role: Explorer\n"
    )

    assert load_records(str(path)) == [
        BulkUpdateRecord(username="1234", role="Viewer"),
        BulkUpdateRecord(username="jane", role="Explorer"),
    ]


def test_load_records_invalid(tmp_path: Path) -> None:
    with pytest.raises(BulkFileError):
        load_records(str(tmp_path / "missing.yaml"))
    with pytest.raises(BulkFileError):
        load_records(str(tmp_path))

    path = tmp_path / "users.yaml"
    path.write_text("- username: [unclosed\n")
    with pytest.raises(BulkFileError):
        load_records(str(path))

    path.write_text("- username: john.smith\n")
    with pytest.raises(BulkFileError):
        load_records(str(path))

    path.write_text("username: john.smith\nrole: Viewer\n")
    with pytest.raises(BulkFileError):
        load_records(str(path))


def test_bulk_update(
    client: TableauUsers, mock_tableau: responses.RequestsMock
) -> None:
    mock_get_user(mock_tableau, "same", users_xml([("same", "1", "Viewer")]))
    mock_get_user(mock_tableau, "change", users_xml([("change", "2", "Viewer")]))
    mock_get_user(
        mock_tableau, "change", users_xml([("change", "2", "Creator")])
    )
    mock_tableau.put(user_url("2"), body=user_xml("change", "2", "Creator"))
    mock_get_user(mock_tableau, "missing", users_xml([]))
    mock_get_user(mock_tableau, "broken", "Internal Server Error", 500)
    mock_tableau.get(
        USERS_URL,
        body=requests.ConnectionError("connection refused"),
        match=[matchers.query_param_matcher({"filter": "name:eq:offline"})],
    )

    records = [
        BulkUpdateRecord(username="same", role="viewer"),
        BulkUpdateRecord(username="change", role="Creator"),
        BulkUpdateRecord(username="missing", role="Viewer"),
        BulkUpdateRecord(username="broken", role="Viewer"),
        BulkUpdateRecord(username="offline", role="Viewer"),
    ]
    summary = bulk_update_site_roles(client, records)

    assert summary == BulkUpdateSummary(
        already_same=1, updated=1, not_found=1, errored=2
    )
    assert summary.total == len(records)
    puts = [c for c in mock_tableau.calls if c.request.method == "PUT"]
    assert len(puts) == 1

    # The updated user is looked up once before the update and once after.
    lookups = [
        c
        for c in mock_tableau.calls
        if parse_qs(urlparse(c.request.url).query).get("filter")
        == ["name:eq:change"]
    ]
    assert len(lookups) == 2


def test_bulk_update_single_lookup(
    client: TableauUsers, mock_tableau: responses.RequestsMock
) -> None:
    """A single lookup precedes the update; the second one verifies it."""
    mock_get_user(mock_tableau, "jane", users_xml([("jane", "1", "Viewer")]))
    mock_get_user(mock_tableau, "jane", users_xml([("jane", "1", "Creator")]))
    mock_tableau.put(user_url("1"), body=user_xml("jane", "1", "Creator"))

    records = [BulkUpdateRecord(username="jane", role="Creator")]
    summary = bulk_update_site_roles(client, records)

    assert summary == BulkUpdateSummary(updated=1)
    puts = [c for c in mock_tableau.calls if c.request.method == "PUT"]
    assert len(puts) == 1
    methods = [c.request.method for c in mock_tableau.calls]
    assert methods == ["GET", "PUT", "GET"]


def test_bulk_update_nothing(client: TableauUsers) -> None:
    assert bulk_update_site_roles(client, []) == BulkUpdateSummary()
