"""
Tests for the catalog manifest builder.
"""

from unittest.mock import patch

import pytest

from panelapp_snapshot.core.exceptions import FetchError, ParseError
from panelapp_snapshot.core.io import MANIFEST_COLUMNS, read_tsv_records
from panelapp_snapshot.engine.manifest import (
    build_manifest,
    catalog_url,
    extract_catalog_entry,
)

API_BASE = "https://panelapp.example.org/api/v1"


def page_url(page: int) -> str:
    return f"{API_BASE}/panels/?page={page}&page_size=100"


class TestCatalogEntry:
    """Test mapping of catalog results to manifest records."""

    def test_catalog_url(self):
        """Test the first page URL, with and without a trailing slash."""
        assert catalog_url(API_BASE) == page_url(1)
        assert catalog_url(API_BASE + "/") == page_url(1)

    def test_standard_entry(self):
        """Test a result with id, version and name."""
        assert extract_catalog_entry({"id": 3302, "version": "0.278", "name": "X"}) == {
            "panel_id": "3302",
            "version": "0.278",
            "name": "X",
        }

    @pytest.mark.parametrize("field", ["panel_id", "pk"])
    def test_identifier_aliases(self, field):
        """Test identifiers reported under alternative field names."""
        entry = extract_catalog_entry({field: 12, "version": "1.0", "name": "Y"})
        assert entry["panel_id"] == "12"

    def test_id_takes_precedence(self):
        """Test that 'id' wins over the aliases."""
        entry = extract_catalog_entry(
            {"id": 1, "panel_id": 2, "pk": 3, "version": "1.0", "name": "Z"}
        )
        assert entry["panel_id"] == "1"

    def test_numeric_version_is_stringified(self):
        """Test that a numeric version is written as text."""
        entry = extract_catalog_entry({"id": 5, "version": 2.1, "name": "N"})
        assert entry["version"] == "2.1"

    @pytest.mark.parametrize(
        "result",
        [
            {"version": "1.0", "name": "No id"},
            {"id": 1, "name": "No version"},
            {"id": 1, "version": "1.0"},
            {"id": 1, "version": "", "name": "Empty version"},
            {"id": 1, "version": "1.0", "name": ""},
            {"id": None, "version": "1.0", "name": "Null id"},
            "not a dict",
        ],
    )
    def test_incomplete_entries_dropped(self, result):
        """Test that entries missing a field are dropped."""
        assert extract_catalog_entry(result) is None

    def test_name_is_single_line(self):
        """Test that tabs and line breaks in names are replaced."""
        entry = extract_catalog_entry(
            {"id": 1, "version": "1.0", "name": "Multi\tline\nname\r"}
        )
        assert entry["name"] == "Multi line name "
        assert "\t" not in entry["name"]
        assert "\n" not in entry["name"]


class TestBuildManifest:
    """Test catalog pagination and manifest writing."""

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_single_page(self, mock_get, make_response, tmp_path):
        """Test a catalog with a single page and no next link."""
        mock_get.return_value = make_response(
            {
                "results": [
                    {"id": 100, "version": "1.0", "name": "Test Panel"},
                    {"id": 101, "version": "0.5", "name": "Other\tPanel"},
                ],
                "next": None,
            }
        )
        out_path = tmp_path / "panel_manifest.tsv"

        records = build_manifest(out_path, API_BASE)

        assert len(records) == 2
        assert out_path.read_text() == (
            "panel_id\tversion\tname\n"
            "100\t1.0\tTest Panel\n"
            "101\t0.5\tOther Panel\n"
        )
        mock_get.assert_called_once()
        assert mock_get.call_args[0][0] == page_url(1)

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_pagination_follows_next(self, mock_get, make_response, tmp_path):
        """Test that N chained pages take exactly N fetches."""
        n_pages = 3
        pages = {}
        for page in range(1, n_pages + 1):
            results = [
                {"id": page * 1000 + i, "version": f"{page}.{i}", "name": f"P{i}"}
                for i in range(100)
            ]
            next_url = page_url(page + 1) if page < n_pages else None
            pages[page_url(page)] = make_response(
                {"results": results, "next": next_url}
            )
        mock_get.side_effect = lambda url, **kwargs: pages[url]
        out_path = tmp_path / "panel_manifest.tsv"

        records = build_manifest(out_path, API_BASE)

        assert mock_get.call_count == n_pages
        assert len(records) == 300
        assert records[0]["panel_id"] == "1000"
        assert records[-1]["panel_id"] == "3099"
        assert len(read_tsv_records(out_path, MANIFEST_COLUMNS)) == 300

    @pytest.mark.parametrize("terminator", [{"next": None}, {"next": ""}, {}])
    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_terminates_on_empty_next(
        self, mock_get, terminator, make_response, tmp_path
    ):
        """Test that a null, empty or absent next link ends pagination."""
        mock_get.return_value = make_response({"results": [], **terminator})

        records = build_manifest(tmp_path / "m.tsv", API_BASE)

        assert records == []
        assert mock_get.call_count == 1
        assert (tmp_path / "m.tsv").read_text() == "panel_id\tversion\tname\n"

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_duplicates_are_kept(self, mock_get, make_response, tmp_path):
        """Test that the same panel listed on two pages yields two rows."""
        entry = {"id": 7, "version": "1.0", "name": "Dup"}
        pages = {
            page_url(1): make_response({"results": [entry], "next": page_url(2)}),
            page_url(2): make_response({"results": [entry], "next": None}),
        }
        mock_get.side_effect = lambda url, **kwargs: pages[url]

        records = build_manifest(tmp_path / "m.tsv", API_BASE)

        assert [r["panel_id"] for r in records] == ["7", "7"]

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_incomplete_entries_skipped(self, mock_get, make_response, tmp_path):
        """Test that every written row has all three fields."""
        mock_get.return_value = make_response(
            {
                "results": [
                    {"id": 1, "version": "1.0", "name": "Good"},
                    {"id": 2, "version": None, "name": "No version"},
                    {"pk": 3, "version": "3.0", "name": "Alias"},
                    {"id": 4, "version": "1.0", "name": None},
                ],
                "next": None,
            }
        )
        out_path = tmp_path / "m.tsv"

        build_manifest(out_path, API_BASE)

        rows = read_tsv_records(out_path, MANIFEST_COLUMNS)
        assert [r["panel_id"] for r in rows] == ["1", "3"]
        for row in rows:
            assert all(row[c] for c in MANIFEST_COLUMNS)

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_missing_results_list(self, mock_get, make_response, tmp_path):
        """Test that a page without a results list raises ParseError."""
        mock_get.return_value = make_response({"detail": "Not found."})

        with pytest.raises(ParseError, match="no results list"):
            build_manifest(tmp_path / "m.tsv", API_BASE)

    @patch("panelapp_snapshot.core.http_client.requests.Session.get")
    def test_fetch_failure_keeps_partial_manifest(
        self, mock_get, make_response, tmp_path
    ):
        """Test that a failing page aborts and leaves earlier pages on disk."""
        pages = {
            page_url(1): make_response(
                {"results": [{"id": 1, "version": "1.0", "name": "A"}], "next": page_url(2)}
            ),
            page_url(2): make_response(b"", status_code=503),
        }
        mock_get.side_effect = lambda url, **kwargs: pages[url]
        out_path = tmp_path / "m.tsv"

        with pytest.raises(FetchError, match="page=2"):
            build_manifest(out_path, API_BASE)

        assert out_path.read_text() == "panel_id\tversion\tname\n1\t1.0\tA\n"
