"""Tests for record stores."""

import io
import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from plotrecon._types import PlotRecord, StoreRecord
from plotrecon.errors import RecordNotFoundError, StoreError
from plotrecon.store import FileRecordStore, HttpRecordStore, InMemoryStore


class TestInMemoryStore:
    def test_filter_sort_limit(self):
        store = InMemoryStore([
            {"id": "a", "section": "Section 1", "created_date": "2020"},
            {"id": "b", "section": "Section 1", "created_date": "2022"},
            {"id": "c", "section": "Section 2", "created_date": "2021"},
        ])
        rows = store.list(filter={"section": "Section 1"}, sort="-created_date")
        assert [r["id"] for r in rows] == ["b", "a"]
        assert len(store.list(limit=1)) == 1

    def test_create_assigns_id_and_timestamps(self):
        store = InMemoryStore()
        row = store.create({"plot_number": "131"})
        assert row["id"]
        assert row["created_date"] == row["updated_date"]
        assert store.get(row["id"])["plot_number"] == "131"

    def test_update(self):
        store = InMemoryStore([{"id": "a", "status": "Available"}])
        row = store.update("a", {"status": "Reserved", "id": "ignored"})
        assert row["status"] == "Reserved"
        assert row["id"] == "a"

    def test_missing_ids_raise(self):
        store = InMemoryStore()
        with pytest.raises(RecordNotFoundError):
            store.delete("nope")
        with pytest.raises(RecordNotFoundError):
            store.update("nope", {})

    def test_fetch_all_builds_models(self):
        store = InMemoryStore([{"id": "a", "plot_number": "7", "notes": None, "obituary": "x"}])
        (plot,) = store.fetch_all(PlotRecord)
        assert isinstance(plot, PlotRecord)
        assert plot.notes == ""
        (record,) = store.fetch_all(StoreRecord)
        assert record.get("obituary") == "x"

    def test_fetch_all_reads_numbers_as_text(self):
        store = InMemoryStore([{"id": "a", "plot_number": 107, "row_number": 12.0, "section": 1}])
        (plot,) = store.fetch_all(PlotRecord)
        assert plot.plot_number == "107"
        assert plot.row_number == "12"
        assert plot.section == "1"


class TestFileRecordStore:
    def test_csv_round_trip(self, plots_csv, tmp_path):
        store = FileRecordStore(plots_csv)
        assert len(store) == 10
        store.delete("x7")
        out = store.save(str(tmp_path / "out.csv"))
        assert len(FileRecordStore(out)) == 9

    def test_csv_keeps_identifiers_as_text(self, tmp_path):
        path = tmp_path / "p.csv"
        path.write_text("id,plot_number,row_number\n1,007,\n")
        (row,) = FileRecordStore(str(path)).list()
        assert row["plot_number"] == "007"
        assert row["row_number"] == ""

    def test_json(self, deceased_json):
        store = FileRecordStore(deceased_json, entity="Deceased")
        assert len(store) == 3
        assert store.get("d2")["burial_plot"] == "107"
        # missing key in other rows becomes empty text
        assert store.get("d1")["burial_plot"] == ""

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "plots.xlsx"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported file format"):
            FileRecordStore(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileRecordStore(str(tmp_path / "nope.csv"))


def _response(payload):
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8")
    resp.__enter__.return_value = resp
    return resp


class TestHttpRecordStore:
    def test_requires_url(self, monkeypatch):
        monkeypatch.delenv("PLOTRECON_STORE_URL", raising=False)
        with pytest.raises(ValueError, match="Store URL not configured"):
            HttpRecordStore()

    def test_url_and_token_from_env(self, monkeypatch):
        monkeypatch.setenv("PLOTRECON_STORE_URL", "https://store.example.com/api/")
        monkeypatch.setenv("PLOTRECON_API_KEY", "secret")
        store = HttpRecordStore(entity="NewPlot")
        assert store.base_url == "https://store.example.com/api"
        assert store.api_key == "secret"
        assert store.entity == "NewPlot"

    def test_list_request(self):
        store = HttpRecordStore("https://store.example.com", api_key="k")
        with patch("plotrecon.store.http.urlopen", return_value=_response([{"id": "1"}])) as mock_open:
            rows = store.list(filter={"section": "Section 1"}, sort="-created_date", limit=50)

        assert rows == [{"id": "1"}]
        req = mock_open.call_args[0][0]
        assert req.get_method() == "GET"
        assert req.full_url.startswith("https://store.example.com/entities/Plot?")
        assert "limit=50" in req.full_url
        assert "sort=-created_date" in req.full_url
        assert req.get_header("Authorization") == "Bearer k"

    def test_list_accepts_items_envelope(self):
        store = HttpRecordStore("https://store.example.com")
        with patch("plotrecon.store.http.urlopen", return_value=_response({"items": [{"id": "2"}]})):
            assert store.list() == [{"id": "2"}]

    def test_delete_request(self):
        store = HttpRecordStore("https://store.example.com")
        with patch("plotrecon.store.http.urlopen", return_value=_response({})) as mock_open:
            store.delete("abc")
        req = mock_open.call_args[0][0]
        assert req.get_method() == "DELETE"
        assert req.full_url == "https://store.example.com/entities/Plot/abc"

    def test_http_error_raises_store_error(self):
        store = HttpRecordStore("https://store.example.com")
        err = HTTPError("u", 500, "Server Error", {}, io.BytesIO(b"trace"))
        with patch("plotrecon.store.http.urlopen", side_effect=err):
            with pytest.raises(StoreError) as exc_info:
                store.create({"plot_number": "1"})
        assert exc_info.value.status == 500
        assert exc_info.value.detail == "trace"

    def test_404_raises_not_found(self):
        store = HttpRecordStore("https://store.example.com")
        err = HTTPError("u", 404, "Not Found", {}, io.BytesIO(b""))
        with patch("plotrecon.store.http.urlopen", side_effect=err):
            with pytest.raises(RecordNotFoundError):
                store.delete("gone")

    def test_connection_error(self):
        store = HttpRecordStore("https://store.example.com")
        with patch("plotrecon.store.http.urlopen", side_effect=URLError("refused")):
            with pytest.raises(StoreError, match="Connection failed"):
                store.list()

    def test_check_configured(self, monkeypatch):
        monkeypatch.delenv("PLOTRECON_API_KEY", raising=False)
        store = HttpRecordStore("https://store.example.com")
        with pytest.raises(ValueError, match="Store API key not configured"):
            store.check_configured("Store")
