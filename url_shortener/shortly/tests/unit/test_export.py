import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from shortly.exceptions import NoDataToExport, StoreUnavailable
from shortly.export import build_export_rows, render_csv
from shortly.models import Link
from shortly.schemas import ExportItem, ExportRow
from shortly.utils import today_iso

def test_rows_from_results_use_stored_clicks(store):
    link = store.insert(Link(short_code="abc123", original_url="https://example.com", click_count=4))

    rows = build_export_rows(store, "http://short.ly", results=[
        ExportItem(original_url="https://example.com", short_url="http://short.ly/abc123", short_code="abc123"),
        ExportItem(original_url="https://unknown.com", short_url="http://short.ly/zzz999", short_code="zzz999"),
    ])

    assert rows[0].click_count == 4
    assert rows[0].creation_date == link.created_at.date().isoformat()
    assert rows[1].click_count == 0
    assert rows[1].creation_date == today_iso()

def test_rows_from_results_without_store():
    rows = build_export_rows(None, "http://short.ly", results=[ExportItem(short_code="abc123")])

    assert rows[0].click_count == 0
    assert rows[0].creation_date == today_iso()

def test_rows_from_results_when_lookup_fails(store):
    with patch.object(store, "find_many", side_effect=OperationalError("SELECT", {}, Exception("db down"))):
        rows = build_export_rows(store, "http://short.ly", results=[ExportItem(short_code="abc123")])

    assert rows[0].click_count == 0

def test_rows_from_short_codes(store):
    store.insert(Link(short_code="abc123", original_url="https://example.com", click_count=2))

    rows = build_export_rows(store, "http://short.ly/", short_codes=["abc123", "missing"])

    assert len(rows) == 1
    assert rows[0].short_url == "http://short.ly/abc123"
    assert rows[0].click_count == 2

def test_short_codes_need_store():
    with pytest.raises(StoreUnavailable):
        build_export_rows(None, "http://short.ly", short_codes=["abc123"])

def test_nothing_to_export(store):
    with pytest.raises(NoDataToExport):
        build_export_rows(store, "http://short.ly")

    with pytest.raises(NoDataToExport):
        build_export_rows(store, "http://short.ly", short_codes=["missing"])

def test_render_csv():
    rows = [ExportRow(
        original_url='https://example.com/?q="x",y',
        short_url="http://short.ly/abc123",
        short_code="abc123",
        creation_date="2026-10-17",
        click_count=3,
    )]

    lines = render_csv(rows).splitlines()

    assert lines[0] == '"Original URL","Short URL","Short Code","Creation Date","Click Count"'
    assert lines[1] == '"https://example.com/?q=""x"",y","http://short.ly/abc123","abc123","2026-10-17","3"'
