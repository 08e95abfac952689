from datetime import datetime
from pathlib import Path

from crawlbase_client.io_csv import (
    LEAD_FIELDS,
    STORAGE_FIELDS,
    lead_rows,
    storage_rows,
    write_rows,
)
from crawlbase_client.models import LeadRecord, StorageRecord


def test_write_lead_rows_creates_csv_with_schema(tmp_path: Path) -> None:
    output = tmp_path / "leads.csv"
    rows = lead_rows([LeadRecord(email="a@example.com", sources=("https://a.test", "https://b.test"))])
    write_rows(str(output), LEAD_FIELDS, rows)
    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ",".join(LEAD_FIELDS)
    assert lines[1] == "a@example.com,https://a.test;https://b.test"


def test_storage_rows_render_missing_values_as_blank() -> None:
    rows = storage_rows(
        [
            StorageRecord(rid="r1", url="https://a.test", original_status=200, stored_at=datetime(2024, 1, 2)),
            StorageRecord(rid="r2"),
        ]
    )
    assert rows[0] == {
        "rid": "r1",
        "url": "https://a.test",
        "original_status": "200",
        "service_status": "",
        "stored_at": "2024-01-02T00:00:00",
    }
    assert rows[1]["url"] == ""
    assert list(rows[1]) == STORAGE_FIELDS
