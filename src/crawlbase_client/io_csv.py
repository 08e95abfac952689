"""CSV serialization helpers."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from pathlib import Path

from .models import LeadRecord, StorageRecord

LEAD_FIELDS = ["email", "sources"]
STORAGE_FIELDS = ["rid", "url", "original_status", "service_status", "stored_at"]


def lead_rows(leads: Iterable[LeadRecord]) -> list[dict[str, str]]:
    return [{"email": lead.email or "", "sources": ";".join(lead.sources)} for lead in leads]


def storage_rows(records: Iterable[StorageRecord]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for record in records:
        rows.append(
            {
                "rid": record.rid or "",
                "url": record.url or "",
                "original_status": "" if record.original_status is None else str(record.original_status),
                "service_status": "" if record.service_status is None else str(record.service_status),
                "stored_at": record.stored_at.isoformat() if record.stored_at else "",
            }
        )
    return rows


def write_rows(path: str, fieldnames: list[str], rows: list[dict[str, str]]) -> None:
    """Write rows to CSV with a stable schema."""
    output_path = Path(path)
    with output_path.open("w", newline="", encoding="utf-8") as file_obj:
        writer = csv.DictWriter(file_obj, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
