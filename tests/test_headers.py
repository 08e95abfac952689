from datetime import datetime

from requests.structures import CaseInsensitiveDict

from crawlbase_client.coerce import to_bool, to_int
from crawlbase_client.headers import derive_rid, project_headers


def test_cb_status_wins_over_pc_status() -> None:
    fields = project_headers({"cb_status": "200", "pc_status": "404"})
    assert fields.service_status == 200


def test_pc_status_used_when_cb_status_missing() -> None:
    assert project_headers({"pc_status": "404"}).service_status == 404


def test_unparsable_cb_status_falls_back_to_pc_status() -> None:
    assert project_headers({"cb_status": "n/a", "pc_status": "520"}).service_status == 520


def test_header_names_are_case_insensitive() -> None:
    fields = project_headers({"Original_Status": "301", "URL": "https://example.com"})
    assert fields.original_status == 301
    assert fields.url == "https://example.com"


def test_rid_is_derived_from_storage_url() -> None:
    fields = project_headers(
        CaseInsensitiveDict({"storage_url": "https://api.crawlbase.com/storage/page?rid=AB12cd&foo=1"})
    )
    assert fields.rid == "AB12cd"


def test_storage_url_without_rid_leaves_rid_unset() -> None:
    fields = project_headers({"storage_url": "https://api.crawlbase.com/storage/page?foo=1"})
    assert fields.rid is None
    assert derive_rid(None) is None
    assert derive_rid("") is None


def test_rid_header_takes_precedence() -> None:
    fields = project_headers({"rid": "direct", "storage_url": "https://x.test/?rid=fromurl"})
    assert fields.rid == "direct"


def test_stored_at_is_parsed_and_bad_dates_are_ignored() -> None:
    parsed = project_headers({"stored_at": "2024-01-05T10:30:00Z"}).stored_at
    assert isinstance(parsed, datetime)
    assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2024, 1, 5, 10)
    assert project_headers({"stored_at": "not a date"}).stored_at is None


def test_coercion_failures_leave_fields_unset() -> None:
    fields = project_headers({"remaining_requests": "lots", "success": "maybe", "original_status": ""})
    assert fields.remaining_requests is None
    assert fields.success is None
    assert fields.original_status is None


def test_screenshot_headers() -> None:
    fields = project_headers(
        {"success": "True", "remaining_requests": "99", "screenshot_url": "https://s.test/a.jpg"}
    )
    assert fields.success is True
    assert fields.remaining_requests == 99
    assert fields.screenshot_url == "https://s.test/a.jpg"


def test_scalar_coercions() -> None:
    assert to_int(True) is None
    assert to_int(3.0) == 3
    assert to_int(3.5) is None
    assert to_int(" 42 ") == 42
    assert to_bool("FALSE") is False
    assert to_bool(None) is None
