import io
import json
import logging
from pathlib import Path

import pytest
from requests.structures import CaseInsensitiveDict

from crawlbase_client import cli
from crawlbase_client.config import ClientConfig
from crawlbase_client.errors import TransportError
from crawlbase_client.logging_utils import get_logger
from crawlbase_client.models import RawResponse


class FakeTransport:
    def __init__(self, payload: bytes, headers: dict[str, str] | None = None) -> None:
        self._payload = payload
        self._headers = headers or {}
        self.urls: list[str] = []

    def send(self, method, url, headers=None, body=None) -> RawResponse:
        self.urls.append(url)
        return RawResponse(
            status_code=200,
            headers=CaseInsensitiveDict(self._headers),
            stream=io.BytesIO(self._payload),
        )


def test_parse_args_crawl_with_options() -> None:
    args = cli.parse_args(["crawl", "https://a.test", "--format", "json", "--option", "device=mobile"])
    assert args.command == "crawl"
    assert args.format == "json"
    assert args.option == [("device", "mobile")]


def test_parse_args_storage_get_requires_target() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["storage", "get"])
    args = cli.parse_args(["storage", "get", "--rid", "r1"])
    assert args.rid == "r1"


def test_parse_args_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_parse_args_rejects_malformed_option() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["crawl", "https://a.test", "--option", "novalue"])


def test_main_returns_two_without_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CRAWLBASE_TOKEN", raising=False)
    assert cli.main(["leads", "x.com"]) == 2


def test_main_returns_zero_on_success(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setattr(cli, "run_command", lambda args, config, logger: {"total_count": 4})
    assert cli.main(["--token", "tok", "storage", "count"]) == 0
    assert json.loads(capsys.readouterr().out) == {"total_count": 4}


def test_main_returns_one_on_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(args, config, logger):
        raise TransportError("connection refused")

    monkeypatch.setattr(cli, "run_command", fail)
    assert cli.main(["--token", "tok", "crawl", "https://a.test"]) == 1


def test_main_returns_two_on_invalid_screenshot_path() -> None:
    assert cli.main(["--token", "tok", "screenshot", "https://a.test", "--save-to", "a.png"]) == 2


def test_run_command_leads_writes_csv(tmp_path: Path) -> None:
    transport = FakeTransport(
        b'{"success":true,"domain":"x.com","leads":[{"email":"a@x.com","sources":["s1"]}]}'
    )
    output = tmp_path / "leads.csv"
    args = cli.parse_args(["leads", "x.com", "--csv", str(output)])
    payload = cli.run_command(
        args, ClientConfig(token="tok"), logger=logging.getLogger("test"), transport=transport
    )
    assert payload["success"] is True
    assert payload["leads"] == [{"email": "a@x.com", "sources": "s1"}]
    assert "a@x.com,s1" in output.read_text(encoding="utf-8")


def test_run_command_crawl_summary_omits_body() -> None:
    transport = FakeTransport(b"<html/>", {"pc_status": "200", "url": "https://a.test"})
    args = cli.parse_args(["crawl", "https://a.test", "--option", "device=mobile"])
    payload = cli.run_command(
        args, ClientConfig(token="tok"), logger=logging.getLogger("test"), transport=transport
    )
    assert payload == {"status_code": 200, "service_status": 200, "url": "https://a.test"}
    assert "device=mobile" in transport.urls[0]


def test_get_logger_names_components() -> None:
    assert get_logger().name == "crawlbase_client"
    assert get_logger("api").name == "crawlbase_client.api"


def test_main_returns_one_on_unreadable_json(monkeypatch: pytest.MonkeyPatch) -> None:
    transport = FakeTransport(b"<html>not json</html>")
    real_run_command = cli.run_command

    def run_with_fake(args, config, logger):
        return real_run_command(args, config, logger=logger, transport=transport)

    monkeypatch.setattr(cli, "run_command", run_with_fake)
    assert cli.main(["--token", "tok", "crawl", "https://a.test", "--format", "json"]) == 1
    assert len(transport.urls) == 1
