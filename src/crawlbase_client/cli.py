"""CLI entrypoint for crawlbase-client."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from .api import CrawlingAPI, LeadsAPI, ScraperAPI, ScreenshotsAPI, StorageAPI
from .config import DEFAULT_REQUEST_TIMEOUT, ClientConfig
from .errors import (
    ConfigError,
    InvalidArgument,
    ProjectionFailure,
    TransportError,
    UnsupportedOperation,
)
from .io_csv import LEAD_FIELDS, STORAGE_FIELDS, lead_rows, storage_rows, write_rows
from .logging_utils import configure_logging, get_logger
from .models import ExtractedResult, Transport


def _key_value(text: str) -> tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {text!r}.")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Crawlbase client - crawl, scrape, screenshot, storage and leads endpoints."
    )
    parser.add_argument("--token", help="API token (or set CRAWLBASE_TOKEN env var).")
    parser.add_argument("--base-url", help="API base URL (or set CRAWLBASE_BASE_URL).")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Request timeout in seconds.",
    )
    parser.add_argument("--include-body", action="store_true", help="Print response bodies.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    crawl = commands.add_parser("crawl", help="Fetch a page through the crawling endpoint.")
    crawl.add_argument("url")
    crawl.add_argument("--format", choices=["html", "json"], help="Response format.")
    crawl.add_argument(
        "--option", type=_key_value, action="append", default=[], help="Extra KEY=VALUE option."
    )
    crawl.add_argument(
        "--data", type=_key_value, action="append", default=[], help="POST field KEY=VALUE."
    )

    scrape = commands.add_parser("scrape", help="Scrape structured data from a page.")
    scrape.add_argument("url")
    scrape.add_argument(
        "--option", type=_key_value, action="append", default=[], help="Extra KEY=VALUE option."
    )

    screenshot = commands.add_parser("screenshot", help="Capture a page screenshot.")
    screenshot.add_argument("url")
    screenshot.add_argument("--save-to", help="Destination .jpg/.jpeg path.")

    storage = commands.add_parser("storage", help="Stored page operations.")
    storage_commands = storage.add_subparsers(dest="storage_command", required=True)
    storage_get = storage_commands.add_parser("get", help="Fetch a stored page.")
    target = storage_get.add_mutually_exclusive_group(required=True)
    target.add_argument("--url")
    target.add_argument("--rid")
    storage_get.add_argument("--format", choices=["html", "json"], default="html")
    storage_delete = storage_commands.add_parser("delete", help="Delete a stored page.")
    storage_delete.add_argument("rid")
    storage_bulk = storage_commands.add_parser("bulk", help="Fetch several stored pages.")
    storage_bulk.add_argument("rids", nargs="+")
    storage_bulk.add_argument("--csv", help="Write records to this CSV path.")
    storage_rids = storage_commands.add_parser("rids", help="List stored RIDs.")
    storage_rids.add_argument("--limit", type=int)
    storage_commands.add_parser("count", help="Count stored pages.")

    leads = commands.add_parser("leads", help="Find email leads for a domain.")
    leads.add_argument("domain")
    leads.add_argument("--csv", help="Write leads to this CSV path.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI input."""
    return build_parser().parse_args(argv)


def summarize(result: ExtractedResult, include_body: bool = False) -> dict[str, Any]:
    """Convert a result to printable JSON-friendly data."""
    payload = asdict(result)
    payload.pop("records", None)
    if not include_body:
        payload.pop("body", None)
    return {key: value for key, value in payload.items() if value is not None}


def run_command(
    args: argparse.Namespace,
    config: ClientConfig,
    *,
    logger: logging.Logger,
    transport: Transport | None = None,
) -> Any:
    """Execute the selected command and return JSON-serializable output."""
    if args.command == "crawl":
        client = CrawlingAPI.from_config(config, transport=transport, logger=logger)
        options: dict[str, Any] = dict(args.option)
        if args.format:
            options["format"] = args.format
        if args.data:
            result = client.post(args.url, dict(args.data), options)
        else:
            result = client.get(args.url, options)
        return summarize(result, args.include_body)

    if args.command == "scrape":
        scraper = ScraperAPI.from_config(config, transport=transport, logger=logger)
        return summarize(scraper.get(args.url, dict(args.option)), args.include_body)

    if args.command == "screenshot":
        screenshots = ScreenshotsAPI.from_config(config, transport=transport, logger=logger)
        screenshot_options = {"save_to_path": args.save_to} if args.save_to else {}
        result = screenshots.get(args.url, screenshot_options)
        logger.info("Saved screenshot to %s", result.screenshot_path)
        return summarize(result, include_body=False)

    if args.command == "storage":
        storage = StorageAPI.from_config(config, transport=transport, logger=logger)
        if args.storage_command == "get":
            if args.url:
                result = storage.get_by_url(args.url, args.format)
            else:
                result = storage.get_by_rid(args.rid, args.format)
            return summarize(result, args.include_body)
        if args.storage_command == "delete":
            return {"rid": args.rid, "deleted": storage.delete(args.rid)}
        if args.storage_command == "bulk":
            records = storage.bulk(args.rids)
            if args.csv:
                write_rows(args.csv, STORAGE_FIELDS, storage_rows(records))
                logger.info("Wrote %d records to %s", len(records), args.csv)
            return storage_rows(records)
        if args.storage_command == "rids":
            return storage.rids(args.limit)
        return {"total_count": storage.total_count()}

    leads_client = LeadsAPI.from_config(config, transport=transport, logger=logger)
    outcome = leads_client.get(args.domain)
    if args.csv:
        write_rows(args.csv, LEAD_FIELDS, lead_rows(outcome.leads))
        logger.info("Wrote %d leads to %s", len(outcome.leads), args.csv)
    return {
        "success": outcome.success,
        "domain": outcome.domain,
        "remaining_requests": outcome.remaining_requests,
        "leads": lead_rows(outcome.leads),
    }


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()
    try:
        config = ClientConfig.from_env(
            args.token, base_url=args.base_url, request_timeout=args.timeout
        )
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        output = run_command(args, config, logger=logger)
    except (InvalidArgument, UnsupportedOperation) as exc:
        logger.error("Invalid request: %s", exc)
        return 2
    except TransportError as exc:
        logger.error("Request failed: %s", exc)
        return 1
    except ProjectionFailure as exc:
        logger.error("Unreadable response: %s", exc)
        return 1
    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
