"""Command-line interface for the marketplace scraper.

    satutoko ensure-driver
    satutoko redownload-driver
    satutoko version
    satutoko scrape sepatu tas --platform shopee

``scrape`` prints each shop as soon as it is finished, then the complete
result list as JSON on stdout.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..driver.errors import ScraperError
from ..utils import ensure_dirs_exist, get_logs_directory, get_project_root
from .base.config import get_settings
from .base.models import EventKind, Platform, ScrapeEvent
from .service import ALL_PLATFORMS, ScraperService

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ["selenium", "urllib3", "aiohttp", "asyncio"]


def setup_logging(debug_mode: bool = False, log_dir: Path | None = None) -> Path:
    """Set up logging to both console and file.

    Args:
    ----
        debug_mode: Whether to enable debug logging
        log_dir: Directory for ``scraper.log``. Defaults to the app data dir.

    Returns:
    -------
        Path to the log file

    """
    log_level = logging.DEBUG if debug_mode else logging.INFO

    log_dir = log_dir or get_logs_directory()
    ensure_dirs_exist(log_dir)
    log_file = log_dir / "scraper.log"

    # Clear any existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console output stays off stdout, which carries the JSON result
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    console_handler.setLevel(log_level)

    # Set up file handler (overwrite mode)
    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "%(funcName)s:%(lineno)d - %(message)s"
        )
    )
    file_handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    if not debug_mode:
        for lib in NOISY_LOGGERS:
            logging.getLogger(lib).setLevel(logging.WARNING)

    logger.info(
        f"Logging configured - Level: {logging.getLevelName(log_level)}, "
        f"File: {log_file}"
    )
    return log_file


def positive_int(value: str) -> int:
    """Argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from e
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="satutoko",
        description="Seller-centric Tokopedia and Shopee scraper",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--config",
        type=Path,
        metavar="PATH",
        help="Scraper YAML config (default: config/scrapers.yaml)",
    )
    parser.add_argument(
        "--log-dir", type=Path, metavar="DIR", help="Directory for scraper.log"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("ensure-driver", help="Download and patch chromedriver")
    subparsers.add_parser(
        "redownload-driver", help="Wipe the driver directory and provision again"
    )
    subparsers.add_parser("version", help="Show browser and driver versions")

    scrape = subparsers.add_parser("scrape", help="Scrape products by keyword")
    scrape.add_argument(
        "keywords",
        nargs="+",
        help="Search keywords; the first one is used to discover sellers",
    )
    scrape.add_argument(
        "--platform",
        choices=[p.value for p in Platform] + [ALL_PLATFORMS],
        default=Platform.TOKOPEDIA.value,
        help="Marketplace to scrape, or 'all' (default: tokopedia)",
    )
    scrape.add_argument(
        "--limit",
        type=positive_int,
        metavar="N",
        help="Maximum products per shop per keyword",
    )
    return parser


def print_event(event: ScrapeEvent) -> None:
    """Print streamed progress to stderr."""
    if event.kind is EventKind.PROGRESS and event.shop is not None:
        shop = event.shop
        print(
            f"🏪 {shop.shop_display_name} ({shop.shop_url}): "
            f"{shop.product_count} products",
            file=sys.stderr,
        )
    elif event.kind is EventKind.DONE:
        print("✅ Scrape finished", file=sys.stderr)


async def run_command(args: argparse.Namespace, service: ScraperService) -> int:
    if args.command == "ensure-driver":
        path = await service.ensure_driver()
        print(path)
    elif args.command == "redownload-driver":
        path = await service.redownload_driver()
        print(path)
    elif args.command == "version":
        browser_version, driver_version = await service.get_version_info()
        print(f"Chrome: {browser_version}")
        print(f"ChromeDriver: {driver_version}")
    elif args.command == "scrape":
        keywords = [k.strip() for k in args.keywords if k.strip()]
        shops = await service.scrape(
            keywords, args.platform, on_event=print_event, limit=args.limit
        )
        payload = [shop.to_dict() for shop in shops]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``satutoko`` console script."""
    args = build_parser().parse_args(argv)

    load_dotenv(get_project_root() / ".env")
    setup_logging(args.debug, args.log_dir)

    try:
        settings = get_settings(args.config)
        service = ScraperService(settings)
        return asyncio.run(run_command(args, service))
    except ScraperError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
