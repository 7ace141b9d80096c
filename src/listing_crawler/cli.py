import argparse
import sys

from listing_crawler.config import DEFAULT_SEED_URL, Settings
from listing_crawler.logging_conf import setup_logging
from listing_crawler.service.run_crawl import run_crawl


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listing-crawler",
        description="Crawls a paginated search listing and stores each product once in SQLite.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--seed-url",
        default=DEFAULT_SEED_URL,
        help="Search results URL where the crawl starts.",
    )

    parser.add_argument(
        "--database",
        default="products.db",
        help="Path of the SQLite file holding the products table.",
    )

    parser.add_argument(
        "--profile-dir",
        default="./tmp",
        help="Browser profile directory reused between runs.",
    )
    parser.add_argument(
        "--no-profile",
        action="store_true",
        default=False,
        help="Use a throwaway browser profile instead of --profile-dir.",
    )

    parser.add_argument(
        "--viewport",
        default="maximized",
        choices=["maximized", "fixed"],
        help="Window policy: maximized, or fixed at --window-size.",
    )
    parser.add_argument(
        "--window-size",
        default="1920,1080",
        help="Window size used with --viewport fixed (WIDTH,HEIGHT).",
    )

    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the browser hidden (use --no-headless to show the window).",
    )

    parser.add_argument(
        "--page-load-timeout",
        type=int,
        default=30,
        help="Seconds allowed for each page navigation.",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )

    parser.add_argument(
        "--artifacts-dir",
        default=None,
        help="Save page HTML and a screenshot here when navigation fails.",
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        seed_url=args.seed_url,
        database=args.database,
        profile_dir=None if args.no_profile else args.profile_dir,
        viewport=args.viewport,
        window_size=args.window_size,
        headless=args.headless,
        page_load_timeout=args.page_load_timeout,
        log_level=args.log_level,
        artifacts_dir=args.artifacts_dir,
    )


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.page_load_timeout <= 0:
        parser.error("--page-load-timeout must be positive.")

    settings = settings_from_args(args)

    setup_logging(settings.log_level)

    try:
        stats = run_crawl(settings)
    except Exception as exc:
        print(f"❌ Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(
        f"Done: {stats.pages} pages, {stats.inserted} new products, "
        f"{stats.duplicates} already stored, {stats.store_failures} failed."
    )


if __name__ == "__main__":
    main()
