"""episodic CLI. Invoked as `episodic` when installed with pip install -e ."""

import argparse
import os
import signal
import sys
import threading
from pathlib import Path

from episodic._deps import progress_available, require
from episodic.config import CrawlConfig
from episodic.urls import is_absolute, site_origin


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="episodic",
        description="Crawl an anime index site into one JSON file, and serve it.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    scrape = sub.add_parser("scrape", help="Crawl listing, series and episode pages and write the JSON artifact")
    scrape.add_argument("--url", default=None, metavar="URL", help="Listing URL to start from (default: site's anime list)")
    scrape.add_argument("--base-url", default=None, metavar="URL", help="Site origin used to resolve relative links")
    scrape.add_argument("--out", default=None, metavar="PATH", help="Output JSON file (default: EPISODIC_OUTPUT or samehadaku.json)")
    scrape.add_argument(
        "--delay",
        type=float,
        default=None,
        metavar="SECS",
        help="Delay between requests in seconds; also the base of the retry backoff (default: 1.0)",
    )
    scrape.add_argument("--timeout", type=float, default=None, metavar="SECS", help="Per-request timeout (default: 20)")
    scrape.add_argument("--retries", type=int, default=None, metavar="N", help="Attempts per URL (default: 3)")
    scrape.add_argument("--max-pages", type=int, default=None, metavar="N", help="Stop after N listing pages")
    scrape.add_argument("--limit", type=int, default=None, metavar="N", help="Max series to crawl (for testing)")
    scrape.add_argument(
        "--listing-only",
        action="store_true",
        help="Quick mode: first 5 listing pages, titles from 2020 on, no series/episode pages.",
    )
    scrape.add_argument("--min-year", type=int, default=None, metavar="YEAR", help="Skip listing cards older than YEAR")
    scrape.add_argument(
        "--save-partial",
        action="store_true",
        help="On interrupt, write the series finished so far instead of nothing.",
    )
    scrape.add_argument("--no-progress", action="store_true", help="Disable progress bar (e.g. for scripting)")

    serve = sub.add_parser("serve", help="Serve the last JSON artifact at /anime")
    serve.add_argument("--out", default=None, metavar="PATH", help="JSON file to serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3000")))
    serve.add_argument(
        "--scrape-if-missing",
        action="store_true",
        help="Run a full scrape first when the JSON file does not exist yet.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> CrawlConfig:
    """Preset (full or listing-only) plus environment defaults plus explicit flags."""
    base = CrawlConfig.from_env()
    if getattr(args, "listing_only", False):
        base = CrawlConfig.listing_only(base_url=base.base_url, output_path=base.output_path)
    ms = lambda secs: int(secs * 1000) if secs is not None else None
    base_url = getattr(args, "base_url", None)
    start = getattr(args, "url", None)
    if start and not base_url and is_absolute(start):
        base_url = site_origin(start)
    return base.with_overrides(
        base_url=base_url,
        start_path=getattr(args, "url", None),
        output_path=Path(args.out) if getattr(args, "out", None) else None,
        request_delay_ms=ms(getattr(args, "delay", None)),
        timeout_ms=ms(getattr(args, "timeout", None)),
        max_retries=getattr(args, "retries", None),
        max_listing_pages=getattr(args, "max_pages", None),
        max_items=getattr(args, "limit", None),
        min_year=getattr(args, "min_year", None),
        save_partial=True if getattr(args, "save_partial", False) else None,
    )


def _scrape(config: CrawlConfig, *, progress: bool) -> int:
    from episodic.pipeline import Crawler

    cancel = threading.Event()
    # SIGTERM stops at the next fetch boundary instead of killing mid-write
    previous = None
    try:
        previous = signal.signal(signal.SIGTERM, lambda *_: cancel.set())
    except ValueError:
        pass  # not in main thread
    print(f"Scrape: {config.start_url} -> {config.output_path}", file=sys.stderr)
    try:
        with Crawler(config, progress=progress, cancel=cancel) as crawler:
            result = crawler.run()
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
    if result.cancelled:
        return 130 if not result.saved else 0
    if not result.saved:
        return 1
    print(f"\nDone. {len(result.items)} series saved to {result.output_path}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    require("core")

    if args.cmd == "scrape":
        progress = not args.no_progress and progress_available()
        config = config_from_args(args)
        return _scrape(config, progress=progress)

    if args.cmd == "serve":
        require("serve")
        config = config_from_args(args)
        if args.scrape_if_missing and not Path(config.output_path).exists():
            print(f"{config.output_path} not found; scraping first.", file=sys.stderr)
            code = _scrape(config, progress=False)
            if code != 0:
                print("Scrape failed; serving anyway (requests will get an error until a scrape succeeds).", file=sys.stderr)
        from episodic.server import serve

        serve(config.output_path, host=args.host, port=args.port)
        return 0

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
