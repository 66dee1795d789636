import argparse
import asyncio
import sys
import traceback
from typing import List, Optional

from feedgrab.core.config import FetchConfig, load_config
from feedgrab.output.feed_file import write_feed
from feedgrab.services.acquire import FeedAcquirer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedgrab",
        description="Fetch an RSS feed that is only served through a JavaScript-rendered page",
    )
    parser.add_argument("--url", dest="feed_url", help="Feed URL (default: $FEED_URL)")
    parser.add_argument("--output", dest="output_file", help="Output file (default: $OUTPUT_FILE)")
    parser.add_argument("--max-retries", type=int, help="Attempts per rendering engine")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    return parser


def run(config: FetchConfig, acquirer: Optional[FeedAcquirer] = None) -> None:
    """Acquire the feed and save it. Nothing is written unless acquisition succeeds."""
    acquirer = acquirer or FeedAcquirer(config)
    xml = asyncio.run(acquirer.acquire())
    write_feed(config.output_file, xml)
    print(f"Saved to {config.output_file}")


def report_error(error: BaseException) -> None:
    print(f"Error: {error}", file=sys.stderr)
    print("Stack trace:", file=sys.stderr)
    traceback.print_exception(error, file=sys.stderr)
    if error.__cause__ is not None:
        print(f"Cause: {error.__cause__}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(
            feed_url=args.feed_url,
            output_file=args.output_file,
            max_retries=args.max_retries,
            headless=False if args.headed else None,
        )
        run(config)
    except Exception as e:
        report_error(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
