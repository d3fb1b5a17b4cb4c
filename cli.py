#!/usr/bin/env python3
"""
Happy Tweet CLI

Fetch happy tweets for a search term and save them as JSON.
Results are appended to an existing output file, skipping tweets that are
already there, unless --overwrite is given.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from config import BEARER_ENV_TOKEN_NAME, PAGE_CAP_POLICIES, load_config
from errors import HappyTweetError
from models import MAX_PAGE_SIZE
from query_builder import QueryBuilder
from search import TwitterSearchClient
from sentiment import HappyFilter
from utils import setup_logging
from writer import ResultWriter, WriteMode

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = '/dev/stdout'


def validate_term(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("The term cannot be empty")
    if value.strip() != value:
        raise argparse.ArgumentTypeError("search term cannot have leading and trailing space")
    return value


def validate_output(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("output cannot be empty")
    if value.strip() != value:
        raise argparse.ArgumentTypeError("output cannot have leading and trailing space")
    return value


def create_parser():
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='happy-tweet',
        description='A cli tool for fetching happy tweets given a term',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  happy-tweet banana
  happy-tweet "from:nasa" -o nasa.json
  happy-tweet "#caturday" -o cats.json --overwrite -m 300
  happy-tweet banana --lang en --exclude-retweets -t "YOUR_BEARER_TOKEN"

Search terms can use Twitter's search operators: '@', 'from:', 'to:',
'#hashtags', '-negation', 'OR', "exact phrases" and so on. Such terms
are kept as-is and combined with the happy filter.

The bearer token can also be provided with the {BEARER_ENV_TOKEN_NAME}
environment variable (a .env file in the working directory is read too).
        """
    )

    parser.add_argument('term', type=validate_term,
                        help='The term to search for')
    parser.add_argument('-o', '--output', type=validate_output, default=DEFAULT_OUTPUT,
                        help=f'Output file path, JSON format (default: {DEFAULT_OUTPUT})')
    parser.add_argument('-t', '--token',
                        help=f'Bearer token for the Twitter API (overrides {BEARER_ENV_TOKEN_NAME})')
    parser.add_argument('-m', '--max-results', type=int, default=100,
                        help='Maximum number of tweets to fetch (default: 100)')
    parser.add_argument('--page-size', type=int, default=MAX_PAGE_SIZE,
                        help=f'Results per API call, 10-{MAX_PAGE_SIZE} (default: {MAX_PAGE_SIZE})')
    parser.add_argument('--max-pages', type=int, default=10,
                        help='Maximum number of pages to request (default: 10)')
    parser.add_argument('--on-page-cap', choices=PAGE_CAP_POLICIES, default='keep',
                        help='What to do when --max-pages is hit with results pending: '
                             'keep the partial results or fail the run (default: keep)')
    parser.add_argument('--overwrite', action='store_true',
                        help='Replace the output file instead of appending to it')
    parser.add_argument('--lang',
                        help='Only match tweets in this language (two-letter code)')
    parser.add_argument('--exclude-retweets', action='store_true',
                        help='Leave retweets out of the results')
    parser.add_argument('--no-classify', action='store_true',
                        help='Skip sentiment classification and keep every matching tweet')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    return parser


def run(args, environ) -> int:
    """Build the query, fetch, filter and write. Raises HappyTweetError on failure."""
    config = load_config(args, environ)
    builder = QueryBuilder(lang=args.lang, exclude_retweets=args.exclude_retweets)
    query = builder.build(args.term)
    logger.debug(f"Encoded query: {builder.encode(query)}")

    client = TwitterSearchClient(config)
    # Drain the whole result set before touching the output file
    posts = list(client.fetch(query))

    if not args.no_classify:
        happy_filter = HappyFilter()
        posts = list(happy_filter.filter(posts))
        logger.info(f"😊 Kept {happy_filter.kept} happy tweets, dropped {happy_filter.dropped}")

    mode = WriteMode.OVERWRITE if args.overwrite else WriteMode.APPEND
    total = ResultWriter().write(posts, args.output, mode)

    logger.info(f"✅  Finish! Retrieved {len(posts)} tweets ({total} in output). Check {args.output}")
    if client.truncated:
        logger.warning("⚠️  Page limit reached, there may be more tweets. Re-run with a higher --max-pages")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    load_dotenv()

    try:
        return run(args, os.environ)
    except HappyTweetError as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("⚠️  Operation cancelled by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
