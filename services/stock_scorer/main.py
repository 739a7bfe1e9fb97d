"""
Stock Scorer Service - Main Entry Point.

Provides functionality to:
- Rate a stock from a JSON document of closes, fundamentals and
  analyst recommendations, optionally exporting the rating to CSV
- Manage the watchlist (add, remove, list)
- Label overall market sentiment from a basket of daily changes
"""
import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from services.stock_scorer.export import build_export_rows, default_export_filename, export_to_csv
from services.stock_scorer.models import CompositeRating
from services.stock_scorer.sentiment_aggregator import market_sentiment
from services.stock_scorer.stock_scorer import StockScorer
from services.watchlist_manager.watchlist_manager import WatchlistManager
from shared.configs.config import get_settings
from shared.configs.loader import ConfigurationError, SCORING_CONFIG_FILE, load_scoring_config
from shared.configs.models import ScoringConfig
from shared.database.connection import get_engine, get_session, init_db
from shared.monitoring.structured_logger import log_error, log_performance, setup_service_logger
from shared.utilities.validators import normalize_symbol

logger = logging.getLogger(__name__)

SERVICE_NAME = "rating_engine"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INSUFFICIENT_DATA = 2

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


def load_config(config_dir: Optional[str] = None) -> ScoringConfig:
    """
    Load the scoring configuration.

    An explicit directory must hold a valid rating_engine.yaml. Without one,
    the project config/ directory is used when present, and the built-in
    defaults otherwise.
    """
    if config_dir:
        return load_scoring_config(config_dir)
    if (DEFAULT_CONFIG_DIR / SCORING_CONFIG_FILE).exists():
        return load_scoring_config(DEFAULT_CONFIG_DIR)
    logger.info("No rating_engine.yaml found; using default scoring configuration")
    return ScoringConfig()


def read_input(path: str) -> Dict[str, Any]:
    """Read a rating input document."""
    with open(path, 'r', encoding='utf-8') as f:
        document = json.load(f)
    if not isinstance(document, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return document


def print_rating(rating: CompositeRating):
    """Print a rating as a Metric/Value table followed by its explanation."""
    rows = list(build_export_rows(rating).items())
    print("\n" + tabulate(rows, headers=['Metric', 'Value'], tablefmt='grid'))

    if rating.explanation:
        print("\nKey factors:")
        for line in rating.explanation:
            print(f"  - {line}")


def print_watchlist(manager: WatchlistManager):
    """Print the watchlist in a formatted table."""
    entries = manager.list_entries()
    if not entries:
        print("\nNo stocks in watchlist.")
        return

    rows = []
    for entry in entries:
        rows.append([
            entry.symbol,
            f"{entry.stars:.1f}" if entry.stars is not None else 'N/A',
            f"{entry.score:.2f}" if entry.score is not None else 'N/A',
            entry.risk_label or '-',
            entry.rated_at.strftime('%Y-%m-%d') if entry.rated_at else '-',
        ])

    print(f"\nWATCHLIST - {len(entries)} stocks")
    print(tabulate(rows, headers=['Symbol', 'Stars', 'Score', 'Risk Level', 'Rated'], tablefmt='grid'))


def open_watchlist(args) -> WatchlistManager:
    """Create a watchlist manager on the configured database."""
    engine = init_db(get_engine(args.database_url))
    return WatchlistManager(get_session(engine), user_id=args.user_id)


def cmd_score(args) -> int:
    """Rate one stock from a JSON input document."""
    document = read_input(args.input)
    raw_symbol = args.symbol or document.get('symbol')
    if not raw_symbol:
        print("A symbol is required (--symbol or a 'symbol' key in the input)", file=sys.stderr)
        return EXIT_ERROR
    symbol = normalize_symbol(raw_symbol)

    scorer = StockScorer(load_config(args.config_dir))

    started = time.perf_counter()
    rating = scorer.calculate_score(
        symbol,
        prices=document.get('closes') or [],
        fundamentals=document.get('fundamentals'),
        recommendations=document.get('recommendations') or [],
        current_price=document.get('current_price'),
    )
    log_performance(logger, "calculate_score", (time.perf_counter() - started) * 1000, symbol=symbol)

    if not rating.has_data:
        print(f"{symbol}: insufficient data to compute a rating", file=sys.stderr)
        return EXIT_INSUFFICIENT_DATA

    print_rating(rating)

    if args.csv:
        csv_path = Path(args.csv)
        if csv_path.is_dir():
            csv_path = csv_path / default_export_filename(symbol)
        export_to_csv(rating, csv_path)
        print(f"\nExported to {csv_path}")

    if args.watch:
        manager = open_watchlist(args)
        try:
            manager.add(symbol, rating)
        finally:
            manager.db.close()
        print(f"\nSaved {symbol} to watchlist")

    return EXIT_OK


def cmd_watchlist(args) -> int:
    """Add, remove or list watchlist symbols."""
    manager = open_watchlist(args)
    try:
        if args.action == 'list':
            print_watchlist(manager)
            return EXIT_OK

        if not args.symbol:
            print(f"watchlist {args.action} requires a symbol", file=sys.stderr)
            return EXIT_ERROR

        if args.action == 'add':
            entry = manager.add(args.symbol)
            print(f"\nAdded {entry.symbol} to watchlist")
        elif args.action == 'remove':
            if manager.remove(args.symbol):
                print(f"\nRemoved {normalize_symbol(args.symbol)} from watchlist")
            else:
                print(f"\n{normalize_symbol(args.symbol)} is not in the watchlist")
        return EXIT_OK
    finally:
        manager.db.close()


def cmd_market(args) -> int:
    """Label market sentiment from daily percent changes."""
    print(market_sentiment(args.changes))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        description='Stock Rating Engine - Rate stocks and manage a watchlist'
    )
    parser.add_argument('--log-level', help='Logging level (default: from settings)')
    parser.add_argument('--database-url', help='Watchlist database URL (default: from settings)')
    parser.add_argument('--user-id', default='default',
                        help='User ID for watchlist isolation (default: default)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Score command
    score_parser = subparsers.add_parser('score', help='Rate a stock from a JSON input file')
    score_parser.add_argument('input', help='JSON file with closes, fundamentals, recommendations')
    score_parser.add_argument('--symbol', help="Stock symbol (overrides the input's 'symbol')")
    score_parser.add_argument('--csv', help='Write the rating to this CSV file or directory')
    score_parser.add_argument('--config-dir', help='Directory containing rating_engine.yaml')
    score_parser.add_argument('--watch', action='store_true',
                              help='Save the symbol and its rating to the watchlist')

    # Watchlist command
    watchlist_parser = subparsers.add_parser('watchlist', help='Manage the watchlist')
    watchlist_parser.add_argument('action', choices=['add', 'remove', 'list'])
    watchlist_parser.add_argument('symbol', nargs='?', help='Stock symbol (add/remove)')

    # Market command
    market_parser = subparsers.add_parser('market', help='Label market sentiment')
    market_parser.add_argument('changes', nargs='+', type=float,
                               help='Daily percent changes of the basket')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the rating engine CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    settings = get_settings()
    args.database_url = args.database_url or settings.database_url
    if args.command == 'score' and not args.config_dir:
        args.config_dir = settings.config_dir

    setup_service_logger(
        SERVICE_NAME,
        level=args.log_level or settings.log_level,
        log_file=Path(settings.log_file) if settings.log_file else None,
        json_format=settings.log_format == 'json',
    )

    commands = {
        'score': cmd_score,
        'watchlist': cmd_watchlist,
        'market': cmd_market,
    }

    try:
        return commands[args.command](args)
    except (ConfigurationError, ValueError, OSError) as e:
        log_error(logger, e, {"command": args.command})
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
