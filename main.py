"""
Live Football Pressure Monitor - Main Entry Point
Adaptive goal-pressure alerts for Telegram
"""

import argparse
import json
import sys
import signal
from logger_config import setup_logging
from database import Database
from live_scanner import LiveScanner
from system_check import run_checks


def signal_handler(sig, frame):
    """Handle graceful shutdown on CTRL+C"""
    print("\n🛑 Shutting down gracefully...")
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Adaptive live football pressure monitor")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--once", action="store_true", help="run a single monitoring pass and exit")
    group.add_argument("--daily-analysis", action="store_true",
                       help="run the threshold adjustment now and exit")
    group.add_argument("--init-db", action="store_true", help="create the database schema and exit")
    group.add_argument("--check", action="store_true", help="check database, API and Telegram access")
    return parser


def main(argv=None) -> int:
    """Main application entry point"""
    args = build_parser().parse_args(argv)
    logger = setup_logging()
    logger.info("Initializing Live Football Pressure Monitor")

    signal.signal(signal.SIGINT, signal_handler)

    db = Database()
    db.init_schema()

    if args.init_db:
        return 0

    if args.check:
        return 0 if run_checks(db) else 1

    scanner = LiveScanner(db=db)

    if args.once:
        result = scanner.perform_scan()
        print(json.dumps(result, indent=2, default=str))
        return 0 if result['success'] else 1

    if args.daily_analysis:
        report = scanner.run_daily_analysis()
        print(json.dumps(report, indent=2, default=str))
        return 0 if report['success'] else 1

    try:
        scanner.run()
    except Exception as e:
        logger.critical(f"Fatal error: {str(e)}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
