"""Main entry point for console reviews."""
import argparse
import asyncio
import logging

from wordreview.app import ReviewApp
from wordreview.logging_config import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="wordreview", description="Review the words that are due today.")
    parser.add_argument("--user-id", type=int, required=True, help="ID of the reviewing user")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Run one review session."""
    args = parse_args(argv)
    setup_logging("Starting wordreview ...", args.log_level)

    app = ReviewApp()
    try:
        app.start()
        state = asyncio.run(app.review(args.user_id))
        logger.info(f"Session finished in state {state.value}")
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        app.stop()


if __name__ == "__main__":
    main()
