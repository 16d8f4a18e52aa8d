"""
Command-line entry point.

Loads every feed up front, reports ingestion warnings grouped by feed, then
replays all feeds concurrently.

Supported data feeds:
  * SeaFlow EVT
  * SeaFlow SFL
  * SeaFlow instrument log
  * Kilo Moana underway data
"""

import argparse
import logging
import sys
from typing import List, Optional

from cruisereplay import __version__
from cruisereplay.config import ReplayConfig
from cruisereplay.errors import ConfigError, FeedLoadError, ReplayInvariantError
from cruisereplay.feeds import (
    Feed,
    find_evt_files,
    find_sfl_files,
    load_evt,
    load_sealog,
    load_sfl,
    load_underway,
)
from cruisereplay.replay import ReplayScheduler

logger = logging.getLogger("cruisereplay")

RULE = "-" * 55


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cruisereplay",
        description="Replay data feeds for an oceanography cruise.",
    )
    ap.add_argument("--evt", dest="evt_dir", help="EVT directory (also searched for SFL files)")
    ap.add_argument("--underway", dest="underway_file", help="underway raw feed file")
    ap.add_argument("--seaflowlog", dest="seaflow_log", help="SeaFlow instrument log file")
    ap.add_argument("--outdir", dest="out_dir", help="output directory")
    ap.add_argument("--start", help="RFC3339 timestamp for replay start, in cruise time")
    ap.add_argument("--warp", type=float, help="time speedup/slowdown factor (default 1.0)")
    ap.add_argument("--host", dest="udp_host", help="UDP destination IP address (default 255.255.255.255)")
    ap.add_argument("--port", dest="udp_port", type=int, help="UDP destination port (default 5555)")
    ap.add_argument("--throttle", dest="throttle_sec", type=float,
                    help="produce UDP feed data at most every N sec (default 60)")
    ap.add_argument("--grace", dest="startup_grace_sec", type=float,
                    help="seconds between scheduling and replay start (default 5)")
    ap.add_argument("--parser", dest="underway_parser", help="underway parser (default 'Kilo Moana')")
    ap.add_argument("--env-file", help=".env file with CRUISEREPLAY_* settings")
    ap.add_argument("-v", "--verbose", action="store_true", help="log every timer")
    ap.add_argument("--version", action="store_true", help="print version and exit")
    return ap


def section(title: str) -> None:
    logger.info(RULE)
    logger.info(title)
    logger.info(RULE)


def report(feed: Feed) -> None:
    """Log a loaded feed's size and its warnings."""
    logger.info("%s: %d records", feed.name(), len(feed))
    warnings = feed.warnings()
    for w in warnings:
        logger.warning("%s", w)
    if warnings:
        logger.info(RULE)


def load_feeds(config: ReplayConfig) -> List[Feed]:
    """
    Load all feeds, reporting each one's warnings as soon as it is loaded.

    Raises:
        FeedLoadError: If any feed cannot be loaded; feeds already loaded
            are closed first
    """
    feeds: List[Feed] = []
    steps = [
        ("Reading EVT data", lambda: load_evt(find_evt_files(config.evt_dir), config.out_dir)),
        ("Reading SFL data", lambda: load_sfl(find_sfl_files(config.evt_dir), config.out_dir)),
        ("Reading underway data", lambda: load_underway(
            config.underway_file, config.udp_host, config.udp_port,
            config.throttle_sec, config.underway_parser,
        )),
        ("Reading SeaFlow log data", lambda: load_sealog(config.seaflow_log, config.out_dir)),
    ]
    try:
        for title, load in steps:
            section(title)
            feed = load()
            feeds.append(feed)
            report(feed)
    except FeedLoadError:
        for feed in feeds:
            feed.close()
        raise
    return feeds


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"cruisereplay {__version__}")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = ReplayConfig.from_env(args.env_file).merge(
            evt_dir=args.evt_dir,
            underway_file=args.underway_file,
            seaflow_log=args.seaflow_log,
            out_dir=args.out_dir,
            start=args.start,
            warp=args.warp,
            udp_host=args.udp_host,
            udp_port=args.udp_port,
            throttle_sec=args.throttle_sec,
            startup_grace_sec=args.startup_grace_sec,
            underway_parser=args.underway_parser,
        ).validate()
    except ConfigError as e:
        logger.error("error: %s", e)
        return 2

    section("CLI options")
    for flag, value in config.describe():
        logger.info("%s = %s", flag, value)

    try:
        feeds = load_feeds(config)
        scheduler = ReplayScheduler(
            feeds,
            warp=config.warp,
            cruise_start=config.cruise_start(),
            startup_grace=config.startup_grace_sec,
        )
        summary = scheduler.replay()
    except (FeedLoadError, ReplayInvariantError) as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("interrupted")
        return 130

    for name, stats in summary['feeds'].items():
        logger.info(
            "%s: %d/%d emitted, %d skipped, %d failed",
            name, stats['emitted'], stats['records'], stats['skipped'], stats['failed'],
        )
    logger.info("exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
