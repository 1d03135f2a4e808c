#!/usr/bin/env python3
"""
Tender Portal Monitor - Command-line entry point.

Polls the configured tender portals, stores newly discovered tenders and
raises notifications for them.

Usage:
    python main.py [options]

Options:
    --config PATH         Path to config file (default: config/config.yaml)
    --once                Run a single scan and exit
    --interval MINUTES    Override monitoring.interval_minutes
    --list-portals        List portals and exit
    --list-tenders        List stored tenders and exit
    --portal ID           Restrict --list-tenders to one portal
    --list-notifications  List recent notifications and exit
    --search TERM         Search stored tenders by title or organization
    --deadlines DAYS      List tenders closing within DAYS days
    --stats               Show stored tender counts per portal
    --enable ID           Enable scanning of a portal and exit
    --disable ID          Disable scanning of a portal and exit
    --limit N             Maximum rows for the list commands (default: 20)
    --verbose             Enable debug logging

Without --once the monitor scans immediately, then every interval until
interrupted with Ctrl+C.
"""

import argparse
import sys
import threading
from typing import Any, Dict, List

from database.models import Notification, Portal, Tender
from monitor.service import PortalMonitor
from utils.config import DEFAULT_CONFIG_PATH, load_config
from utils.logging_config import get_logger, setup_logging_from_config


def print_portals(portals: List[Portal]) -> None:
    if not portals:
        print("No portals configured.")
        return

    for p in portals:
        state = "active" if p.active else "disabled"
        last = p.last_scanned.strftime("%Y-%m-%d %H:%M") if p.last_scanned else "never"
        print(f"  {p.id:<18} {p.name:<36} [{p.type}, {state}]")
        print(f"      {p.url}  last scan: {last}  tenders: {p.total_tenders}  new: {p.new_tenders}")


def print_tenders(tenders: List[Tender]) -> None:
    if not tenders:
        print("No tenders stored.")
        return

    for t in tenders:
        deadline = t.submission_deadline.strftime("%d-%b-%Y") if t.submission_deadline else "-"
        print(f"  [{t.priority:<6}] {t.title}")
        print(f"      {t.organization or '-'} | {t.portal_id}/{t.id} | deadline {deadline}")


def print_notifications(notifications: List[Notification]) -> None:
    if not notifications:
        print("No notifications.")
        return

    for n in notifications:
        marker = " " if n.read else "*"
        print(f" {marker} {n.created:%Y-%m-%d %H:%M} [{n.type}] {n.title}: {n.message}")


def print_statistics(rows: List[Dict[str, Any]], unread: int) -> None:
    for row in rows:
        state = "active" if row["active"] else "disabled"
        last = (row["last_scanned"] or "never")[:16]
        print(f"  {row['portal_id']:<18} {row['stored_tenders']:>6} tenders  last scan: {last}  [{state}]")
    print(f"  Unread notifications: {unread}")


def run_forever(monitor: PortalMonitor, logger) -> None:
    """Start the scheduler and block until interrupted."""
    stop_event = threading.Event()
    monitor.start_monitoring()

    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping monitor...")
    finally:
        monitor.stop_monitoring()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Tender Portal Monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scan and exit",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Minutes between scans (overrides config)",
    )
    parser.add_argument(
        "--list-portals",
        action="store_true",
        help="List portals and exit",
    )
    parser.add_argument(
        "--list-tenders",
        action="store_true",
        help="List stored tenders and exit",
    )
    parser.add_argument(
        "--portal",
        help="Portal id filter for --list-tenders",
    )
    parser.add_argument(
        "--list-notifications",
        action="store_true",
        help="List recent notifications and exit",
    )
    parser.add_argument(
        "--search",
        metavar="TERM",
        help="Search stored tenders by title or organization",
    )
    parser.add_argument(
        "--deadlines",
        type=int,
        metavar="DAYS",
        help="List tenders closing within DAYS days",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show stored tender counts per portal",
    )
    portal_toggle = parser.add_mutually_exclusive_group()
    portal_toggle.add_argument(
        "--enable",
        metavar="ID",
        help="Enable scanning of a portal and exit",
    )
    portal_toggle.add_argument(
        "--disable",
        metavar="ID",
        help="Disable scanning of a portal and exit",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum rows for the list commands (default: 20)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.interval is not None:
        if args.interval <= 0:
            print("ERROR: --interval must be positive", file=sys.stderr)
            sys.exit(1)
        config["monitoring"]["interval_minutes"] = args.interval

    setup_logging_from_config(config, log_level="DEBUG" if args.verbose else None)
    logger = get_logger(__name__)

    monitor = PortalMonitor.from_config(config)

    try:
        if args.list_portals:
            print_portals(monitor.list_portals())
            return

        if args.list_tenders:
            print_tenders(monitor.list_tenders(portal_id=args.portal, limit=args.limit))
            return

        if args.list_notifications:
            print_notifications(monitor.list_notifications(limit=args.limit))
            return

        if args.search:
            print_tenders(monitor.search_tenders(args.search, limit=args.limit))
            return

        if args.deadlines is not None:
            print_tenders(monitor.upcoming_deadlines(args.deadlines, limit=args.limit))
            return

        if args.stats:
            print_statistics(monitor.portal_statistics(), monitor.unread_notification_count())
            return

        if args.enable or args.disable:
            portal_id = args.enable or args.disable
            if not monitor.set_portal_active(portal_id, active=bool(args.enable)):
                print(f"ERROR: unknown portal: {portal_id}", file=sys.stderr)
                sys.exit(1)
            return

        logger.info("=" * 60)
        logger.info("Tender Portal Monitor started")
        logger.info("=" * 60)
        logger.info(f"Database: {config['database']['path']}")
        logger.info(f"Portals: {[p.id for p in monitor.registry.list_active_portals()]}")

        if args.once:
            stats = monitor.scan_now()
            if stats.aborted or stats.failed_scans:
                sys.exit(1)
            return

        run_forever(monitor, logger)

    finally:
        monitor.close()
        logger.info("Tender Portal Monitor finished")


if __name__ == "__main__":
    main()
