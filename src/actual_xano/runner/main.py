"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..services.reconciliation import (
    RUN_IN_PROGRESS,
    ReconciliationEngine,
    RunInProgressError,
    RunLockError,
    TransitionError,
)
from ..services.status_publisher import HomeAssistantPublisher, create_publisher

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Exit code when a run is rejected because another one is active
EXIT_CONFLICT = 2


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logging.getLogger().addHandler(handler)


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="actual-xano",
        description="Export reconciled HP expenses from Actual Budget to Xano",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # run command
    run_parser = subparsers.add_parser("run", help="Run one HP transaction processing pass")
    run_parser.add_argument(
        "--manual",
        action="store_true",
        help="Mark this run as manually triggered (default: scheduled)",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Simulate submissions without contacting Xano or tagging transactions",
    )
    run_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Process at most this many transactions (capped by the batch size)",
    )

    # status command
    subparsers.add_parser("status", help="Show counters and statistics")

    # reprocess command
    reprocess_parser = subparsers.add_parser(
        "reprocess", help="Reset failed transactions to pending"
    )
    target = reprocess_parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--id",
        dest="ids",
        action="append",
        help="Actual transaction id (repeatable)",
    )
    target.add_argument(
        "--all-failed",
        action="store_true",
        help="Reset every failed transaction",
    )

    # mark-paid command
    paid_parser = subparsers.add_parser(
        "mark-paid", help="Mark a submitted transaction as paid (#HP-Paid)"
    )
    paid_parser.add_argument("transaction_id", help="Actual transaction id")

    # init-sensors command
    subparsers.add_parser("init-sensors", help="Publish default Home Assistant sensor states")

    # check-config command
    subparsers.add_parser("check-config", help="Validate configuration")

    # init-config command
    subparsers.add_parser("init-config", help="Write a default configuration file")

    return parser


def _print_json(data: dict) -> None:
    print(json.dumps(data))


def cmd_run(config: Config, manual: bool, dry_run: bool | None, limit: int | None) -> int:
    """Run one processing pass and print the JSON response."""
    engine = ReconciliationEngine.from_config(config)
    try:
        response = engine.trigger(manual=manual, dry_run=dry_run, limit=limit)
    finally:
        engine.close()
    _print_json(response.to_dict())

    if response.error == RUN_IN_PROGRESS:
        return EXIT_CONFLICT
    return 0 if response.success else 1


def cmd_status(config: Config) -> int:
    """Print the status snapshot."""
    engine = ReconciliationEngine.from_config(config)
    try:
        snapshot = engine.status()
    finally:
        engine.close()
    print(json.dumps(snapshot.to_dict(), indent=2))
    return 0


def cmd_reprocess(config: Config, ids: list[str] | None, all_failed: bool) -> int:
    """Reset failed transactions to pending."""
    engine = ReconciliationEngine.from_config(config)
    try:
        reset = engine.reprocess(transaction_ids=ids, all_failed=all_failed)
    except RunInProgressError as e:
        print(f"❌ {e}")
        return EXIT_CONFLICT
    except (RunLockError, TransitionError) as e:
        print(f"❌ {e}")
        return 1
    finally:
        engine.close()

    print(f"✓ Reset {len(reset)} transaction(s) to pending")
    for tx_id in reset:
        print(f"  ↺ {tx_id}")
    return 0


def cmd_mark_paid(config: Config, transaction_id: str) -> int:
    """Advance a submitted transaction to paid."""
    engine = ReconciliationEngine.from_config(config)
    try:
        tracked = engine.mark_paid(transaction_id)
    except RunInProgressError as e:
        print(f"❌ {e}")
        return EXIT_CONFLICT
    except (RunLockError, TransitionError) as e:
        print(f"❌ {e}")
        return 1
    finally:
        engine.close()

    print(f"✓ Transaction {tracked.id} marked paid at {tracked.paid_at}")
    return 0


def cmd_init_sensors(config: Config) -> int:
    """Publish default sensor states."""
    publisher = create_publisher(config.home_assistant)
    if not isinstance(publisher, HomeAssistantPublisher):
        print("⚠ No supervisor token available, skipping sensor initialization")
        return 0

    try:
        failed = publisher.initialize_sensors()
    finally:
        publisher.close()
    if failed:
        print(f"⚠ {len(failed)} sensor(s) could not be initialized")
        return 1
    print("✓ HP sensors initialized")
    return 0


def cmd_check_config(config: Config) -> int:
    """Validate configuration."""
    errors = config.validate()
    if errors:
        print("❌ HP configuration is invalid:")
        for error in errors:
            print(f"  - {error}")
        return 1
    print("✓ HP configuration is valid")
    return 0


def cmd_init_config(config_path: Path) -> int:
    """Write a default configuration file."""
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default configuration to {config_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "init-config":
        setup_logging(args.verbose)
        return cmd_init_config(args.config)

    try:
        config = load_config(args.config)
    except ConfigValidationError as e:
        print(f"❌ Invalid configuration in {args.config}: {e}")
        return 1
    setup_logging(args.verbose, config.log_file)

    if args.command == "run":
        return cmd_run(config, args.manual, args.dry_run, args.limit)
    elif args.command == "status":
        return cmd_status(config)
    elif args.command == "reprocess":
        return cmd_reprocess(config, args.ids, args.all_failed)
    elif args.command == "mark-paid":
        return cmd_mark_paid(config, args.transaction_id)
    elif args.command == "init-sensors":
        return cmd_init_sensors(config)
    elif args.command == "check-config":
        return cmd_check_config(config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
