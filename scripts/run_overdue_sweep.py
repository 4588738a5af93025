#!/usr/bin/env python3
"""
Scheduled billing job: flip past-due installments to OVERDUE across every
project, then queue payment reminders.

Reads settings through billing_config.get_active_config() (BILLING_CONFIG
names the YAML file; DATABASE_URL overrides the database url).

Usage:
  python3 scripts/run_overdue_sweep.py
  python3 scripts/run_overdue_sweep.py --as-of 2024-03-01 --no-reminders
  python3 scripts/run_overdue_sweep.py --config billing.yaml --create-tables

Exit status is 0 on success, 1 on a billing error, 2 on bad arguments.
"""

import argparse
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the system-wide overdue sweep and reminder queue")
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: $BILLING_CONFIG or the bundled defaults)",
    )
    p.add_argument(
        "--database-url",
        default=None,
        help="Override the configured database url",
    )
    p.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Sweep as of this date (YYYY-MM-DD) instead of today",
    )
    p.add_argument(
        "--no-reminders",
        action="store_true",
        help="Only run the sweep",
    )
    p.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from billing_config import get_active_config
    from billing_config.bridges import build_reminder_service, init_database
    from billing_kernel.db.engine import reset_engine
    from billing_kernel.domain.clock import DeterministicClock, SystemClock
    from billing_kernel.exceptions import BillingError
    from billing_kernel.logging_config import configure_logging
    from billing_kernel.services.sweep_service import OverdueSweepService

    configure_logging(level=args.log_level.upper(), stream=sys.stderr)

    config = get_active_config(args.config)
    init_database(config, args.database_url, create=args.create_tables)

    clock = DeterministicClock.on(args.as_of) if args.as_of else SystemClock()

    try:
        sweep = OverdueSweepService(clock=clock).sweep_all()
        print(
            f"Overdue sweep as of {sweep.as_of}: {sweep.installments_flipped} installment(s) "
            f"flipped across {sweep.projects_swept} project(s)"
        )
        if sweep.conflicted_projects:
            print(f"  skipped {len(sweep.conflicted_projects)} project(s) on concurrency conflict")

        if not args.no_reminders:
            run = build_reminder_service(config, clock=clock).queue_reminders()
            print(
                f"Reminders: {run.count} queued, "
                f"{run.skipped_duplicates} skipped as duplicates"
            )
    except BillingError as exc:
        print(f"ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()

    return 0


if __name__ == "__main__":
    sys.exit(main())
