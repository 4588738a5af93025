#!/usr/bin/env python3
"""
Record one client payment against a project and print how it was applied.

Reads settings through billing_config.get_active_config(): the deposit label
and whether the overdue sweep runs inside the payment come from the
``schedule`` section.

Usage:
  python3 scripts/record_payment.py PROJECT_ID 1500.00 --actor ACTOR_ID
  python3 scripts/record_payment.py PROJECT_ID 500 --kind DEPOSIT \\
      --received-on 2024-03-01 --reference CHQ-1042 --method cheque

Exit status is 0 on success, 1 on a billing error, 2 on bad arguments.
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from billing_kernel.domain.statuses import PaymentKind  # noqa: E402


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Record a client payment")
    p.add_argument("project_id", type=UUID, help="Project the money was received for")
    p.add_argument("amount", help="Amount in major units, e.g. 1500.00")
    p.add_argument("--actor", type=UUID, required=True, help="Id of the user recording it")
    p.add_argument(
        "--kind",
        type=PaymentKind,
        default=PaymentKind.INSTALLMENT,
        help="DEPOSIT, INSTALLMENT or ADJUSTMENT (default: INSTALLMENT)",
    )
    p.add_argument(
        "--received-on",
        type=date.fromisoformat,
        default=None,
        help="Date received (YYYY-MM-DD, default: today)",
    )
    p.add_argument("--reference", default=None)
    p.add_argument("--method", default=None)
    p.add_argument("--description", default=None)
    p.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    p.add_argument("--database-url", default=None, help="Override the configured database url")
    p.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Treat this date as today (YYYY-MM-DD)",
    )
    p.add_argument("--log-level", default="WARNING")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from billing_config import get_active_config
    from billing_config.bridges import build_payment_service, init_database
    from billing_kernel.db.engine import reset_engine
    from billing_kernel.domain.clock import DeterministicClock, SystemClock
    from billing_kernel.domain.money import format_minor
    from billing_kernel.exceptions import BillingError
    from billing_kernel.logging_config import configure_logging

    configure_logging(level=args.log_level.upper(), stream=sys.stderr)

    config = get_active_config(args.config)
    init_database(config, args.database_url)

    clock = DeterministicClock.on(args.as_of) if args.as_of else SystemClock()

    try:
        result = build_payment_service(config, clock=clock).record_payment(
            args.project_id,
            args.kind,
            args.amount,
            args.received_on or clock.today(),
            args.actor,
            reference=args.reference,
            method=args.method,
            description=args.description,
        )
    except BillingError as exc:
        print(f"ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()

    print(f"Payment {result.payment_id}: {format_minor(result.amount)} recorded")
    print(
        f"  applied {format_minor(result.applied)} across "
        f"{result.installments_touched} installment(s)"
    )
    if result.absorbed:
        print(f"  absorbed {format_minor(result.absorbed)} overpayment")
    if result.overdue_flipped:
        print(f"  {result.overdue_flipped} installment(s) now overdue")
    print(f"  project status: {result.project_status.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
