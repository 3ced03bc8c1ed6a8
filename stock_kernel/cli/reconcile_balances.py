"""
Check the inventory balance index against the ledger.

Recomputes every balance from the transaction lines and reports index rows
that disagree.  With --fix the disagreeing rows are rewritten from the
ledger in one transaction.

Usage:
    reconcile-balances                            # report only
    reconcile-balances --tenant <uuid>            # one tenant
    reconcile-balances --fix                      # rebuild
    DATABASE_URL=postgresql://... reconcile-balances
    python3 -m stock_kernel.cli.reconcile_balances --fix
"""

import argparse
import logging
import os
import sys
from uuid import UUID

DEFAULT_DATABASE_URL = "sqlite:///stock.db"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile the balance index with the ledger")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        help="SQLAlchemy database URL (default: $DATABASE_URL or %(default)s)",
    )
    parser.add_argument("--tenant", type=UUID, help="Only check this tenant id")
    parser.add_argument("--fix", action="store_true", help="Rewrite disagreeing index rows")
    parser.add_argument("--verbose", action="store_true", help="Emit structured logs to stderr")
    args = parser.parse_args(argv)

    from stock_kernel.db.engine import init_engine_from_url, session_scope
    from stock_kernel.logging_config import configure_logging
    from stock_kernel.services.reconciliation_service import ReconciliationService

    configure_logging(level=logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)

    try:
        init_engine_from_url(args.database_url)
    except Exception as exc:
        print(f"ERROR: Could not connect to {args.database_url}: {exc}", file=sys.stderr)
        return 1

    with session_scope() as session:
        service = ReconciliationService(session)
        if args.fix:
            discrepancies = service.rebuild(args.tenant)
        else:
            discrepancies = service.find_discrepancies(args.tenant)

    if not discrepancies:
        print("Balance index matches the ledger.")
        return 0

    verb = "Fixed" if args.fix else "Found"
    print(f"{verb} {len(discrepancies)} discrepancy(ies):\n")
    for d in discrepancies:
        indexed = "missing" if d.indexed_quantity is None else d.indexed_quantity
        print(
            f"  tenant={d.tenant_id}  {d.entity_kind.value}={d.entity_id}  "
            f"location={d.location_id}  index={indexed}  ledger={d.ledger_quantity}  "
            f"diff={d.difference}"
        )
    return 0 if args.fix else 1


if __name__ == "__main__":
    sys.exit(main())
