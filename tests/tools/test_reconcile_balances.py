"""Tests for the reconcile-balances command (stock_kernel/cli/reconcile_balances.py)."""

import logging
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from stock_kernel.cli.reconcile_balances import main
from stock_kernel.db.engine import create_tables, get_session, init_engine_from_url, reset_engine
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.logging_config import configure_logging, reset_logging
from stock_kernel.models.balance import InventoryBalance
from stock_kernel.models.catalog import Component, Location
from stock_kernel.services.ledger_service import InventoryLedgerService

ACTOR = uuid4()


@pytest.fixture
def database(tmp_path):
    """A file database holding one receipt, shared with the command under test."""
    url = f"sqlite:///{tmp_path / 'stock.db'}"
    init_engine_from_url(url)
    create_tables()

    tenant = uuid4()
    session = get_session()
    location = Location(tenant_id=tenant, name="Main", is_default=True, created_by_id=ACTOR)
    component = Component(tenant_id=tenant, name="Glue", sku_code="GLUE-1", created_by_id=ACTOR)
    session.add_all([location, component])
    session.commit()
    InventoryLedgerService(session, DeterministicClock()).record_receipt(
        tenant, component.id, location.id, Decimal("12"), actor_id=ACTOR
    )
    session.close()

    yield url, tenant
    reset_engine()
    # main() may have bound the handler to a capsys stream that is now closed
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _corrupt_index():
    session = get_session()
    session.execute(update(InventoryBalance).values(quantity=Decimal("5")))
    session.commit()
    session.close()


class TestReconcileBalances:

    def test_clean_index_exits_zero(self, database, capsys):
        url, _ = database

        assert main(["--database-url", url]) == 0
        assert "matches the ledger" in capsys.readouterr().out

    def test_discrepancy_reported_with_nonzero_exit(self, database, capsys):
        url, tenant = database
        _corrupt_index()

        assert main(["--database-url", url, "--tenant", str(tenant)]) == 1
        out = capsys.readouterr().out
        assert "Found 1 discrepancy" in out
        assert "index=5" in out

    def test_fix_then_clean(self, database, capsys):
        url, _ = database
        _corrupt_index()

        assert main(["--database-url", url, "--fix"]) == 0
        assert "Fixed 1 discrepancy" in capsys.readouterr().out
        assert main(["--database-url", url]) == 0

    def test_other_tenant_is_clean(self, database):
        url, _ = database
        _corrupt_index()
        assert main(["--database-url", url, "--tenant", str(uuid4())]) == 0
