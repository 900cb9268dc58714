from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from db.models.ledger import LedgerTransaction
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

_ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "libs" / "db" / "alembic"


@pytest.fixture
def migrated_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = Config()
    cfg.set_main_option("script_location", str(_ALEMBIC_DIR))
    command.upgrade(cfg, "head")
    return url


def test_upgrade_creates_table_matching_orm(migrated_url):
    engine = create_engine(migrated_url)
    try:
        insp = inspect(engine)
        columns = {c["name"] for c in insp.get_columns("ledger_transactions")}
        uniques = insp.get_unique_constraints("ledger_transactions")
        indexes = {ix["name"] for ix in insp.get_indexes("ledger_transactions")}
    finally:
        engine.dispose()

    assert columns == {c.name for c in LedgerTransaction.__table__.columns}
    assert any(set(u["column_names"]) == {"owner", "fingerprint"} for u in uniques)
    assert "ix_ledger_tx_owner_occurred_at" in indexes


def test_migrated_table_enforces_positive_amount(migrated_url):
    engine = create_engine(migrated_url)
    insert = text(
        "INSERT INTO ledger_transactions "
        "(owner, amount, kind, category, description, original_text, occurred_at, fingerprint) "
        "VALUES ('alice', :amount, :kind, 'Food', 'x', 'x', '2024-01-01 00:00:00', :fp)"
    )
    try:
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(insert, {"amount": 0, "kind": "expense", "fp": "a" * 32})
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(insert, {"amount": 5, "kind": "refund", "fp": "b" * 32})
    finally:
        engine.dispose()


def test_downgrade_drops_table(migrated_url):
    cfg = Config()
    cfg.set_main_option("script_location", str(_ALEMBIC_DIR))
    command.downgrade(cfg, "base")

    engine = create_engine(migrated_url)
    try:
        assert "ledger_transactions" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
