"""Tests for Alembic migration integration."""

from unittest.mock import patch

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.ext.asyncio import create_async_engine

from pulse.config import settings
from pulse.core.database import Base
from pulse.core.migrations import SchemaState, alembic_config, ensure_db_migrated, head_revision

APP_TABLES = {
    "services",
    "heartbeats",
    "incidents",
    "maintenance_windows",
    "alert_channels",
    "service_alert_channels",
}


# ── Helpers ───────────────────────────────────────────────────────────────────


def _tables_and_revision(db_path) -> tuple[set[str], str | None]:
    engine = create_engine(f"sqlite:///{db_path}")
    with engine.begin() as conn:
        tables = set(inspect(conn).get_table_names())
        row = None
        if "alembic_version" in tables:
            row = conn.execute(text("SELECT version_num FROM alembic_version")).first()
    engine.dispose()
    return tables, row[0] if row else None


async def _migrate(db_path) -> str:
    db_url = f"sqlite+aiosqlite:///{db_path}"
    test_engine = create_async_engine(db_url)
    original_url = settings.pulse_db_url
    try:
        settings.pulse_db_url = db_url
        with patch("pulse.core.migrations.engine", test_engine):
            return await ensure_db_migrated()
    finally:
        settings.pulse_db_url = original_url
        await test_engine.dispose()


# ── Migration Chain Tests (sync, isolated SQLite) ────────────────────────────


class TestMigrationChain:
    def test_upgrade_to_head_creates_all_tables(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
        with engine.begin() as conn:
            command.upgrade(alembic_config(conn), "head")
        engine.dispose()

        tables, revision = _tables_and_revision(tmp_path / "test.db")
        assert tables == APP_TABLES | {"alembic_version"}
        assert revision == "002"

    def test_upgrade_then_downgrade_to_base(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
        with engine.begin() as conn:
            command.upgrade(alembic_config(conn), "head")
        with engine.begin() as conn:
            command.downgrade(alembic_config(conn), "base")
        engine.dispose()

        tables, _ = _tables_and_revision(tmp_path / "test.db")
        assert tables <= {"alembic_version"}

    def test_migration_schema_matches_create_all(self, tmp_path):
        engine_m = create_engine(f"sqlite:///{tmp_path / 'migration.db'}")
        with engine_m.begin() as conn:
            command.upgrade(alembic_config(conn), "head")

        engine_c = create_engine(f"sqlite:///{tmp_path / 'create_all.db'}")
        with engine_c.begin() as conn:
            Base.metadata.create_all(conn)

        with engine_m.begin() as conn:
            m_insp = inspect(conn)
            m_tables = set(m_insp.get_table_names()) - {"alembic_version"}
            m_cols = {t: {c["name"] for c in m_insp.get_columns(t)} for t in m_tables}

        with engine_c.begin() as conn:
            c_insp = inspect(conn)
            c_tables = set(c_insp.get_table_names())
            c_cols = {t: {c["name"] for c in c_insp.get_columns(t)} for t in c_tables}

        assert m_tables == c_tables, f"Table mismatch: {m_tables ^ c_tables}"
        for table in m_tables:
            assert m_cols[table] == c_cols[table], f"Column mismatch in '{table}'"

        engine_m.dispose()
        engine_c.dispose()


# ── ensure_db_migrated Tests (async, real temp DBs) ──────────────────────────


@pytest.mark.asyncio
class TestEnsureDbMigrated:
    async def test_fresh_db_creates_tables_and_stamps(self, tmp_path):
        db_path = tmp_path / "fresh.db"
        assert await _migrate(db_path) == "create"

        tables, revision = _tables_and_revision(db_path)
        assert APP_TABLES <= tables
        assert revision == "002"

    async def test_existing_db_without_alembic_gets_stamped(self, tmp_path):
        db_path = tmp_path / "existing.db"
        sync_engine = create_engine(f"sqlite:///{db_path}")
        with sync_engine.begin() as conn:
            Base.metadata.create_all(conn)
        sync_engine.dispose()

        assert await _migrate(db_path) == "stamp"

        tables, revision = _tables_and_revision(db_path)
        assert "services" in tables
        assert revision == "002"

    async def test_alembic_tracked_db_gets_upgraded(self, tmp_path):
        db_path = tmp_path / "tracked.db"
        sync_engine = create_engine(f"sqlite:///{db_path}")
        with sync_engine.begin() as conn:
            command.upgrade(alembic_config(conn), "001")
        sync_engine.dispose()

        tables, _ = _tables_and_revision(db_path)
        assert "maintenance_windows" not in tables

        assert await _migrate(db_path) == "upgrade"

        tables, revision = _tables_and_revision(db_path)
        assert "maintenance_windows" in tables
        assert revision == "002"

    async def test_db_at_head_is_left_alone(self, tmp_path):
        db_path = tmp_path / "current.db"
        assert await _migrate(db_path) == "create"
        assert await _migrate(db_path) == "current"
        _, revision = _tables_and_revision(db_path)
        assert revision == "002"


class TestSchemaState:
    def test_head_is_latest_revision(self):
        assert head_revision() == "002"

    def test_actions(self):
        assert SchemaState(set(), None).action("002") == "create"
        assert SchemaState({"services"}, None).action("002") == "stamp"
        assert SchemaState({"services", "alembic_version"}, "001").action("002") == "upgrade"
        assert SchemaState({"services", "alembic_version"}, "002").action("002") == "current"
