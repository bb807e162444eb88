"""Bring the monitor schema to the Alembic head revision at startup."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

import structlog
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url

from pulse.config import settings
from pulse.core.database import Base, engine

logger = structlog.get_logger()

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Present in every revision; its absence means nothing has been created yet.
_MARKER_TABLE = "services"


def alembic_config(connection=None) -> Config:
    """Alembic config with absolute paths, optionally bound to an open sync connection."""
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    if connection is not None:
        cfg.attributes["connection"] = connection
    return cfg


def head_revision() -> str | None:
    return ScriptDirectory.from_config(alembic_config()).get_current_head()


@dataclass
class SchemaState:
    tables: set[str]
    revision: str | None

    @property
    def tracked(self) -> bool:
        return "alembic_version" in self.tables

    @property
    def populated(self) -> bool:
        return _MARKER_TABLE in self.tables

    def action(self, head: str | None) -> str:
        """One of: create, stamp, upgrade, current."""
        if self.tracked:
            return "current" if self.revision == head else "upgrade"
        return "stamp" if self.populated else "create"


def _read_state(connection) -> SchemaState:
    tables = set(inspect(connection).get_table_names())
    revision = None
    if "alembic_version" in tables:
        row = connection.execute(text("SELECT version_num FROM alembic_version")).first()
        revision = row[0] if row else None
    return SchemaState(tables=tables, revision=revision)


def _ensure_sqlite_dir() -> None:
    url = make_url(settings.pulse_db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def ensure_db_migrated() -> str:
    """Create, stamp or upgrade the database as its current state requires.

    Returns the action taken so callers and tests can tell the paths apart.
    """
    _ensure_sqlite_dir()

    async with engine.connect() as conn:
        state = await conn.run_sync(_read_state)

    head = head_revision()
    action = state.action(head)
    logger.info("schema_check", action=action, revision=state.revision, head=head)

    if action == "create":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await asyncio.to_thread(command.stamp, alembic_config(), "head")
    elif action == "stamp":
        await asyncio.to_thread(command.stamp, alembic_config(), "head")
    elif action == "upgrade":
        await asyncio.to_thread(command.upgrade, alembic_config(), "head")
    return action
