"""SQLite rule list storage backend."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from rulelist_core.persistence.persister import Persister

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


class SQLitePersister(Persister):
    """SQLite-based rule list storage.

    Each named list is one row holding the JSON payload, so several lists
    (for example request and response rules) can share a database.

    Args:
        db_path: Path to SQLite database file.
        list_name: Name of the list row to read and write.
        engine: Optional existing SQLAlchemy async engine to share.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        list_name: str = "rules",
        engine: AsyncEngine | None = None,
    ) -> None:
        self.list_name = list_name
        if engine is not None:
            self._engine = engine
            self._owns_engine = False
        else:
            if db_path is None:
                db_path = Path.home() / ".rulelist" / "rulelist.db"
            db_path = Path(db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)

            url = f"sqlite+aiosqlite:///{db_path}"
            self._engine = create_async_engine(url, echo=False)
            self._owns_engine = True
        self._table_created = False

    async def init_tables(self) -> None:
        """Create the rule_lists table if it doesn't exist."""
        if self._table_created:
            return

        create_table_sql = """
        CREATE TABLE IF NOT EXISTS rule_lists (
            name TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """

        async with self._engine.begin() as conn:
            await conn.execute(text(create_table_sql))

        self._table_created = True
        logger.info("SQLite rule_lists table initialized")

    async def close(self) -> None:
        """Close the database engine if owned."""
        if self._owns_engine:
            await self._engine.dispose()

    async def save(self, payload: dict[str, Any]) -> bool:
        query = text("""
            INSERT INTO rule_lists (name, payload, updated_at)
            VALUES (:name, :payload, CURRENT_TIMESTAMP)
            ON CONFLICT(name) DO UPDATE SET
                payload = excluded.payload,
                updated_at = CURRENT_TIMESTAMP
        """)
        try:
            await self.init_tables()
            async with self._engine.begin() as conn:
                await conn.execute(query, {
                    "name": self.list_name,
                    "payload": json.dumps(payload, ensure_ascii=False),
                })
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save rule list '{self.list_name}': {e}")
            return False
        logger.info(f"Saved rule list '{self.list_name}'")
        return True

    async def load(self) -> dict[str, Any] | None:
        await self.init_tables()

        query = text("SELECT payload FROM rule_lists WHERE name = :name")

        async with self._engine.connect() as conn:
            result = await conn.execute(query, {"name": self.list_name})
            row = result.fetchone()

        if row is None:
            return None
        return json.loads(row[0])
