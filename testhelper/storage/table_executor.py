"""SQLAlchemy-backed table executor for the target (system-under-test) database."""
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import column, inspect, table, text
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from testhelper.config.settings import get_settings
from testhelper.config.logging_config import get_logger
from testhelper.storage.executor_interface import TableExecutor

logger = get_logger(__name__)


def _coerce(value: Any) -> Any:
    """Nested structures are written as JSON text."""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class SqlTableExecutor(TableExecutor):
    """Runs DDL and row inserts against a database reachable through SQLAlchemy."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        """
        Initialize the executor.

        Args:
            database_url: Target database URL (defaults to ``TARGET_DATABASE_URL``)
            engine: Pre-built engine, mainly for tests
        """
        self.database_url = database_url or get_settings().target_database_url
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.database_url, future=True)
        return self._engine

    @property
    def is_postgres(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    def _quote(self, name: str) -> str:
        return self.engine.dialect.identifier_preparer.quote(name)

    async def create_table(self, ddl: str) -> None:
        # exec_driver_sql keeps ":" in defaults/checks from being read as bind params
        async with self.engine.begin() as conn:
            await conn.exec_driver_sql(ddl)
        logger.debug("DDL executed", statement=ddl[:80])

    async def execute_ddls(self, ddls: Sequence[str]) -> None:
        async with self.engine.begin() as conn:
            for ddl in ddls:
                await conn.exec_driver_sql(ddl)
        logger.info("DDL batch executed", count=len(ddls))

    async def truncate(self, table_name: str) -> None:
        quoted = self._quote(table_name)
        statement = f"TRUNCATE TABLE {quoted} CASCADE" if self.is_postgres else f"DELETE FROM {quoted}"
        async with self.engine.begin() as conn:
            await conn.exec_driver_sql(statement)
        logger.info("Table truncated", table=table_name)

    async def insert_rows(self, table_name: str, rows: Sequence[Mapping[str, Any]]) -> int:
        if not rows:
            return 0

        inserted = 0
        async with self.engine.begin() as conn:
            for row in rows:
                target = table(table_name, *[column(key) for key in row])
                await conn.execute(target.insert().values({key: _coerce(value) for key, value in row.items()}))
                inserted += 1

        logger.info("Rows inserted", table=table_name, count=inserted)
        return inserted

    async def check_connection(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Target database unreachable", error=str(e))
            return False

    async def list_tables(self) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        return [{"tableName": name} for name in sorted(names)]

    async def get_table_columns(self, table_name: str) -> List[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                columns = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_columns(table_name))
        except NoSuchTableError:
            return []
        return [
            {
                "columnName": col["name"],
                "dataType": str(col["type"]),
                "isNullable": bool(col.get("nullable", True)),
                "columnDefault": None if col.get("default") is None else str(col["default"]),
            }
            for col in columns
        ]

    async def drop_table(self, table_name: str) -> None:
        suffix = " CASCADE" if self.is_postgres else ""
        async with self.engine.begin() as conn:
            await conn.exec_driver_sql(f"DROP TABLE IF EXISTS {self._quote(table_name)}{suffix}")
        logger.info("Table dropped", table=table_name)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None


# Application-scoped instance
_table_executor: Optional[SqlTableExecutor] = None


def get_table_executor() -> SqlTableExecutor:
    """Get or create the executor for the configured target database."""
    global _table_executor
    if _table_executor is None:
        _table_executor = SqlTableExecutor()
    return _table_executor


async def dispose_table_executor() -> None:
    """Dispose the application executor's engine."""
    global _table_executor
    if _table_executor is not None:
        await _table_executor.dispose()
    _table_executor = None
