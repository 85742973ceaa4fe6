"""Remote table store capability and a local SQLite-backed implementation.

A table store offers exactly three operations: create a table (yielding a
store-assigned numeric id), apply a single write statement to a table it
created, and run a read-only query whose result may be shaped by the
``extract`` and ``unwrap`` controls.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from typing import Any, NamedTuple, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .utils.core_utils import format_exception
from .sql_helpers import table_name, to_create

logger = logging.getLogger(__name__)


class TableStoreError (Exception):
    pass


class TableCreationError (TableStoreError):
    pass


class DuplicateRowError (TableStoreError):
    pass


class MissingRowError (TableStoreError):
    pass


class CreateTableResult (NamedTuple):
    """Acknowledgement of a create-table request.

       Exactly one of (table_id, error) is set.
    """
    table_id: Optional[int] = None
    name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def shape_result(columns: list, rows: list, extract: bool = False, unwrap: bool = False) -> Any:
    """Apply the gateway result-shaping controls to a list of row dicts.

       extract: with exactly one column, replace each row by that column's value.
       unwrap: with exactly one row, return the row itself; with no rows return None.
    """
    if extract:
        if len(columns) != 1:
            raise TableStoreError(
                "can only extract values for result sets with one column but this has %d" % len(columns))
        rows = [row[columns[0]] for row in rows]
    if unwrap:
        if not rows:
            return None
        if len(rows) == 1:
            return rows[0]
    return rows


_json_column_re = re.compile(r'^\s*json_(object|array)\s*\(', re.IGNORECASE)


def _is_json_column(column: str) -> bool:
    """True for an unaliased json_object(...) or json_array(...) result column.

       SQLite names such a column by its expression text.
    """
    return _json_column_re.match(column) is not None


def _decode_json(value):
    # JSON functions yield text in SQLite; the gateway returns them as JSON
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class TableStore (object):
    """Abstract remote relational store."""

    def create_table(self, prefix: str, network_id: int, schema: str) -> CreateTableResult:
        raise NotImplementedError()

    def mutate(self, name: str, statement: str) -> int:
        """Apply a write statement to a table created by this store and return the affected row count."""
        raise NotImplementedError()

    def read(self, statement: str, extract: bool = False, unwrap: bool = False) -> Any:
        raise NotImplementedError()


_table_id_re = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*_[0-9]+_([0-9]+)$')


class SqliteTableStore (TableStore):
    """Local-development table store.

    Tables are created in a SQLite database (in memory by default) under the
    same ``{prefix}_{network_id}_{table_id}`` names a remote store assigns, so
    statements synthesized for the remote store run here unchanged.

    All statements are serialized on a single lock and every write runs in
    its own transaction.

    Example:
        >>> store = SqliteTableStore()
        >>> result = store.create_table("flowers", 31337, "id int primary key, stage text")
        >>> result.name
        'flowers_31337_1'
    """

    def __init__(self, database_path: Optional[str] = None, first_table_id: int = 1):
        url = "sqlite://" if not database_path else "sqlite:///%s" % os.path.abspath(database_path)
        self.engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            future=True
        )
        self._lock = threading.RLock()
        self._tables = set()
        self._next_table_id = first_table_id
        self._load_existing_tables()

    def _load_existing_tables(self) -> None:
        with self.engine.connect() as conn:
            names = [row[0] for row in conn.exec_driver_sql("select name from sqlite_master where type='table'")]
        for name in names:
            m = _table_id_re.match(name)
            if m:
                self._tables.add(name)
                self._next_table_id = max(self._next_table_id, int(m.group(1)) + 1)
        if self._tables:
            logger.info("Opened table store with %d existing table(s)", len(self._tables))

    def create_table(self, prefix: str, network_id: int, schema: str) -> CreateTableResult:
        with self._lock:
            table_id = self._next_table_id
            try:
                name = table_name(prefix, network_id, table_id)
                with self.engine.begin() as conn:
                    conn.exec_driver_sql(to_create(name, schema))
            except (ValueError, SQLAlchemyError) as e:
                logger.error("Table creation rejected for prefix '%s': %s", prefix, format_exception(e))
                return CreateTableResult(error=format_exception(e))
            self._next_table_id += 1
            self._tables.add(name)
        logger.info("Created table %s", name)
        return CreateTableResult(table_id=table_id, name=name)

    def mutate(self, name: str, statement: str) -> int:
        with self._lock:
            if name not in self._tables:
                raise TableStoreError("Table %s was not created by this store" % name)
            logger.debug("Mutating %s: %s", name, statement)
            try:
                with self.engine.begin() as conn:
                    return conn.exec_driver_sql(statement).rowcount
            except IntegrityError as e:
                if "UNIQUE" in str(e.orig):
                    raise DuplicateRowError("Duplicate primary key in %s: %s" % (name, e.orig)) from e
                raise TableStoreError(format_exception(e)) from e
            except SQLAlchemyError as e:
                raise TableStoreError(format_exception(e)) from e

    def read(self, statement: str, extract: bool = False, unwrap: bool = False) -> Any:
        if not statement.lstrip().lower().startswith("select"):
            raise TableStoreError("Only select statements may be read: %s" % statement)
        with self._lock:
            try:
                with self.engine.connect() as conn:
                    result = conn.exec_driver_sql(statement)
                    columns = list(result.keys())
                    json_columns = [_is_json_column(c) for c in columns]
                    rows = [dict(zip(columns, [_decode_json(v) if is_json else v
                                               for v, is_json in zip(row, json_columns)]))
                            for row in result]
            except SQLAlchemyError as e:
                raise TableStoreError(format_exception(e)) from e
        return shape_result(columns, rows, extract, unwrap)

    @property
    def tables(self) -> list:
        return sorted(self._tables)

    def dispose(self) -> None:
        """Dispose of SQLAlchemy resources."""
        self.engine.dispose()

    def __enter__(self) -> "SqliteTableStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.dispose()
        return False
