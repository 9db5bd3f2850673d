#!/usr/bin/env python3
"""
Connections to the core (genome) and EST databases.

One connection per unit of work: get_connection() commits on success and
rolls back on any error, so a partially written pseudogene never lands.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Any, List, Tuple, Optional, Generator, Union

import psycopg2
import psycopg2.extras

from genebuild.exceptions import DatabaseConnectionError, QueryError

Params = Optional[Union[Tuple, List, Dict[str, Any]]]


class DBManager:
    """Thin psycopg2 wrapper around one database"""

    REQUIRED_FIELDS = ('host', 'port', 'database', 'user')

    def __init__(self, config: Dict[str, Any]):
        missing = [field for field in self.REQUIRED_FIELDS if field not in config]
        if missing:
            raise DatabaseConnectionError(
                f"Database configuration lacks: {', '.join(missing)}",
                {"missing": missing}
            )
        self.config = config
        self.logger = logging.getLogger("genebuild.db")

    @property
    def label(self) -> str:
        return f"{self.config['database']}@{self.config['host']}"

    @contextmanager
    def get_connection(self) -> Generator[psycopg2.extensions.connection, None, None]:
        """Open a connection for one transaction

        Raises:
            DatabaseConnectionError: The server refused or is unreachable
            QueryError: A statement inside the block failed
        """
        try:
            conn = psycopg2.connect(**self.config)
        except psycopg2.Error as e:
            self.logger.error(f"Cannot connect to {self.label}: {e}")
            raise DatabaseConnectionError(f"Cannot connect to {self.label}: {e}",
                                          {"database": self.config['database']}) from e

        try:
            yield conn
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            self.logger.error(f"Statement failed on {self.label}, rolled back: {e}")
            raise QueryError(f"Statement failed on {self.label}: {e}",
                             {"pgcode": getattr(e, 'pgcode', None)}) from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetch(self, query: str, params: Params, cursor_factory=None) -> List[Any]:
        self.logger.debug(f"{self.label}: {' '.join(query.split())} {params}")
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=cursor_factory) as cursor:
                cursor.execute(query, params or ())
                # statements without a result set have no description
                return cursor.fetchall() if cursor.description else []

    def execute_query(self, query: str, params: Params = None) -> List[Tuple]:
        """Run a statement and return its rows as tuples"""
        return self._fetch(query, params)

    def execute_dict_query(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a statement and return its rows keyed by column name"""
        rows = self._fetch(query, params, cursor_factory=psycopg2.extras.RealDictCursor)
        return [dict(row) for row in rows]

    def insert(self, table: str, data: Dict[str, Any], returning: Optional[str] = None,
               cursor=None) -> Optional[Any]:
        """Insert one row

        Args:
            table: Qualified table name
            data: Column to value mapping
            returning: Column whose new value is returned, e.g. the serial id
            cursor: Cursor of an enclosing transaction; a new one is opened when omitted

        Returns:
            The returning column's value, or None
        """
        if cursor is None:
            with self.get_connection() as conn:
                with conn.cursor() as own_cursor:
                    return self.insert(table, data, returning, cursor=own_cursor)

        columns = ', '.join(data)
        placeholders = ', '.join(['%s'] * len(data))
        statement = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        if returning:
            statement = f"{statement} RETURNING {returning}"

        cursor.execute(statement, list(data.values()))
        if not returning:
            return None
        row = cursor.fetchone()
        return row[0] if row else None
