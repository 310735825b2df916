#!/usr/bin/env python3
"""
Database manager for the SCOP tools
Handles database connections and queries
"""
import psycopg2
import psycopg2.extras
import logging
from contextlib import contextmanager
from typing import Dict, Any, List, Tuple, Optional, Generator, TypeVar, Union, Callable

from scop.exceptions import ConnectionError, QueryError, DatabaseError

T = TypeVar('T')


class DBManager:
    """Database manager for the SCOP tools"""

    def __init__(self, config: Dict[str, Any]):
        """Initialize database manager

        Args:
            config: Database configuration dictionary
        """
        self.config = config
        self.logger = logging.getLogger("scop.db")

        required_fields = ['host', 'port', 'database', 'user']
        for field in required_fields:
            if field not in config:
                raise ConnectionError(f"Missing required database configuration field: {field}")

    @contextmanager
    def get_connection(self) -> Generator[psycopg2.extensions.connection, None, None]:
        """Context manager for database connections

        Yields:
            Database connection

        Raises:
            ConnectionError: If connection fails
        """
        try:
            conn = psycopg2.connect(**self.config)
        except psycopg2.Error as e:
            error_msg = f"Database connection error: {str(e)}"
            self.logger.error(error_msg)
            raise ConnectionError(error_msg, {"code": e.pgcode} if hasattr(e, 'pgcode') else None) from e

        # statement errors roll back and propagate to the caller
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute_query(self, query: str, params: Optional[Union[Tuple, Dict[str, Any]]] = None) -> List[Tuple]:
        """Execute a query and return results

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result tuples

        Raises:
            QueryError: If query execution fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, params or ())
                    if cursor.description:  # If the query returns rows
                        return cursor.fetchall()
                    return []
        except ConnectionError:
            raise
        except psycopg2.Error as e:
            error_msg = f"Query execution error: {str(e)}"
            self.logger.error(f"{error_msg}\nQuery: {query}\nParams: {params}")
            raise QueryError(error_msg, {"query": query, "params": params, "code": e.pgcode} if hasattr(e, 'pgcode') else None) from e

    def execute_dict_query(self, query: str, params: Optional[Union[Tuple, Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        """Execute a query and return results as dictionaries

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result dictionaries

        Raises:
            QueryError: If query execution fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute(query, params or ())
                    if cursor.description:
                        return [dict(row) for row in cursor.fetchall()]
                    return []
        except ConnectionError:
            raise
        except psycopg2.Error as e:
            error_msg = f"Query execution error: {str(e)}"
            self.logger.error(f"{error_msg}\nQuery: {query}\nParams: {params}")
            raise QueryError(error_msg, {"query": query, "params": params, "code": e.pgcode} if hasattr(e, 'pgcode') else None) from e

    def execute_transaction(self, callback: Callable[[psycopg2.extensions.cursor], T]) -> T:
        """Execute operations in a transaction

        Args:
            callback: Function that takes a cursor and performs operations

        Returns:
            Result of the callback function

        Raises:
            DatabaseError: If transaction fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    return callback(cursor)
        except psycopg2.Error as e:
            error_msg = f"Transaction error: {str(e)}"
            self.logger.error(error_msg)
            raise DatabaseError(error_msg, {"code": e.pgcode} if hasattr(e, 'pgcode') else None) from e
