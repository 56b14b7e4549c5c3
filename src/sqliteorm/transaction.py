"""
Transaction handling for batch writes.
"""
import logging
from typing import Any

from sqliteorm.exceptions import ConnectionError

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager for running multiple statements in one transaction.

    Connections run in auto-commit mode, so the transaction is opened with an
    explicit BEGIN. The block commits when it exits normally. Any exception
    rolls back every statement of the block and propagates unchanged. Nested
    transactions on the same connection are not supported.

    Examples
        with Transaction(cn) as tx:
            tx.execute('DELETE FROM Person WHERE Id = ?', (1,))
            tx.execute('UPDATE Person SET Name = ? WHERE Id = ?', ('Ann', 2))
    """

    def __init__(self, cn: Any) -> None:
        self.cn = cn
        if cn.connection is None:
            raise ConnectionError('Connection has been released')
        if cn.in_transaction:
            raise RuntimeError('Nested transactions are not supported')

    def __enter__(self):
        raw_conn = self.cn.connection
        if raw_conn is None:
            raise ConnectionError('Connection has been released')
        raw_conn.execute('BEGIN')
        self.cn.in_transaction = True
        logger.debug(f'Started transaction for connection {id(self.cn)}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        raw_conn = self.cn.connection
        try:
            if raw_conn is None or not raw_conn.in_transaction:
                return
            if exc_type is not None:
                raw_conn.rollback()
                logger.warning('Rolling back the current transaction')
            else:
                raw_conn.commit()
                logger.debug(f'Committed transaction for connection {id(self.cn)}')
        finally:
            self.cn.in_transaction = False

    def execute(self, sql: str, params: tuple = ()) -> int:
        """Execute SQL within transaction context and return the affected row count."""
        with self.cn.cursor() as cursor:
            return cursor.execute(sql, params)
