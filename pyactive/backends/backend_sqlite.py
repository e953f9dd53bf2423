"""
pyactive SQLite 存储引擎

使用标准库 sqlite3，连接处于自动提交模式，事务由 BEGIN/COMMIT 显式控制
"""

import sqlite3
from typing import Any, Dict, Optional

from .sql import SQLStore
from ..common.exceptions import StoreError
from ..common.options import SqliteStoreOptions
from ..core.types import AttributeType


class SQLiteStore(SQLStore):
    """SQLite3 store"""

    ENGINE_NAME = 'sqlite'
    REQUIRED_DEPENDENCIES = []  # 标准库
    DRIVER_ERRORS = (sqlite3.Error,)

    COLUMN_TYPE_MAP: Dict[AttributeType, str] = {
        AttributeType.PK: 'INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL',
        AttributeType.INTEGER: 'INTEGER',
        AttributeType.FLOAT: 'FLOAT',
        AttributeType.STRING: 'TEXT',
        AttributeType.TEXT: 'TEXT',
        AttributeType.DECIMAL: 'DECIMAL',
        AttributeType.TIMESTAMP: 'TIMESTAMP',
        AttributeType.DATE: 'DATE',
        AttributeType.BINARY: 'BINARY',
        AttributeType.BOOLEAN: 'BOOLEAN',
    }

    def __init__(self, options: Optional[SqliteStoreOptions] = None):
        """
        初始化并连接 SQLite 存储

        Args:
            options: SQLite 存储配置选项，默认连接 'store.db'
        """
        super().__init__()
        self.options: SqliteStoreOptions = options or SqliteStoreOptions()
        self.source = self.options.source
        kwargs: Dict[str, Any] = {
            'check_same_thread': self.options.check_same_thread,
            'isolation_level': self.options.isolation_level,
        }
        if self.options.timeout is not None:
            kwargs['timeout'] = self.options.timeout
        try:
            self._connection: Optional[sqlite3.Connection] = sqlite3.connect(self.source, **kwargs)
        except sqlite3.Error as e:
            raise StoreError(f"SQLite failed to connect to '{self.source}': {e}") from e

    @classmethod
    def connect(cls, source: str, **kwargs: Any) -> 'SQLiteStore':
        """按存储名创建连接，其余关键字参数传给 SqliteStoreOptions"""
        return cls(SqliteStoreOptions(source=source, **kwargs))

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreError(f"Store '{self.source}' is closed")
        return self._connection

    def _execute_raw(self, sql: str) -> sqlite3.Cursor:
        return self.connection.execute(sql)

    def _last_insert_id(self, cursor: sqlite3.Cursor) -> Any:
        return cursor.lastrowid

    def _fetch_column_types(self, table_name: str) -> Dict[str, str]:
        with self._lock:
            cursor = self.execute(f"PRAGMA table_info({self.compiler.identifier(table_name)})")
            # (cid, name, type, notnull, dflt_value, pk)
            return {row[1]: (row[2] or '').upper() for row in cursor.fetchall()}

    def table_exists(self, table_name: str) -> bool:
        with self._lock:
            cursor = self.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' "
                f"AND name = {self.compiler.to_literal(table_name)}"
            )
            return cursor.fetchone()[0] > 0

    def close(self) -> None:
        """关闭连接，之后的任何操作都会抛出 StoreError"""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._column_types.clear()

    def __repr__(self) -> str:
        return f"SQLiteStore(source='{self.source}', open={self._connection is not None})"
