"""
pyactive 通用 SQL 存储

基于查询编译器生成语句，具体驱动只需实现原始执行、元数据读取与类型映射。
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterator, Mapping, Optional, Tuple, Type, Union

from .base import Store, QueryOptionsArg
from ..common.exceptions import ConfigurationError, StoreError, TableNotFoundError, TransactionError
from ..common.options import to_query_options
from ..common.typing import Criteria, Row
from ..core.types import AttributeType
from ..query.compiler import QueryCompiler, SQLDialect

logger = logging.getLogger(__name__)


class SQLStore(Store):
    """
    SQL 存储基类

    子类需要提供：
    - COLUMN_TYPE_MAP: {AttributeType: 列定义}
    - DRIVER_ERRORS: 驱动抛出的异常类型
    - _execute_raw / _last_insert_id / _fetch_column_types / table_exists
    """

    COLUMN_TYPE_MAP: Dict[AttributeType, str] = {}
    DRIVER_ERRORS: Tuple[Type[BaseException], ...] = ()
    SCHEMA_CHANGED_MESSAGE = 'database schema has changed'
    FETCH_SIZE = 100

    def __init__(self, dialect: Optional[SQLDialect] = None) -> None:
        self.compiler = QueryCompiler(dialect)
        self._column_types: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()
        self._in_transaction = False

    # ========== 驱动接口 ==========

    def _execute_raw(self, sql: str) -> Any:
        """执行语句并返回游标"""
        raise NotImplementedError

    def _last_insert_id(self, cursor: Any) -> Any:
        raise NotImplementedError

    def _fetch_column_types(self, table_name: str) -> Dict[str, str]:
        """从数据库读取 {列名: 原生类型}"""
        raise NotImplementedError

    # ========== 执行 ==========

    def execute(self, sql: str) -> Any:
        """
        执行 SQL 语句

        若因并发的 schema 变更而失败，清空列类型缓存并重试一次。

        Args:
            sql: 完整 SQL 语句

        Returns:
            驱动游标

        Raises:
            StoreError: 执行失败
        """
        logger.debug("execute: %s", sql)
        with self._lock:
            try:
                return self._execute_raw(sql)
            except self.DRIVER_ERRORS as e:
                if self.SCHEMA_CHANGED_MESSAGE not in str(e):
                    raise StoreError(str(e)) from e
                logger.warning("Schema changed while executing %r, retrying once", sql)
                self._column_types.clear()
            try:
                return self._execute_raw(sql)
            except self.DRIVER_ERRORS as e:
                raise StoreError(str(e)) from e

    def _rows(self, cursor: Any) -> Iterator[Row]:
        if cursor.description is None:
            return
        names = [d[0] for d in cursor.description]
        while True:
            # 与其它线程的语句执行串行化
            with self._lock:
                batch = cursor.fetchmany(self.FETCH_SIZE)
            if not batch:
                return
            for values in batch:
                yield dict(zip(names, values))

    # ========== 类型映射 ==========

    def column_type_for(self, attr_type: Union[str, AttributeType]) -> str:
        tag = AttributeType.parse(attr_type)
        result = self.COLUMN_TYPE_MAP.get(tag)
        if result is None:
            raise ConfigurationError(f"Failed to map type {tag.value} to SQL type")
        return result

    def native_type_for(self, attr_type: Union[str, AttributeType]) -> str:
        return self.column_type_for(attr_type).split()[0].upper()

    def attribute_type_for(self, native_type: str) -> Optional[AttributeType]:
        if not native_type:
            return None
        native = native_type.split()[0].upper()
        for tag, column_def in self.COLUMN_TYPE_MAP.items():
            if tag is not AttributeType.PK and column_def.split()[0].upper() == native:
                return tag
        return None

    # ========== 表与列 ==========

    def create_table(
        self,
        table_name: str,
        attr_defs: Mapping[str, Union[str, AttributeType]],
        force: bool = False
    ) -> 'SQLStore':
        if force and self.table_exists(table_name):
            self.drop_table(table_name)
        column_defs = {k: self.column_type_for(v) for k, v in (attr_defs or {}).items()}
        self.execute(self.compiler.create_table(table_name, column_defs))
        self._column_types.pop(table_name, None)
        logger.debug("Created table %s with columns %s", table_name, list(column_defs))
        return self

    def drop_table(self, table_name: str) -> 'SQLStore':
        if not self.table_exists(table_name):
            raise TableNotFoundError(table_name)
        self.execute(self.compiler.drop_table(table_name))
        self._column_types.pop(table_name, None)
        logger.debug("Dropped table %s", table_name)
        return self

    def column_types(self, table_name: str) -> Dict[str, str]:
        result = self._column_types.get(table_name)
        if result is None:
            result = {
                name: native for name, native in self._fetch_column_types(table_name).items()
                if not name.startswith('_')
            }
            if not result:
                # 表不存在，不缓存
                return {}
            self._column_types[table_name] = result
        return dict(result)

    def add_column(self, table_name: str, column_name: str, attr_type: Union[str, AttributeType]) -> 'SQLStore':
        column_def = self.column_type_for(attr_type)
        self.execute(self.compiler.add_column(table_name, column_name, column_def))
        cached = self._column_types.get(table_name)
        if cached is not None:
            cached[column_name] = self.native_type_for(attr_type)
        logger.debug("Added column %s.%s %s", table_name, column_name, column_def)
        return self

    # ========== 记录 ==========

    def insert(self, table_name: str, values: Mapping[str, Any]) -> Any:
        cursor = self.execute(self.compiler.insert(table_name, values))
        return self._last_insert_id(cursor)

    def update(self, table_name: str, values: Mapping[str, Any], criteria: Criteria = None) -> 'SQLStore':
        sql = self.compiler.update(table_name, values, criteria)
        if sql is not None:
            self.execute(sql)
        return self

    def delete(self, table_name: str, criteria: Criteria = None) -> 'SQLStore':
        self.execute(self.compiler.delete(table_name, criteria))
        return self

    def find(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> Iterator[Row]:
        cursor = self.execute(self.compiler.select(table_name, criteria, options).sql)
        return self._rows(cursor)

    def first(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> Optional[Row]:
        opts = to_query_options(options)
        if opts.limit is None:
            opts.limit = 1
        rows = list(self.find(table_name, criteria, opts))
        return rows[0] if rows else None

    def count(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> int:
        with self._lock:
            cursor = self.execute(self.compiler.count(table_name, criteria, options).sql)
            row = cursor.fetchone()
        return int(row[0]) if row else 0

    # ========== 事务 ==========

    @contextmanager
    def transaction(self) -> Generator['SQLStore', None, None]:
        """
        事务上下文管理器

        - 单层事务：不支持嵌套
        - 异常时回滚并重新抛出原异常，回滚失败只记录日志

        Example:
            with store.transaction():
                store.insert('people', {'name': 'Alice'})
                store.insert('people', {'name': 'Bob'})

        Raises:
            TransactionError: 尝试嵌套事务时
        """
        if self._in_transaction:
            raise TransactionError("Nested transactions are not supported")

        self.execute("BEGIN")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._rollback()
            raise
        else:
            try:
                self.execute("COMMIT")
            except StoreError:
                self._rollback()
                raise
        finally:
            self._in_transaction = False

    def _rollback(self) -> None:
        try:
            self.execute("ROLLBACK")
        except StoreError:
            logger.warning("Rollback failed", exc_info=True)

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def escape(self, value: str) -> str:
        return self.compiler.dialect.escape(value)

    def quote_identifier(self, name: str) -> str:
        return self.compiler.identifier(name)
