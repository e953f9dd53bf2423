"""
pyactive 查询编译器

纯函数式地将 (表名, 条件, 选项) 编译为查询描述。子句按固定顺序组合：
SELECT → FROM → JOIN → WHERE → ORDER BY → LIMIT/OFFSET

条件支持三种形式：
- 主键值：5 → id = 5
- 原始谓词字符串：原样透传
- {属性名: 值} 映射：AND 连接的等值谓词，集合值编译为 IN (...)

使用方式：
    from pyactive.query import compile_select

    compile_select('people', {'age': [21, 22]}, QueryOptions(order='name')).sql
    # SELECT * FROM people WHERE age IN (21, 22) ORDER BY name
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

from ..common.exceptions import ConfigurationError, ConversionError
from ..common.options import JoinOptions, QueryOptions, to_query_options
from ..common.typing import Criteria, Identifiable


class SQLDialect:
    """
    SQL 方言

    提供存储相关的字符串转义与 NULL 字面量。默认实现为 ANSI 风格的
    单引号加倍转义。
    """

    null_literal = 'NULL'

    def escape(self, value: str) -> str:
        """转义字符串字面量内容（不含外围引号）"""
        return value.replace("'", "''")

    def quote(self, value: str) -> str:
        return f"'{self.escape(value)}'"

    def quote_identifier(self, name: str) -> str:
        """引用表名或列名，带点的名称逐段引用"""
        return '.'.join(
            '"' + part.replace('"', '""') + '"' for part in name.split('.')
        )

    def binary(self, value: bytes) -> str:
        return f"X'{value.hex()}'"


DEFAULT_DIALECT = SQLDialect()


@dataclass(slots=True)
class CompiledQuery:
    """编译后的 SELECT 查询描述，每个子句单独保存"""
    select: str
    from_: str
    join: Optional[str] = None
    where: Optional[str] = None
    order: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def sql(self) -> str:
        parts: List[str] = [f"SELECT {self.select}", f"FROM {self.from_}"]
        if self.join:
            parts.append(self.join)
        if self.where:
            parts.append(f"WHERE {self.where}")
        if self.order:
            parts.append(f"ORDER BY {self.order}")
        if self.limit is not None:
            parts.append(f"LIMIT {self.limit}")
            if self.offset is not None:
                parts.append(f"OFFSET {self.offset}")
        return ' '.join(parts)

    def __str__(self) -> str:
        return self.sql


class QueryCompiler:
    """
    查询编译器

    无状态，方言只决定字面量的渲染方式。
    """

    def __init__(self, dialect: Optional[SQLDialect] = None) -> None:
        self.dialect = dialect or DEFAULT_DIALECT

    # ========== 字面量 ==========

    def to_literal(self, value: Any) -> str:
        """
        将 Python 值转换为 SQL 字面量

        Args:
            value: 要转换的值

        Returns:
            SQL 字面量字符串

        Raises:
            ConversionError: 不支持的值类型
        """
        if value is None:
            return self.dialect.null_literal
        if isinstance(value, bool):
            return '1' if value else '0'
        if isinstance(value, int):
            return str(value)
        if isinstance(value, (float, Decimal)):
            finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
            if not finite:
                raise ConversionError(f"Unable to convert non-finite number {value!r} to SQL")
            return str(value)
        if isinstance(value, str):
            return self.dialect.quote(value)
        if isinstance(value, datetime):
            return self.dialect.quote(value.isoformat(sep=' '))
        if isinstance(value, date):
            return self.dialect.quote(value.isoformat())
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.dialect.binary(bytes(value))
        if isinstance(value, Identifiable):
            record_id = value.id
            if record_id is None:
                raise ConversionError(
                    f"Unable to convert unsaved {type(value).__name__} to SQL: it has no id"
                )
            return self.to_literal(record_id)
        raise ConversionError(f"Unable to convert {type(value).__name__} to SQL")

    def identifier(self, name: str) -> str:
        """引用后的表名或列名"""
        return self.dialect.quote_identifier(name)

    # ========== 子句 ==========

    def where(self, criteria: Criteria) -> Optional[str]:
        """
        编译 WHERE 条件（不含 WHERE 关键字）

        Args:
            criteria: 主键值、原始谓词字符串或属性映射

        Returns:
            条件字符串，无条件时返回 None
        """
        if criteria is None:
            return None
        if isinstance(criteria, bool):
            raise ConversionError("Expected condition number, mapping or string and got a bool")
        if isinstance(criteria, int):
            return f"id = {self.to_literal(criteria)}"
        if isinstance(criteria, str):
            return criteria or None
        if isinstance(criteria, Mapping):
            predicates = [self._predicate(k, v) for k, v in criteria.items()]
            return ' AND '.join(predicates) or None
        raise ConversionError(
            f"Expected condition number, mapping or string and got a {type(criteria).__name__}"
        )

    def _predicate(self, name: str, value: Any) -> str:
        if isinstance(value, (list, tuple, set, frozenset)):
            if isinstance(value, (set, frozenset)):
                try:
                    values = sorted(value)
                except TypeError as e:
                    raise ConversionError(
                        f"Unable to order the collection for '{name}': {e}"
                    ) from e
            else:
                values = list(value)
            if not values:
                raise ConversionError(f"Unable to convert empty collection for '{name}' to SQL")
            if len(values) == 1:
                return f"{name} = {self.to_literal(values[0])}"
            return f"{name} IN ({', '.join(self.to_literal(v) for v in values)})"
        if value is None:
            return f"{name} IS NULL"
        return f"{name} = {self.to_literal(value)}"

    def join(self, table_name: str, join: Optional[JoinOptions]) -> Optional[str]:
        """编译 JOIN 子句"""
        if join is None:
            return None
        if not join.table_name:
            raise ConfigurationError("Expected 'table_name' in join")
        if not join.on:
            raise ConfigurationError("Expected 'on' mapping in join")
        q = self.identifier
        ons = [
            f"{q(table_name)}.{q(local)} = {q(join.table_name)}.{q(foreign)}"
            for local, foreign in join.on.items()
        ]
        return f"{join.type or 'INNER'} JOIN {q(join.table_name)} ON {' AND '.join(ons)}"

    # ========== 语句 ==========

    def select(
        self,
        table_name: str,
        criteria: Criteria = None,
        options: Union[None, QueryOptions, Mapping[str, Any]] = None
    ) -> CompiledQuery:
        """编译 SELECT 查询"""
        opts = to_query_options(options)
        return CompiledQuery(
            select=opts.select or '*',
            from_=opts.from_ or self.identifier(table_name),
            join=self.join(table_name, opts.join),
            where=self.where(criteria),
            order=opts.order,
            limit=opts.limit,
            offset=opts.offset if opts.limit is not None else None,
        )

    def count(
        self,
        table_name: str,
        criteria: Criteria = None,
        options: Union[None, QueryOptions, Mapping[str, Any]] = None
    ) -> CompiledQuery:
        """编译 COUNT 查询"""
        opts = to_query_options(options)
        opts.select = opts.select or 'COUNT(*)'
        return self.select(table_name, criteria, opts)

    def insert(self, table_name: str, values: Mapping[str, Any]) -> str:
        """编译 INSERT 语句，无值时使用 DEFAULT VALUES"""
        if not values:
            return f"INSERT INTO {self.identifier(table_name)} DEFAULT VALUES"
        keys = ', '.join(self.identifier(k) for k in values)
        literals = ', '.join(self.to_literal(v) for v in values.values())
        return f"INSERT INTO {self.identifier(table_name)} ({keys}) VALUES ({literals})"

    def update(self, table_name: str, values: Mapping[str, Any], criteria: Criteria = None) -> Optional[str]:
        """编译 UPDATE 语句，无赋值时返回 None"""
        if not values:
            return None
        assigns = ', '.join(
            f"{self.identifier(k)} = {self.to_literal(v)}" for k, v in values.items()
        )
        sql = f"UPDATE {self.identifier(table_name)} SET {assigns}"
        return self._with_where(sql, criteria)

    def delete(self, table_name: str, criteria: Criteria = None) -> str:
        """编译 DELETE 语句，无条件时删除全部记录"""
        return self._with_where(f"DELETE FROM {self.identifier(table_name)}", criteria)

    def create_table(self, table_name: str, column_defs: Mapping[str, str]) -> str:
        """编译 CREATE TABLE 语句，column_defs 为 {列名: 存储类型定义}"""
        if not column_defs:
            raise ConfigurationError(f"No attributes defined for table {table_name}")
        columns = ', '.join(f"{self.identifier(k)} {v}" for k, v in column_defs.items())
        return f"CREATE TABLE {self.identifier(table_name)} ( {columns} )"

    def add_column(self, table_name: str, column_name: str, column_def: str) -> str:
        q = self.identifier
        return f"ALTER TABLE {q(table_name)} ADD {q(column_name)} {column_def}"

    def drop_table(self, table_name: str) -> str:
        return f"DROP TABLE {self.identifier(table_name)}"

    def _with_where(self, sql: str, criteria: Criteria) -> str:
        condition = self.where(criteria)
        if condition:
            return f"{sql} WHERE {condition}"
        return sql


def compile_where(criteria: Criteria, dialect: Optional[SQLDialect] = None) -> Optional[str]:
    """编译 WHERE 条件（纯函数）"""
    return QueryCompiler(dialect).where(criteria)


def compile_select(
    table_name: str,
    criteria: Criteria = None,
    options: Union[None, QueryOptions, Mapping[str, Any]] = None,
    dialect: Optional[SQLDialect] = None
) -> CompiledQuery:
    """
    编译 SELECT 查询（纯函数）

    Args:
        table_name: 表名
        criteria: 查询条件
        options: 查询选项
        dialect: SQL 方言，默认 ANSI

    Returns:
        CompiledQuery 查询描述，其 sql 属性为完整语句
    """
    return QueryCompiler(dialect).select(table_name, criteria, options)
