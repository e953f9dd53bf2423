"""
pyactive 存储抽象

定义核心所依赖的最小存储契约。任何实现该契约的存储都可以绑定到模型类。
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Iterator, List, Mapping, Optional, Union

from ..common.options import QueryOptions
from ..common.typing import Criteria, Row
from ..core.types import AttributeType

QueryOptionsArg = Union[None, QueryOptions, Mapping[str, Any]]


class Store(ABC):
    """
    存储契约

    子类需提供表管理、列元数据、增删改查、事务与字符串转义。
    """

    ENGINE_NAME: str = ''
    REQUIRED_DEPENDENCIES: List[str] = []

    # ========== 表与列 ==========

    @abstractmethod
    def create_table(
        self,
        table_name: str,
        attr_defs: Mapping[str, Union[str, AttributeType]],
        force: bool = False
    ) -> 'Store':
        """
        创建表

        Args:
            table_name: 表名
            attr_defs: {列名: 属性类型标签}
            force: 为 True 时先删除已存在的同名表
        """

    @abstractmethod
    def drop_table(self, table_name: str) -> 'Store':
        """删除表，表不存在时抛出 TableNotFoundError"""

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """表是否存在"""

    @abstractmethod
    def add_column(self, table_name: str, column_name: str, attr_type: Union[str, AttributeType]) -> 'Store':
        """为表添加列"""

    @abstractmethod
    def column_types(self, table_name: str) -> Dict[str, str]:
        """返回 {列名: 存储原生类型}，表不存在时返回空字典"""

    @abstractmethod
    def column_type_for(self, attr_type: Union[str, AttributeType]) -> str:
        """属性类型标签对应的列定义（DDL）"""

    @abstractmethod
    def native_type_for(self, attr_type: Union[str, AttributeType]) -> str:
        """属性类型标签对应的、由 column_types 报告的原生类型"""

    @abstractmethod
    def attribute_type_for(self, native_type: str) -> Optional[AttributeType]:
        """原生类型对应的属性类型标签，未知时返回 None"""

    # ========== 记录 ==========

    @abstractmethod
    def insert(self, table_name: str, values: Mapping[str, Any]) -> Any:
        """插入记录并返回新主键"""

    @abstractmethod
    def update(self, table_name: str, values: Mapping[str, Any], criteria: Criteria = None) -> 'Store':
        """更新匹配条件的记录"""

    @abstractmethod
    def delete(self, table_name: str, criteria: Criteria = None) -> 'Store':
        """删除匹配条件的记录，无条件时删除全部"""

    @abstractmethod
    def find(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> Iterator[Row]:
        """返回匹配记录的惰性迭代器（单次遍历）"""

    @abstractmethod
    def first(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> Optional[Row]:
        """返回第一条匹配记录，不存在时返回 None"""

    @abstractmethod
    def count(self, table_name: str, criteria: Criteria = None, options: QueryOptionsArg = None) -> int:
        """返回匹配记录数"""

    # ========== 事务与杂项 ==========

    @abstractmethod
    @contextmanager
    def transaction(self) -> Generator['Store', None, None]:
        """事务上下文管理器，异常时回滚并重新抛出"""

    def transaction_do(self, func: Callable[[], Any]) -> 'Store':
        """
        在事务中执行函数

        函数成功则提交；函数抛出异常则回滚，并将原异常重新抛给调用方。

        Args:
            func: 无参数的可调用对象

        Returns:
            存储自身
        """
        with self.transaction():
            func()
        return self

    @abstractmethod
    def escape(self, value: str) -> str:
        """按存储的规则转义字符串字面量"""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """按存储的规则引用表名或列名（带点的名称逐段引用）"""

    def close(self) -> None:
        """关闭存储连接"""
