"""
pyactive 共享类型别名
"""

from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable


# 存储返回的一行数据 {列名: 值}
Row = Dict[str, Any]

# 查询条件：主键值、原始谓词字符串或 {属性名: 值} 映射
Criteria = Optional[Union[int, str, Mapping[str, Any]]]


@runtime_checkable
class Identifiable(Protocol):
    """拥有主键的对象（模型实例），在查询中以其 id 表示"""

    @property
    def id(self) -> Any:
        ...
