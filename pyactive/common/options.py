"""
pyactive 配置选项 dataclass 定义

该模块定义了存储、类声明、查询和关联的配置选项，替代自由格式的选项表。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union, TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..backends.base import Store


# 未指定来源时的默认存储名
DEFAULT_SOURCE = 'store.db'


@dataclass(slots=True)
class SqliteStoreOptions:
    """SQLite 存储配置选项"""
    source: str = DEFAULT_SOURCE  # 数据库文件路径，':memory:' 为内存库
    check_same_thread: bool = True  # 检查同一线程
    timeout: Optional[float] = 2.0  # 数据库被锁定时的等待秒数
    isolation_level: Optional[str] = None  # None 为自动提交，事务由 BEGIN/COMMIT 显式控制


# Store 选项联合类型
StoreOptions = Union[SqliteStoreOptions]


def get_default_store_options(engine: str, source: Optional[str] = None) -> StoreOptions:
    """根据引擎类型返回默认选项"""
    defaults: Dict[str, StoreOptions] = {
        'sqlite': SqliteStoreOptions(),
    }
    options = defaults.get(engine, SqliteStoreOptions())
    if source is not None:
        options.source = source
    return options


@dataclass(slots=True)
class ExtendOptions:
    """Model.extend 的类声明选项"""
    store: Optional['Store'] = None  # 直接指定存储连接（优先级最高）
    source: Optional[str] = None  # 存储名，交给 default_connection 创建连接
    table_name: Optional[str] = None  # 覆盖默认表名


@dataclass(slots=True)
class JoinOptions:
    """JOIN 子句选项"""
    table_name: Optional[str] = None  # 被连接的表
    on: Dict[str, str] = field(default_factory=dict)  # {本表列: 连接表列}
    type: str = 'INNER'


@dataclass(slots=True)
class QueryOptions:
    """查询选项，按 SELECT → FROM → JOIN → WHERE → ORDER BY → LIMIT/OFFSET 组合"""
    select: Optional[str] = None  # 默认 '*'
    from_: Optional[str] = None  # 默认为表名，可为带别名的 from 子句
    join: Optional[JoinOptions] = None
    order: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None  # 仅在 limit 存在时生效


def to_query_options(options: Union[None, QueryOptions, Mapping[str, Any]]) -> QueryOptions:
    """
    将 None、QueryOptions 或字典统一为新的 QueryOptions 实例

    字典中的 'from' 键对应 from_，'join' 可以是 JoinOptions 或字典。
    返回值总是副本，调用方可以放心修改。
    """
    if options is None:
        return QueryOptions()
    if isinstance(options, QueryOptions):
        return QueryOptions(
            select=options.select,
            from_=options.from_,
            join=options.join,
            order=options.order,
            limit=options.limit,
            offset=options.offset,
        )
    if isinstance(options, Mapping):
        values = dict(options)
        if 'from' in values:
            values['from_'] = values.pop('from')
        join = values.get('join')
        if isinstance(join, Mapping):
            values['join'] = JoinOptions(**join)
        try:
            return QueryOptions(**values)
        except TypeError as e:
            raise ConfigurationError(f"Invalid query options: {e}") from e
    raise ConfigurationError(f"Expected QueryOptions or mapping, got {type(options).__name__}")


class Dependency(str, Enum):
    """关联被删除时依赖方的处理策略"""
    NULLIFY = 'nullify'  # 外键置为哨兵值 0
    DESTROY = 'destroy'  # 级联销毁依赖记录

    @classmethod
    def parse(cls, value: Any) -> 'Dependency':
        """'destroy' 选择级联，其它任何值都选择置空"""
        if isinstance(value, Dependency):
            return value
        if value == cls.DESTROY.value:
            return cls.DESTROY
        return cls.NULLIFY


@dataclass(slots=True)
class AssociationOptions:
    """关联声明选项"""
    foreign_key: Optional[str] = None  # 显式外键列名
    attribute_name: Optional[str] = None  # 注入的属性名，同时作为默认外键前缀
    dependency: Union[Dependency, str] = Dependency.NULLIFY

    def __post_init__(self) -> None:
        for name in ('foreign_key', 'attribute_name'):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, str) or not value):
                raise ConfigurationError(f"Association option '{name}' must be a non-empty string")
        self.dependency = Dependency.parse(self.dependency)

    @property
    def is_destroy(self) -> bool:
        return self.dependency is Dependency.DESTROY


def to_association_options(
    options: Union[None, AssociationOptions, Mapping[str, Any]] = None,
    **kwargs: Any
) -> AssociationOptions:
    """将 None、AssociationOptions、字典或关键字参数统一为 AssociationOptions"""
    if isinstance(options, AssociationOptions):
        if kwargs:
            raise ConfigurationError("Pass either AssociationOptions or keyword options, not both")
        return options
    values: Dict[str, Any] = dict(options or {})
    values.update(kwargs)
    try:
        return AssociationOptions(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid association options: {e}") from e
