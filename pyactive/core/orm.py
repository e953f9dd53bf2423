"""
pyactive ORM 核心

Model.extend 在运行时声明记录类：把属性集合与存储中的列同步（只增不减），
并为每个属性登记一对 getter/setter。实例维护两层属性：

- 持久值（_persisted）：最近一次从存储读取或写入存储的值
- 本地值（_locals）：尚未保存的修改，保存成功后提升为持久值

使用方式：
    from pyactive import SQLiteStore, declarative_base

    Base = declarative_base(SQLiteStore.connect(':memory:'))
    Person = Base.extend('Person', {'name': 'string', 'age': 'integer'})

    jane = Person.create(name='Jane', age=22)
    jane.age = 23          # 本地修改
    jane.save()            # 写入存储
    Person.first({'name': 'Jane'}).age  # 23
"""

import logging
import threading
from contextlib import contextmanager
from functools import partial
from typing import (
    Any, Callable, ClassVar, Dict, Generator, Iterable, Iterator, List, Mapping,
    NamedTuple, Optional, Type, TypeVar, Union,
)

from . import associations
from .hooks import (
    HookRegistry, Hook,
    BEFORE_DESTROY, AFTER_DESTROY, BEFORE_SELFDESTRUCT, AFTER_SELFDESTRUCT,
)
from .types import AttributeType, TypeRegistry
from ..backends.base import Store, QueryOptionsArg
from ..backends.registry import get_store
from ..common.exceptions import (
    ConfigurationError,
    FrozenObjectError,
    SchemaError,
    UnknownAttributeError,
)
from ..common.options import (
    DEFAULT_SOURCE,
    AssociationOptions,
    ExtendOptions,
    to_query_options,
    to_association_options,
)
from ..common.typing import Criteria, Row

logger = logging.getLogger(__name__)

PRIMARY_KEY = 'id'
ADD_SUFFIX = '_add'

M = TypeVar('M', bound='Model')


class Accessor(NamedTuple):
    """属性访问器：getter(obj, options)，setter(obj, value, persist)；只读属性的 setter 为 None"""
    getter: Callable[..., Any]
    setter: Optional[Callable[..., Any]] = None


class ClassRegistry:
    """按类名登记已声明的模型类"""

    def __init__(self) -> None:
        self._classes: Dict[str, Type['Model']] = {}
        self._lock = threading.RLock()

    def register(self, model: Type['Model']) -> None:
        with self._lock:
            self._classes[model.class_name()] = model

    def unregister(self, model: Type['Model']) -> None:
        with self._lock:
            if self._classes.get(model.class_name()) is model:
                del self._classes[model.class_name()]

    def get(self, name: str) -> Optional[Type['Model']]:
        return self._classes.get(name)

    def names(self) -> List[str]:
        return sorted(self._classes)

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __iter__(self) -> Iterator[Type['Model']]:
        return iter(list(self._classes.values()))

    def __len__(self) -> int:
        return len(self._classes)


def _default_getter(name: str) -> Callable[..., Any]:
    def getter(obj: 'Model', options: QueryOptionsArg = None) -> Any:
        return obj._read(name)
    return getter


def _default_setter(name: str) -> Callable[..., Any]:
    def setter(obj: 'Model', value: Any, persist: bool = True) -> 'Model':
        return obj._write(name, value, persist)
    return setter


class Model:
    """
    记录类基类

    不直接使用：先通过 declarative_base() 绑定存储，再用 extend() 声明具体类。
    """

    __store__: ClassVar[Optional[Store]] = None
    __registry__: ClassVar[ClassRegistry]
    __declarative_base__: ClassVar[Type['Model']]

    _class_name: ClassVar[Optional[str]] = None
    _table_name: ClassVar[Optional[str]] = None
    _store: ClassVar[Optional[Store]] = None
    _accessors: ClassVar[Dict[str, Accessor]] = {}
    _adders: ClassVar[Dict[str, Callable[..., Any]]] = {}
    _hooks: ClassVar[HookRegistry] = HookRegistry()
    _schema_lock: ClassVar[threading.RLock] = threading.RLock()

    _persisted: Dict[str, Any]
    _locals: Dict[str, Any]
    _frozen: bool
    _deferred: List[Callable[[], Any]]

    def __init__(self, **attrs: Any) -> None:
        """
        创建未保存的实例

        已声明的属性（包括关联属性）通过其 setter 以本地值写入；
        未声明的键作为普通内存字段保存在本地值中，保存时不会写入存储。
        """
        cls = type(self)
        if cls._store is None:
            raise ConfigurationError(
                f"{cls.__name__} is not bound to a store; declare record classes with extend()"
            )
        object.__setattr__(self, '_persisted', {})
        object.__setattr__(self, '_locals', {})
        object.__setattr__(self, '_frozen', False)
        object.__setattr__(self, '_deferred', [])
        for name, value in attrs.items():
            accessor = cls._accessors.get(name)
            if accessor is None:
                self._locals[name] = value
            elif accessor.setter is None:
                raise UnknownAttributeError(cls.class_name(), name, "attribute is read-only")
            else:
                accessor.setter(self, value, False)

    # ========== 类声明与 schema 同步 ==========

    @classmethod
    def extend(
        cls,
        name: str,
        attr_defs: Optional[Mapping[str, Any]] = None,
        options: Optional[ExtendOptions] = None
    ) -> Type['Model']:
        """
        声明一个新的记录类

        字符串值的条目是属性类型标签（pk, string, text, integer, float, decimal,
        timestamp, date, binary, boolean），会同步为存储中的列；可调用值的条目
        作为类方法覆盖（例如 table_name）。主键 id 自动添加。

        Example:
            Person = Base.extend('Person', {
                'table_name': lambda cls: 'people',
                'first_name': 'string',
                'age': 'integer',
            })

        Args:
            name: 类名，不可为空
            attr_defs: 属性定义
            options: 类声明选项（存储、存储名、表名）

        Returns:
            新的模型类

        Raises:
            ConfigurationError: 类名为空、属性定义无效
            SchemaError: 声明类型与已有列类型冲突
        """
        if not name or not isinstance(name, str):
            raise ConfigurationError("Expected class name in definition")
        options = options or ExtendOptions()

        columns: Dict[str, AttributeType] = {PRIMARY_KEY: AttributeType.PK}
        namespace: Dict[str, Any] = {
            '__module__': cls.__module__,
            '_class_name': name,
            '_table_name': options.table_name,
            '_accessors': {},
            '_adders': {},
            '_hooks': HookRegistry(),
            '_schema_lock': threading.RLock(),
        }
        for key, value in (attr_defs or {}).items():
            if isinstance(value, (str, AttributeType)):
                if key != PRIMARY_KEY:
                    columns[key] = AttributeType.parse(value)
            elif callable(value):
                namespace[key] = classmethod(value)
            else:
                raise ConfigurationError(
                    f"Definition of '{key}' in class '{name}' must be a type name or a callable, "
                    f"got {type(value).__name__}"
                )

        new_cls: Type[Model] = type(name, (cls,), namespace)
        new_cls._store = cls._resolve_store(options)

        store = new_cls.connection()
        table_name = new_cls.table_name()
        with new_cls._schema_lock:
            if not store.table_exists(table_name):
                store.create_table(table_name, columns)
            for attr_name, attr_type in columns.items():
                new_cls.add_attribute(attr_name, attr_type)

        cls.__registry__.register(new_cls)
        logger.debug("Declared class %s on table %s", name, table_name)
        return new_cls

    @classmethod
    def _resolve_store(cls, options: ExtendOptions) -> Store:
        if options.store is not None:
            return options.store
        if options.source is not None:
            return cls.default_connection(options.source)
        if cls._store is not None:
            return cls._store
        if cls.__store__ is not None:
            return cls.__store__
        return cls.default_connection(cls.default_source())

    @classmethod
    def default_source(cls) -> str:
        """未指定存储时使用的存储名，默认 'store.db'"""
        return DEFAULT_SOURCE

    @classmethod
    def default_connection(cls, source: Optional[str] = None) -> Store:
        """按存储名创建默认的 SQLite 连接，子类可覆盖以使用其它引擎"""
        return get_store('sqlite', source=source or cls.default_source())

    @classmethod
    def connection(cls) -> Store:
        if cls._store is None:
            raise ConfigurationError(f"{cls.__name__} is not bound to a store")
        return cls._store

    @classmethod
    def class_name(cls) -> str:
        return cls._class_name or cls.__name__

    @classmethod
    def attribute_key(cls, options: Optional[AssociationOptions] = None) -> str:
        """
        该类作为属性时的名称：类名小写，或 options.attribute_name
        """
        if options is not None and options.attribute_name:
            return options.attribute_name
        return cls.class_name().lower()

    @classmethod
    def foreign_key(cls, options: Optional[AssociationOptions] = None) -> str:
        """
        引用该类的外键列名

        默认为 '<类名>_id'，提供 attribute_name 时为 '<attribute_name>_<类名>_id'，
        结果小写；options.foreign_key 优先。
        """
        if options is not None and options.foreign_key:
            return options.foreign_key
        result = f"{cls.class_name()}_id"
        if options is not None and options.attribute_name:
            result = f"{options.attribute_name}_{result}"
        return result.lower()

    @classmethod
    def table_name(cls) -> str:
        """存储中的表名，默认与 attribute_key() 相同"""
        return cls._table_name or cls.attribute_key()

    @classmethod
    def attribute_types(cls) -> Dict[str, str]:
        """存储报告的 {列名: 原生类型}"""
        return cls.connection().column_types(cls.table_name())

    @classmethod
    def has_attribute(cls, name: str) -> bool:
        return name in cls.attribute_types()

    @classmethod
    def attribute_type(cls, name: str) -> Optional[str]:
        """列在存储中的原生类型，未定义时为 None"""
        return cls.attribute_types().get(name)

    @classmethod
    def attribute_names(cls) -> List[str]:
        """已登记访问器的属性名（包括关联属性）"""
        return list(cls._accessors)

    @classmethod
    def add_attribute(cls, name: str, attr_type: Union[str, AttributeType]) -> Type['Model']:
        """
        为类添加属性

        列已存在时，声明类型必须与存储中的类型一致；否则向存储添加列。
        随后（重新）登记默认访问器。

        Args:
            name: 属性名
            attr_type: 属性类型标签

        Returns:
            类本身

        Raises:
            ConfigurationError: 未知类型标签
            SchemaError: 与已有列类型冲突
        """
        tag = AttributeType.parse(attr_type)
        store = cls.connection()
        table_name = cls.table_name()
        with cls._schema_lock:
            stored = cls.attribute_type(name)
            if stored is not None:
                if stored.upper() != store.native_type_for(tag):
                    raise SchemaError(table_name, name, tag.value, stored)
            else:
                store.add_column(table_name, name, tag)
            if name == PRIMARY_KEY:
                cls.inject_accessor(name, _default_getter(name))
            else:
                cls.inject_accessor(name, _default_getter(name), _default_setter(name))
        return cls

    @classmethod
    def inject_accessor(
        cls,
        name: str,
        getter: Callable[..., Any],
        setter: Optional[Callable[..., Any]] = None
    ) -> None:
        """登记（或覆盖）属性访问器"""
        with cls._schema_lock:
            cls._accessors[name] = Accessor(getter, setter)

    @classmethod
    def inject_adder(cls, name: str, adder: Callable[..., Any]) -> None:
        """登记集合属性的添加函数，实例上以 <name>_add(value) 调用"""
        with cls._schema_lock:
            cls._adders[name] = adder

    @classmethod
    def self_destruct(cls) -> Type['Model']:
        """
        删除该类在存储中的表

        调用后类的大部分方法都不再可用，谨慎使用。
        """
        cls.call_hook(BEFORE_SELFDESTRUCT)
        store = cls.connection()
        table_name = cls.table_name()
        with cls._schema_lock:
            if store.table_exists(table_name):
                store.drop_table(table_name)
        cls.call_hook(AFTER_SELFDESTRUCT)
        cls.__registry__.unregister(cls)
        logger.debug("Self-destructed class %s", cls.class_name())
        return cls

    # ========== 钩子 ==========

    @classmethod
    def add_hook(cls, tag: str, fn: Hook) -> Type['Model']:
        """
        注册钩子

        before-destroy / after-destroy 钩子接收被销毁对象的 id。

        Args:
            tag: 钩子标签
            fn: 回调函数
        """
        cls._hooks.add(tag, fn)
        return cls

    @classmethod
    def remove_hook(cls, tag: str, fn: Hook) -> Type['Model']:
        cls._hooks.remove(tag, fn)
        return cls

    @classmethod
    def call_hook(cls, tag: str, *args: Any) -> None:
        """按注册顺序调用钩子，任一钩子失败则其余钩子不再执行"""
        cls._hooks.call(tag, *args)

    @classmethod
    def listens_for(cls, tag: str) -> Callable[[Hook], Hook]:
        """装饰器方式注册钩子"""
        def decorator(fn: Hook) -> Hook:
            cls.add_hook(tag, fn)
            return fn
        return decorator

    # ========== 关联声明 ==========

    @classmethod
    def belongs_to(cls, target: Type['Model'], options: Any = None, **kwargs: Any) -> Type['Model']:
        """@see associations.belongs_to"""
        associations.belongs_to(cls, target, to_association_options(options, **kwargs))
        return cls

    @classmethod
    def has_one(cls, target: Type['Model'], options: Any = None, **kwargs: Any) -> Type['Model']:
        """@see associations.has_one"""
        associations.has_one(cls, target, to_association_options(options, **kwargs))
        return cls

    @classmethod
    def holds_one(cls, target: Type['Model'], options: Any = None, **kwargs: Any) -> Type['Model']:
        """@see associations.holds_one"""
        associations.holds_one(cls, target, to_association_options(options, **kwargs))
        return cls

    @classmethod
    def has_many(cls, target: Type['Model'], options: Any = None, **kwargs: Any) -> Type['Model']:
        """@see associations.has_many"""
        associations.has_many(cls, target, to_association_options(options, **kwargs))
        return cls

    @classmethod
    def has_and_belongs_to_many(cls, target: Type['Model'], options: Any = None, **kwargs: Any) -> Type['Model']:
        """@see associations.has_and_belongs_to_many"""
        associations.has_and_belongs_to_many(cls, target, to_association_options(options, **kwargs))
        return cls

    # ========== 对象生命周期（类方法） ==========

    @classmethod
    def instantiate(cls: Type[M], row: Optional[Row]) -> Optional[M]:
        """
        按存储读出的一行构造实例

        该行被视为已持久化，实例拥有有效 id。不要用它构造任意对象，使用 new()。
        """
        if row is None:
            return None
        obj = cls()
        obj._persisted.update(cls._decode(row))
        return obj

    @classmethod
    def new(cls: Type[M], attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> M:
        """创建未保存的实例，等价于 cls(**attrs)"""
        values = dict(attrs or {})
        values.update(kwargs)
        return cls(**values)

    @classmethod
    def create(cls: Type[M], attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> M:
        """
        创建实例并保存到存储

        不属于存储列的属性不会写入，但仍保留在实例上。
        """
        return cls.new(attrs, **kwargs).save()

    @classmethod
    def create_all(cls: Type[M], items: Iterable[Mapping[str, Any]]) -> List[M]:
        """
        逐个创建并保存多个实例

        不保证在同一事务中完成，需要时用 transaction_do 包裹。
        """
        return [cls.create(attrs) for attrs in items]

    @classmethod
    def update_all(
        cls,
        values: Mapping[str, Any],
        criteria: Criteria = None,
        options: QueryOptionsArg = None
    ) -> Type['Model']:
        """更新匹配条件的记录，values 中不属于存储列的键被忽略"""
        columns = cls.attribute_types()
        assigns = {k: v for k, v in values.items() if k in columns}
        cls.connection().update(cls.table_name(), assigns, criteria)
        return cls

    @classmethod
    def delete_all(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> Type['Model']:
        """
        删除匹配条件的记录，不调用任何钩子

        关联依靠钩子维护一致性，直接使用该方法可能留下悬空引用。
        """
        cls.connection().delete(cls.table_name(), criteria)
        return cls

    @classmethod
    def destroy_all(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> Type['Model']:
        """
        销毁匹配条件的记录并调用钩子

        先解析出全部 id，按 id 顺序调用所有 before-destroy 钩子，
        再一次性删除，最后调用所有 after-destroy 钩子。
        """
        ids = cls.ids(criteria, options)
        if ids:
            for record_id in ids:
                cls.call_hook(BEFORE_DESTROY, record_id)
            cls.delete_all({PRIMARY_KEY: ids})
            for record_id in ids:
                cls.call_hook(AFTER_DESTROY, record_id)
            logger.debug("Destroyed %s ids=%s", cls.class_name(), ids)
        return cls

    @classmethod
    def transaction_do(cls, func: Callable[[], Any]) -> Type['Model']:
        """
        在存储事务中执行函数

        函数抛出异常时存储回滚到原状态，异常继续抛给调用方。不支持嵌套。
        """
        cls.connection().transaction_do(func)
        return cls

    @classmethod
    @contextmanager
    def transaction(cls) -> Generator[Store, None, None]:
        """事务上下文管理器"""
        with cls.connection().transaction() as store:
            yield store

    # ========== 查询 ==========

    @classmethod
    def first(cls: Type[M], criteria: Criteria = None, options: QueryOptionsArg = None) -> Optional[M]:
        """
        返回第一个匹配的实例

        Args:
            criteria: 主键值、原始谓词字符串或 {属性名: 值}
            options: 查询选项（order, limit, offset 等）

        Returns:
            实例，不存在时为 None
        """
        return cls.instantiate(cls.raw_first(criteria, options))

    @classmethod
    def all(cls: Type[M], criteria: Criteria = None, options: QueryOptionsArg = None) -> List[M]:
        """返回所有匹配的实例，可能为空列表"""
        return [cls.instantiate(row) for row in cls.raw_find(criteria, options)]

    @classmethod
    def raw_find(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> Iterator[Row]:
        """返回匹配行的惰性迭代器"""
        return cls.connection().find(cls.table_name(), criteria, options)

    @classmethod
    def raw_first(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> Optional[Row]:
        return cls.connection().first(cls.table_name(), criteria, options)

    @classmethod
    def count(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> int:
        return cls.connection().count(cls.table_name(), criteria, options)

    @classmethod
    def ids(cls, criteria: Criteria = None, options: QueryOptionsArg = None) -> List[Any]:
        """返回所有匹配记录的 id（升序）"""
        opts = to_query_options(options)
        if not opts.select:
            if opts.join:
                opts.select = f"{cls.connection().quote_identifier(cls.table_name())}.{PRIMARY_KEY}"
            else:
                opts.select = PRIMARY_KEY
        return sorted(row[PRIMARY_KEY] for row in cls.raw_find(criteria, opts))

    @classmethod
    def _decode(cls, row: Row) -> Dict[str, Any]:
        store = cls.connection()
        attr_types = {
            name: store.attribute_type_for(native)
            for name, native in cls.attribute_types().items()
        }
        return TypeRegistry.deserialize_row(row, attr_types)

    # ========== 属性访问 ==========

    @property
    def id(self) -> Any:
        """主键，首次插入前为 None，分配后不可修改"""
        return self._persisted.get(PRIMARY_KEY)

    def _read(self, name: str) -> Any:
        if name in self._locals:
            return self._locals[name]
        return self._persisted.get(name)

    def _write(self, name: str, value: Any, persist: bool) -> 'Model':
        if self._frozen:
            raise FrozenObjectError(type(self).class_name(), self.id)
        self._locals[name] = value
        if persist:
            self.save()
        return self

    def _set_persisted(self, name: str, value: Any) -> None:
        self._persisted[name] = value
        self._locals.pop(name, None)

    def _promote(self, names: Iterable[str]) -> None:
        for name in names:
            if name in self._locals:
                self._persisted[name] = self._locals.pop(name)

    def _defer(self, fn: Callable[[], Any]) -> None:
        """登记在下次 save() 写入成功后执行的操作"""
        self._deferred.append(fn)

    def get_attribute(self, name: str, options: QueryOptionsArg = None) -> Any:
        """
        读取属性

        本地值优先，其次为持久值，都没有时为 None。关联属性的 getter 接受查询选项。

        Raises:
            UnknownAttributeError: 属性未声明
        """
        accessor = type(self)._accessors.get(name)
        if accessor is None:
            raise UnknownAttributeError(type(self).class_name(), name)
        return accessor.getter(self, options)

    def set_attribute(self, name: str, value: Any, persist: bool = True) -> 'Model':
        """
        设置属性，默认立即保存（persist=False 时只修改本地值）

        Raises:
            UnknownAttributeError: 属性未声明或只读
            FrozenObjectError: 对象已冻结
        """
        cls = type(self)
        accessor = cls._accessors.get(name)
        if accessor is None:
            raise UnknownAttributeError(cls.class_name(), name)
        if accessor.setter is None:
            raise UnknownAttributeError(cls.class_name(), name, "attribute is read-only")
        if self._frozen:
            raise FrozenObjectError(cls.class_name(), self.id)
        return accessor.setter(self, value, persist)

    def add_to(self, name: str, value: Any) -> 'Model':
        """调用集合属性的添加函数，等价于 obj.<name>_add(value)"""
        adder = type(self)._adders.get(name)
        if adder is None:
            raise UnknownAttributeError(type(self).class_name(), f"{name}{ADD_SUFFIX}")
        if self._frozen:
            raise FrozenObjectError(type(self).class_name(), self.id)
        return adder(self, value)

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        cls = type(self)
        accessor = cls._accessors.get(name)
        if accessor is not None:
            return accessor.getter(self, None)
        if name.endswith(ADD_SUFFIX) and name[:-len(ADD_SUFFIX)] in cls._adders:
            return partial(self.add_to, name[:-len(ADD_SUFFIX)])
        local_values = self.__dict__.get('_locals')
        if local_values is not None and name in local_values:
            return local_values[name]
        raise AttributeError(f"'{cls.__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            object.__setattr__(self, name, value)
            return
        # 属性赋值只修改本地值，调用 save() 写入存储
        self.set_attribute(name, value, persist=False)

    # ========== 对象生命周期（实例方法） ==========

    def is_created(self) -> bool:
        """对象是否曾在存储中创建过"""
        return self.id is not None

    def is_present(self) -> bool:
        """对象是否仍存在于存储中"""
        if not self.is_created():
            return False
        return type(self).count(self.id) == 1

    def is_dirty(self) -> bool:
        """未创建、有未保存的本地值或有待执行的关联写入时需要保存"""
        return not self.is_created() or bool(self._locals) or bool(self._deferred)

    def is_frozen(self) -> bool:
        return self._frozen

    def save(self: M) -> M:
        """
        保存对象：未创建时插入，否则更新

        只有属于存储列的本地值会被写入并提升为持久值。

        Raises:
            FrozenObjectError: 对象已冻结
        """
        if self._frozen:
            raise FrozenObjectError(type(self).class_name(), self.id)
        if self.is_created():
            self._update()
        else:
            self._create()
        deferred, self._deferred = self._deferred, []
        for fn in deferred:
            fn()
        return self

    def _writable_locals(self) -> Dict[str, Any]:
        columns = type(self).attribute_types()
        return {
            k: v for k, v in self._locals.items()
            if k in columns and k != PRIMARY_KEY
        }

    def _create(self: M) -> M:
        cls = type(self)
        assigns = self._writable_locals()
        new_id = cls.connection().insert(cls.table_name(), assigns)
        self._set_persisted(PRIMARY_KEY, new_id)
        self._promote(assigns)
        logger.debug("Inserted %s id=%s", cls.class_name(), new_id)
        return self

    def _update(self: M) -> M:
        cls = type(self)
        assigns = self._writable_locals()
        if assigns:
            cls.connection().update(cls.table_name(), assigns, self.id)
            self._promote(assigns)
        return self

    def refresh(self: M) -> Optional[M]:
        """
        从存储重新读取属性，覆盖同名的本地值

        Returns:
            刷新后的对象；未创建或已不在存储中时为 None
        """
        if not self.is_created():
            return None
        cls = type(self)
        row = cls.raw_first(self.id)
        if row is None:
            return None
        for name, value in cls._decode(row).items():
            self._set_persisted(name, value)
        return self

    def destroy(self: M) -> M:
        """
        删除存储中的记录（调用销毁钩子）并冻结对象

        已冻结的对象直接返回，避免钩子之间的循环调用。
        """
        if self._frozen:
            return self
        if self.is_created():
            type(self).destroy_all(self.id)
        self.freeze()
        return self

    def freeze(self: M) -> M:
        """冻结对象，之后任何属性设置都会抛出 FrozenObjectError"""
        self._frozen = True
        return self

    def to_dict(self) -> Dict[str, Any]:
        """持久值叠加本地值"""
        result = dict(self._persisted)
        result.update(self._locals)
        return result

    def __repr__(self) -> str:
        cls = type(self)
        values = ', '.join(
            f"{k}={v!r}" for k, v in self.to_dict().items() if k != PRIMARY_KEY
        )
        suffix = ', frozen' if self._frozen else ''
        return f"{cls.class_name()}(id={self.id!r}{', ' if values else ''}{values}{suffix})"


Model.__registry__ = ClassRegistry()
Model.__declarative_base__ = Model


def declarative_base(store: Optional[Store] = None, name: str = 'Base') -> Type[Model]:
    """
    创建绑定到存储的模型基类

    通过该基类 extend() 的类默认使用此存储，并登记在基类独有的类注册表中。

    Args:
        store: 存储实例，None 时由 default_connection() 按默认存储名创建
        name: 基类名称

    Returns:
        模型基类
    """
    base: Type[Model] = type(name, (Model,), {
        '__module__': Model.__module__,
        '__store__': store,
        '__registry__': ClassRegistry(),
        '_accessors': {},
        '_adders': {},
        '_hooks': HookRegistry(),
        '_schema_lock': threading.RLock(),
    })
    base.__declarative_base__ = base
    return base
