"""
pyactive 关联

在两个记录类之间建立关联：添加外键列、注入关联属性的访问器，
并通过 before-destroy 钩子维护引用一致性。

关联类型：
- belongs_to：外键在声明方，指向目标
- has_one：外键在目标，指向声明方
- holds_one：外键在声明方，声明方"拥有"目标
- has_many：外键在目标，声明方拥有多个目标（只读属性 + <attr>_add）
- has_and_belongs_to_many：通过自动创建的连接类实现多对多

被引用的记录销毁时，依赖方的外键置为 0（nullify，默认），
或依赖记录被级联销毁（dependency='destroy'）。
"""

import logging
from typing import Any, Callable, List, Optional, Type, TYPE_CHECKING

from .hooks import BEFORE_DESTROY, AFTER_SELFDESTRUCT
from .types import AttributeType
from ..common.exceptions import ConfigurationError, ValidationError
from ..common.options import (
    AssociationOptions,
    ExtendOptions,
    JoinOptions,
    QueryOptions,
    to_query_options,
)

if TYPE_CHECKING:
    from .orm import Model

logger = logging.getLogger(__name__)

# 外键"无引用"哨兵值
NO_REFERENCE = 0


def _nullify_hook(dependent: Type['Model'], foreign_key: str) -> Callable[[Any], None]:
    def nullify_references(record_id: Any) -> None:
        logger.debug("Nullify %s.%s = %s", dependent.class_name(), foreign_key, record_id)
        dependent.update_all({foreign_key: NO_REFERENCE}, {foreign_key: record_id})
    return nullify_references


def _destroy_hook(dependent: Type['Model'], foreign_key: str) -> Callable[[Any], None]:
    def destroy_dependents(record_id: Any) -> None:
        logger.debug("Cascade destroy %s where %s = %s", dependent.class_name(), foreign_key, record_id)
        dependent.destroy_all({foreign_key: record_id})
    return destroy_dependents


def _dependents_hook(
    dependent: Type['Model'],
    foreign_key: str,
    options: AssociationOptions
) -> Callable[[Any], None]:
    """被引用记录销毁时处理依赖方的钩子"""
    if options.is_destroy:
        return _destroy_hook(dependent, foreign_key)
    return _nullify_hook(dependent, foreign_key)


def _reference_id(value: Optional['Model']) -> Any:
    """关联赋值时的外键值：None 对应哨兵值 0"""
    if value is None:
        return NO_REFERENCE
    record_id = value.id
    if record_id is None:
        raise ValidationError(
            f"Can not reference an unsaved {type(value).class_name()}; save it first"
        )
    return record_id


def belongs_to(owner: Type['Model'], target: Type['Model'], options: AssociationOptions) -> None:
    """
    声明 owner belongs_to target

    owner 上添加 integer 外键 target.foreign_key(options)，属性名为
    target.attribute_key(options)。目标被销毁时置空或级联销毁 owner 记录。

    Example:
        Person.belongs_to(Address)
        jim.address = gotham     # jim.address_id = gotham.id，立即保存
        jim.address = None       # jim.address_id = 0
    """
    foreign_key = target.foreign_key(options)
    attr_name = target.attribute_key(options)
    owner.add_attribute(foreign_key, AttributeType.INTEGER)
    target.add_hook(BEFORE_DESTROY, _dependents_hook(owner, foreign_key, options))

    def getter(obj: 'Model', query_options: Any = None) -> Optional['Model']:
        ref = obj.get_attribute(foreign_key)
        if not ref:
            return None
        return target.first(ref, query_options)

    def setter(obj: 'Model', value: Optional['Model'], persist: bool = True) -> 'Model':
        return obj.set_attribute(foreign_key, _reference_id(value), persist)

    owner.inject_accessor(attr_name, getter, setter)


def has_one(owner: Type['Model'], target: Type['Model'], options: AssociationOptions) -> None:
    """
    声明 owner has_one target

    target 上添加 integer 外键 owner.foreign_key(options)。owner 被销毁时
    置空或级联销毁 target 记录。

    persist 为真时立即写入 target，被替换的旧 target 按 dependency 置空或销毁。
    属性赋值（persist=False）或 owner 尚未创建时，写入推迟到 owner 下次 save()。
    """
    foreign_key = owner.foreign_key(options)
    attr_name = target.attribute_key(options)
    target.add_attribute(foreign_key, AttributeType.INTEGER)
    owner.add_hook(BEFORE_DESTROY, _dependents_hook(target, foreign_key, options))

    def getter(obj: 'Model', query_options: Any = None) -> Optional['Model']:
        if not obj.is_created():
            return None
        return target.first({foreign_key: obj.id}, query_options)

    def setter(obj: 'Model', value: Optional['Model'], persist: bool = True) -> 'Model':
        if not obj.is_created() or not persist:
            obj._defer(lambda: setter(obj, value))
            return obj
        old = getter(obj)
        if value is not None:
            value.set_attribute(foreign_key, obj.id)
        if old is not None and (value is None or old.id != value.id):
            if options.is_destroy:
                old.destroy()
            else:
                old.set_attribute(foreign_key, NO_REFERENCE)
        return obj

    owner.inject_accessor(attr_name, getter, setter)


def holds_one(owner: Type['Model'], target: Type['Model'], options: AssociationOptions) -> None:
    """
    声明 owner holds_one target

    外键 target.foreign_key(options) 在 owner 上。target 被销毁时总是置空
    owner 的外键；dependency='destroy' 时 owner 被销毁或改指其它 target，
    原 target 被销毁。属性赋值时，原 target 在 owner 下次 save() 之后才销毁。
    """
    foreign_key = target.foreign_key(options)
    attr_name = target.attribute_key(options)
    owner.add_attribute(foreign_key, AttributeType.INTEGER)

    if options.is_destroy:
        def destroy_held(record_id: Any) -> None:
            row = owner.raw_first(record_id, QueryOptions(select=foreign_key))
            held = row.get(foreign_key) if row else None
            if held:
                logger.debug("Cascade destroy %s id=%s held by %s", target.class_name(), held, owner.class_name())
                target.destroy_all(held)

        owner.add_hook(BEFORE_DESTROY, destroy_held)
    target.add_hook(BEFORE_DESTROY, _nullify_hook(owner, foreign_key))

    def getter(obj: 'Model', query_options: Any = None) -> Optional['Model']:
        ref = obj.get_attribute(foreign_key)
        if not ref:
            return None
        return target.first(ref, query_options)

    def setter(obj: 'Model', value: Optional['Model'], persist: bool = True) -> 'Model':
        # 属性赋值时待销毁的是存储中当前持有的 target
        old = obj.get_attribute(foreign_key) if persist else obj._persisted.get(foreign_key)
        new = _reference_id(value)
        obj.set_attribute(foreign_key, new, persist)
        if not options.is_destroy or not old or old == new:
            return obj
        if persist:
            target.destroy_all(old)
        else:
            def destroy_replaced() -> None:
                # 保存前又改回原 target 时不销毁
                if obj.get_attribute(foreign_key) != old:
                    target.destroy_all(old)
            obj._defer(destroy_replaced)
        return obj

    owner.inject_accessor(attr_name, getter, setter)


def has_many(owner: Type['Model'], target: Type['Model'], options: AssociationOptions) -> None:
    """
    声明 owner has_many target

    target 上添加 integer 外键 owner.foreign_key(options)。集合属性只读，
    通过 obj.<attr>_add(value) 添加成员。
    """
    foreign_key = owner.foreign_key(options)
    attr_name = target.attribute_key(options)
    target.add_attribute(foreign_key, AttributeType.INTEGER)
    owner.add_hook(BEFORE_DESTROY, _dependents_hook(target, foreign_key, options))

    def getter(obj: 'Model', query_options: Any = None) -> List['Model']:
        if not obj.is_created():
            return []
        return target.all({foreign_key: obj.id}, query_options)

    def adder(obj: 'Model', value: 'Model') -> 'Model':
        if not obj.is_created():
            obj._defer(lambda: adder(obj, value))
            return obj
        value.set_attribute(foreign_key, obj.id)
        return obj

    owner.inject_accessor(attr_name, getter)
    owner.inject_adder(attr_name, adder)


def _join_class(
    owner: Type['Model'],
    target: Type['Model'],
    owner_fk: str,
    target_fk: str
) -> Type['Model']:
    """两个类共用的连接类，类名为两个类名排序后拼接"""
    name = ''.join(sorted([owner.class_name(), target.class_name()]))
    base = owner.__declarative_base__
    store = owner.connection()
    existing = base.__registry__.get(name)
    if existing is not None and existing.connection() is store \
            and store.table_exists(existing.table_name()):
        return existing
    return base.extend(
        name,
        {owner_fk: AttributeType.INTEGER, target_fk: AttributeType.INTEGER},
        ExtendOptions(store=store),
    )


def has_and_belongs_to_many(
    owner: Type['Model'],
    target: Type['Model'],
    options: AssociationOptions
) -> None:
    """
    声明 owner has_and_belongs_to_many target

    两个类必须使用同一个存储。连接类的表包含 owner.foreign_key() 与
    target.foreign_key() 两列；任一端 self_destruct 时连接表也被删除。
    owner 被销毁时删除其连接行，不会级联到另一端。

    Example:
        Developer.has_and_belongs_to_many(Project)
        Project.has_and_belongs_to_many(Developer)
        jim.projects_add(luasql)   # 重复添加不会产生重复连接行
    """
    store = owner.connection()
    if store is not target.connection():
        raise ConfigurationError(
            f"Classes {owner.class_name()} and {target.class_name()} must share a store "
            f"for a many-to-many association"
        )
    owner_fk = owner.foreign_key()
    target_fk = target.foreign_key()
    if owner_fk == target_fk:
        raise ConfigurationError(
            f"Many-to-many association of {owner.class_name()} with itself is not supported"
        )
    attr_name = target.attribute_key(options)
    join_class = _join_class(owner, target, owner_fk, target_fk)
    join_table = join_class.table_name()
    join_options = JoinOptions(table_name=join_table, on={'id': target_fk})

    for endpoint in (owner, target):
        if join_class.self_destruct not in endpoint._hooks.listeners(AFTER_SELFDESTRUCT):
            endpoint.add_hook(AFTER_SELFDESTRUCT, join_class.self_destruct)
    def destroy_join_rows(record_id: Any) -> None:
        # 另一端 self_destruct 后连接表可能已被删除
        if store.table_exists(join_table):
            join_class.destroy_all({owner_fk: record_id})

    owner.add_hook(BEFORE_DESTROY, destroy_join_rows)

    def getter(obj: 'Model', query_options: Any = None) -> List['Model']:
        if not obj.is_created():
            return []
        opts = to_query_options(query_options)
        opts.join = join_options
        if not opts.select:
            opts.select = f"{store.quote_identifier(target.table_name())}.*"
        return target.all({f"{store.quote_identifier(join_table)}.{owner_fk}": obj.id}, opts)

    def adder(obj: 'Model', value: 'Model') -> 'Model':
        if not obj.is_created():
            obj._defer(lambda: adder(obj, value))
            return obj
        pair = {owner_fk: obj.id, target_fk: _reference_id(value)}
        if join_class.count(pair) == 0:
            join_class.create(pair)
        return obj

    owner.inject_accessor(attr_name, getter)
    owner.inject_adder(attr_name, adder)
