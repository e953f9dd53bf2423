"""
pyactive 核心模块

包含记录类、关联、钩子与类型系统
"""

from .orm import (
    Model,
    Accessor,
    ClassRegistry,
    declarative_base,
    PRIMARY_KEY,
)
from .associations import NO_REFERENCE
from .hooks import (
    HookRegistry,
    BEFORE_DESTROY,
    AFTER_DESTROY,
    BEFORE_SELFDESTRUCT,
    AFTER_SELFDESTRUCT,
    RESERVED_HOOKS,
)
from .types import AttributeType, TypeRegistry

__all__ = [
    # ORM
    'Model',
    'Accessor',
    'ClassRegistry',
    'declarative_base',
    'PRIMARY_KEY',
    'NO_REFERENCE',
    # Hooks
    'HookRegistry',
    'BEFORE_DESTROY',
    'AFTER_DESTROY',
    'BEFORE_SELFDESTRUCT',
    'AFTER_SELFDESTRUCT',
    'RESERVED_HOOKS',
    # Types
    'AttributeType',
    'TypeRegistry',
]
