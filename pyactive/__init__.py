"""
pyactive - 运行时声明的对象关系持久化库

使用方式：
    from pyactive import SQLiteStore, declarative_base

    Base = declarative_base(SQLiteStore.connect(':memory:'))
    Person = Base.extend('Person', {'name': 'string'})
    Address = Base.extend('Address', {'street': 'string'})
    Person.belongs_to(Address)

    jim = Person.create(name='Jim', address=Address.create(street='Wayne Manor'))
    jim.address.street  # 'Wayne Manor'
"""

from .core import (
    Model,
    ClassRegistry,
    declarative_base,
    AttributeType,
    HookRegistry,
    BEFORE_DESTROY,
    AFTER_DESTROY,
    BEFORE_SELFDESTRUCT,
    AFTER_SELFDESTRUCT,
    NO_REFERENCE,
)
from .backends import Store, SQLStore, SQLiteStore, get_store, get_available_engines
from .query import QueryCompiler, compile_select, compile_where
from .common.options import (
    SqliteStoreOptions,
    ExtendOptions,
    JoinOptions,
    QueryOptions,
    AssociationOptions,
    Dependency,
)
from .common.exceptions import (
    PyactiveException,
    ConfigurationError,
    SchemaError,
    UnknownAttributeError,
    FrozenObjectError,
    ValidationError,
    ConversionError,
    StoreError,
    TableNotFoundError,
    TransactionError,
)

__version__ = '0.1.0'

__all__ = [
    # ORM
    'Model',
    'ClassRegistry',
    'declarative_base',
    'AttributeType',
    'NO_REFERENCE',
    # Hooks
    'HookRegistry',
    'BEFORE_DESTROY',
    'AFTER_DESTROY',
    'BEFORE_SELFDESTRUCT',
    'AFTER_SELFDESTRUCT',
    # Stores
    'Store',
    'SQLStore',
    'SQLiteStore',
    'get_store',
    'get_available_engines',
    # Query
    'QueryCompiler',
    'compile_select',
    'compile_where',
    # Options
    'SqliteStoreOptions',
    'ExtendOptions',
    'JoinOptions',
    'QueryOptions',
    'AssociationOptions',
    'Dependency',
    # Exceptions
    'PyactiveException',
    'ConfigurationError',
    'SchemaError',
    'UnknownAttributeError',
    'FrozenObjectError',
    'ValidationError',
    'ConversionError',
    'StoreError',
    'TableNotFoundError',
    'TransactionError',
]
