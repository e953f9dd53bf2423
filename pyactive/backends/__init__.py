"""
pyactive 存储后端模块

提供存储契约、通用 SQL 存储、SQLite 引擎和引擎注册表
"""

from .base import Store
from .sql import SQLStore
from .backend_sqlite import SQLiteStore
from .registry import StoreRegistry, get_store, get_available_engines

__all__ = [
    'Store',
    'SQLStore',
    'SQLiteStore',
    'StoreRegistry',
    'get_store',
    'get_available_engines',
]
