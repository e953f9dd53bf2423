"""
pyactive 存储引擎注册表

提供引擎注册、发现和实例化功能
"""

from typing import Dict, List, Optional, Type

from .base import Store
from .backend_sqlite import SQLiteStore
from ..common.exceptions import ConfigurationError
from ..common.options import StoreOptions, get_default_store_options


class StoreRegistry:
    """存储引擎注册表"""

    _engines: Dict[str, Type[Store]] = {}

    @classmethod
    def register(cls, store_class: Type[Store]) -> Type[Store]:
        """注册存储引擎，可作为类装饰器使用"""
        if not store_class.ENGINE_NAME:
            raise ConfigurationError(f"{store_class.__name__} does not define ENGINE_NAME")
        cls._engines[store_class.ENGINE_NAME] = store_class
        return store_class

    @classmethod
    def get(cls, engine: str) -> Type[Store]:
        if engine not in cls._engines:
            raise ConfigurationError(
                f"Unknown store engine '{engine}'. "
                f"Available engines: {', '.join(sorted(cls._engines))}"
            )
        return cls._engines[engine]

    @classmethod
    def engines(cls) -> List[str]:
        return sorted(cls._engines)


StoreRegistry.register(SQLiteStore)


def get_store(
    engine: str = 'sqlite',
    source: Optional[str] = None,
    options: Optional[StoreOptions] = None
) -> Store:
    """
    创建存储实例

    Args:
        engine: 引擎名称
        source: 存储名（未提供 options 时使用）
        options: 强类型的存储配置选项

    Returns:
        已连接的存储实例
    """
    store_class = StoreRegistry.get(engine)
    if options is None:
        options = get_default_store_options(engine, source)
    return store_class(options)  # type: ignore[call-arg]


def get_available_engines() -> List[str]:
    """返回已注册的引擎名称"""
    return StoreRegistry.engines()
