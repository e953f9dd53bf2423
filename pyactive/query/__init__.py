"""
pyactive 查询子系统

把查询条件与选项编译为 SQL 语句
"""

from .compiler import (
    SQLDialect,
    CompiledQuery,
    QueryCompiler,
    compile_select,
    compile_where,
)

__all__ = [
    'SQLDialect',
    'CompiledQuery',
    'QueryCompiler',
    'compile_select',
    'compile_where',
]
