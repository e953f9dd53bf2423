"""
pyactive 异常定义
"""

from typing import Any, Optional


class PyactiveException(Exception):
    """pyactive 基础异常类"""


class ConfigurationError(PyactiveException):
    """类定义、关联声明或查询选项配置错误"""


class SchemaError(ConfigurationError):
    """声明的属性类型与存储中已有列类型不一致"""
    def __init__(self, table_name: str, column_name: str, declared: Any, stored: Any):
        self.table_name = table_name
        self.column_name = column_name
        self.declared = declared
        self.stored = stored
        super().__init__(
            f"Attribute '{column_name}' of table '{table_name}' is defined as "
            f"'{stored}' in store but declared as '{declared}'"
        )


class UnknownAttributeError(PyactiveException):
    """访问未声明的属性"""
    def __init__(self, class_name: str, attr_name: str, reason: Optional[str] = None):
        self.class_name = class_name
        self.attr_name = attr_name
        message = f"No attribute named '{attr_name}' in class '{class_name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FrozenObjectError(PyactiveException):
    """对象已冻结（通常由 destroy 引起），不可再修改"""
    def __init__(self, class_name: str, pk: Any = None):
        self.class_name = class_name
        self.pk = pk
        super().__init__(f"Object {class_name}(id={pk!r}) is frozen and can not be modified")


class ValidationError(PyactiveException):
    """数据验证异常"""


class ConversionError(ValidationError):
    """值无法转换为存储字面量（包括空的 IN 集合）"""


class StoreError(PyactiveException):
    """存储层执行或连接失败"""


class TableNotFoundError(StoreError):
    """表不存在异常"""
    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' not found")


class TransactionError(StoreError):
    """事务异常"""
