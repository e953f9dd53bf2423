"""
pyactive 类型系统

定义属性类型标签，以及 Python 值与存储值之间的转换
"""

import base64
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..common.exceptions import ConfigurationError, ConversionError


class AttributeType(str, Enum):
    """属性类型标签"""
    PK = 'pk'
    STRING = 'string'
    TEXT = 'text'
    INTEGER = 'integer'
    FLOAT = 'float'
    DECIMAL = 'decimal'
    TIMESTAMP = 'timestamp'
    DATE = 'date'
    BINARY = 'binary'
    BOOLEAN = 'boolean'

    @classmethod
    def parse(cls, value: Any) -> 'AttributeType':
        """
        解析类型标签

        Args:
            value: AttributeType 或其字符串值

        Returns:
            对应的 AttributeType

        Raises:
            ConfigurationError: 未知类型标签
        """
        if isinstance(value, AttributeType):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Unknown attribute type '{value}'. "
                f"Valid types: {', '.join(t.value for t in cls)}"
            ) from None


def _deserialize_bytes(value: Any) -> bytes:
    """反序列化 bytes"""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return base64.b64decode(value)


def _deserialize_datetime(value: Any) -> datetime:
    """反序列化 datetime"""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _deserialize_date(value: Any) -> date:
    """反序列化 date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _deserialize_bool(value: Any) -> bool:
    """反序列化 bool"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 't', 'yes')
    return bool(value)


def _deserialize_decimal(value: Any) -> Decimal:
    """反序列化 Decimal，浮点值先转为字符串以避免二进制误差"""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ConversionError(f"Cannot convert {value!r} to decimal") from e


# 存储值反序列化函数注册表
_DESERIALIZERS: Dict[AttributeType, Callable[[Any], Any]] = {
    AttributeType.BINARY: _deserialize_bytes,
    AttributeType.TIMESTAMP: _deserialize_datetime,
    AttributeType.DATE: _deserialize_date,
    AttributeType.BOOLEAN: _deserialize_bool,
    AttributeType.DECIMAL: _deserialize_decimal,
}


class TypeRegistry:
    """值转换注册表"""

    @classmethod
    def deserialize(cls, value: Any, attr_type: Optional[AttributeType]) -> Any:
        """
        将存储读出的值转换为属性类型对应的 Python 值

        Args:
            value: 存储返回的原始值
            attr_type: 列的属性类型，未知时为 None（原样返回）

        Returns:
            转换后的值
        """
        if value is None or attr_type is None:
            return value
        deserializer = _DESERIALIZERS.get(attr_type)
        if deserializer is None:
            return value
        try:
            return deserializer(value)
        except (TypeError, ValueError) as e:
            raise ConversionError(f"Cannot convert {value!r} to {attr_type.value}") from e

    @classmethod
    def deserialize_row(
        cls,
        row: Dict[str, Any],
        attr_types: Dict[str, Optional[AttributeType]]
    ) -> Dict[str, Any]:
        """按列类型转换整行数据"""
        return {k: cls.deserialize(v, attr_types.get(k)) for k, v in row.items()}

    @classmethod
    def register(cls, attr_type: AttributeType, deserializer: Callable[[Any], Any]) -> None:
        """注册自定义反序列化函数"""
        _DESERIALIZERS[attr_type] = deserializer
