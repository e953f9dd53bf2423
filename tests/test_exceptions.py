"""
异常处理测试

测试方法：
- 等价类划分：各异常类型的触发条件
- 错误推断：异常继承关系和属性

覆盖范围：
- 异常继承层次结构
- 各异常类的触发条件
- 异常消息和属性
"""

from typing import Type

import pytest

from pyactive import (
    Model,
    SQLiteStore,
    # 所有异常类
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


class TestHierarchy:
    """异常继承关系测试"""

    @pytest.mark.parametrize('exc_class', [
        ConfigurationError,
        SchemaError,
        UnknownAttributeError,
        FrozenObjectError,
        ValidationError,
        ConversionError,
        StoreError,
        TableNotFoundError,
        TransactionError,
    ])
    def test_all_derive_from_base(self, exc_class: Type[Exception]) -> None:
        assert issubclass(exc_class, PyactiveException)

    def test_specific_parents(self) -> None:
        assert issubclass(SchemaError, ConfigurationError)
        assert issubclass(ConversionError, ValidationError)
        assert issubclass(TableNotFoundError, StoreError)
        assert issubclass(TransactionError, StoreError)


class TestAttributes:
    """异常属性与消息测试"""

    def test_schema_error(self) -> None:
        error = SchemaError('person', 'age', 'string', 'INTEGER')
        assert error.table_name == 'person'
        assert error.declared == 'string'
        assert 'age' in str(error)
        assert 'INTEGER' in str(error)

    def test_unknown_attribute_error(self) -> None:
        error = UnknownAttributeError('Person', 'height')
        assert error.class_name == 'Person'
        assert error.attr_name == 'height'
        assert str(error) == "No attribute named 'height' in class 'Person'"

    def test_unknown_attribute_error_with_reason(self) -> None:
        error = UnknownAttributeError('Person', 'id', 'attribute is read-only')
        assert str(error).endswith(': attribute is read-only')

    def test_frozen_object_error(self) -> None:
        error = FrozenObjectError('Person', 3)
        assert error.pk == 3
        assert 'Person(id=3)' in str(error)

    def test_table_not_found_error(self) -> None:
        error = TableNotFoundError('people')
        assert error.table_name == 'people'
        assert 'people' in str(error)


class TestTriggers:
    """异常触发场景测试"""

    def test_store_error_chains_driver_error(self, store: SQLiteStore) -> None:
        with pytest.raises(StoreError) as exc_info:
            store.execute("SELECT * FROM nothing")
        assert exc_info.value.__cause__ is not None

    def test_conversion_error_on_insert(self, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        with pytest.raises(ConversionError):
            Person.create(name=object())
        assert Person.count() == 0

    def test_conversion_error_on_empty_in(self, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        with pytest.raises(ConversionError):
            Person.all({'id': []})

    def test_catch_all_with_base_class(self, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        jim = Person.create(name='Jim')
        jim.destroy()
        with pytest.raises(PyactiveException):
            jim.set_attribute('name', 'Jimmy')
