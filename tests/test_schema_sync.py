"""
类声明与 schema 同步测试

测试 extend() 的表创建、列增补、类型冲突检测、命名规则与 self_destruct。
"""

from pathlib import Path
from typing import Type

import pytest

from pyactive import (
    ConfigurationError,
    ExtendOptions,
    AssociationOptions,
    Model,
    SchemaError,
    SQLiteStore,
    declarative_base,
)


class TestExtend:
    """extend() 测试"""

    def test_creates_table_with_primary_key(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string', 'age': 'integer'})

        assert store.table_exists('person')
        assert Person.attribute_types() == {'id': 'INTEGER', 'name': 'TEXT', 'age': 'INTEGER'}
        assert Person.class_name() == 'Person'
        assert Person.__name__ == 'Person'

    def test_requires_name(self, Base: Type[Model]) -> None:
        with pytest.raises(ConfigurationError):
            Base.extend('', {'name': 'string'})

    def test_rejects_invalid_definition(self, Base: Type[Model]) -> None:
        with pytest.raises(ConfigurationError):
            Base.extend('Person', {'name': 42})

    def test_rejects_unknown_type(self, Base: Type[Model]) -> None:
        with pytest.raises(ConfigurationError):
            Base.extend('Person', {'name': 'varchar'})

    def test_callable_overrides_table_name(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {
            'table_name': lambda cls: 'people',
            'name': 'string',
        })

        assert Person.table_name() == 'people'
        assert store.table_exists('people')
        assert not store.table_exists('person')

    def test_table_name_option(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'}, ExtendOptions(table_name='folks'))
        assert Person.table_name() == 'folks'
        assert store.table_exists('folks')

    def test_existing_table_gains_missing_columns(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Base.extend('Person', {'name': 'string'})
        Person = Base.extend('Person', {'name': 'string', 'age': 'integer'})

        assert Person.attribute_types() == {'id': 'INTEGER', 'name': 'TEXT', 'age': 'INTEGER'}

    def test_columns_are_never_removed(self, Base: Type[Model]) -> None:
        Base.extend('Person', {'name': 'string', 'age': 'integer'})
        Person = Base.extend('Person', {'name': 'string'})

        assert Person.has_attribute('age')

    def test_type_conflict(self, Base: Type[Model]) -> None:
        Base.extend('Person', {'age': 'integer'})
        with pytest.raises(SchemaError) as exc_info:
            Base.extend('Person', {'age': 'string'})
        assert exc_info.value.column_name == 'age'
        assert exc_info.value.stored == 'INTEGER'

    def test_string_and_text_share_native_type(self, Base: Type[Model]) -> None:
        Base.extend('Person', {'bio': 'text'})
        Person = Base.extend('Person', {'bio': 'string'})
        assert Person.attribute_type('bio') == 'TEXT'

    def test_existing_data_survives_redeclaration(self, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        Person.create(name='Jim')

        Person = Base.extend('Person', {'name': 'string', 'age': 'integer'})

        jim = Person.first({'name': 'Jim'})
        assert jim.age is None
        jim.set_attribute('age', 21)
        assert Person.first(jim.id).age == 21

    def test_extend_from_record_class_shares_store(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        Employee = Person.extend('Employee', {'salary': 'decimal'})

        assert Employee.connection() is store
        assert issubclass(Employee, Person)
        assert Employee.attribute_types() == {'id': 'INTEGER', 'salary': 'DECIMAL'}

    def test_keyword_class_name(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Order = Base.extend('Order', {'total': 'integer'})
        assert store.table_exists('order')
        assert Order.attribute_types() == {'id': 'INTEGER', 'total': 'INTEGER'}

        order = Order.create(total=10)
        order.total = 12
        order.save()
        assert Order.first(order.id).total == 12
        assert Order.count() == 1
        assert Order.ids() == [order.id]

        order.destroy()
        assert Order.count() == 0

        Order.add_attribute('placed_on', 'date')
        assert store.column_types('order')['placed_on'] == 'DATE'


class TestStoreResolution:
    """存储选择顺序测试"""

    def test_explicit_store_wins(self, store: SQLiteStore, Base: Type[Model]) -> None:
        other = SQLiteStore.connect(':memory:')
        try:
            Person = Base.extend('Person', {'name': 'string'}, ExtendOptions(store=other))
            assert Person.connection() is other
            assert not store.table_exists('person')
        finally:
            other.close()

    def test_source_option(self, temp_file: Path, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'}, ExtendOptions(source=str(temp_file)))
        try:
            assert Person.connection().source == str(temp_file)
            assert temp_file.exists()
        finally:
            Person.connection().close()

    def test_default_connection_override(self, temp_dir: Path) -> None:
        Base = declarative_base()
        source = str(temp_dir / 'custom.db')
        Base.default_source = classmethod(lambda cls: source)  # type: ignore[assignment]

        Person = Base.extend('Person', {'name': 'string'})
        try:
            assert Person.connection().source == source
        finally:
            Person.connection().close()

    def test_unbound_model_cannot_instantiate(self) -> None:
        with pytest.raises(ConfigurationError):
            Model()
        with pytest.raises(ConfigurationError):
            declarative_base(None)()


class TestNaming:
    """命名规则测试"""

    @pytest.fixture
    def Person(self, Base: Type[Model]) -> Type[Model]:
        return Base.extend('Person', {'name': 'string'})

    def test_attribute_key(self, Person: Type[Model]) -> None:
        assert Person.attribute_key() == 'person'
        assert Person.attribute_key(AssociationOptions(attribute_name='owner')) == 'owner'

    def test_foreign_key(self, Person: Type[Model]) -> None:
        assert Person.foreign_key() == 'person_id'
        assert Person.foreign_key(AssociationOptions(attribute_name='Owner')) == 'owner_person_id'
        assert Person.foreign_key(AssociationOptions(foreign_key='boss')) == 'boss'

    def test_has_attribute(self, Person: Type[Model]) -> None:
        assert Person.has_attribute('name')
        assert not Person.has_attribute('age')
        assert Person.attribute_type('name') == 'TEXT'
        assert Person.attribute_type('age') is None

    def test_add_attribute(self, Person: Type[Model]) -> None:
        Person.add_attribute('age', 'integer')
        jim = Person.create(name='Jim', age=21)
        assert Person.first(jim.id).age == 21

    def test_registry(self, Base: Type[Model], Person: Type[Model]) -> None:
        assert Base.__registry__.get('Person') is Person
        assert 'Person' in Base.__registry__


class TestSelfDestruct:

    def test_drops_table_and_unregisters(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        Person.create(name='Jim')

        Person.self_destruct()

        assert not store.table_exists('person')
        assert 'Person' not in Base.__registry__

    def test_twice_is_harmless(self, store: SQLiteStore, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        Person.self_destruct()
        Person.self_destruct()
        assert not store.table_exists('person')

    def test_redeclare_after_self_destruct(self, Base: Type[Model]) -> None:
        Person = Base.extend('Person', {'name': 'string'})
        Person.create(name='Jim')
        Person.self_destruct()

        Person = Base.extend('Person', {'name': 'string'})
        assert Person.count() == 0
