"""
SQLite 存储测试

直接测试存储契约：表与列管理、记录读写、类型映射。
"""

import sqlite3
from pathlib import Path
from typing import Any, List

import pytest

from pyactive import (
    AttributeType,
    ConfigurationError,
    SQLiteStore,
    StoreError,
    TableNotFoundError,
    get_available_engines,
    get_store,
)


@pytest.fixture
def people(store: SQLiteStore) -> SQLiteStore:
    store.create_table('people', {'id': 'pk', 'name': 'string', 'age': 'integer'})
    return store


class TestTables:
    """表与列管理测试"""

    def test_create_and_exists(self, people: SQLiteStore) -> None:
        assert people.table_exists('people')
        assert not people.table_exists('nothing')

    def test_column_types(self, people: SQLiteStore) -> None:
        assert people.column_types('people') == {'id': 'INTEGER', 'name': 'TEXT', 'age': 'INTEGER'}

    def test_column_types_of_missing_table(self, store: SQLiteStore) -> None:
        assert store.column_types('nothing') == {}

    def test_column_types_returns_copy(self, people: SQLiteStore) -> None:
        people.column_types('people')['bogus'] = 'TEXT'
        assert 'bogus' not in people.column_types('people')

    def test_add_column(self, people: SQLiteStore) -> None:
        people.column_types('people')
        people.add_column('people', 'born', AttributeType.DATE)
        assert people.column_types('people')['born'] == 'DATE'

    def test_drop_table(self, people: SQLiteStore) -> None:
        people.drop_table('people')
        assert not people.table_exists('people')
        assert people.column_types('people') == {}

    def test_drop_missing_table(self, store: SQLiteStore) -> None:
        with pytest.raises(TableNotFoundError):
            store.drop_table('nothing')

    def test_create_force_replaces(self, people: SQLiteStore) -> None:
        people.insert('people', {'name': 'Jim'})
        people.create_table('people', {'id': 'pk', 'title': 'string'}, force=True)
        assert people.count('people') == 0
        assert 'title' in people.column_types('people')

    def test_create_existing_fails(self, people: SQLiteStore) -> None:
        with pytest.raises(StoreError):
            people.create_table('people', {'id': 'pk'})

    def test_hidden_columns(self, store: SQLiteStore) -> None:
        store.create_table('things', {'id': 'pk', '_secret': 'string', 'name': 'string'})
        assert set(store.column_types('things')) == {'id', 'name'}


class TestTypeMapping:

    def test_native_type_for(self, store: SQLiteStore) -> None:
        assert store.native_type_for('pk') == 'INTEGER'
        assert store.native_type_for('string') == 'TEXT'
        assert store.native_type_for('boolean') == 'BOOLEAN'

    def test_attribute_type_for(self, store: SQLiteStore) -> None:
        assert store.attribute_type_for('INTEGER') is AttributeType.INTEGER
        assert store.attribute_type_for('timestamp') is AttributeType.TIMESTAMP
        assert store.attribute_type_for('JSON') is None

    def test_unknown_tag(self, store: SQLiteStore) -> None:
        with pytest.raises(ConfigurationError):
            store.column_type_for('varchar')


class TestRecords:
    """记录读写测试"""

    def test_insert_returns_id(self, people: SQLiteStore) -> None:
        assert people.insert('people', {'name': 'Jim', 'age': 21}) == 1
        assert people.insert('people', {'name': 'Jane', 'age': 22}) == 2

    def test_insert_default_values(self, people: SQLiteStore) -> None:
        new_id = people.insert('people', {})
        assert people.first('people', new_id) == {'id': new_id, 'name': None, 'age': None}

    def test_find_and_first(self, people: SQLiteStore) -> None:
        people.insert('people', {'name': 'Jim', 'age': 21})
        people.insert('people', {'name': 'Jane', 'age': 22})
        rows = list(people.find('people', {'age': [21, 22]}, {'order': 'age DESC'}))
        assert [r['name'] for r in rows] == ['Jane', 'Jim']
        assert people.first('people', {'name': 'Jim'})['age'] == 21
        assert people.first('people', {'name': 'Nobody'}) is None

    def test_update_and_delete(self, people: SQLiteStore) -> None:
        jim = people.insert('people', {'name': 'Jim', 'age': 21})
        people.update('people', {'age': 30}, jim)
        assert people.first('people', jim)['age'] == 30
        people.delete('people', {'name': 'Jim'})
        assert people.count('people') == 0

    def test_update_without_values_is_noop(self, people: SQLiteStore) -> None:
        jim = people.insert('people', {'name': 'Jim'})
        people.update('people', {}, jim)
        assert people.first('people', jim)['name'] == 'Jim'

    def test_count(self, people: SQLiteStore) -> None:
        for age in (20, 21, 22):
            people.insert('people', {'age': age})
        assert people.count('people') == 3
        assert people.count('people', 'age > 20') == 2

    def test_invalid_sql_raises_store_error(self, people: SQLiteStore) -> None:
        with pytest.raises(StoreError):
            people.count('people', 'bogus_column = 1')

    def test_escape(self, store: SQLiteStore) -> None:
        assert store.escape("it's") == "it''s"


class TestSchemaChangedRetry:
    """schema 变更后的重试测试"""

    @staticmethod
    def _failing(store: SQLiteStore, monkeypatch: pytest.MonkeyPatch, errors: List[Exception]) -> List[str]:
        """前 len(errors) 次执行依次抛出 errors，之后交给真实驱动"""
        calls: List[str] = []
        real_execute = store._execute_raw

        def execute_raw(sql: str) -> Any:
            calls.append(sql)
            if errors:
                raise errors.pop(0)
            return real_execute(sql)

        monkeypatch.setattr(store, '_execute_raw', execute_raw)
        return calls

    def test_retries_once_and_clears_cache(self, people: SQLiteStore, monkeypatch: pytest.MonkeyPatch) -> None:
        people.insert('people', {'name': 'Jim'})
        people.column_types('people')
        calls = self._failing(people, monkeypatch, [sqlite3.OperationalError('database schema has changed')])

        assert people.count('people') == 1
        assert len(calls) == 2
        assert calls[0] == calls[1]
        assert people._column_types == {}

    def test_second_failure_raises(self, people: SQLiteStore, monkeypatch: pytest.MonkeyPatch) -> None:
        error = sqlite3.OperationalError('database schema has changed')
        calls = self._failing(people, monkeypatch, [error, error])

        with pytest.raises(StoreError) as exc_info:
            people.count('people')
        assert exc_info.value.__cause__ is error
        assert len(calls) == 2

    def test_other_errors_are_not_retried(self, people: SQLiteStore, monkeypatch: pytest.MonkeyPatch) -> None:
        error = sqlite3.OperationalError('disk I/O error')
        calls = self._failing(people, monkeypatch, [error])

        with pytest.raises(StoreError) as exc_info:
            people.count('people')
        assert exc_info.value.__cause__ is error
        assert len(calls) == 1


class TestConnection:

    def test_file_store_persists(self, temp_file: Path) -> None:
        store = SQLiteStore.connect(str(temp_file))
        store.create_table('people', {'id': 'pk', 'name': 'string'})
        store.insert('people', {'name': 'Jim'})
        store.close()

        reopened = get_store('sqlite', source=str(temp_file))
        try:
            assert reopened.first('people', 1)['name'] == 'Jim'
        finally:
            reopened.close()

    def test_closed_store(self, temp_file: Path) -> None:
        store = SQLiteStore.connect(str(temp_file))
        store.close()
        with pytest.raises(StoreError):
            store.table_exists('people')

    def test_unknown_engine(self) -> None:
        with pytest.raises(ConfigurationError):
            get_store('oracle')

    def test_available_engines(self) -> None:
        assert 'sqlite' in get_available_engines()
