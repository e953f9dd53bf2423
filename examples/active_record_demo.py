"""
pyactive 记录类示例

展示运行时声明记录类的基本用法：
- extend() 声明类并同步表结构
- create / save / refresh / destroy
- 本地值与持久值
- 条件查询与查询选项
- 重新声明时增补列
"""

import logging
import os
import sys
from datetime import date
from typing import Type

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pyactive import Model, SQLiteStore, declarative_base, FrozenObjectError

logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

print("=" * 70)
print("pyactive 记录类示例")
print("=" * 70)

db = SQLiteStore.connect(':memory:')
Base: Type[Model] = declarative_base(db)

# ============================================================================
# 1. 声明类
# ============================================================================

Person = Base.extend('Person', {
    'table_name': lambda cls: 'people',
    'name': 'string',
    'age': 'integer',
    'born': 'date',
})

print("\n1. 声明类")
print(f"   表名: {Person.table_name()}")
print(f"   列: {Person.attribute_types()}")

# ============================================================================
# 2. 创建与修改
# ============================================================================

print("\n2. 创建与修改")
jim = Person.create(name='Jim', age=21, born=date(2003, 4, 1))
jane = Person.create(name='Jane', age=22)
print(f"   {jim!r}")

jim.age = 30
print(f"   本地修改后 is_dirty={jim.is_dirty()}，存储中 age={Person.first(jim.id).age}")
jim.save()
print(f"   保存后 is_dirty={jim.is_dirty()}，存储中 age={Person.first(jim.id).age}")

jim.set_attribute('name', 'James')
print(f"   set_attribute 立即保存: {Person.first(jim.id).name}")

# ============================================================================
# 3. 查询
# ============================================================================

print("\n3. 查询")
print(f"   按 id: {Person.first(2).name}")
print(f"   按映射: {[p.name for p in Person.all({'age': [22, 30]})]}")
print(f"   原始谓词: {[p.name for p in Person.all('age > 21')]}")
print(f"   排序与分页: {[p.name for p in Person.all(options={'order': 'age DESC', 'limit': 1})]}")
print(f"   计数: {Person.count()}，ids: {Person.ids()}")

# ============================================================================
# 4. 销毁与冻结
# ============================================================================

print("\n4. 销毁与冻结")
jane.destroy()
print(f"   is_frozen={jane.is_frozen()}，is_present={jane.is_present()}")
try:
    jane.name = 'Janet'
except FrozenObjectError as e:
    print(f"   修改被拒绝: {e}")

# ============================================================================
# 5. 重新声明：增补新列，已有数据保留
# ============================================================================

print("\n5. 重新声明")
Person = Base.extend('Person', {
    'table_name': lambda cls: 'people',
    'name': 'string',
    'age': 'integer',
    'born': 'date',
    'email': 'string',
})
james = Person.first({'name': 'James'})
print(f"   新列: {list(Person.attribute_types())}")
print(f"   已有记录: {james!r}")

db.close()
print("\n完成")
